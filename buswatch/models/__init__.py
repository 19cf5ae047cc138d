from buswatch.models.requests import BusRegistration, BusUpdate, IncidentReport

__all__ = ["BusUpdate", "BusRegistration", "IncidentReport"]
