"""
Domain errors raised by the services.

Each error carries the HTTP status it maps to; main.py renders all of
them through a single exception handler.
"""


class FleetError(Exception):
    status_code = 500
    kind = "error"

    def __init__(self, message: str, details: dict | list | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(FleetError):
    """Bad parameters, rejected before any read or write."""
    status_code = 400
    kind = "validation_error"


class NotFoundError(FleetError):
    status_code = 404
    kind = "not_found"


class StateConflictError(FleetError):
    """Illegal status transition, unavailable driver or duplicate identifier."""
    status_code = 409
    kind = "state_conflict"


class ResourceExhaustedError(FleetError):
    """No available drivers or no pending orders to simulate with."""
    status_code = 422
    kind = "resource_exhausted"


class InternalError(FleetError):
    status_code = 500
    kind = "internal_error"
