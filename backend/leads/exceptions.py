"""
Typed errors raised by the event store and triage services.

They subclass DRF's APIException so views can let them propagate and the
framework turns them into the right status code. The project exception
handler adds a stable `error` code (and any extra fields) to the body so the
dashboard can tell an unresolved-lead guard apart from a generic failure.
"""
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.views import exception_handler


class LeadDeskError(APIException):
    """Base class; `extra` is merged into the JSON error body."""

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail=detail, code=code)
        self.extra = extra


class EventValidationError(LeadDeskError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "invalid"


class EventNotFound(LeadDeskError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Event not found."
    default_code = "not_found"


class UnresolvedLeadConflict(LeadDeskError):
    """Deleting a lead with no outcome needs confirm_unresolved=true."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Lead has no result yet; confirm to delete an unresolved lead."
    default_code = "unresolved"

    @property
    def unresolved_count(self) -> int:
        return self.extra.get("unresolved_count", 1)


class StorageError(LeadDeskError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The event store is unavailable."
    default_code = "storage_error"


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, LeadDeskError):
        response.data = {
            "detail": str(exc.detail),
            "error": exc.default_code,
            **exc.extra,
        }
    elif isinstance(exc, ValidationError):
        data = response.data if isinstance(response.data, dict) else {"detail": response.data}
        response.data = {"error": "invalid", **data}
    elif isinstance(response.data, dict):
        response.data.setdefault("error", getattr(exc, "default_code", "error"))
    return response
