"""Errors raised by LeadDeskClient, one per failure class the dashboard handles."""


class DashboardApiError(Exception):
    """Any failed call to the lead desk API."""

    def __init__(self, message: str, status_code: int | None = None, payload: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class ValidationFailed(DashboardApiError):
    pass


class NotFound(DashboardApiError):
    pass


class Conflict(DashboardApiError):
    """The server refused to drop unresolved leads without confirmation."""

    @property
    def unresolved_count(self) -> int:
        return int(self.payload.get("unresolved_count") or 1)


class StorageFailure(DashboardApiError):
    pass


class AccessDenied(DashboardApiError):
    pass


class TransportError(DashboardApiError):
    """The request never got an HTTP answer (DNS, refused, timeout)."""


_BY_STATUS = {
    400: ValidationFailed,
    401: AccessDenied,
    403: AccessDenied,
    404: NotFound,
    409: Conflict,
}


def error_for_status(status_code: int, message: str, payload: dict) -> DashboardApiError:
    if status_code >= 500:
        return StorageFailure(message, status_code, payload)
    error_cls = _BY_STATUS.get(status_code, DashboardApiError)
    return error_cls(message, status_code, payload)
