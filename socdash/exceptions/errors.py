# socdash/exceptions/errors.py
from fastapi import status


class SocDashError(Exception):
    """Base error for the alert core; carries the HTTP status it maps to"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(SocDashError):
    """Malformed input: unknown enum value, out-of-range port, bad address"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Validation error"


class NotFoundError(SocDashError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"

    def __init__(self, resource: str, resource_id):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found")


class InvalidTransitionError(SocDashError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Invalid status transition"

    def __init__(self, current, requested, reason: str = None):
        self.current = current
        self.requested = requested
        if requested is None:
            detail = f"Operation not allowed while status is {_label(current)}"
        else:
            detail = f"Invalid status transition from {_label(current)} to {_label(requested)}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)


class ForbiddenError(SocDashError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Insufficient permissions"


class QueryTimeoutError(SocDashError):
    """Read exceeded its execution budget; retry with a narrower filter"""
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_detail = "Query exceeded its execution budget"


class StorageError(SocDashError):
    """Write failed at the storage layer; it was not applied and is not retried"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage unavailable"


def _label(value) -> str:
    return getattr(value, "value", value)
