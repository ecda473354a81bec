"""
Shared error types for core services.
"""


class ServiceError(Exception):
    kind = "internal_failure"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        error_type: str | None = None,
        data: dict | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.error_type = error_type or self.kind
        self.data = data


class AuthenticationRequired(ServiceError):
    kind = "authentication_required"


class PermissionDenied(AuthenticationRequired):
    """Actor is authenticated but may not perform the operation."""

    kind = "forbidden"


class NotFound(ServiceError):
    kind = "not_found"


class InvalidArgument(ServiceError, ValueError):
    kind = "invalid_argument"

    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
        data: dict | None = None,
    ):
        super().__init__(message, field=field, error_type=error_type, data=data)


class Conflict(ServiceError):
    """Uniqueness violation surfaced by a concurrent mutation; safe to retry."""

    kind = "conflict"


class InternalFailure(ServiceError):
    kind = "internal_failure"


class IngestConfigError(RuntimeError):
    """Raised when the ingestion run cannot start (config or connectivity)."""
