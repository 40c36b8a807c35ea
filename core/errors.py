"""
core/errors.py -- Domain error taxonomy.

Services raise these; api/main.py owns the single exception handler that turns
them into the error envelope. Each class carries its HTTP status and a stable
machine-readable code so the route layer never picks status codes itself.

Layer rule: core/ is the kernel. No imports from api/, auth/, content/,
storage/, or cache/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for deliberate, client-facing failures."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request."


class AuthenticationError(AppError):
    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required."


class AuthorizationError(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "You do not have permission to perform this action."


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists."


class UpstreamError(AppError):
    """A third-party API (GitHub) failed or was unreachable."""

    status_code = 502
    code = "upstream_error"
    default_message = "Upstream service unavailable."


class InternalError(AppError):
    pass
