from typing import Any, Iterable


class ApiError(Exception):
    """Base for every error the API reports as a JSON ``{"error": ..., "message": ...}`` body."""

    status_code = 500
    error = "Internal Server Error"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, *, error: str | None = None, **extra: Any):
        self.message = message or self.default_message
        if error:
            self.error = error
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body = {"error": self.error, "message": self.message}
        body.update(self.extra)
        return body


class AuthenticationRequired(ApiError):
    status_code = 401
    error = "Authentication required"
    default_message = "Please provide a valid token in the Authorization header"


class InvalidCredential(ApiError):
    status_code = 401
    error = "Invalid token"
    default_message = "The provided token is invalid"


class ExpiredCredential(ApiError):
    status_code = 401
    error = "Token expired"
    default_message = "Your session has expired. Please login again"


class SubjectNotFound(ApiError):
    status_code = 401
    error = "User not found"
    default_message = "The user associated with this token no longer exists"


class InvalidLogin(ApiError):
    status_code = 401
    error = "Invalid email or password"
    default_message = "Invalid email or password"


class AuthorizationDenied(ApiError):
    status_code = 403
    error = "Access forbidden"
    default_message = "You do not have permission to perform this action"

    def __init__(
        self,
        message: str | None = None,
        *,
        required_roles: Iterable[str] | None = None,
        current_role: str | None = None,
        **extra: Any,
    ):
        if required_roles is not None:
            extra["requiredRoles"] = [str(role) for role in required_roles]
        if current_role is not None:
            extra["currentRole"] = str(current_role)
        super().__init__(message, **extra)


class SelfActionForbidden(ApiError):
    status_code = 400
    error = "Cannot act on your own account"
    default_message = "Super admins cannot change or delete their own account"


class ValidationFailed(ApiError):
    status_code = 400
    error = "Invalid request"
    default_message = "Invalid data provided"

    def __init__(self, error: str | None = None, message: str | None = None, **extra: Any):
        super().__init__(message or error, error=error, **extra)


class NotFoundError(ApiError):
    status_code = 404
    error = "Not found"
    default_message = "The requested resource does not exist"

    def __init__(self, entity: str, message: str | None = None):
        super().__init__(message or f"{entity} not found", error=f"{entity} not found")


class ConflictError(ApiError):
    status_code = 409
    error = "Conflict"
    default_message = "Resource already exists"

    def __init__(self, error: str, message: str | None = None, **extra: Any):
        super().__init__(message or error, error=error, **extra)


class DatabaseUnavailable(ApiError):
    status_code = 503
    error = "Database connection failed"
    default_message = "Database connection failed. Please try again later."
