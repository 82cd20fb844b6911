"""
Application error taxonomy.

Services raise these instead of HTTPException so the same rules apply no matter
which route reaches them. main.py renders every AppError as
{"error": message, "kind": kind} with the class's status code.
"""

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input"""
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation_error"
    default_message = "Missing fields"


class AuthenticationError(AppError):
    """Missing credentials, bad credentials, or no bearer token"""
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "authentication_error"
    default_message = "Access denied"


class InvalidTokenError(AppError):
    # Bad signature, malformed payload or expired token
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invalid_token"
    default_message = "Invalid token"


class NotAuthorizedError(AppError):
    """
    Resource is not owned by the caller.

    Also raised when the resource does not exist at all, so callers cannot
    probe for other users' ids.
    """
    status_code = status.HTTP_403_FORBIDDEN
    kind = "not_authorized"
    default_message = "Not authorized"


class ConflictError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "conflict"
    default_message = "Email already exists"
