"""Domain error types."""
from typing import Optional


class DomainError(Exception):
    """Base domain error."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Resource not found."""
    status_code = 404

    def __init__(self, resource: str, identifier: Optional[str] = None):
        self.resource = resource
        self.identifier = identifier
        if identifier is None:
            super().__init__(f"{resource} not found")
        else:
            super().__init__(f"{resource} with id {identifier} not found")


class ValidationError(DomainError):
    """Validation error."""
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class AuthorizationError(DomainError):
    """Missing session, or the acting user does not own the resource."""
    status_code = 401

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class ConflictError(DomainError):
    """Resource conflict error."""
    status_code = 409


class InternalError(DomainError):
    """Storage failure or aborted transaction. Carries no partial-failure detail."""
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
