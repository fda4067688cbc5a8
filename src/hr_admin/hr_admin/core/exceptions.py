class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or outside an allowed vocabulary."""


class AuthenticationError(DomainError):
    """Raised when an operation is attempted without an authenticated principal."""


class AuthorizationError(DomainError):
    """Raised when a principal lacks permission, scope, or the record is locked."""


class InvalidTransitionError(DomainError):
    """Raised when a record in a terminal status is asked to change status."""

    def __init__(self, message: str, *, current_status: str):
        super().__init__(message)
        self.current_status = current_status


class NotFoundError(DomainError):
    """Raised when the target record does not exist."""


class ConflictError(DomainError):
    """Raised when a record changed underneath a conditional update."""


class RateLimitError(DomainError):
    """Raised when a caller exceeds its attempt budget for the current window."""
