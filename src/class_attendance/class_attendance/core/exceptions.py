class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class InvalidSchedule(ValidationError):
    """Raised when a schedule has no days selected or cannot be parsed."""


class GenerationFailed(DomainError):
    """Raised when a session could not be generated; nothing was committed."""


class StoreUnavailable(DomainError):
    """Raised when the attendance store (or another backing store) cannot be reached."""
