class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class InvalidTransition(DomainError):
    """Raised when the requested status is not reachable from the current one."""


class Unauthorized(DomainError):
    """Raised when the caller's role does not allow the action."""


class ConflictError(DomainError):
    """Raised when a write would break consistency between records.

    Nothing is persisted when this is raised.
    """


class DeliveryFailure(DomainError):
    """Raised by push transports. Logged by the fan-out, never surfaced."""
