class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a subject, user, session or staged request is absent."""


class ConflictError(DomainError):
    """Raised on duplicates: subject, enrollment, request or assignment."""


class AuthenticationError(DomainError):
    """Raised when login credentials or tokens are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class StoreUnavailableError(DomainError):
    """Raised when MySQL or Redis cannot serve a request."""


class DeliveryError(DomainError):
    """Raised when outbound email cannot be delivered."""
