class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a record (or an active session) does not exist for the user."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when an action would create a duplicate, e.g. a second active session."""

    status_code = 409


class AuthenticationError(DomainError):
    """Raised when the request carries no authenticated user."""

    status_code = 401
