class DomainError(Exception):
    """Base exception for business rule violations.

    Keyword arguments are kept as ``details`` and merged into the JSON error body.
    """

    status_code = 400

    def __init__(self, message: str = "", **details):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class AuthenticationError(DomainError):
    """Raised when credentials or tokens are missing or wrong."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when a unique record already exists."""

    status_code = 409
