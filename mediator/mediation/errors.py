"""
Error taxonomy for mediation operations.

Every error carries the HTTP status it maps to, so the API layer can render
any of them as ``{"error": message}`` without a lookup table.
"""


class MediationError(Exception):
    """Base class. ``message`` is safe to show to the caller."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class Unauthenticated(MediationError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class Forbidden(MediationError):
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFound(MediationError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class Conflict(MediationError):
    status_code = 409


class InvalidInput(MediationError):
    status_code = 400


class RateLimited(MediationError):
    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message)


class ProviderError(MediationError):
    """The LLM provider failed in a way retrying will not fix."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class Unauthorized(ProviderError):
    """The provider rejected our API credentials."""
