"""
Error taxonomy for the recipe generation function.

Every failure the request pipeline can produce is a GenerationError carrying
the HTTP status it maps to and, where one exists, the error code recorded in
the usage ledger.
"""

from typing import Optional


class GenerationError(Exception):
    """Base class for classified request failures."""

    status_code = 500

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class AuthError(GenerationError):
    """Missing or unresolvable bearer credential."""
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ValidationError(GenerationError):
    """Request was well-formed JSON but unusable after normalization."""
    status_code = 400


class RateLimitExceeded(GenerationError):
    """Caller used up the attempts allowed in the trailing window."""
    status_code = 429

    def __init__(self, message: str, count: int, limit: int):
        super().__init__(message, error_code="rate_limit_exceeded")
        self.count = count
        self.limit = limit


class UpstreamError(GenerationError):
    """Completion provider answered, but not with something usable."""
    status_code = 502


class UpstreamTimeout(GenerationError):
    """Completion provider did not answer within the timeout."""
    status_code = 504

    def __init__(self, message: str = "OpenAI request timed out"):
        super().__init__(message, error_code="openai_timeout")


class ConfigError(GenerationError):
    """Required server configuration is absent."""
    status_code = 500


class LedgerError(Exception):
    """Ledger store rejected a count or insert."""
