"""Errors raised by the JSON translator."""

from typing import Optional


class TranslationError(Exception):
    """Base class for translator failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(TranslationError):
    """A required configuration value is missing."""

    def __init__(self, missing: str):
        self.missing = missing
        super().__init__(f"{missing} not configured")


class AuthenticationError(TranslationError):
    """The endpoint rejected the API key (HTTP 401)."""

    def __init__(self):
        super().__init__("Invalid or expired API key", status_code=401)


class RateLimitError(TranslationError):
    """The endpoint refused the call because of rate limits (HTTP 429)."""

    def __init__(self):
        super().__init__("API call limit reached", status_code=429)


class RequestFailedError(TranslationError):
    """The endpoint answered with any other non-success status."""

    def __init__(self, status_code: int):
        super().__init__(
            f"API request failed with status {status_code}", status_code=status_code
        )


class StreamUnsupportedError(TranslationError):
    """The response body cannot be read as a stream."""

    def __init__(self):
        super().__init__("Stream not supported")


class InvalidResultFormatError(TranslationError):
    """The accumulated model output is not valid JSON."""

    def __init__(self, diagnostic: str):
        self.diagnostic = diagnostic
        super().__init__(f"Invalid translation result format: {diagnostic}")


class InvalidSourceError(TranslationError):
    """The document handed in for translation is not valid JSON."""


class UnknownError(TranslationError):
    """The transport produced something the decoder cannot handle."""

    def __init__(self, detail: str = ""):
        message = "Unknown error occurred"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


def error_for_status(status_code: int) -> TranslationError:
    """Map a non-success HTTP status to its error."""
    if status_code == 401:
        return AuthenticationError()
    if status_code == 429:
        return RateLimitError()
    return RequestFailedError(status_code)
