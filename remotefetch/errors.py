"""
Exceptions raised by the remote resource fetcher.
Every failure a caller can see is a FetchError subclass.
"""


class FetchError(Exception):
    """Base for fetch failures."""

    pass


class ConfigError(FetchError, ValueError):
    """Invalid configuration value or whitelist pattern."""

    pass


class MalformedInputError(FetchError):
    """Identifier is not an absolute http(s) URL."""

    pass


class InvalidHostError(FetchError):
    """Host candidate could not be used for a whitelist check."""

    pass


class SecurityError(FetchError):
    """Host not on the whitelist. No request was made."""

    pass


class FetchTimeout(FetchError):
    """Deadline elapsed before the response completed."""

    pass


class SizeLimitExceeded(FetchError):
    """Response body is larger than the configured maximum."""

    def __init__(self, message: str, limit: int, size: int | None = None) -> None:
        super().__init__(message)
        self.limit = limit
        self.size = size


class NetworkError(FetchError):
    """Transport failure (DNS, connect, TLS, protocol) or non-2xx status."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.status_code = status_code
