"""Error types raised by the courier HTTP client."""

from __future__ import annotations


class HttpClientError(Exception):
    """Base class for every error raised by courier."""


class InvalidURL(HttpClientError, ValueError):
    """The request URL is not absolute (missing scheme or host)."""


class TransportError(HttpClientError):
    """The transport failed and the call produced no response.

    Raised after retries are exhausted or when the failure is not eligible for
    retry. The message is the transport's own error text.
    """

    def __init__(
        self, message: str, *, attempts: int = 1, timed_out: bool = False
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.timed_out = timed_out


class RequestTimeoutError(TransportError):
    """The transport gave up waiting on a connect or read."""

    def __init__(self, message: str, *, attempts: int = 1) -> None:
        super().__init__(message, attempts=attempts, timed_out=True)
