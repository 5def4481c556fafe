"""courier: a synchronous HTTP client with header-driven retries."""

from .body import FileUpload
from .client import HttpClient, Method
from .config import (
    AuthConfig,
    AuthMethod,
    HttpClientConfig,
    JsonOptions,
    ProxyConfig,
    ProxyType,
    RetryPolicy,
)
from .errors import (
    HttpClientError,
    InvalidURL,
    RequestTimeoutError,
    TransportError,
)
from .response import Response

__all__ = [
    "AuthConfig",
    "AuthMethod",
    "FileUpload",
    "HttpClient",
    "HttpClientConfig",
    "HttpClientError",
    "InvalidURL",
    "JsonOptions",
    "Method",
    "ProxyConfig",
    "ProxyType",
    "RequestTimeoutError",
    "Response",
    "RetryPolicy",
    "TransportError",
]
