"""Configuration models for the HttpClient interface."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
from urllib.parse import quote

DEFAULT_USER_AGENT = "courier/0.1"


def _empty_mapping() -> Mapping[str, Any]:
    """Return immutable empty mapping."""

    return MappingProxyType({})


class AuthMethod(str, Enum):
    BASIC = "basic"
    DIGEST = "digest"


class ProxyType(str, Enum):
    """Proxy protocols understood by the requests transport.

    The value is the scheme used in the proxy URL.
    """

    HTTP = "http"
    HTTPS = "https"
    SOCKS4 = "socks4"
    SOCKS4A = "socks4a"
    SOCKS5 = "socks5"
    SOCKS5_HOSTNAME = "socks5h"


@dataclass(frozen=True)
class RetryPolicy:
    """When and how long to wait before repeating a request.

    ``max_interval_seconds`` is the retry budget: the cumulative wait allowed
    across all retries of one call, not a per-retry cap.
    """

    enabled: bool = False
    max_retries: int = 3
    retry_on_timeout: bool = False
    interval_seconds: float = 1.0
    max_interval_seconds: float = 120.0
    backoff_factor: float = 2.0
    status_codes: frozenset[int] = frozenset()
    methods: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        if self.max_interval_seconds < 0:
            raise ValueError("max_interval_seconds must be >= 0")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")

        object.__setattr__(
            self, "status_codes", frozenset(int(c) for c in self.status_codes)
        )
        object.__setattr__(
            self, "methods", frozenset(_method_name(m) for m in self.methods)
        )


def _method_name(method: Any) -> str:
    return str(getattr(method, "value", method)).upper()


@dataclass(frozen=True)
class AuthConfig:
    username: str = ""
    password: str = ""
    method: AuthMethod = AuthMethod.BASIC


@dataclass(frozen=True)
class ProxyConfig:
    """Proxy every request through ``address:port``."""

    address: str
    port: int = 1080
    type: ProxyType = ProxyType.HTTP
    username: str = ""
    password: str = ""

    def __post_init__(self) -> None:
        if not self.address:
            raise ValueError("proxy address must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError("proxy port must be between 1 and 65535")
        object.__setattr__(self, "type", ProxyType(self.type))

    def url(self) -> str:
        """Render the proxy as a URL, credentials included."""
        credentials = ""
        if self.username:
            credentials = quote(self.username, safe="")
            if self.password:
                credentials += ":" + quote(self.password, safe="")
            credentials += "@"
        return f"{self.type.value}://{credentials}{self.address}:{self.port}"


@dataclass(frozen=True)
class JsonOptions:
    """How response bodies are JSON-decoded.

    ``bigint_as_string`` keeps integers outside the signed 64-bit range as
    their digit strings instead of Python ints.
    """

    decode: bool = True
    bigint_as_string: bool = False


@dataclass(frozen=True)
class HttpClientConfig:
    """Configuration for HttpClient behavior.

    Instances are immutable; use ``evolve`` and the ``with_*`` helpers to
    derive changed copies.
    """

    user_agent: str = DEFAULT_USER_AGENT
    default_headers: Mapping[str, str] = field(default_factory=_empty_mapping)
    transport_options: Mapping[str, Any] = field(
        default_factory=_empty_mapping
    )
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    verify_tls: bool = True
    connect_timeout_seconds: float | None = None
    read_timeout_seconds: float | None = None
    timeout_seconds: float | None = None
    cookie: str | None = None
    cookie_file: str | None = None
    auth: AuthConfig | None = None
    proxy: ProxyConfig | None = None
    json: JsonOptions = field(default_factory=JsonOptions)
    max_redirects: int = 10

    def __post_init__(self) -> None:
        if not self.user_agent:
            raise ValueError("user_agent must not be empty")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")

        has_connect_timeout = self.connect_timeout_seconds is not None
        has_read_timeout = self.read_timeout_seconds is not None
        if has_connect_timeout != has_read_timeout:
            raise ValueError(
                "connect_timeout_seconds and read_timeout_seconds "
                "must be set together"
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0 when provided")
        if (
            self.connect_timeout_seconds is not None
            and self.connect_timeout_seconds <= 0
        ):
            raise ValueError(
                "connect_timeout_seconds must be > 0 when provided"
            )
        if (
            self.read_timeout_seconds is not None
            and self.read_timeout_seconds <= 0
        ):
            raise ValueError("read_timeout_seconds must be > 0 when provided")

        # Freeze copied mappings to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "default_headers",
            MappingProxyType(dict(self.default_headers)),
        )
        object.__setattr__(
            self,
            "transport_options",
            MappingProxyType(dict(self.transport_options)),
        )

    def evolve(self, **changes: Any) -> HttpClientConfig:
        return dataclasses.replace(self, **changes)

    def with_default_header(self, name: str, value: str) -> HttpClientConfig:
        return self.with_default_headers({name: value})

    def with_default_headers(
        self, headers: Mapping[str, str]
    ) -> HttpClientConfig:
        """Merge ``headers`` over the current defaults."""
        merged = {**self.default_headers, **headers}
        return self.evolve(default_headers=merged)

    def without_default_headers(self) -> HttpClientConfig:
        return self.evolve(default_headers={})

    def with_transport_option(self, name: str, value: Any) -> HttpClientConfig:
        return self.with_transport_options({name: value})

    def with_transport_options(
        self, options: Mapping[str, Any]
    ) -> HttpClientConfig:
        """Merge ``options`` over the current transport options."""
        merged = {**self.transport_options, **options}
        return self.evolve(transport_options=merged)

    def without_transport_options(self) -> HttpClientConfig:
        return self.evolve(transport_options={})
