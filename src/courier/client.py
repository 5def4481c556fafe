"""Synchronous HTTP client for courier.

``HttpClient.send`` builds the request from the client's configuration,
runs it through the transport, repeats it while the retry policy says so and
returns a ``Response``. HTTP error statuses are ordinary responses; only a
failed transport raises.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from time import sleep
from typing import Any, Mapping

from requests.auth import AuthBase, HTTPBasicAuth, HTTPDigestAuth

from .body import flatten_body, is_structured, split_files
from .config import AuthConfig, AuthMethod, HttpClientConfig
from .errors import RequestTimeoutError, TransportError
from .headers import compose_headers
from .response import Response
from .retry import evaluate_retry
from .transport import AttemptOutcome, RequestsTransport, TransportCall
from .urls import normalize_url

logger = logging.getLogger(__name__)


class Method(str, Enum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    CONNECT = "CONNECT"
    TRACE = "TRACE"


def _auth_handler(auth: AuthConfig) -> AuthBase:
    if auth.method is AuthMethod.DIGEST:
        return HTTPDigestAuth(auth.username, auth.password)
    return HTTPBasicAuth(auth.username, auth.password)


class HttpClient:
    """Core HTTP client (sync).

    The configuration is an immutable snapshot. ``configure`` swaps in a new
    one under a lock; a call already in flight keeps the snapshot it started
    with, so one client can be shared between threads.
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        transport: RequestsTransport | None = None,
    ) -> None:
        """Create a new HttpClient.

        Args:
            config: Configuration for headers, timeouts, retries, auth and
                proxy. Defaults to ``HttpClientConfig()``.
            transport: Transport performing the network I/O.
        """
        self._config = config or HttpClientConfig()
        self._transport = transport or RequestsTransport()
        self._lock = threading.Lock()

    @property
    def config(self) -> HttpClientConfig:
        with self._lock:
            return self._config

    def configure(self, **changes: Any) -> HttpClientConfig:
        """Replace configuration fields for subsequent calls."""
        with self._lock:
            self._config = self._config.evolve(**changes)
            return self._config

    @staticmethod
    def _get_timeout(
        config: HttpClientConfig,
        override: float | tuple[float, float] | None,
    ) -> float | tuple[float, float] | None:
        """Resolve timeout preference."""
        if isinstance(override, tuple):
            return override
        if override is not None:
            if override <= 0:
                raise ValueError("timeout override must be > 0 when provided")
            return override
        if (
            config.connect_timeout_seconds is not None
            and config.read_timeout_seconds is not None
        ):
            return (
                config.connect_timeout_seconds,
                config.read_timeout_seconds,
            )
        return config.timeout_seconds

    def _build_call(
        self,
        config: HttpClientConfig,
        method: Method,
        url: str,
        body: Any,
        headers: Mapping[str, str] | None,
        username: str | None,
        password: str | None,
        options: Mapping[str, Any] | None,
    ) -> TransportCall:
        """Turn one request into a transport call."""
        params: Mapping[str, Any] | None = None
        data: Any = None
        files = {}
        if method is Method.GET:
            if is_structured(body):
                params, uploads = split_files(flatten_body(body))
                if uploads:
                    raise ValueError(
                        "file uploads cannot be sent in a GET query: "
                        + ", ".join(sorted(uploads))
                    )
            elif body is not None:
                logger.debug("Ignoring non-structured body on GET %s", url)
        elif is_structured(body):
            data, files = split_files(flatten_body(body))
        else:
            data = body

        request_options: dict[str, Any] = {
            "allow_redirects": True,
            "verify": config.verify_tls,
        }
        request_options.update(config.transport_options)
        request_options.update(options or {})

        timeout = self._get_timeout(
            config, request_options.pop("timeout", None)
        )
        if timeout is not None:
            request_options["timeout"] = timeout

        if username:
            request_options["auth"] = HTTPBasicAuth(username, password or "")
        if config.auth is not None and config.auth.username:
            request_options["auth"] = _auth_handler(config.auth)

        if config.proxy is not None:
            proxy_url = config.proxy.url()
            request_options["proxies"] = {"http": proxy_url, "https": proxy_url}

        if not request_options["verify"]:
            logger.warning("TLS verification disabled for %s", url)

        return TransportCall(
            method=method.value,
            url=normalize_url(url, params),
            headers=tuple(
                compose_headers(
                    config.default_headers, headers, config.user_agent
                )
            ),
            data=data,
            files=files,
            options=request_options,
            cookie=config.cookie,
            cookie_file=config.cookie_file,
            max_redirects=config.max_redirects,
        )

    def _execute(
        self, config: HttpClientConfig, call: TransportCall
    ) -> tuple[AttemptOutcome, int]:
        """Run attempts until the retry policy says stop."""
        policy = config.retry
        retry_count = 0
        remaining_budget = float(policy.max_interval_seconds)
        with self._transport.session(call) as session:
            while True:
                logger.debug(
                    "%s %s attempt %d", call.method, call.url, retry_count + 1
                )
                outcome = self._transport.perform(session, call)
                decision = evaluate_retry(
                    policy, call.method, outcome, retry_count, remaining_budget
                )
                if not decision.retry:
                    return outcome, retry_count + 1

                retry_count += 1
                logger.info(
                    "Retrying %s %s in %.3fs (retry %d of %d, %s)",
                    call.method,
                    call.url,
                    decision.wait_seconds,
                    retry_count,
                    policy.max_retries,
                    outcome.error or f"status {outcome.status}",
                )
                sleep(decision.wait_seconds)
                remaining_budget -= decision.budget_consumed

    def send(
        self,
        method: Method | str,
        url: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        username: str | None = None,
        password: str | None = None,
        *,
        options: Mapping[str, Any] | None = None,
    ) -> Response:
        """Perform an HTTP request.

        Args:
            method: HTTP method.
            url: Absolute URL to request.
            body: Query parameters for GET (mapping or object, flattened to
                ``a[b]=1`` keys); the payload for other methods, form-encoded
                when it is a mapping, multipart when it holds ``FileUpload``
                values, sent as-is when ``str`` or ``bytes``.
            headers: Optional per-request headers merged over the defaults.
            username: Basic auth user for this call only. A configured
                ``auth`` takes precedence.
            password: Basic auth password for this call only.
            options: Extra ``requests`` keyword arguments for this call;
                they win over ``transport_options`` from the configuration.

        Returns:
            The final response, whatever its status code.

        Raises:
            InvalidURL: The URL has no scheme or host.
            ValueError: Unknown method, non-positive timeout option, or a
                ``FileUpload`` in GET parameters.
            RequestTimeoutError: The last attempt timed out.
            TransportError: The last attempt failed in the transport.
        """
        config = self.config
        method = Method(method.upper() if isinstance(method, str) else method)
        call = self._build_call(
            config, method, url, body, headers, username, password, options
        )
        outcome, attempts = self._execute(config, call)

        if outcome.error is not None:
            logger.warning(
                "%s %s failed after %d attempt(s): %s",
                call.method,
                call.url,
                attempts,
                outcome.error,
            )
            if outcome.timed_out:
                raise RequestTimeoutError(
                    outcome.error, attempts=attempts
                ) from outcome.exception
            raise TransportError(
                outcome.error, attempts=attempts
            ) from outcome.exception

        return Response.from_raw(
            outcome.raw,
            outcome.header_size,
            status=outcome.status,
            json_options=config.json,
            attempts=attempts,
        )

    def get(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Any = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Response:
        """Perform an HTTP GET request.

        Args:
            url: Absolute URL to request.
            headers: Optional per-request headers merged with defaults.
            params: Optional query parameters; nested values are flattened
                to ``a[b]=1`` keys and merged into the URL's query.
            username: Basic auth user for this call only (deprecated).
            password: Basic auth password for this call only (deprecated).

        Returns:
            The final response, whatever its status code.
        """
        return self.send(Method.GET, url, params, headers, username, password)

    def head(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Any = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Response:
        """Perform an HTTP HEAD request.

        Args:
            url: Absolute URL to request.
            headers: Optional per-request headers merged with defaults.
            params: Optional payload; HEAD sends it like any non-GET body.
            username: Basic auth user for this call only (deprecated).
            password: Basic auth password for this call only (deprecated).

        Returns:
            Response with status and headers; the body is always empty.
        """
        return self.send(Method.HEAD, url, params, headers, username, password)

    def options(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Any = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Response:
        """Perform an HTTP OPTIONS request.

        Args:
            url: Absolute URL to request.
            headers: Optional per-request headers merged with defaults.
            params: Optional payload sent as the request body.
            username: Basic auth user for this call only.
            password: Basic auth password for this call only.

        Returns:
            The final response, whatever its status code.
        """
        return self.send(
            Method.OPTIONS, url, params, headers, username, password
        )

    def connect(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Any = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Response:
        """Perform an HTTP CONNECT request.

        Args:
            url: Absolute URL to request.
            headers: Optional per-request headers merged with defaults.
            params: Optional payload sent as the request body.
            username: Basic auth user for this call only (deprecated).
            password: Basic auth password for this call only (deprecated).

        Returns:
            The final response, whatever its status code.
        """
        return self.send(
            Method.CONNECT, url, params, headers, username, password
        )

    def post(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Response:
        """Perform an HTTP POST request.

        Args:
            url: Absolute URL to request.
            headers: Optional per-request headers merged with defaults.
            body: Optional payload; mappings are form-encoded (multipart
                when they hold ``FileUpload`` values), ``str``/``bytes``
                are sent as-is.
            username: Basic auth user for this call only (deprecated).
            password: Basic auth password for this call only (deprecated).

        Returns:
            The final response, whatever its status code.
        """
        return self.send(Method.POST, url, body, headers, username, password)

    def put(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Response:
        """Perform an HTTP PUT request.

        Args:
            url: Absolute URL to request.
            headers: Optional per-request headers merged with defaults.
            body: Optional payload, encoded as for ``post``.
            username: Basic auth user for this call only (deprecated).
            password: Basic auth password for this call only (deprecated).

        Returns:
            The final response, whatever its status code.
        """
        return self.send(Method.PUT, url, body, headers, username, password)

    def patch(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Response:
        """Perform an HTTP PATCH request.

        Args:
            url: Absolute URL to request.
            headers: Optional per-request headers merged with defaults.
            body: Optional payload, encoded as for ``post``.
            username: Basic auth user for this call only (deprecated).
            password: Basic auth password for this call only (deprecated).

        Returns:
            The final response, whatever its status code.
        """
        return self.send(Method.PATCH, url, body, headers, username, password)

    def delete(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Response:
        """Perform an HTTP DELETE request.

        Args:
            url: Absolute URL to request.
            headers: Optional per-request headers merged with defaults.
            body: Optional payload, encoded as for ``post``.
            username: Basic auth user for this call only (deprecated).
            password: Basic auth password for this call only (deprecated).

        Returns:
            The final response, whatever its status code.
        """
        return self.send(
            Method.DELETE, url, body, headers, username, password
        )

    def trace(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Response:
        """Perform an HTTP TRACE request.

        Args:
            url: Absolute URL to request.
            headers: Optional per-request headers merged with defaults.
            body: Optional payload, encoded as for ``post``.
            username: Basic auth user for this call only (deprecated).
            password: Basic auth password for this call only (deprecated).

        Returns:
            The final response, whatever its status code.
        """
        return self.send(Method.TRACE, url, body, headers, username, password)
