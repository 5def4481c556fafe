"""requests-backed transport: one attempt of one request."""

from __future__ import annotations

import logging
import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from http.cookiejar import MozillaCookieJar
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

import requests
from urllib3.exceptions import ReadTimeoutError

from .body import FileUpload
from .headers import headers_to_mapping
from .response import header_value

logger = logging.getLogger(__name__)

_HTTP_VERSIONS = {10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}


@dataclass(frozen=True)
class AttemptOutcome:
    """What one transport attempt produced.

    On success ``raw`` holds the header block followed by the body and
    ``header_size`` is the byte length of the header block. On failure
    ``error`` holds the transport's message.
    """

    status: int = 0
    raw: bytes = b""
    header_size: int = 0
    error: str | None = None
    timed_out: bool = False
    exception: BaseException | None = field(default=None, compare=False)

    def header(self, name: str) -> str | None:
        if self.error is not None:
            return None
        return header_value(self.raw, self.header_size, name)


@dataclass(frozen=True)
class TransportCall:
    """Everything the transport needs to perform one request."""

    method: str
    url: str
    headers: tuple[str, ...] = ()
    data: Any = None
    files: Mapping[str, FileUpload] = field(
        default_factory=lambda: MappingProxyType({})
    )
    options: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({})
    )
    cookie: str | None = None
    cookie_file: str | None = None
    max_redirects: int = 10


def is_timeout(exc: requests.exceptions.RequestException) -> bool:
    """Return True for connect and read timeouts.

    A read timeout while the body is downloaded reaches us as a
    ``ConnectionError`` wrapping urllib3's ``ReadTimeoutError``.
    """
    if isinstance(exc, requests.exceptions.Timeout):
        return True
    return isinstance(exc, requests.exceptions.ConnectionError) and any(
        isinstance(arg, ReadTimeoutError) for arg in exc.args
    )


def render_head(response: requests.Response) -> bytes:
    """Rebuild the status line and header block of a received response."""
    version = _HTTP_VERSIONS.get(
        getattr(response.raw, "version", 11), "HTTP/1.1"
    )
    lines = [f"{version} {response.status_code} {response.reason or ''}".rstrip()]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode("iso-8859-1", "replace")


class RequestsTransport:
    """Performs requests through a ``requests.Session``.

    Each ``send`` opens its own session through ``session_factory`` so that
    concurrent calls never share a handle.
    """

    def __init__(
        self,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self._session_factory = session_factory

    @contextmanager
    def session(self, call: TransportCall) -> Iterator[requests.Session]:
        """Open a session for one call; persist cookies to ``cookie_file``."""
        session = self._session_factory()
        session.max_redirects = call.max_redirects
        jar: MozillaCookieJar | None = None
        if call.cookie_file:
            jar = MozillaCookieJar(call.cookie_file)
            if os.path.exists(call.cookie_file):
                jar.load(ignore_discard=True, ignore_expires=True)
            session.cookies = jar  # type: ignore[assignment]
        try:
            yield session
        finally:
            if jar is not None:
                jar.save(ignore_discard=True, ignore_expires=True)
            session.close()

    def perform(
        self, session: requests.Session, call: TransportCall
    ) -> AttemptOutcome:
        """Execute ``call`` once and capture the outcome."""
        headers = headers_to_mapping(list(call.headers))
        if call.cookie and not any(k.lower() == "cookie" for k in headers):
            headers["cookie"] = call.cookie

        with ExitStack() as stack:
            files = None
            if call.files:
                files = {}
                for key, upload in call.files.items():
                    filename, handle, content_type = upload.open()
                    stack.callback(handle.close)
                    files[key] = (filename, handle, content_type)
            try:
                response = session.request(
                    call.method,
                    call.url,
                    headers=headers,
                    data=call.data,
                    files=files,
                    **call.options,
                )
                body = b"" if call.method == "HEAD" else response.content
            except requests.exceptions.RequestException as exc:
                timed_out = is_timeout(exc)
                logger.debug(
                    "%s %s failed: %s (timeout=%s)",
                    call.method,
                    call.url,
                    exc,
                    timed_out,
                )
                return AttemptOutcome(
                    error=str(exc) or type(exc).__name__,
                    timed_out=timed_out,
                    exception=exc,
                )

        head = render_head(response)
        return AttemptOutcome(
            status=response.status_code,
            raw=head + body,
            header_size=len(head),
        )
