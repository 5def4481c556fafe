"""URL canonicalization for outgoing requests."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import parse_qsl, quote, urlsplit

from .errors import InvalidURL

# Brackets stay literal so flattened keys like ``a[b]`` remain readable.
_QUERY_SAFE = "[]"


def _quote(value: Any) -> str:
    if not isinstance(value, (str, bytes)):
        value = str(value)
    return quote(value, safe=_QUERY_SAFE)


def _encode_pairs(pairs: Mapping[str, Any]) -> str:
    return "&".join(
        f"{_quote(name)}={_quote(value)}"
        for name, value in pairs.items()
    )


def normalize_url(url: str, params: Mapping[str, Any] | None = None) -> str:
    """Return ``url`` with a canonically encoded query string.

    Every query name and value is decoded and then percent-encoded again, so
    an already-encoded query is not encoded twice while raw characters still
    get encoded. Names that collide after decoding keep the last value.
    ``params`` are merged after the URL's own query.

    Raises:
        InvalidURL: when the scheme or host is missing, or the port is not
            a number.
    """
    parts = urlsplit(url)
    host = parts.hostname
    if not parts.scheme or not host:
        raise InvalidURL(f"URL must be absolute with scheme and host: {url!r}")
    try:
        port = parts.port
    except ValueError as exc:
        raise InvalidURL(f"Invalid port in URL: {url!r}") from exc

    if ":" in host:
        host = f"[{host}]"

    pairs: dict[str, Any] = dict(
        parse_qsl(parts.query, keep_blank_values=True)
    )
    if params:
        pairs.update(params)

    result = f"{parts.scheme}://{host}"
    if port is not None:
        result += f":{port}"
    result += parts.path
    if pairs:
        result += "?" + _encode_pairs(pairs)
    return result
