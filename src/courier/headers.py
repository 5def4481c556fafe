"""Request header composition."""

from __future__ import annotations

from typing import Mapping

from .config import DEFAULT_USER_AGENT


def compose_headers(
    default_headers: Mapping[str, str],
    headers: Mapping[str, str] | None = None,
    user_agent: str = DEFAULT_USER_AGENT,
) -> list[str]:
    """Merge default and per-request headers into ``"name: value"`` lines.

    Names are lower-cased here and nowhere else. A per-request header replaces
    a default one with the same folded name; the line keeps the position of
    the first occurrence. ``user-agent`` and an empty ``expect`` are appended
    when the caller did not provide them. The empty ``expect`` stops the
    transport from sending ``Expect: 100-continue`` on its own.
    """
    combined: dict[str, str] = {}
    for source in (default_headers, headers or {}):
        for name, value in source.items():
            combined[name.strip().lower()] = value

    lines = [f"{name}: {value}" for name, value in combined.items()]
    if "user-agent" not in combined:
        lines.append(f"user-agent: {user_agent}")
    if "expect" not in combined:
        lines.append("expect:")
    return lines


def headers_to_mapping(lines: list[str]) -> dict[str, str]:
    """Turn composed header lines into a mapping for the transport.

    An empty ``expect:`` line removes the header instead of sending it
    blank; other headers are passed through even when their value is empty.
    """
    mapping: dict[str, str] = {}
    for line in lines:
        name, _, value = line.partition(":")
        name, value = name.strip(), value.strip()
        if name.lower() == "expect" and not value:
            continue
        mapping[name] = value
    return mapping
