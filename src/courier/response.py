"""Splitting raw transport output into a structured Response."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from requests.structures import CaseInsensitiveDict

from .config import JsonOptions

_STATUS_LINE = re.compile(r"^HTTP/\S+\s+(\d{3})")
_INT64_MAX = 2**63 - 1
_INT64_MIN = -(2**63)


def split_response(raw: bytes, header_size: int) -> tuple[bytes, bytes]:
    """Return ``(header_block, body)``; the first ``header_size`` bytes are headers."""
    return raw[:header_size], raw[header_size:]


def _lines(header_block: bytes | str) -> list[str]:
    if isinstance(header_block, bytes):
        header_block = header_block.decode("iso-8859-1")
    return header_block.splitlines()


def parse_headers(header_block: bytes | str) -> CaseInsensitiveDict[str]:
    """Parse a raw header block into a case-insensitive mapping.

    Status lines and blank lines are skipped, so a block holding several
    responses (redirects, ``100 Continue``) yields the union of their
    headers with the last duplicate winning. Folded continuation lines are
    appended to the previous header.
    """
    headers: CaseInsensitiveDict[str] = CaseInsensitiveDict()
    last_name: str | None = None
    for line in _lines(header_block):
        if not line.strip() or _STATUS_LINE.match(line):
            last_name = None
            continue
        if line[0] in " \t" and last_name is not None:
            headers[last_name] = f"{headers[last_name]} {line.strip()}"
            continue
        name, sep, value = line.partition(":")
        if not sep:
            continue
        last_name = name.strip()
        headers[last_name] = value.strip()
    return headers


def parse_status(header_block: bytes | str) -> int:
    """Return the status code of the last status line, or 0 if there is none."""
    status = 0
    for line in _lines(header_block):
        match = _STATUS_LINE.match(line)
        if match:
            status = int(match.group(1))
    return status


def header_value(raw: bytes, header_size: int, name: str) -> str | None:
    header_block, _ = split_response(raw, header_size)
    return parse_headers(header_block).get(name)


def _parse_int_keeping_big(text: str) -> int | str:
    value = int(text)
    if _INT64_MIN <= value <= _INT64_MAX:
        return value
    return text


def decode_body(raw_body: bytes, options: JsonOptions) -> Any:
    """Return the JSON value of ``raw_body``, or ``raw_body`` if it is not JSON."""
    if not options.decode or not raw_body:
        return raw_body
    parse_int = _parse_int_keeping_big if options.bigint_as_string else None
    try:
        return json.loads(raw_body, parse_int=parse_int)
    except ValueError:
        return raw_body


@dataclass(frozen=True)
class Response:
    """Final result of one ``send`` call."""

    code: int
    raw_body: bytes
    body: Any
    headers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(CaseInsensitiveDict())
    )
    attempts: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "headers",
            MappingProxyType(CaseInsensitiveDict(self.headers)),
        )

    @classmethod
    def from_raw(
        cls,
        raw: bytes,
        header_size: int,
        *,
        status: int | None = None,
        json_options: JsonOptions | None = None,
        attempts: int = 1,
    ) -> Response:
        header_block, raw_body = split_response(raw, header_size)
        if status is None:
            status = parse_status(header_block)
        return cls(
            code=status,
            raw_body=raw_body,
            body=decode_body(raw_body, json_options or JsonOptions()),
            headers=parse_headers(header_block),
            attempts=attempts,
        )

    @property
    def ok(self) -> bool:
        return 200 <= self.code < 300

    @property
    def text(self) -> str:
        return self.raw_body.decode("utf-8", errors="replace")

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name, default)
