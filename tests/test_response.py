import pytest

from courier.config import JsonOptions
from courier.response import (
    Response,
    decode_body,
    header_value,
    parse_headers,
    parse_status,
    split_response,
)

HEAD = b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n\r\n"


def test_from_raw_splits_status_headers_and_body():
    response = Response.from_raw(HEAD + b"hello", len(HEAD))

    assert response.code == 200
    assert dict(response.headers) == {"Content-Type": "text/plain"}
    assert response.headers["content-type"] == "text/plain"
    assert response.raw_body == b"hello"
    assert response.text == "hello"
    assert response.ok


def test_split_response_uses_header_size():
    assert split_response(b"abcdef", 2) == (b"ab", b"cdef")


def test_header_lookup_is_case_insensitive():
    response = Response.from_raw(HEAD, len(HEAD))

    assert response.header("CONTENT-TYPE") == "text/plain"
    assert response.header("X-Missing") is None
    assert response.header("X-Missing", "fallback") == "fallback"


def test_headers_are_read_only():
    response = Response.from_raw(HEAD, len(HEAD))

    with pytest.raises(TypeError):
        response.headers["X-New"] = "1"  # type: ignore[index]


def test_last_duplicate_header_wins():
    headers = parse_headers(
        "HTTP/1.1 200 OK\r\nX-Id: 1\r\nx-id: 2\r\n\r\n"
    )

    assert headers["X-ID"] == "2"
    assert len(headers) == 1


def test_multiple_header_blocks_use_last_status():
    block = (
        b"HTTP/1.1 100 Continue\r\n\r\n"
        b"HTTP/1.1 302 Found\r\nLocation: /next\r\n\r\n"
        b"HTTP/1.1 201 Created\r\nX-Final: yes\r\n\r\n"
    )

    assert parse_status(block) == 201
    headers = parse_headers(block)
    assert headers["location"] == "/next"
    assert headers["x-final"] == "yes"


def test_folded_header_lines_are_joined():
    headers = parse_headers("X-Long: first\r\n  second\r\n\r\n")

    assert headers["x-long"] == "first second"


def test_parse_status_without_status_line_is_zero():
    assert parse_status(b"X-Only: header\r\n\r\n") == 0


def test_header_value_reads_from_raw_bytes():
    raw = b"HTTP/1.1 429 Too Many\r\nRetry-After: 7\r\n\r\nslow down"

    assert header_value(raw, raw.index(b"slow"), "retry-after") == "7"


def test_explicit_status_wins_over_status_line():
    response = Response.from_raw(HEAD, len(HEAD), status=204)

    assert response.code == 204


def test_non_json_body_stays_bytes():
    assert decode_body(b"<html/>", JsonOptions()) == b"<html/>"


def test_bigint_as_string():
    raw = b'{"small": 5, "big": 123456789012345678901234567890}'

    default = decode_body(raw, JsonOptions())
    as_string = decode_body(raw, JsonOptions(bigint_as_string=True))

    assert default["big"] == 123456789012345678901234567890
    assert as_string == {"small": 5, "big": "123456789012345678901234567890"}


def test_error_status_is_not_ok():
    head = b"HTTP/1.1 404 Not Found\r\n\r\n"

    response = Response.from_raw(head + b"missing", len(head))

    assert response.code == 404
    assert not response.ok
