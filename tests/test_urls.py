import pytest

from courier.errors import InvalidURL
from courier.urls import normalize_url


def test_url_without_query_is_unchanged():
    assert normalize_url("https://example.com/a/b") == "https://example.com/a/b"


def test_port_is_kept():
    assert (
        normalize_url("http://example.com:8080/x?y=1")
        == "http://example.com:8080/x?y=1"
    )


def test_raw_characters_in_query_are_encoded():
    assert (
        normalize_url("http://example.com/s?q=red fox&tag=a/b")
        == "http://example.com/s?q=red%20fox&tag=a%2Fb"
    )


def test_encoded_query_is_not_encoded_twice():
    assert (
        normalize_url("http://example.com/s?q=red%20fox&pct=100%25")
        == "http://example.com/s?q=red%20fox&pct=100%25"
    )


def test_plus_is_read_as_space():
    assert normalize_url("http://example.com/?q=a+b") == (
        "http://example.com/?q=a%20b"
    )


@pytest.mark.parametrize(
    "url",
    [
        "http://example.com/s?q=red%20fox&x=%5B1%5D",
        "http://example.com/s?name=J%C3%BCrgen&empty=",
        "https://example.com:8443/p?a[b]=1&a[c]=%26",
        "http://example.com/s?q=a+b&q=c",
    ],
)
def test_normalize_is_idempotent(url):
    once = normalize_url(url)

    assert normalize_url(once) == once


def test_colliding_names_keep_last_value():
    assert normalize_url("http://example.com/?a=1&b=2&a=3") == (
        "http://example.com/?a=3&b=2"
    )


def test_params_are_merged_after_query():
    assert normalize_url(
        "http://example.com/?a=1&b=2", {"b": "x y", "c[d]": 4}
    ) == ("http://example.com/?a=1&b=x%20y&c[d]=4")


def test_blank_values_are_kept():
    assert normalize_url("http://example.com/?flag=") == (
        "http://example.com/?flag="
    )


def test_ipv6_host_keeps_brackets():
    assert normalize_url("http://[::1]:8000/x") == "http://[::1]:8000/x"


def test_userinfo_and_fragment_are_dropped():
    assert normalize_url("http://user:pw@example.com/x?y=1#top") == (
        "http://example.com/x?y=1"
    )


@pytest.mark.parametrize(
    "url", ["example.com/path", "/relative", "http:///nohost", ""]
)
def test_missing_scheme_or_host_is_invalid(url):
    with pytest.raises(InvalidURL):
        normalize_url(url)


def test_bad_port_is_invalid():
    with pytest.raises(InvalidURL):
        normalize_url("http://example.com:notaport/")


def test_invalid_url_is_a_value_error():
    with pytest.raises(ValueError):
        normalize_url("nope")


def test_bytes_params_are_encoded_as_text():
    assert normalize_url("http://example.com/", {"b": b"x/y"}) == (
        "http://example.com/?b=x%2Fy"
    )
