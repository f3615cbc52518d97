"""Canonical Request Path — RFC 3986 encoding shared by signer and request line.

Tests:
    - Unreserved characters stay literal, reserved ones become %XX (uppercase)
    - Pre-encoded and raw inputs canonicalize to the same string
    - Query order preserved, '+' read as space, blank values kept
    - canonicalize is idempotent
    - build_path drops None query values
    - path_from_raw rebuilds path+query from raw ASGI bytes
"""

import pytest

from midnight_bridge.core.canonical_path import (
    build_path,
    canonicalize_path,
    path_from_raw,
)


@pytest.mark.parametrize("raw,expected", [
    ("/health", "/health"),
    ("health", "/health"),
    ("/tx/abc-1.2_3~/status", "/tx/abc-1.2_3~/status"),
    ("/contract/my contract", "/contract/my%20contract"),
    ("/wallet/balance?address=0xAAA", "/wallet/balance?address=0xAAA"),
    ("/wallet/balance?address=a b", "/wallet/balance?address=a%20b"),
    ("/wallet/balance?address=a+b", "/wallet/balance?address=a%20b"),
    ("/wallet/balance?note=x/y:z", "/wallet/balance?note=x%2Fy%3Az"),
])
def test_canonical_forms(raw, expected):
    assert canonicalize_path(raw) == expected


def test_pre_encoded_and_raw_inputs_agree():
    assert canonicalize_path("/a%20b?x=%C3%A9") == canonicalize_path("/a b?x=é")
    assert canonicalize_path("/a b?x=é") == "/a%20b?x=%C3%A9"


def test_percent_escapes_are_uppercase():
    assert canonicalize_path("/x?k=%2f") == "/x?k=%2F"


def test_query_order_is_preserved():
    assert canonicalize_path("/x?b=2&a=1&b=3") == "/x?b=2&a=1&b=3"


def test_blank_query_values_are_kept():
    assert canonicalize_path("/x?a=&b=1") == "/x?a=&b=1"


def test_trailing_question_mark_is_dropped():
    assert canonicalize_path("/health?") == "/health"


@pytest.mark.parametrize("raw", [
    "/wallet/balance?address=0x%2Bab&unit=DUST",
    "/contract/ünïcode path?q=a b&r=1/2",
    "/tx/abc/status",
])
def test_canonicalize_is_idempotent(raw):
    once = canonicalize_path(raw)
    assert canonicalize_path(once) == once


def test_build_path_encodes_query_and_skips_none():
    assert build_path("/wallet/balance", {"address": "0x+ab", "unit": None}) == (
        "/wallet/balance?address=0x%2Bab"
    )


def test_build_path_without_query():
    assert build_path("/wallet/balance", {"address": None}) == "/wallet/balance"
    assert build_path("/health") == "/health"


def test_path_from_raw_strips_query_embedded_in_raw_path():
    assert path_from_raw(b"/wallet/balance?address=0xAAA", b"address=0xAAA") == (
        "/wallet/balance?address=0xAAA"
    )


def test_path_from_raw_keeps_bytes_exactly():
    assert path_from_raw(b"/a%20b", b"x=%C3%A9") == "/a%20b?x=%C3%A9"
    assert path_from_raw(b"/health", b"") == "/health"


def test_encoded_slash_inside_segment_stays_encoded():
    assert canonicalize_path("/tx/ab%2Fcd/status") == "/tx/ab%2Fcd/status"
    assert canonicalize_path("/tx/ab%2fcd/status") == "/tx/ab%2Fcd/status"
