"""Canonical Request Path — one RFC 3986 encoding for the signed path+query.

Invariants:
    - Output is what the client puts on the HTTP request line AND what it signs
    - Unreserved chars (A-Z a-z 0-9 - . _ ~) stay literal; everything else is %XX uppercase
    - Path segments are canonicalized one by one: a literal '/' separates them, an
      encoded %2F inside a segment stays encoded
    - Query parameter order is preserved (never sorted); '+' in input is read as space
    - Idempotent: canonicalize(canonicalize(p)) == canonicalize(p)

Design Decisions:
    - Decode-then-encode over pass-through: callers may hand in raw or pre-encoded
      paths and both end up byte-identical on the wire (ADR: signature path conformance)
    - The receiver never re-canonicalizes: it verifies over raw request-line bytes
"""

from urllib.parse import parse_qsl, quote, unquote, urlencode


def canonicalize_path(path_with_query: str) -> str:
    """Normalize 'path?query' to the RFC 3986 form used for signing."""
    path, sep, query = path_with_query.partition("?")
    if not path.startswith("/"):
        path = "/" + path
    canonical = "/".join(
        quote(unquote(segment), safe="") for segment in path.split("/")
    )
    if sep and query:
        pairs = parse_qsl(query, keep_blank_values=True)
        canonical += "?" + urlencode(pairs, quote_via=quote, safe="")
    return canonical


def build_path(path: str, query: dict[str, str] | None = None) -> str:
    """Join a path and query mapping, then canonicalize."""
    if query:
        pairs = [(k, v) for k, v in query.items() if v is not None]
        if pairs:
            path = f"{path}?{urlencode(pairs, quote_via=quote, safe='')}"
    return canonicalize_path(path)


def path_from_raw(raw_path: bytes, query_string: bytes) -> str:
    """Receiver side: rebuild the signed path from raw request-line bytes."""
    path = raw_path.split(b"?", 1)[0].decode("latin-1")
    if query_string:
        return f"{path}?{query_string.decode('latin-1')}"
    return path
