"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

Canonical forms of the request components hashed by SigV4.

https://docs.aws.amazon.com/IAM/latest/UserGuide/create-signed-request.html
"""

from collections.abc import Iterable
from urllib.parse import parse_qsl, quote

from ._http import Field

HEADERS_EXCLUDED_FROM_SIGNING: tuple[str, ...] = (
    "authorization",
    "content-length",
    "user-agent",
)

# Service whose canonical URI is the request path as sent, without the
# second encoding pass every other service applies.
SINGLE_ENCODE_SERVICE = "s3"


def strict_encode(value: str, *, safe: str = "") -> str:
    """Percent-encode everything except ``A-Z a-z 0-9 - _ . ~`` and ``safe``."""
    return quote(string=value, safe=safe)


def canonicalize_headers(fields: Iterable[Field]) -> tuple[str, str]:
    """Canonicalize headers into ``(signed_headers, canonical_headers)``.

    Names are lowercased and sorted; values of a repeated name keep their
    relative order and are trimmed and joined with ``,``.
    """
    grouped: dict[str, list[str]] = {}
    for field in fields:
        name = field.name.lower()
        if name in HEADERS_EXCLUDED_FROM_SIGNING:
            continue
        grouped.setdefault(name, []).extend(field.values)

    names = sorted(grouped)
    signed_headers = ";".join(names)
    canonical_headers = "".join(
        f"{name}:{','.join(value.strip() for value in grouped[name])}\n"
        for name in names
    )
    return signed_headers, canonical_headers


def canonicalize_query(query: str | None) -> str:
    """Canonicalize a raw query string.

    Pairs are form-decoded, stably sorted by decoded key and re-encoded with
    the strict unreserved set.
    """
    if not query:
        return ""

    query_params = parse_qsl(qs=query, keep_blank_values=True)
    query_params.sort(key=lambda pair: pair[0])
    return "&".join(
        f"{strict_encode(key)}={strict_encode(value)}" for key, value in query_params
    )


def canonical_uri(path: str | None, service: str) -> str:
    if not path:
        path = "/"
    # Each path segment is URI-encoded twice, except for S3 which gets
    # URI-encoded once (the path is taken to be encoded already).
    if service == SINGLE_ENCODE_SERVICE:
        return path
    return strict_encode(path, safe="/")
