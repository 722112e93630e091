"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import pytest

from aws_sigv4_auth import Field, Fields
from aws_sigv4_auth.canonical import (
    canonical_uri,
    canonicalize_headers,
    canonicalize_query,
    strict_encode,
)


class TestCanonicalizeHeaders:
    def test_excluded_headers_case_insensitive(self):
        fields = Fields(
            [
                Field(name="AUTHORIZATION", values=["AWS4-HMAC-SHA256 ..."]),
                Field(name="Content-Length", values=["42"]),
                Field(name="user-Agent", values=["curl/8.0"]),
                Field(name="Host", values=["example.com"]),
            ]
        )
        signed, canonical = canonicalize_headers(fields)
        assert signed == "host"
        assert canonical == "host:example.com\n"

    def test_names_sorted_and_lowercased(self):
        fields = Fields(
            [
                Field(name="X-Amz-Date", values=["20220806T180134Z"]),
                Field(name="Host", values=["example.com"]),
                Field(name="Content-Type", values=["text/plain"]),
            ]
        )
        signed, canonical = canonicalize_headers(fields)
        assert signed == "content-type;host;x-amz-date"
        assert canonical == (
            "content-type:text/plain\nhost:example.com\nx-amz-date:20220806T180134Z\n"
        )

    def test_repeated_values_kept_in_order_and_trimmed(self):
        fields = [
            Field(name="X-Amz-Meta-Tag", values=["  b ", "a"]),
            Field(name="x-amz-meta-tag", values=["\tb  c"]),
        ]
        signed, canonical = canonicalize_headers(fields)
        assert signed == "x-amz-meta-tag"
        assert canonical == "x-amz-meta-tag:b,a,b  c\n"

    def test_empty(self):
        assert canonicalize_headers(Fields()) == ("", "")


class TestCanonicalizeQuery:
    @pytest.mark.parametrize("query", [None, ""])
    def test_empty(self, query):
        assert canonicalize_query(query) == ""

    def test_sorted_and_strictly_encoded(self):
        query = "prefix=&list-type=2&encoding-type=url&delimiter=%2F"
        assert canonicalize_query(query) == (
            "delimiter=%2F&encoding-type=url&list-type=2&prefix="
        )

    def test_insertion_order_irrelevant(self):
        assert canonicalize_query("b=2&a=1&c=3") == canonicalize_query("c=3&a=1&b=2")

    def test_duplicate_keys_keep_relative_order(self):
        assert canonicalize_query("k=2&a=0&k=1") == "a=0&k=2&k=1"

    def test_form_decoding(self):
        assert canonicalize_query("q=a+b&x=%7E*") == "q=a%20b&x=~%2A"

    def test_key_without_value(self):
        assert canonicalize_query("acl") == "acl="

    def test_sort_is_by_code_point(self):
        assert canonicalize_query("b=1&B=2&_=3") == "B=2&_=3&b=1"


class TestCanonicalUri:
    def test_empty_path(self):
        assert canonical_uri(None, "ec2") == "/"
        assert canonical_uri("", "s3") == "/"

    def test_s3_and_other_services_diverge(self):
        path = "/bucket/key with spaces/a=b"
        assert canonical_uri(path, "s3") == path
        assert canonical_uri(path, "ec2") == "/bucket/key%20with%20spaces/a%3Db"

    def test_unreserved_characters_untouched(self):
        path = "/AZaz09-_.~"
        assert canonical_uri(path, "execute-api") == path


def test_strict_encode():
    assert strict_encode("a/b c~") == "a%2Fb%20c~"
    assert strict_encode("a/b", safe="/") == "a/b"
