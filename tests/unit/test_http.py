"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import pytest

from aws_sigv4_auth import URI, Field, Fields
from aws_sigv4_auth.exceptions import InvalidURLError


class TestURI:
    def test_from_string(self):
        uri = URI.from_string("https://user:pw@Example.com:8443/a/b?x=1#frag")
        assert uri.scheme == "https"
        assert uri.host == "example.com"
        assert uri.port == 8443
        assert uri.path == "/a/b"
        assert uri.query == "x=1"
        assert uri.fragment == "frag"
        assert uri.host_port == "example.com:8443"
        assert uri.netloc == "user:pw@example.com:8443"

    def test_build_round_trip(self):
        url = "http://localhost:9000/tsm-schemas?delimiter=%2F&prefix="
        assert URI.from_string(url).build() == url

    @pytest.mark.parametrize(
        "url, path",
        [
            ("https://b.s3.amazonaws.com/my key", "/my%20key"),
            ("https://b.s3.amazonaws.com/café", "/caf%C3%A9"),
            ("https://b.s3.amazonaws.com/a%2Fb/c:d@e", "/a%2Fb/c:d@e"),
        ],
    )
    def test_path_is_percent_encoded(self, url, path):
        assert URI.from_string(url).path == path

    def test_ipv6_host(self):
        uri = URI.from_string("http://[::1]:8080/")
        assert uri.host_port == "[::1]:8080"

    def test_no_host(self):
        assert URI(path="/key").host_port == ""

    @pytest.mark.parametrize("url", ["relative/path", "http://host:notaport/"])
    def test_invalid(self, url):
        with pytest.raises(InvalidURLError):
            URI.from_string(url)


class TestFields:
    def test_case_insensitive_lookup(self):
        fields = Fields({"Content-Type": "text/plain"})
        assert "content-type" in fields
        assert fields["CONTENT-TYPE"].as_string() == "text/plain"

    def test_set_field_replaces(self):
        fields = Fields([Field(name="Host", values=["a"])])
        fields.set_field(Field(name="host", values=["b"]))
        assert len(fields) == 1
        assert fields["Host"].values == ["b"]

    def test_add_field_appends_values(self):
        fields = Fields([Field(name="X-Tag", values=["1"])])
        fields.add_field(Field(name="x-tag", values=["2", "3"]))
        assert fields["x-tag"].as_string() == "1,2,3"

    def test_mapping_with_multiple_values(self):
        fields = Fields({"Accept": ["a", "b"]})
        assert fields["accept"].as_string(delimiter=", ") == "a, b"

    def test_remove_and_get(self):
        fields = Fields({"A": "1"})
        fields.remove_field("a")
        assert fields.get_field("A") is None
        assert list(fields) == []
