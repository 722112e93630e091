"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

Minimal HTTP value types consumed by the signers. They carry just enough
structure to canonicalize a request and hand it to any HTTP client.
"""

from collections.abc import AsyncIterable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from urllib.parse import SplitResult, quote, urlsplit, urlunsplit

from .exceptions import InvalidURLError

BodyType = bytes | Iterable[bytes] | AsyncIterable[bytes] | None

# Characters a URL parser leaves untouched in a path. "%" keeps existing escapes.
_PATH_SAFE = "/%!$&'()*+,;=:@[]^|"


@dataclass(kw_only=True)
class URI:
    """Universal Resource Identifier, target location for a request."""

    scheme: str = "https"
    host: str | None = None
    port: int | None = None
    path: str | None = None
    query: str | None = None
    fragment: str | None = None
    username: str | None = None
    password: str | None = None

    @classmethod
    def from_string(cls, url: str) -> "URI":
        """Parse an absolute URL.

        Path characters that may not appear literally in a URL, such as spaces
        and non-ASCII text, are percent-encoded; existing escapes are kept.

        :raises InvalidURLError: If the URL has no scheme or an invalid port.
        """
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError as e:
            raise InvalidURLError(f"Invalid URL {url!r}: {e}") from e
        if not parts.scheme:
            raise InvalidURLError(f"Invalid URL {url!r}: missing scheme")
        return cls._from_split(parts, port)

    @classmethod
    def _from_split(cls, parts: SplitResult, port: int | None) -> "URI":
        return cls(
            scheme=parts.scheme,
            host=parts.hostname,
            port=port,
            path=quote(parts.path, safe=_PATH_SAFE) or None,
            query=parts.query or None,
            fragment=parts.fragment or None,
            username=parts.username,
            password=parts.password,
        )

    @property
    def host_port(self) -> str:
        """The host and, when set, the explicit port. Empty without a host."""
        if not self.host:
            return ""
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is not None:
            return f"{host}:{self.port}"
        return host

    @property
    def netloc(self) -> str:
        """Construct netloc string in format ``{username}:{password}@{host}:{port}``"""
        if self.username is not None:
            password = "" if self.password is None else f":{self.password}"
            userinfo = f"{self.username}{password}@"
        else:
            userinfo = ""
        return f"{userinfo}{self.host_port}"

    def build(self) -> str:
        """Construct the URL string."""
        return urlunsplit(
            (
                self.scheme,
                self.netloc,
                self.path or "",
                self.query or "",
                self.fragment or "",
            )
        )


@dataclass
class Field:
    """A name with one or more values, the unit of an HTTP header."""

    name: str
    values: list[str] = field(default_factory=list)

    def add(self, value: str) -> None:
        self.values.append(value)

    def as_string(self, delimiter: str = ",") -> str:
        return delimiter.join(self.values)


class Fields:
    """Ordered, case-insensitive collection of :class:`Field` entries.

    Adding a field whose name is already present (in any case) appends its
    values to the existing entry, so repeated headers keep their relative order.
    """

    def __init__(
        self,
        initial: Iterable[Field] | Mapping[str, str | Iterable[str]] | None = None,
    ):
        self._entries: dict[str, Field] = {}
        if initial is None:
            return
        if isinstance(initial, Mapping):
            for name, value in initial.items():
                values = [value] if isinstance(value, str) else list(value)
                self.add_field(Field(name=name, values=values))
        else:
            for item in initial:
                self.add_field(item)

    def set_field(self, field: Field) -> None:
        """Insert ``field``, replacing any existing field of the same name."""
        self._entries[field.name.lower()] = field

    def add_field(self, field: Field) -> None:
        key = field.name.lower()
        if key in self._entries:
            for value in field.values:
                self._entries[key].add(value)
        else:
            self._entries[key] = Field(name=field.name, values=list(field.values))

    def remove_field(self, name: str) -> None:
        self._entries.pop(name.lower(), None)

    def get_field(self, name: str) -> Field | None:
        return self._entries.get(name.lower())

    def __getitem__(self, name: str) -> Field:
        return self._entries[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def __iter__(self) -> Iterator[Field]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fields):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Fields({list(self._entries.values())!r})"


@dataclass(kw_only=True)
class AWSRequest:
    destination: URI
    method: str = "GET"
    body: BodyType = None
    fields: Fields = field(default_factory=Fields)
