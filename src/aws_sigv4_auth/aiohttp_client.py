"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

HTTPClient implementation backed by aiohttp. Install with the ``aiohttp``
extra.
"""

import io
from collections.abc import AsyncIterable
from dataclasses import dataclass, field
from types import TracebackType
from typing import Self

import aiohttp
from yarl import URL

from ._http import AWSRequest, BodyType, Field, Fields
from ._io import _aiter_sync


@dataclass
class AIOHTTPResponse:
    status: int
    fields: Fields = field(default_factory=Fields)
    body: bytes = b""

    async def consume_body(self) -> bytes:
        return self.body


class AIOHTTPClient:
    """Send AWSRequests with an aiohttp session.

    The URL is passed through pre-encoded so a signed query reaches the wire
    exactly as it was canonicalized. A session passed in is left open on
    :meth:`close`; one created here is closed.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        timeout: aiohttp.ClientTimeout | None = None,
    ):
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    async def send(self, request: AWSRequest) -> AIOHTTPResponse:
        headers = [
            (entry.name, value) for entry in request.fields for value in entry.values
        ]
        # Sized readers are sent with a length instead of chunked encoding.
        content_length = getattr(request.body, "content_length", None)
        if isinstance(content_length, int) and "content-length" not in request.fields:
            headers.append(("Content-Length", str(content_length)))
        async with self._get_session().request(
            request.method,
            URL(request.destination.build(), encoded=True),
            headers=headers,
            data=_request_data(request.body),
        ) as response:
            body = await response.read()
            fields = Fields()
            for name, value in response.headers.items():
                fields.add_field(Field(name=name, values=[value]))
            return AIOHTTPResponse(status=response.status, fields=fields, body=body)

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session


def _request_data(body: BodyType):
    # aiohttp treats arbitrary sync iterables as form data, so stream them.
    if body is None or isinstance(
        body, bytes | bytearray | memoryview | io.IOBase | AsyncIterable
    ):
        return body
    return _aiter_sync(body)
