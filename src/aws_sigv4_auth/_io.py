"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

Request body readers that know their exact length and can buffer one chunk
for payload digesting without losing it for the transport.
"""

from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Self


class BytesReader:
    """Synchronous body reader with an optional declared length.

    ``data`` may be bytes or any iterable of byte chunks. For bytes the length
    is known; for iterables it is whatever the caller declares, or unknown.
    """

    def __init__(
        self,
        data: bytes | bytearray | Iterable[bytes],
        *,
        content_length: int | None = None,
    ):
        if isinstance(data, bytes | bytearray):
            if content_length is None:
                content_length = len(data)
            self._source: Iterator[bytes] = iter([bytes(data)] if data else [])
        else:
            self._source = iter(data)
        self.content_length = content_length
        self._pending: list[bytes] = []

    def buffer_chunk(self) -> bytes | None:
        """Return the next chunk, keeping it buffered for later reads.

        Returns ``None`` once the underlying data is exhausted.
        """
        if self._pending:
            return self._pending[0]
        chunk = next(self._source, None)
        if chunk is not None:
            self._pending.append(chunk)
        return chunk

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything if ``size`` is negative."""
        result = bytearray()
        while size < 0 or len(result) < size:
            chunk = self._next_chunk()
            if chunk is None:
                break
            if size >= 0 and len(result) + len(chunk) > size:
                split = size - len(result)
                result += chunk[:split]
                self._pending.insert(0, chunk[split:])
                break
            result += chunk
        return bytes(result)

    def _next_chunk(self) -> bytes | None:
        if self._pending:
            return self._pending.pop(0)
        return next(self._source, None)

    def __iter__(self) -> Self:
        return self

    def __next__(self) -> bytes:
        chunk = self._next_chunk()
        if chunk is None:
            raise StopIteration
        return chunk


class AsyncBytesReader:
    """Asynchronous counterpart of :class:`BytesReader`.

    Accepts bytes, a synchronous iterable of chunks or an async iterable of
    chunks.
    """

    def __init__(
        self,
        data: bytes | bytearray | Iterable[bytes] | AsyncIterable[bytes],
        *,
        content_length: int | None = None,
    ):
        if isinstance(data, bytes | bytearray):
            if content_length is None:
                content_length = len(data)
            chunks = [bytes(data)] if data else []
            self._source: AsyncIterator[bytes] = _aiter_sync(chunks)
        elif isinstance(data, AsyncIterable):
            self._source = aiter(data)
        else:
            self._source = _aiter_sync(data)
        self.content_length = content_length
        self._pending: list[bytes] = []

    async def buffer_chunk(self) -> bytes | None:
        """Return the next chunk, keeping it buffered for later reads.

        Returns ``None`` once the underlying data is exhausted.
        """
        if self._pending:
            return self._pending[0]
        chunk = await anext(self._source, None)
        if chunk is not None:
            self._pending.append(chunk)
        return chunk

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything if ``size`` is negative."""
        result = bytearray()
        while size < 0 or len(result) < size:
            chunk = await self._next_chunk()
            if chunk is None:
                break
            if size >= 0 and len(result) + len(chunk) > size:
                split = size - len(result)
                result += chunk[:split]
                self._pending.insert(0, chunk[split:])
                break
            result += chunk
        return bytes(result)

    async def _next_chunk(self) -> bytes | None:
        if self._pending:
            return self._pending.pop(0)
        return await anext(self._source, None)

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> bytes:
        chunk = await self._next_chunk()
        if chunk is None:
            raise StopAsyncIteration
        return chunk


async def _aiter_sync(data: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in data:
        yield chunk
