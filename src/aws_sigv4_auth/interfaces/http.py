"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

The transport contract consumed by the metadata-service exchange. This
package never opens sockets itself.
"""

from typing import Protocol, runtime_checkable

from .._http import AWSRequest, Fields


@runtime_checkable
class HTTPResponse(Protocol):
    @property
    def status(self) -> int: ...

    @property
    def fields(self) -> Fields: ...

    async def consume_body(self) -> bytes:
        """Read the complete response body."""
        ...


@runtime_checkable
class HTTPClient(Protocol):
    """Send one HTTP request and receive one HTTP response."""

    async def send(self, request: AWSRequest) -> HTTPResponse: ...
