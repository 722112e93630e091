"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Identity(Protocol):
    """An entity that can be used to authenticate a request."""


@runtime_checkable
class AWSCredentialsIdentity(Identity, Protocol):
    """AWS credentials capable of producing SigV4 signatures."""

    @property
    def access_key_id(self) -> str: ...

    @property
    def secret_access_key(self) -> str: ...

    @property
    def session_token(self) -> str | None: ...

    def sign(
        self, string_to_sign: str, date: datetime, region: str, service: str
    ) -> str: ...
