"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from ._hashing import hmac_sha256, hex_encode
from .exceptions import MissingExpectedParameterException

if sys.version_info < (3, 12):
    from datetime import timezone

    UTC = timezone.utc
else:
    from datetime import UTC

SCOPE_TERMINATOR = "aws4_request"


@dataclass(frozen=True, kw_only=True)
class AWSCredentialIdentity:
    access_key_id: str
    secret_access_key: str
    session_token: str | None = None

    def __repr__(self) -> str:
        return (
            f"AWSCredentialIdentity(access_key_id={self.access_key_id!r}, "
            f"session_token={'***' if self.session_token else None})"
        )

    @classmethod
    def from_environment(
        cls, environ: Mapping[str, str] | None = None
    ) -> "AWSCredentialIdentity":
        """Build static credentials from the standard AWS environment variables."""
        if environ is None:
            environ = os.environ
        key_id = environ.get("AWS_ACCESS_KEY_ID")
        secret = environ.get("AWS_SECRET_ACCESS_KEY")
        if not key_id or not secret:
            raise MissingExpectedParameterException(
                "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must both be set."
            )
        return cls(
            access_key_id=key_id,
            secret_access_key=secret,
            session_token=environ.get("AWS_SESSION_TOKEN") or None,
        )

    def sign(
        self, string_to_sign: str, date: datetime, region: str, service: str
    ) -> str:
        """Sign the string to sign.

        In SigV4, a signing key is created that is scoped to a specific region and
        service. The date, region, service and resulting signing key are individually
        hashed, then the composite hash is used to sign the string to sign.

        DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        """
        k_date = hmac_sha256(
            f"AWS4{self.secret_access_key}", to_utc(date).strftime("%Y%m%d")
        )
        k_region = hmac_sha256(k_date, region)
        k_service = hmac_sha256(k_region, service)
        k_signing = hmac_sha256(k_service, SCOPE_TERMINATOR)
        return hex_encode(hmac_sha256(k_signing, string_to_sign))


@dataclass(frozen=True)
class TemporaryCredential:
    """Credentials paired with the instant after which they must be re-fetched.

    An ``expiry`` of ``None`` means there is no known expiry.
    """

    credential: AWSCredentialIdentity
    expiry: datetime | None = None

    @property
    def is_stale(self) -> bool:
        if self.expiry is None:
            return False
        return to_utc(self.expiry) <= datetime.now(UTC)


def to_utc(date: datetime) -> datetime:
    # Naive datetimes are treated as UTC.
    if date.tzinfo is None:
        return date.replace(tzinfo=UTC)
    return date.astimezone(UTC)
