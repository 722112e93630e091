"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

Transient credentials from the EC2 instance-metadata service (IMDS).

https://docs.aws.amazon.com/AWSEC2/latest/UserGuide/iam-roles-for-amazon-ec2.html#instance-metadata-security-credentials
"""

import logging
import warnings
from typing import Protocol

from ._http import URI, AWSRequest, Field, Fields
from ._identity import TemporaryCredential
from .exceptions import AWSSDKWarning, MetadataServiceError
from .interfaces.http import HTTPClient

logger = logging.getLogger(__name__)

TOKEN_PATH = "latest/api/token"
CREDENTIALS_PATH = "latest/meta-data/iam/security-credentials"
TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
TOKEN_HEADER = "X-aws-ec2-metadata-token"
TOKEN_TTL_SECONDS = 600

_OK = 200
_FORBIDDEN = 403


class CredentialRefresher(Protocol):
    """Fetches and parses the credential document of an instance role.

    Implementations decide the returned ``TemporaryCredential.expiry``;
    ``None`` means no known expiry.
    """

    async def refresh(
        self, role_name: str, token: str | None
    ) -> TemporaryCredential: ...


async def fetch_metadata_token(
    client: HTTPClient, endpoint: str, *, imdsv1_fallback: bool
) -> str | None:
    """Request an IMDSv2 session token.

    Returns ``None`` when the service refuses tokens and ``imdsv1_fallback``
    allows continuing without one.
    """
    request = AWSRequest(
        destination=URI.from_string(f"{endpoint.rstrip('/')}/{TOKEN_PATH}"),
        method="PUT",
        fields=Fields([Field(name=TOKEN_TTL_HEADER, values=[str(TOKEN_TTL_SECONDS)])]),
    )
    response = await client.send(request)
    if response.status == _OK:
        return _decode(await response.consume_body(), "token")
    if response.status == _FORBIDDEN and imdsv1_fallback:
        logger.warning(
            "Metadata service at %s refused a session token, falling back to IMDSv1",
            endpoint,
        )
        warnings.warn(
            "Instance metadata token request was forbidden; continuing with IMDSv1.",
            AWSSDKWarning,
        )
        return None
    raise MetadataServiceError(
        f"Invalid token response from metadata service: HTTP {response.status}"
    )


async def fetch_role_name(client: HTTPClient, endpoint: str, token: str | None) -> str:
    fields = Fields()
    if token is not None:
        fields.set_field(Field(name=TOKEN_HEADER, values=[token]))
    request = AWSRequest(
        destination=URI.from_string(f"{endpoint.rstrip('/')}/{CREDENTIALS_PATH}/"),
        method="GET",
        fields=fields,
    )
    response = await client.send(request)
    if response.status != _OK:
        raise MetadataServiceError(
            "Failed to list instance role from metadata service: "
            f"HTTP {response.status}"
        )
    lines = _decode(await response.consume_body(), "role name").split()
    if not lines:
        raise MetadataServiceError("Metadata service returned no instance role")
    return lines[0]


async def instance_credentials(
    client: HTTPClient,
    endpoint: str,
    *,
    imdsv1_fallback: bool,
    refresher: CredentialRefresher,
) -> TemporaryCredential:
    """Resolve the instance role and hand it to ``refresher``.

    Two sequential round trips with no retry; callers wanting resilience wrap
    this themselves.
    """
    token = await fetch_metadata_token(
        client, endpoint, imdsv1_fallback=imdsv1_fallback
    )
    role_name = await fetch_role_name(client, endpoint, token)
    logger.debug("Resolved instance role %s", role_name)
    return await refresher.refresh(role_name, token)


def _decode(body: bytes, what: str) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MetadataServiceError(
            f"Metadata service returned an undecodable {what}"
        ) from e
