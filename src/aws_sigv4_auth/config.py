"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

Settings resolved from the standard AWS environment variables.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .exceptions import MissingExpectedParameterException
from .signers import SigV4SigningProperties

DEFAULT_METADATA_ENDPOINT = "http://169.254.169.254"


@dataclass(frozen=True, kw_only=True)
class MetadataServiceConfig:
    endpoint: str = DEFAULT_METADATA_ENDPOINT
    imdsv1_fallback: bool = True

    @classmethod
    def from_environment(
        cls, environ: Mapping[str, str] | None = None
    ) -> "MetadataServiceConfig":
        if environ is None:
            environ = os.environ
        return cls(
            endpoint=environ.get(
                "AWS_EC2_METADATA_SERVICE_ENDPOINT", DEFAULT_METADATA_ENDPOINT
            ).rstrip("/"),
            imdsv1_fallback=environ.get("AWS_EC2_METADATA_V1_DISABLED", "").lower()
            != "true",
        )


def signing_properties_from_environment(
    service: str, environ: Mapping[str, str] | None = None
) -> SigV4SigningProperties:
    """Signing properties for ``service`` in the region named by the environment."""
    if environ is None:
        environ = os.environ
    region = environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION")
    if not region:
        raise MissingExpectedParameterException(
            "Set AWS_REGION or AWS_DEFAULT_REGION to choose a signing region."
        )
    return SigV4SigningProperties(region=region, service=service)
