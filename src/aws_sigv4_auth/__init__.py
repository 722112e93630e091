"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

AWS SigV4 Auth computes Signature Version 4 authorization headers and
presigned URLs for use with HTTP tools such as AioHTTP, Curl, Requests,
urllib3, etc.
"""

from __future__ import annotations

from ._http import URI, AWSRequest, Field, Fields
from ._identity import AWSCredentialIdentity, TemporaryCredential
from ._io import AsyncBytesReader, BytesReader
from ._version import __version__
from .signers import (
    AsyncAwsAuthorizer,
    AwsAuthorizer,
    PayloadDigestPolicy,
    SigV4SigningProperties,
)

__license__ = "Apache-2.0"
__version__ = __version__

__all__ = (
    "AWSCredentialIdentity",
    "AWSRequest",
    "AsyncAwsAuthorizer",
    "AsyncBytesReader",
    "AwsAuthorizer",
    "BytesReader",
    "Field",
    "Fields",
    "PayloadDigestPolicy",
    "SigV4SigningProperties",
    "TemporaryCredential",
    "URI",
)
