"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import hmac
from hashlib import sha256

EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def hmac_sha256(key: bytes | str, msg: bytes | str) -> bytes:
    if isinstance(key, str):
        key = key.encode()
    if isinstance(msg, str):
        msg = msg.encode()
    return hmac.new(key=key, msg=msg, digestmod=sha256).digest()


def hex_digest(data: bytes | str) -> str:
    """Lowercase hex SHA-256 of ``data``."""
    if isinstance(data, str):
        data = data.encode()
    return sha256(data).hexdigest()


def hex_encode(data: bytes) -> str:
    return data.hex()
