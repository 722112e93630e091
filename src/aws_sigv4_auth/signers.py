import io
import logging
import re
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from datetime import datetime, timedelta
from enum import Enum
from itertools import chain
from typing import Required, TypedDict
from urllib.parse import urlencode

from ._hashing import EMPTY_SHA256_HASH, hex_digest, hex_encode
from ._http import URI, AWSRequest, Field, Fields
from ._identity import SCOPE_TERMINATOR, UTC, AWSCredentialIdentity, to_utc
from ._io import AsyncBytesReader, BytesReader
from .canonical import canonical_uri, canonicalize_headers, canonicalize_query
from .exceptions import (
    BodyExhaustedError,
    BodyReadError,
    InvalidHeaderValueError,
    MissingExpectedParameterException,
    NoHostError,
)
from .interfaces.identity import AWSCredentialsIdentity

logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"
SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
STREAMING_PAYLOAD: str = "STREAMING-AWS4-HMAC-SHA256-PAYLOAD"

HOST_HEADER = "host"
DATE_HEADER = "x-amz-date"
HASH_HEADER = "x-amz-content-sha256"
TOKEN_HEADER = "x-amz-security-token"
AUTHORIZATION_HEADER = "Authorization"

DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

# Visible ASCII, space and horizontal tab.
_HEADER_VALUE_RE = re.compile(r"[\t\x20-\x7e]*")


class SigV4SigningProperties(TypedDict, total=False):
    region: Required[str]
    service: Required[str]
    date: datetime
    payload_signing_enabled: bool
    token_header: str


class PayloadDigestPolicy(Enum):
    """How the ``x-amz-content-sha256`` value of a request is produced."""

    DISABLED = "disabled"
    PRECOMPUTED = "precomputed"
    EMPTY = "empty"
    BUFFERED = "buffered"
    STREAMING = "streaming"


_FIXED_DIGESTS: dict[PayloadDigestPolicy, str] = {
    PayloadDigestPolicy.DISABLED: UNSIGNED_PAYLOAD,
    PayloadDigestPolicy.EMPTY: EMPTY_SHA256_HASH,
    PayloadDigestPolicy.STREAMING: STREAMING_PAYLOAD,
}


def select_payload_policy(
    *,
    sign_payload: bool,
    pre_calculated_digest: bytes | None,
    content_length: int | None,
) -> PayloadDigestPolicy:
    """Pick the payload digest policy; the first matching rule wins.

    * payload signing disabled: ``UNSIGNED-PAYLOAD``
    * a pre-calculated digest: its hex encoding
    * a body of known zero length: the SHA-256 of the empty string
    * a body of known nonzero length: the SHA-256 of one buffered chunk
    * a body of unknown length: ``STREAMING-AWS4-HMAC-SHA256-PAYLOAD``
    """
    if not sign_payload:
        return PayloadDigestPolicy.DISABLED
    if pre_calculated_digest is not None:
        return PayloadDigestPolicy.PRECOMPUTED
    if content_length is None:
        return PayloadDigestPolicy.STREAMING
    if content_length == 0:
        return PayloadDigestPolicy.EMPTY
    return PayloadDigestPolicy.BUFFERED


def body_length(body: object) -> int | None:
    """The exact number of bytes ``body`` will produce, if it can be known."""
    if body is None:
        return 0
    if isinstance(body, bytes | bytearray):
        return len(body)
    if isinstance(body, memoryview):
        return body.nbytes
    content_length = getattr(body, "content_length", None)
    if isinstance(content_length, int):
        return content_length
    if _is_seekable(body):
        assert isinstance(body, io.IOBase)
        position = body.tell()
        end = body.seek(0, io.SEEK_END)
        body.seek(position)
        return end - position
    return None


def _is_seekable(body: object) -> bool:
    return isinstance(body, io.IOBase) and body.seekable()


class _SigV4Authorizer:
    """State and steps shared by the sync and async authorizers.

    An authorizer holds only immutable configuration, so one instance can be
    reused across calls and threads.
    """

    def __init__(
        self,
        credential: AWSCredentialIdentity,
        service: str,
        region: str,
        *,
        date: datetime | None = None,
        sign_payload: bool = True,
        token_header: str | None = None,
    ):
        if not isinstance(credential, AWSCredentialsIdentity):
            raise MissingExpectedParameterException(
                "Received unexpected value for credential parameter. Expected "
                f"AWSCredentialIdentity but received {type(credential)}."
            )
        if not service or not region:
            raise MissingExpectedParameterException(
                "Both service and region are required for SigV4 signing. "
                f"Received service={service!r}, region={region!r}."
            )
        self.credential = credential
        self.service = service
        self.region = region
        self.date = date
        self.sign_payload = sign_payload
        self.token_header = token_header or TOKEN_HEADER

    @classmethod
    def from_properties(
        cls, credential: AWSCredentialIdentity, properties: SigV4SigningProperties
    ):
        return cls(
            credential,
            properties["service"],
            properties["region"],
            date=properties.get("date"),
            sign_payload=properties.get("payload_signing_enabled", True),
            token_header=properties.get("token_header"),
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(service={self.service!r}, region={self.region!r}, "
            f"sign_payload={self.sign_payload!r})"
        )

    def sign(self, method: str, url: URI, expires_in: timedelta | int) -> None:
        """Presign ``url`` in place by appending SigV4 query parameters.

        Only the ``host`` header is signed and the payload is always
        ``UNSIGNED-PAYLOAD``; the caller sends the body directly.

        https://docs.aws.amazon.com/AmazonS3/latest/API/sigv4-query-string-auth.html
        """
        expires = _whole_seconds(expires_in)
        host = self._presign_host(url)
        date = self._resolve_signing_date()
        scope = self._scope(date)

        query_params = [
            ("X-Amz-Algorithm", ALGORITHM),
            ("X-Amz-Credential", f"{self.credential.access_key_id}/{scope}"),
            ("X-Amz-Date", date.strftime(SIGV4_TIMESTAMP_FORMAT)),
            ("X-Amz-Expires", str(expires)),
            ("X-Amz-SignedHeaders", HOST_HEADER),
        ]
        # Credentials sourced from STS must carry the token in the query.
        if self.credential.session_token is not None:
            query_params.append(
                ("X-Amz-Security-Token", self.credential.session_token)
            )
        _append_query(url, query_params)

        fields = Fields()
        _set_header(fields, HOST_HEADER, host)
        signed_headers, canonical_headers = canonicalize_headers(fields)

        signature = self._compute_signature(
            date=date,
            scope=scope,
            method=method,
            uri=url,
            canonical_headers=canonical_headers,
            signed_headers=signed_headers,
            digest=UNSIGNED_PAYLOAD,
        )
        _append_query(url, [("X-Amz-Signature", signature)])

    def presign(self, method: str, url: str, expires_in: timedelta | int) -> str:
        """Return a presigned copy of the URL string ``url``."""
        uri = URI.from_string(url)
        self.sign(method, uri, expires_in)
        return uri.build()

    def canonical_request(
        self,
        *,
        method: str,
        uri: URI,
        canonical_headers: str,
        signed_headers: str,
        digest: str,
    ) -> str:
        """The canonical request is a standardized string laying out the components
        used in the SigV4 signing algorithm.

        The SigV4 specification defines the canonical request to be:
            <HTTPMethod>\n
            <CanonicalURI>\n
            <CanonicalQueryString>\n
            <CanonicalHeaders>\n
            <SignedHeaders>\n
            <HashedPayload>
        """
        return (
            f"{method.upper()}\n"
            f"{canonical_uri(uri.path, self.service)}\n"
            f"{canonicalize_query(uri.query)}\n"
            f"{canonical_headers}\n"
            f"{signed_headers}\n"
            f"{digest}"
        )

    def string_to_sign(
        self, *, canonical_request: str, date: datetime, scope: str
    ) -> str:
        """The SigV4 specification defines the string to sign as:
            Algorithm \n
            RequestDateTime \n
            CredentialScope  \n
            HashedCanonicalRequest
        """
        return (
            f"{ALGORITHM}\n"
            f"{date.strftime(SIGV4_TIMESTAMP_FORMAT)}\n"
            f"{scope}\n"
            f"{hex_digest(canonical_request)}"
        )

    def generate_authorization_field(
        self, *, credential: str, signed_headers: str, signature: str
    ) -> Field:
        """Generate the `Authorization` field"""
        auth_str = (
            f"{ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )
        return Field(name=AUTHORIZATION_HEADER, values=[auth_str])

    def _scope(self, date: datetime) -> str:
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        date_stamp = date.strftime("%Y%m%d")
        return f"{date_stamp}/{self.region}/{self.service}/{SCOPE_TERMINATOR}"

    def _resolve_signing_date(self) -> datetime:
        if self.date is None:
            return datetime.now(UTC)
        return to_utc(self.date)

    def _presign_host(self, url: URI) -> str:
        if not url.host:
            raise NoHostError()
        if url.port is not None and DEFAULT_PORTS.get(url.scheme) == url.port:
            return URI(scheme=url.scheme, host=url.host).host_port
        return url.host_port

    def _apply_required_fields(self, request: AWSRequest) -> datetime:
        """Set the token, host and date headers and return the signing date."""
        if self.credential.session_token is not None:
            _set_header(
                request.fields, self.token_header, self.credential.session_token
            )

        host = request.destination.host_port
        if not host:
            raise NoHostError()
        _set_header(request.fields, HOST_HEADER, host)

        date = self._resolve_signing_date()
        _set_header(request.fields, DATE_HEADER, date.strftime(SIGV4_TIMESTAMP_FORMAT))
        return date

    def _payload_policy(
        self, request: AWSRequest, pre_calculated_digest: bytes | None
    ) -> PayloadDigestPolicy:
        return select_payload_policy(
            sign_payload=self.sign_payload,
            pre_calculated_digest=pre_calculated_digest,
            content_length=body_length(request.body),
        )

    def _apply_authorization(
        self, request: AWSRequest, date: datetime, digest: str
    ) -> None:
        _set_header(request.fields, HASH_HEADER, digest)

        signed_headers, canonical_headers = canonicalize_headers(request.fields)
        scope = self._scope(date)
        signature = self._compute_signature(
            date=date,
            scope=scope,
            method=request.method,
            uri=request.destination,
            canonical_headers=canonical_headers,
            signed_headers=signed_headers,
            digest=digest,
        )
        authorization = self.generate_authorization_field(
            credential=f"{self.credential.access_key_id}/{scope}",
            signed_headers=signed_headers,
            signature=signature,
        )
        _set_header(request.fields, authorization.name, authorization.as_string())

    def _compute_signature(
        self,
        *,
        date: datetime,
        scope: str,
        method: str,
        uri: URI,
        canonical_headers: str,
        signed_headers: str,
        digest: str,
    ) -> str:
        canonical_request = self.canonical_request(
            method=method,
            uri=uri,
            canonical_headers=canonical_headers,
            signed_headers=signed_headers,
            digest=digest,
        )
        logger.debug("CanonicalRequest:\n%s", canonical_request)
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, date=date, scope=scope
        )
        logger.debug("StringToSign:\n%s", string_to_sign)
        return self.credential.sign(string_to_sign, date, self.region, self.service)


class AwsAuthorizer(_SigV4Authorizer):
    """
    Request authorizer applying the AWS Signature Version 4 algorithm to
    requests with synchronous bodies.
    """

    def authorize(
        self, request: AWSRequest, pre_calculated_digest: bytes | None = None
    ) -> None:
        """Sign ``request`` in place by attaching the SigV4 headers.

        :param request: The request to sign. Its fields gain up to five headers.
        :param pre_calculated_digest: Raw SHA-256 digest of the body, if known.
        """
        date = self._apply_required_fields(request)
        policy = self._payload_policy(request, pre_calculated_digest)
        logger.debug("Payload digest policy: %s", policy.value)
        if policy is PayloadDigestPolicy.PRECOMPUTED:
            assert pre_calculated_digest is not None
            digest = hex_encode(pre_calculated_digest)
        elif policy is PayloadDigestPolicy.BUFFERED:
            digest = hex_digest(self._buffer_chunk(request))
        else:
            digest = _FIXED_DIGESTS[policy]
        self._apply_authorization(request, date, digest)

    def _buffer_chunk(self, request: AWSRequest) -> bytes:
        body = request.body
        # Only reading the body requires it to be synchronous.
        if isinstance(body, AsyncIterable) and not isinstance(body, Iterable):
            raise TypeError(
                "An async body was attached to a synchronous authorizer. Please use "
                "AsyncAwsAuthorizer for async bodies or ensure your body is "
                "of type Iterable[bytes]."
            )
        try:
            if isinstance(body, bytes | bytearray | memoryview):
                chunk: bytes | None = bytes(body)
            elif isinstance(body, BytesReader):
                chunk = body.buffer_chunk()
            elif _is_seekable(body):
                chunk = _read_seekable(body)
            else:
                iterator = iter(body)  # type: ignore[arg-type]
                chunk = next(iterator, None)
                if chunk is not None:
                    request.body = chain([chunk], iterator)
        except Exception as e:
            raise BodyReadError(f"Failed to read request body: {e}") from e
        if chunk is None:
            raise BodyExhaustedError()
        return chunk


class AsyncAwsAuthorizer(_SigV4Authorizer):
    """
    Request authorizer applying the AWS Signature Version 4 algorithm to
    requests with asynchronous bodies.
    """

    async def authorize(
        self, request: AWSRequest, pre_calculated_digest: bytes | None = None
    ) -> None:
        """Sign ``request`` in place by attaching the SigV4 headers.

        Reading one buffered body chunk is the only point where this suspends.

        :param request: The request to sign. Its fields gain up to five headers.
        :param pre_calculated_digest: Raw SHA-256 digest of the body, if known.
        """
        date = self._apply_required_fields(request)
        policy = self._payload_policy(request, pre_calculated_digest)
        logger.debug("Payload digest policy: %s", policy.value)
        if policy is PayloadDigestPolicy.PRECOMPUTED:
            assert pre_calculated_digest is not None
            digest = hex_encode(pre_calculated_digest)
        elif policy is PayloadDigestPolicy.BUFFERED:
            digest = hex_digest(await self._buffer_chunk(request))
        else:
            digest = _FIXED_DIGESTS[policy]
        self._apply_authorization(request, date, digest)

    async def _buffer_chunk(self, request: AWSRequest) -> bytes:
        body = request.body
        try:
            if isinstance(body, bytes | bytearray | memoryview):
                chunk: bytes | None = bytes(body)
            elif isinstance(body, AsyncBytesReader):
                chunk = await body.buffer_chunk()
            elif isinstance(body, BytesReader):
                chunk = body.buffer_chunk()
            elif _is_seekable(body):
                chunk = _read_seekable(body)
            elif isinstance(body, AsyncIterable):
                iterator = aiter(body)
                chunk = await anext(iterator, None)
                if chunk is not None:
                    request.body = _replay(chunk, iterator)
            else:
                sync_iterator = iter(body)  # type: ignore[arg-type]
                chunk = next(sync_iterator, None)
                if chunk is not None:
                    request.body = chain([chunk], sync_iterator)
        except Exception as e:
            raise BodyReadError(f"Failed to read request body: {e}") from e
        if chunk is None:
            raise BodyExhaustedError()
        return chunk


def _read_seekable(body: object) -> bytes | None:
    assert isinstance(body, io.IOBase)
    position = body.tell()
    chunk = body.read()
    body.seek(position)
    return chunk or None


async def _replay(first: bytes, rest: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    yield first
    async for chunk in rest:
        yield chunk


def _set_header(fields: Fields, name: str, value: str) -> None:
    if not _HEADER_VALUE_RE.fullmatch(value):
        raise InvalidHeaderValueError(name, value)
    fields.set_field(Field(name=name, values=[value]))


def _append_query(url: URI, params: list[tuple[str, str]]) -> None:
    encoded = urlencode(params)
    url.query = f"{url.query}&{encoded}" if url.query else encoded


def _whole_seconds(expires_in: timedelta | int) -> int:
    if isinstance(expires_in, timedelta):
        seconds = expires_in // timedelta(seconds=1)
    else:
        seconds = int(expires_in)
    if seconds < 0:
        raise ValueError(f"Presigned URL expiry must not be negative: {expires_in}")
    return seconds
