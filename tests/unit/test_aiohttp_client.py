"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from datetime import UTC, datetime

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from aws_sigv4_auth import (
    AWSCredentialIdentity,
    AWSRequest,
    AsyncAwsAuthorizer,
    BytesReader,
    TemporaryCredential,
    URI,
)
from aws_sigv4_auth.aiohttp_client import AIOHTTPClient
from aws_sigv4_auth.imds import instance_credentials


def metadata_app(seen: list[web.Request]) -> web.Application:
    async def token(request: web.Request) -> web.Response:
        seen.append(request)
        if request.headers.get("X-aws-ec2-metadata-token-ttl-seconds") != "600":
            return web.Response(status=400)
        return web.Response(body=b"IMDS-TOKEN")

    async def roles(request: web.Request) -> web.Response:
        seen.append(request)
        if request.headers.get("X-aws-ec2-metadata-token") != "IMDS-TOKEN":
            return web.Response(status=401)
        return web.Response(body=b"instance-role")

    async def echo(request: web.Request) -> web.Response:
        seen.append(request)
        return web.Response(body=await request.read())

    app = web.Application()
    app.router.add_put("/latest/api/token", token)
    app.router.add_get("/latest/meta-data/iam/security-credentials/", roles)
    app.router.add_put("/bucket/{key}", echo)
    return app


class RoleRefresher:
    async def refresh(self, role_name: str, token: str | None) -> TemporaryCredential:
        return TemporaryCredential(
            AWSCredentialIdentity(
                access_key_id=role_name, secret_access_key="SECRET", session_token=token
            )
        )


class TestAIOHTTPClient:
    @pytest.mark.asyncio
    async def test_instance_credentials(self):
        seen: list[web.Request] = []
        async with TestServer(metadata_app(seen)) as server:
            endpoint = str(server.make_url("")).rstrip("/")
            async with AIOHTTPClient() as client:
                result = await instance_credentials(
                    client, endpoint, imdsv1_fallback=False, refresher=RoleRefresher()
                )

        assert result.credential.access_key_id == "instance-role"
        assert result.credential.session_token == "IMDS-TOKEN"
        assert [r.method for r in seen] == ["PUT", "GET"]

    @pytest.mark.asyncio
    async def test_signed_request_reaches_server_unaltered(self):
        seen: list[web.Request] = []
        async with TestServer(metadata_app(seen)) as server:
            credential = AWSCredentialIdentity(
                access_key_id="AKID", secret_access_key="SECRET"
            )
            authorizer = AsyncAwsAuthorizer(
                credential, "s3", "us-east-1", date=datetime(2024, 1, 1, tzinfo=UTC)
            )
            request = AWSRequest(
                destination=URI.from_string(
                    str(server.make_url("/bucket/key")) + "?prefix=a%2Fb"
                ),
                method="PUT",
                body=b"payload",
            )
            await authorizer.authorize(request)

            async with AIOHTTPClient() as client:
                response = await client.send(request)

        assert response.status == 200
        assert await response.consume_body() == b"payload"
        received = seen[0]
        assert received.raw_path.endswith("?prefix=a%2Fb")
        assert (
            received.headers["Authorization"]
            == request.fields["authorization"].as_string()
        )
        assert received.headers["x-amz-content-sha256"] == (
            request.fields["x-amz-content-sha256"].as_string()
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            lambda: BytesReader(b"payload"),
            lambda: BytesReader([b"pay", b"load"], content_length=7),
            lambda: [b"pay", b"load"],
        ],
    )
    async def test_sync_body_is_streamed(self, body):
        seen: list[web.Request] = []
        async with TestServer(metadata_app(seen)) as server:
            credential = AWSCredentialIdentity(
                access_key_id="AKID", secret_access_key="SECRET"
            )
            authorizer = AsyncAwsAuthorizer(
                credential, "s3", "us-east-1", date=datetime(2024, 1, 1, tzinfo=UTC)
            )
            request = AWSRequest(
                destination=URI.from_string(str(server.make_url("/bucket/key"))),
                method="PUT",
                body=body(),
            )
            await authorizer.authorize(request)

            async with AIOHTTPClient() as client:
                response = await client.send(request)

        assert response.status == 200
        assert await response.consume_body() == b"payload"
