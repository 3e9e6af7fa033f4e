"""
Tests for the JSON-RPC transport.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest
from pydantic import BaseModel

from agentrpc.errors import RpcError, RpcTransportError
from agentrpc.rpc import JsonRpcClient


def echo_transport(seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": body["params"]})

    return httpx.MockTransport(handler)


class TestJsonRpcClient:
    """Tests for JsonRpcClient."""

    @pytest.mark.asyncio
    async def test_posts_envelope_and_returns_result(self) -> None:
        seen: list[httpx.Request] = []
        async with JsonRpcClient(
            "https://coordinator.test/json-rpc",
            headers={"authorization": "sk_a_b"},
            transport=echo_transport(seen),
        ) as client:
            result = await client.request("listJobs", {"clusterId": "a"})

        assert result == {"clusterId": "a"}
        (request,) = seen
        assert request.method == "POST"
        assert str(request.url) == "https://coordinator.test/json-rpc"
        assert request.headers["authorization"] == "sk_a_b"
        assert request.headers["content-type"] == "application/json"

        body = json.loads(request.content)
        assert body["jsonrpc"] == "2.0"
        assert body["method"] == "listJobs"

    @pytest.mark.asyncio
    async def test_ids_are_unique_across_concurrent_requests(self) -> None:
        seen: list[httpx.Request] = []
        async with JsonRpcClient("https://coordinator.test/json-rpc", transport=echo_transport(seen)) as client:
            await asyncio.gather(*(client.request("ping", {"n": n}) for n in range(5)))

        ids = [json.loads(r.content)["id"] for r in seen]
        assert len(set(ids)) == 5

    @pytest.mark.asyncio
    async def test_params_are_made_json_safe(self) -> None:
        class Payload(BaseModel):
            when: datetime

        seen: list[httpx.Request] = []
        async with JsonRpcClient("https://coordinator.test/json-rpc", transport=echo_transport(seen)) as client:
            result = await client.request(
                "createJobResult",
                {"result": Payload(when=datetime(2025, 1, 2, tzinfo=timezone.utc))},
            )

        assert result == {"result": {"when": "2025-01-02T00:00:00Z"}}

    @pytest.mark.asyncio
    async def test_non_200_raises_transport_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        async with JsonRpcClient("https://coordinator.test/json-rpc", transport=transport) as client:
            with pytest.raises(RpcTransportError) as exc_info:
                await client.request("listJobs", {})

        assert exc_info.value.status_code == 503
        assert exc_info.value.reason == "Service Unavailable"

    @pytest.mark.asyncio
    async def test_error_member_raises_rpc_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "jsonrpc": "2.0",
                    "id": body["id"],
                    "error": {"code": -32602, "message": "Invalid params", "data": {"field": "clusterId"}},
                },
            )

        async with JsonRpcClient("https://coordinator.test/json-rpc", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(RpcError) as exc_info:
                await client.request("listJobs", {})

        assert not isinstance(exc_info.value, RpcTransportError)
        assert exc_info.value.code == -32602
        assert exc_info.value.data == {"field": "clusterId"}
        assert str(exc_info.value) == "Invalid params"

    @pytest.mark.asyncio
    async def test_network_errors_propagate(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with JsonRpcClient("https://coordinator.test/json-rpc", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.ConnectError):
                await client.request("listJobs", {})
