"""
JSON-RPC 2.0 client over HTTP.

One instance is shared by the facade, the polling agent and the adapter.
Each request is a single POST; ids only need to be unique per client, so
concurrent in-flight requests are safe.
"""

from __future__ import annotations

import itertools
import json
import logging
from typing import Any

import httpx
from pydantic_core import to_jsonable_python

from .config import DEFAULT_REQUEST_TIMEOUT_SECONDS
from .errors import RpcError, RpcTransportError

logger = logging.getLogger("agentrpc.rpc")


class JsonRpcClient:
    """Correlates JSON-RPC method calls with their responses."""

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._ids = itertools.count(1)
        self._http = httpx.AsyncClient(
            headers={"content-type": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport,
        )

    async def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """
        Call a coordinator method and return its result.

        Raises:
            RpcTransportError: non-200 HTTP status
            RpcError: the response carried a JSON-RPC error
            httpx.HTTPError: network failure
        """
        request_id = next(self._ids)
        envelope = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params or {},
        }
        body = json.dumps(to_jsonable_python(envelope, fallback=repr))

        logger.debug(f"-> {method} (id={request_id})")
        response = await self._http.post(self.url, content=body)

        if response.status_code != 200:
            logger.debug(f"<- {method} (id={request_id}) HTTP {response.status_code}")
            raise RpcTransportError(response.status_code, response.reason_phrase)

        payload = response.json()
        error = payload.get("error")
        if error is not None:
            logger.debug(f"<- {method} (id={request_id}) error: {error}")
            raise RpcError(
                error.get("message", "Unknown JSON-RPC error"),
                code=error.get("code"),
                data=error.get("data"),
            )

        logger.debug(f"<- {method} (id={request_id}) ok")
        return payload.get("result")

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> JsonRpcClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
