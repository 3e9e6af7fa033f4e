"""
OpenAI chat-completion adapter.

Maps the cluster's tools onto the OpenAI `tools` request parameter and runs
model-issued tool calls as coordinator jobs.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .errors import AgentRPCError
from .models import RemoteTool
from .polling import RpcClient, create_and_poll_job

logger = logging.getLogger("agentrpc.adapters")


def _field(obj: Any, name: str) -> Any:
    """Read a field from either an SDK object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def to_openai_tool(remote: RemoteTool) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": remote.name,
            "description": remote.description or "",
            "parameters": json.loads(remote.schema_ or "{}"),
        },
    }


class OpenAIToolAdapter:
    """Bridges OpenAI tool calling and AgentRPC jobs for one cluster."""

    def __init__(self, client: RpcClient, cluster_id: str) -> None:
        self.client = client
        self.cluster_id = cluster_id

    async def get_tools(self) -> list[dict[str, Any]]:
        """List the cluster's tools in OpenAI function-tool format."""
        response = await self.client.request("listTools", {"clusterId": self.cluster_id})
        return [to_openai_tool(RemoteTool.model_validate(t)) for t in response or []]

    async def execute_tool(self, tool_call: Any) -> str:
        """
        Run a tool call from a chat completion and return the message content.

        Accepts an openai ChatCompletionMessageToolCall or the equivalent dict.

        Returns:
            JSON string of {"type": resultType, "content": result}
        """
        function = _field(tool_call, "function")
        name = _field(function, "name")
        arguments = _field(function, "arguments") or "{}"

        tools = await self.get_tools()
        if not any(t["function"]["name"] == name for t in tools):
            raise AgentRPCError(f"Tool not found: {name}")

        logger.debug(f"Executing tool call {name}")
        outcome = await create_and_poll_job(
            self.client,
            self.cluster_id,
            name,
            json.loads(arguments),
        )
        return json.dumps({"type": outcome.result_type, "content": outcome.result})
