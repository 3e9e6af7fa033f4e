"""
AgentRPC client facade.

Usage:
    class Greeting(BaseModel):
        name: str

    rpc = AgentRPC(api_secret="sk_...")

    @rpc.tool(name="hello", schema=Greeting)
    async def hello(args: Greeting) -> str:
        return f"Hello {args.name}"

    await rpc.listen()
    ...
    await rpc.unlisten()

Tools must be registered before listen(). One polling agent serves every
registered tool.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import httpx

from .adapters import OpenAIToolAdapter
from .config import DEFAULT_RETRY_AFTER_SECONDS, SDK_VERSION, ClientConfig, load_config
from .errors import AgentRPCError
from .execute import Handler
from .machine_id import machine_id as default_machine_id
from .polling import PollingAgent
from .rpc import JsonRpcClient
from .schema import SchemaDescriptor
from .tools import ToolRegistration, ToolRegistry, tool as build_tool

logger = logging.getLogger("agentrpc.client")

LISTENING_MESSAGE = "Tools must be registered before starting the listener."


class AgentRPC:
    """Registers tools and serves them to an AgentRPC cluster."""

    def __init__(
        self,
        api_secret: str | None = None,
        endpoint: str | None = None,
        machine_id: str | None = None,
        mcp_uuid: str | None = None,
        mcp_app: str | None = None,
        mcp_session_id: str | None = None,
        mcp_chat_id: str | None = None,
        *,
        retry_after: float = DEFAULT_RETRY_AFTER_SECONDS,
        job_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_secret: cluster API secret; falls back to AGENTRPC_API_SECRET
            endpoint: coordinator base URL; falls back to AGENTRPC_ENDPOINT,
                then https://api.agentrpc.com. Custom endpoints need mcp_uuid.
            machine_id: override the derived host identity
            mcp_uuid, mcp_app: route requests to an MCP server endpoint
            mcp_session_id, mcp_chat_id: forwarded as correlation headers
            retry_after: seconds to sleep between poll iterations
            job_timeout: optional per-job handler timeout in seconds
            transport: custom httpx transport (testing, proxies)

        Raises:
            AgentRPCError: missing or malformed secret, or custom endpoint
                without mcp_uuid
        """
        self.config: ClientConfig = load_config(
            api_secret=api_secret,
            endpoint=endpoint,
            machine_id=machine_id or default_machine_id(),
            mcp_uuid=mcp_uuid,
            mcp_app=mcp_app,
            mcp_session_id=mcp_session_id,
            mcp_chat_id=mcp_chat_id,
        )
        self.retry_after = retry_after
        self.job_timeout = job_timeout

        self.rpc_client = JsonRpcClient(
            self.config.rpc_url,
            headers=self._headers(),
            transport=transport,
        )
        self.openai = OpenAIToolAdapter(self.rpc_client, self.config.cluster_id)

        self._registry = ToolRegistry()
        self._polling_agents: list[PollingAgent] = []

    def _headers(self) -> dict[str, str]:
        headers = {
            "authorization": self.config.api_secret,
            "x-machine-sdk-version": SDK_VERSION,
            "x-machine-sdk-language": "python",
        }
        if self.config.machine_id:
            headers["x-machine-id"] = self.config.machine_id
        if self.config.mcp_session_id:
            headers["mcp-session-id"] = self.config.mcp_session_id
        if self.config.mcp_chat_id:
            headers["x-pd-mcp-chat-id"] = self.config.mcp_chat_id
        return headers

    @staticmethod
    def get_version() -> str:
        return SDK_VERSION

    @property
    def cluster_id(self) -> str:
        return self.config.cluster_id

    def get_cluster_id(self) -> str:
        return self.config.cluster_id

    @property
    def tools(self) -> ToolRegistry:
        return self._registry

    @property
    def listening(self) -> bool:
        return bool(self._polling_agents)

    # --- Registration ---

    def register(
        self,
        name: str | ToolRegistration,
        schema: SchemaDescriptor | None = None,
        handler: Handler | None = None,
        *,
        description: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> ToolRegistration:
        """
        Register a tool.

        Either pass a ToolRegistration (e.g. from the @tool decorator) or the
        name, schema and handler directly.

        Raises:
            AgentRPCError: duplicate name, already listening, non-callable
                handler or unusable schema
        """
        if isinstance(name, ToolRegistration):
            registration = name
        else:
            registration = ToolRegistration(
                name=name,
                schema=schema,  # type: ignore[arg-type]
                handler=handler,  # type: ignore[arg-type]
                description=description,
                config=config,
            )

        self._registry.register(registration)
        logger.info(f"Registered tool: {registration.name}")
        return registration

    def tool(
        self,
        name: str,
        schema: SchemaDescriptor,
        description: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> Callable[[Handler], Handler]:
        """
        Decorator form of register(); returns the function unchanged.

        Like the module-level @tool, the description defaults to the docstring.
        """
        def decorator(fn: Handler) -> Handler:
            self.register(build_tool(name, schema, description=description, config=config)(fn))
            return fn
        return decorator

    # --- Listening ---

    async def listen(self) -> None:
        """
        Register the machine and start serving jobs in the background.

        Raises:
            AgentRPCError: if already listening
        """
        if self._polling_agents:
            raise AgentRPCError("Tools already listening")

        # TODO: split the registry across several agents once the coordinator supports sharding
        agent = PollingAgent(
            cluster_id=self.config.cluster_id,
            tools=self._registry.snapshot(),
            client=self.rpc_client,
            retry_after=self.retry_after,
            job_timeout=self.job_timeout,
        )

        self._polling_agents.append(agent)
        self._registry.freeze(LISTENING_MESSAGE)
        try:
            await agent.start()
        except Exception:
            self._polling_agents.remove(agent)
            self._registry.unfreeze()
            raise

    async def unlisten(self) -> None:
        """Stop every polling agent and wait for their loops to exit."""
        agents, self._polling_agents = self._polling_agents, []
        await asyncio.gather(*(agent.stop() for agent in agents))
        self._registry.unfreeze()

    async def aclose(self) -> None:
        await self.unlisten()
        await self.rpc_client.aclose()

    async def __aenter__(self) -> AgentRPC:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
