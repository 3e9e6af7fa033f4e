"""
Centralized configuration for the AgentRPC client.

Architecture:
- Module constants hold protocol defaults (poll batch size, long-poll wait)
- ClientConfig: immutable bundle resolved once at client construction
- load_config: explicit arguments win over environment variables
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import AgentRPCError


# --- Defaults ---

SDK_VERSION = "0.1.0"

DEFAULT_ENDPOINT = "https://api.agentrpc.com"

DEFAULT_POLL_LIMIT = 10  # jobs per listJobs batch
DEFAULT_WAIT_TIME_SECONDS = 20  # server-side long-poll budget
DEFAULT_RETRY_AFTER_SECONDS = 0.0  # sleep between poll iterations
JOB_POLL_INTERVAL_SECONDS = 1.0  # getJob spacing in create_and_poll_job

# Must exceed the long-poll budget or every idle poll would time out
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0

TERMINAL_JOB_STATUSES = frozenset({"done", "failure"})

# Environment variables
API_SECRET_ENV = "AGENTRPC_API_SECRET"
ENDPOINT_ENV = "AGENTRPC_ENDPOINT"


# --- Types ---


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable client configuration.

    The cluster id is embedded in the API secret (sk_<cluster>_<random>)
    so it is derived rather than configured.
    """

    api_secret: str
    cluster_id: str
    endpoint: str
    machine_id: str | None = None
    mcp_uuid: str | None = None
    mcp_app: str | None = None
    mcp_session_id: str | None = None
    mcp_chat_id: str | None = None

    @property
    def rpc_url(self) -> str:
        """URL every JSON-RPC request is posted to."""
        if not self.mcp_uuid:
            return f"{self.endpoint}/json-rpc"
        url = f"{self.endpoint}/v1/{self.mcp_uuid}"
        if self.mcp_app:
            url = f"{url}/{self.mcp_app}"
        return url


# --- Resolution ---


def parse_api_secret(api_secret: str | None) -> str:
    """
    Validate an API secret and return the cluster id it carries.

    Raises:
        AgentRPCError: if the secret is missing or malformed
    """
    if not api_secret:
        raise AgentRPCError("No API Secret provided.")

    parts = api_secret.split("_")
    if len(parts) < 3 or parts[0] != "sk" or not parts[1] or not parts[2]:
        raise AgentRPCError("Invalid API Secret.")

    return parts[1]


def load_config(
    api_secret: str | None = None,
    endpoint: str | None = None,
    machine_id: str | None = None,
    mcp_uuid: str | None = None,
    mcp_app: str | None = None,
    mcp_session_id: str | None = None,
    mcp_chat_id: str | None = None,
) -> ClientConfig:
    """Resolve client configuration from arguments and the environment."""
    secret = api_secret or os.environ.get(API_SECRET_ENV)
    cluster_id = parse_api_secret(secret)

    resolved_endpoint = (endpoint or os.environ.get(ENDPOINT_ENV) or DEFAULT_ENDPOINT).rstrip("/")
    if resolved_endpoint != DEFAULT_ENDPOINT and not mcp_uuid:
        raise AgentRPCError("mcpUuid is required when a custom endpoint is provided.")

    return ClientConfig(
        api_secret=secret,  # type: ignore[arg-type]
        cluster_id=cluster_id,
        endpoint=resolved_endpoint,
        machine_id=machine_id,
        mcp_uuid=mcp_uuid,
        mcp_app=mcp_app,
        mcp_session_id=mcp_session_id,
        mcp_chat_id=mcp_chat_id,
    )
