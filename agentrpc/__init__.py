"""
AgentRPC Python SDK.

Serve local functions as tools to an AgentRPC cluster: register tools with
a schema, call listen(), and the SDK long-polls the coordinator for jobs,
validates their input, runs the handlers and reports the results.

Public API:
- AgentRPC: client facade
- ToolRegistration, tool: tool definitions
- PollingAgent, create_and_poll_job: lower-level building blocks
- AgentRPCError, ValidationError, RpcError, RpcTransportError: errors
"""

from .client import AgentRPC
from .config import SDK_VERSION as __version__
from .errors import AgentRPCError, RpcError, RpcTransportError, ValidationError, ValidationIssue
from .execute import Result, execute_fn, serialize_error
from .polling import AgentState, JobOutcome, PollingAgent, create_and_poll_job, poll_for_job_completion
from .rpc import JsonRpcClient
from .tools import ToolRegistration, ToolRegistry, tool

__all__ = [
    "__version__",
    "AgentRPC",
    "AgentRPCError",
    "AgentState",
    "JobOutcome",
    "JsonRpcClient",
    "PollingAgent",
    "Result",
    "RpcError",
    "RpcTransportError",
    "ToolRegistration",
    "ToolRegistry",
    "ValidationError",
    "ValidationIssue",
    "create_and_poll_job",
    "execute_fn",
    "poll_for_job_completion",
    "serialize_error",
    "tool",
]
