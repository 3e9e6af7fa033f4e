"""
Exception types raised by the SDK.

Hierarchy:
- AgentRPCError: configuration and usage errors (bad secret, duplicate tool,
  registering while listening, double listen)
- ValidationError: job input does not match a tool's schema
- RpcError: coordinator answered with a JSON-RPC error object
- RpcTransportError: coordinator answered with a non-200 HTTP status
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class AgentRPCError(Exception):
    """Base class for all SDK errors."""


@dataclass(frozen=True)
class ValidationIssue:
    """A single schema violation."""

    path: tuple[str | int, ...]
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": list(self.path), "message": self.message}


class ValidationError(AgentRPCError):
    """Input did not satisfy a tool schema."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        summary = "; ".join(
            f"{'.'.join(str(p) for p in issue.path) or '<root>'}: {issue.message}"
            for issue in issues
        )
        super().__init__(f"Input does not match schema: {summary}")


class RpcError(AgentRPCError):
    """Coordinator returned a JSON-RPC error."""

    def __init__(self, message: str, code: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class RpcTransportError(RpcError):
    """Coordinator returned a non-success HTTP status."""

    def __init__(self, status_code: int, reason: str) -> None:
        super().__init__(f"HTTP {status_code}: {reason}", code=status_code)
        self.status_code = status_code
        self.reason = reason
