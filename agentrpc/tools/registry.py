"""
Tool registry: collects tool registrations before the agent starts.

Architecture:
- Registrations are checked on the way in (unique name, callable handler,
  usable schema) so mistakes fail at the register() call
- The registry can be frozen; the facade freezes it while an agent listens
- Polling agents receive an immutable snapshot via snapshot()
"""

from __future__ import annotations

import logging

from ..errors import AgentRPCError
from ..schema import check_schema
from .base import ToolRegistration

logger = logging.getLogger("agentrpc.tools")


class ToolRegistry:
    """
    Central registry for tool registrations.

    Provides:
    - Registration with fail-fast configuration checks
    - Lookup by name
    - Immutable snapshots for polling agents
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolRegistration] = {}
        self._frozen_reason: str | None = None

    def register(self, registration: ToolRegistration) -> None:
        """
        Add a tool.

        Raises:
            AgentRPCError: on duplicate name, frozen registry, non-callable
                handler, or invalid schema. The registry is left unchanged.
        """
        if registration.name in self._tools:
            raise AgentRPCError(f"Tool name '{registration.name}' is already registered.")

        if self._frozen_reason is not None:
            raise AgentRPCError(self._frozen_reason)

        if not callable(registration.handler):
            raise AgentRPCError("handler must be a function.")

        check_schema(registration.schema)

        logger.debug(f"Registering tool: {registration.name}")
        self._tools[registration.name] = registration

    def freeze(self, reason: str) -> None:
        """Reject further registrations with the given message."""
        self._frozen_reason = reason

    def unfreeze(self) -> None:
        self._frozen_reason = None

    @property
    def frozen(self) -> bool:
        return self._frozen_reason is not None

    def get(self, name: str) -> ToolRegistration | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def snapshot(self) -> tuple[ToolRegistration, ...]:
        """All registrations, in registration order."""
        return tuple(self._tools.values())

    @property
    def available_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
