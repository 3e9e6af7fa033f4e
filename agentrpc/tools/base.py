"""
Base types for tool registration.

A tool bundles the schema (sent to the coordinator and used to validate
job input) with the handler (run locally when a job arrives).

This architecture enables:
- One immutable record per tool, shared read-only by the polling loop
- Decorator registration next to the handler definition
- Either pydantic models or raw JSON Schema as the input contract
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable

from ..execute import Handler
from ..schema import SchemaDescriptor, is_model_schema, to_json_schema


@dataclass(frozen=True)
class ToolRegistration:
    """
    Complete tool definition: schema + implementation.

    Never mutated after it enters a registry.
    """
    name: str
    schema: SchemaDescriptor
    handler: Handler
    description: str | None = None
    config: dict[str, Any] | None = None

    @property
    def uses_model_schema(self) -> bool:
        return is_model_schema(self.schema)

    def to_machine_tool(self) -> dict[str, Any]:
        """Tool entry for the createMachine call."""
        return {
            "name": self.name,
            "description": self.description,
            "schema": to_json_schema(self.schema),
            "config": self.config,
        }


def tool(
    name: str,
    schema: SchemaDescriptor,
    description: str | None = None,
    config: dict[str, Any] | None = None,
) -> Callable[[Handler], ToolRegistration]:
    """
    Decorator to create a ToolRegistration from a function.

    Usage:
        class Greeting(BaseModel):
            name: str

        @tool(name="hello", schema=Greeting, description="Say hello")
        async def hello(args: Greeting) -> str:
            return f"Hello {args.name}"

        rpc.register(hello)
    """
    def decorator(fn: Handler) -> ToolRegistration:
        return ToolRegistration(
            name=name,
            schema=schema,
            handler=fn,
            description=description if description is not None else inspect.getdoc(fn),
            config=config,
        )
    return decorator
