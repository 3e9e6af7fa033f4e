"""
Tools package: registration types and the registry.

Public API:
- ToolRegistration: Core type
- tool: Decorator for creating registrations from functions
- ToolRegistry: Registry class used by the client facade
"""

from .base import ToolRegistration, tool
from .registry import ToolRegistry

__all__ = [
    "ToolRegistration",
    "tool",
    "ToolRegistry",
]
