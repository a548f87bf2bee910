"""Data models for tool execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ToolCallRequest:
    """Represents a normalized tool call request from a model response."""

    name: str
    arguments: Any
    call_id: Optional[str] = None


@dataclass(frozen=True)
class ToolCallResult:
    """Represents the outcome of executing a tool call."""

    name: str
    response: Dict[str, Any]
    call_id: Optional[str] = None


@dataclass(frozen=True)
class ExecutionContext:
    """Context handed to an approved tool's executor.

    Attributes:
        messages: The full conversation, converted to model messages.
        tool_call_id: Id of the invocation being executed.
    """

    tool_call_id: str
    messages: List[Dict[str, Any]] = field(default_factory=list)
