"""Tool execution logic and adapters."""

from .adapter import ToolAdapter
from .invoke import invoke_tool
from .tool_loop import LoopOutcome, ToolExecutionLoop

__all__ = ["ToolAdapter", "invoke_tool", "LoopOutcome", "ToolExecutionLoop"]
