"""Tool-related data models."""

from .models import ToolDefinition
from .tool_call import ToolCallRequest, ToolCallResult, ExecutionContext

__all__ = ["ToolDefinition", "ToolCallRequest", "ToolCallResult", "ExecutionContext"]
