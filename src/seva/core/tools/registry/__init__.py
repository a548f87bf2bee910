"""Tool registry, the confirmation set derived from it and the executor table."""

from .base import ToolRegistry, tools_requiring_confirmation
from .executors import ExecutorTable, ToolExecutor

__all__ = ["ToolRegistry", "tools_requiring_confirmation", "ExecutorTable", "ToolExecutor"]
