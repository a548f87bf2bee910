from .models import ToolDefinition, ToolCallRequest, ToolCallResult, ExecutionContext
from .registry import ToolRegistry, tools_requiring_confirmation, ExecutorTable, ToolExecutor
from .schema import SchemaValidator
from .approval import Approval, DENIED_RESULT, MISSING_EXECUTOR_RESULT
from .policy import ConfirmationPolicy
from .execution import ToolAdapter, ToolExecutionLoop, LoopOutcome, invoke_tool
from .processor import ToolCallProcessor, process_tool_calls

__all__ = [
    "ToolDefinition",
    "ToolCallRequest",
    "ToolCallResult",
    "ExecutionContext",
    "ToolRegistry",
    "tools_requiring_confirmation",
    "ExecutorTable",
    "ToolExecutor",
    "SchemaValidator",
    "Approval",
    "DENIED_RESULT",
    "MISSING_EXECUTOR_RESULT",
    "ConfirmationPolicy",
    "ToolAdapter",
    "ToolExecutionLoop",
    "LoopOutcome",
    "invoke_tool",
    "ToolCallProcessor",
    "process_tool_calls",
]
