from .base import ChatModel
from .config import Settings
from .tools import (
    ToolRegistry,
    ToolDefinition,
    ExecutorTable,
    ConfirmationPolicy,
    ToolCallProcessor,
    process_tool_calls,
    Approval,
)
from .messages import Message, convert_to_core_messages
from .stream import DataStreamWriter, format_data_stream_part
from .exceptions import (
    SevaError,
    ConfigurationError,
    ToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    ExternalServiceError,
)
from .logger import get_logger, setup_logging

__all__ = [
    "ChatModel",
    "Settings",
    "ToolRegistry",
    "ToolDefinition",
    "ExecutorTable",
    "ConfirmationPolicy",
    "ToolCallProcessor",
    "process_tool_calls",
    "Approval",
    "Message",
    "convert_to_core_messages",
    "DataStreamWriter",
    "format_data_stream_part",
    "SevaError",
    "ConfigurationError",
    "ToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "ExternalServiceError",
    "get_logger",
    "setup_logging",
]
