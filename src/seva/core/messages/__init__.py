"""Expose the conversation models shared by the processor, the chat model and the server."""

from .models import (
    WireModel,
    ToolInvocationState,
    ToolInvocation,
    TextPart,
    ToolInvocationPart,
    OtherPart,
    MessagePart,
    Message,
    convert_to_core_messages,
)

__all__ = [
    "WireModel",
    "ToolInvocationState",
    "ToolInvocation",
    "TextPart",
    "ToolInvocationPart",
    "OtherPart",
    "MessagePart",
    "Message",
    "convert_to_core_messages",
]
