"""Approval vocabulary shared verbatim between the chat client and the backend."""

from enum import Enum


class Approval(str, Enum):
    """Answer the client attaches as the result of a tool call that needs confirmation."""

    YES = "Yes, confirmed."
    NO = "No, denied."


DENIED_RESULT = "Error: User denied access to tool execution"
MISSING_EXECUTOR_RESULT = "Error: No execute function found on tool"
