"""Conversation models exchanged with the chat client.

The wire format uses camelCase keys (``toolCallId``, ``toolInvocation``); the models
accept both the aliases and the Python field names.
"""

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel

ToolInvocationState = Literal["partial-call", "call", "result"]


class WireModel(BaseModel):
    """Base model for client payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Dump the model using wire aliases, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolInvocation(WireModel):
    """A model-requested tool call and, once available, its result.

    Attributes:
        state: ``partial-call`` while arguments stream in, ``call`` once complete,
            ``result`` once a result (or an approval answer) is attached.
        tool_call_id: Unique id of the call; correlates the call with its result.
        tool_name: Name of the registered tool.
        args: Arguments proposed by the model.
        result: Result of the call; only meaningful in ``result`` state.
        step: Model step that produced the call.
    """

    state: ToolInvocationState
    tool_call_id: str
    tool_name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    result: Optional[Any] = None
    step: Optional[int] = None


class TextPart(WireModel):
    """Plain text segment of a message."""

    type: Literal["text"] = "text"
    text: str


class ToolInvocationPart(WireModel):
    """Message part carrying a tool invocation."""

    type: Literal["tool-invocation"] = "tool-invocation"
    tool_invocation: ToolInvocation


class OtherPart(WireModel):
    """Any other part type (reasoning, sources, step markers); kept verbatim."""

    model_config = ConfigDict(extra="allow")

    type: str


def _part_tag(value: Any) -> str:
    part_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if part_type in ("text", "tool-invocation"):
        return part_type
    return "other"


MessagePart = Annotated[
    Union[
        Annotated[TextPart, Tag("text")],
        Annotated[ToolInvocationPart, Tag("tool-invocation")],
        Annotated[OtherPart, Tag("other")],
    ],
    Discriminator(_part_tag),
]


class Message(WireModel):
    """A single chat message.

    Attributes:
        id: Client-side message id.
        role: Author of the message.
        content: Flattened text content.
        parts: Ordered parts; tool invocations of assistant turns live here.
        tool_invocations: Legacy list of tool invocations, used when ``parts`` is absent.
    """

    id: Optional[str] = None
    role: Literal["system", "user", "assistant", "data"]
    content: str = ""
    parts: Optional[List[MessagePart]] = None
    tool_invocations: Optional[List[ToolInvocation]] = None

    def iter_tool_invocations(self) -> List[ToolInvocation]:
        """Return the message's tool invocations, preferring ``parts`` over the legacy field."""
        if self.parts is not None:
            return [part.tool_invocation for part in self.parts if isinstance(part, ToolInvocationPart)]
        return list(self.tool_invocations or [])

    def text(self) -> str:
        """Return the text of the message, joining text parts when present."""
        if self.parts:
            texts = [part.text for part in self.parts if isinstance(part, TextPart)]
            if texts:
                return "".join(texts)
        return self.content


def convert_to_core_messages(messages: List[Message]) -> List[Dict[str, Any]]:
    """
    Converts client messages into OpenAI chat-completion messages.

    Assistant tool invocations in ``result`` state become ``tool_calls`` on the assistant
    message followed by one ``tool`` message per result. Invocations that have no result yet
    are left out, so every emitted tool call is answered.

    Args:
        messages: The client conversation.

    Returns:
        List of OpenAI message dictionaries.
    """
    core_messages: List[Dict[str, Any]] = []
    for msg in messages:
        if msg.role in ("system", "user"):
            core_messages.append({"role": msg.role, "content": msg.text()})
        elif msg.role == "assistant":
            resolved = [inv for inv in msg.iter_tool_invocations() if inv.state == "result"]
            text = msg.text()
            if not resolved:
                if text:
                    core_messages.append({"role": "assistant", "content": text})
                continue

            core_messages.append(
                {
                    "role": "assistant",
                    "content": text or None,
                    "tool_calls": [
                        {
                            "id": inv.tool_call_id,
                            "type": "function",
                            "function": {"name": inv.tool_name, "arguments": json.dumps(inv.args)},
                        }
                        for inv in resolved
                    ],
                }
            )
            for inv in resolved:
                core_messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": inv.tool_call_id,
                        "name": inv.tool_name,
                        "content": json.dumps(inv.result, default=str),
                    }
                )
        # "data" messages carry client-side annotations only
    return core_messages
