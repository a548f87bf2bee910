import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from openai.types.chat import ChatCompletion

from seva.core.logger import get_logger
from seva.core.stream import DataStreamWriter
from seva.core.tools import ToolCallRequest, ToolCallResult

logger = get_logger(__name__)

_FINISH_REASONS = {
    "stop": "stop",
    "tool_calls": "tool-calls",
    "function_call": "tool-calls",
    "length": "length",
    "content_filter": "content-filter",
}


class OpenAIToolAdapter:
    """Adapter between the tool loop, the chat-completions API and the client stream."""

    def __init__(
        self,
        messages: List[Dict[str, Any]],
        stream: DataStreamWriter,
        create_completion: Callable[[List[Dict[str, Any]]], Awaitable[ChatCompletion]],
    ):
        """Initialize the OpenAI tool adapter.

        Args:
            messages: The conversation in chat-completions format; extended in place.
            stream: Stream receiving the frames of the turn.
            create_completion: Coroutine function requesting the next completion for a message list.
        """
        self.messages = messages
        self.stream = stream
        self._create_completion = create_completion
        self.prompt_tokens = 0
        self.completion_tokens = 0

    @property
    def usage(self) -> Dict[str, int]:
        return {"promptTokens": self.prompt_tokens, "completionTokens": self.completion_tokens}

    async def create_completion(self) -> ChatCompletion:
        """Request a completion for the current message list."""
        return await self._create_completion(self.messages)

    def get_tool_calls(self, response: ChatCompletion) -> Sequence[ToolCallRequest]:
        """Extract tool calls from an OpenAI chat completion response.

        Args:
            response: The chat completion response from OpenAI.

        Returns:
            A sequence of tool call requests extracted from the response.
        """
        if not response.choices:
            return []

        tool_calls = response.choices[0].message.tool_calls
        if not tool_calls:
            return []

        return [
            ToolCallRequest(name=tool_call.function.name, arguments=tool_call.function.arguments, call_id=tool_call.id)
            for tool_call in tool_calls
            if tool_call.type == "function"
        ]

    def record_assistant_message(self, response: ChatCompletion) -> None:
        """Record the assistant's message from the response into the message history."""
        if response.choices:
            self.messages.append(response.choices[0].message.model_dump(exclude_none=True))

    async def publish_step(self, response: ChatCompletion, tool_calls: Sequence[ToolCallRequest]) -> None:
        """Write the text, the tool calls and the step end of a model response."""
        usage = getattr(response, "usage", None)
        if usage is not None:
            self.prompt_tokens += usage.prompt_tokens or 0
            self.completion_tokens += usage.completion_tokens or 0

        content = response.choices[0].message.content if response.choices else None
        if content:
            await self.stream.write_part("text", content)

        for call in tool_calls:
            await self.stream.write_part(
                "tool_call",
                {"toolCallId": call.call_id, "toolName": call.name, "args": self._decode_arguments(call.arguments)},
            )

        finish_reason = response.choices[0].finish_reason if response.choices else None
        await self.stream.write_part(
            "finish_step",
            {
                "finishReason": _FINISH_REASONS.get(finish_reason or "", "unknown"),
                "usage": {
                    "promptTokens": (usage.prompt_tokens or 0) if usage is not None else 0,
                    "completionTokens": (usage.completion_tokens or 0) if usage is not None else 0,
                },
                "isContinued": False,
            },
        )

    async def publish_tool_result(self, result: ToolCallResult) -> None:
        """Write the result of a directly executed tool."""
        payload = result.response["result"] if "result" in result.response else result.response
        await self.stream.write_part("tool_result", {"toolCallId": result.call_id, "result": payload})

    def build_tool_response_message(self, result: ToolCallResult) -> Dict[str, Any]:
        """Build a tool response message for the OpenAI API."""
        return {
            "role": "tool",
            "tool_call_id": result.call_id,
            "name": result.name,
            "content": json.dumps(result.response, default=str),
        }

    async def send_tool_responses(self, tool_messages: Sequence[Dict[str, Any]]) -> ChatCompletion:
        """Send tool responses back to the model and get a new completion."""
        self.messages.extend(tool_messages)
        return await self.create_completion()

    @staticmethod
    def _decode_arguments(arguments: Any) -> Optional[Any]:
        if not isinstance(arguments, str):
            return arguments or {}
        try:
            return json.loads(arguments) if arguments else {}
        except json.JSONDecodeError:
            logger.warning("Model produced tool arguments that are not valid JSON.")
            return {}
