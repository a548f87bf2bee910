from typing import Any, Dict, Iterable, List, Optional, cast

from openai import NOT_GIVEN, AsyncOpenAI
from openai.types.chat import ChatCompletion

from seva.core.base import ChatModel
from seva.core.logger import get_logger
from seva.core.messages import Message, convert_to_core_messages
from seva.core.stream import DataStreamWriter
from seva.core.tools import LoopOutcome, ToolExecutionLoop
from .adapter import OpenAIToolAdapter
from .registry import OpenAIToolRegistry

logger = get_logger(__name__)


class OpenAIChatModel(ChatModel):
    """
    Chat model backed by an OpenAI-compatible chat-completions endpoint.

    Runs the multi-step tool loop of a turn and streams its output as data stream frames.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: str,
        sys_instruction: str,
        registry: Optional[OpenAIToolRegistry] = None,
        temp: float = 1.0,
        max_tokens: int = 3000,
        max_steps: int = 3,
        tool_timeout: float = 60.0,
        max_retries: int = 3,
        base_retry_delay: float = 1.0,
    ):
        """
        Initializes the chat model.

        Args:
            client: The initialized AsyncOpenAI client.
            model_name: The identifier of the model to use.
            sys_instruction: The system prompt.
            registry: Tools the model can use.
            temp: The temperature for text generation, controlling randomness.
            max_tokens: The maximum number of tokens to generate per step.
            max_steps: The maximum number of model steps per turn.
            tool_timeout: The maximum time in seconds to wait for a tool execution.
            max_retries: Retries for a failed completion request.
            base_retry_delay: Initial backoff delay in seconds.
        """
        super().__init__(max_retries=max_retries, base_retry_delay=base_retry_delay)
        self.client: AsyncOpenAI = client
        self.model: str = model_name
        self.sys_instruction = sys_instruction
        self.registry: OpenAIToolRegistry = registry if registry is not None else OpenAIToolRegistry()
        self.temperature = temp
        self.max_tokens = max_tokens
        self.max_steps = max_steps

        self._tool_loop = ToolExecutionLoop(
            registry=self.registry,
            max_steps=max_steps,
            tool_timeout=tool_timeout,
            argument_error_formatter=self._format_argument_error,
        )

    async def stream_turn(self, messages: List[Message], stream: DataStreamWriter) -> LoopOutcome:
        """
        Runs one conversation turn.

        Args:
            messages: The client conversation, with approved tool calls already resolved.
            stream: Destination of the turn's frames.

        Returns:
            The outcome of the tool loop; ``pending`` lists the tool calls waiting for the user.
        """
        openai_messages = self._build_messages(messages)
        adapter = OpenAIToolAdapter(messages=openai_messages, stream=stream, create_completion=self._complete)

        logger.debug(f"Starting turn with {len(openai_messages)} message(s) on model '{self.model}'.")
        initial_response = await adapter.create_completion()
        outcome = await self._tool_loop.run(initial_response=initial_response, adapter=adapter)

        finish_reason = "tool-calls" if outcome.finish_reason == "max-steps" else outcome.finish_reason
        await stream.write_part("finish_message", {"finishReason": finish_reason, "usage": adapter.usage})

        if outcome.pending:
            logger.info(f"Turn ended waiting for {[call.name for call in outcome.pending]}.")
        return outcome

    def _build_messages(self, messages: List[Message]) -> List[Dict[str, Any]]:
        history = convert_to_core_messages(messages)
        if self.sys_instruction:
            return [{"role": "system", "content": self.sys_instruction}, *history]
        return history

    async def _complete(self, messages: List[Dict[str, Any]]) -> ChatCompletion:
        return await self._execute_with_retry(self._create_completion, messages)

    async def _create_completion(self, messages: List[Dict[str, Any]]) -> ChatCompletion:
        # The SDK expects a union of typed message params; our dicts are structurally compatible.
        return await self.client.chat.completions.create(
            model=self.model,
            messages=cast(Iterable[Any], messages),
            tools=self.registry.tool_object or NOT_GIVEN,  # type: ignore[arg-type]
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    @staticmethod
    def _format_argument_error(tool_name: str, error: Exception) -> str:
        return f"Failed to decode function arguments: {error}"
