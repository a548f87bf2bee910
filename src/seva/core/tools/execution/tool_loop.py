"""Multi-step model/tool loop for tools that execute directly."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

from ...exceptions import ExternalServiceError, ToolExecutionError
from ...logger import get_logger
from ..models import ToolCallRequest, ToolCallResult
from ..registry import ToolRegistry
from .adapter import ToolAdapter
from .invoke import invoke_tool

logger = get_logger(__name__)

FinishReason = Literal["stop", "tool-calls", "max-steps"]


@dataclass
class LoopOutcome:
    """Final state of a tool loop run.

    Attributes:
        response: The last provider response.
        finish_reason: ``stop`` when the model answered, ``tool-calls`` when it is waiting
            for tools that need a confirmation, ``max-steps`` when the step budget ran out.
        pending: Tool calls that wait for the user or the client UI.
        steps: Number of model steps taken.
    """

    response: Any
    finish_reason: FinishReason
    pending: List[ToolCallRequest] = field(default_factory=list)
    steps: int = 1


class ToolExecutionLoop:
    """Tool execution loop shared by chat model implementations.

    Each step publishes the model output, runs the directly executing tools concurrently
    and sends their results back to the model. A step that calls a tool without an
    execute capability ends the loop; those calls are resolved in a later turn.
    """

    # Exceptions that are considered recoverable and should be returned to the model.
    # System errors (like ConnectionError, MemoryError) are NOT included and will
    # propagate, stopping the loop.
    RECOVERABLE_ERRORS = (
        ToolExecutionError,
        ExternalServiceError,
        ValueError,
        TypeError,
    )

    def __init__(
        self,
        *,
        registry: Optional[ToolRegistry],
        max_steps: int,
        tool_timeout: float = 60.0,
        argument_error_formatter: Optional[Callable[[str, Exception], str]] = None,
    ) -> None:
        """Initialize the tool execution loop.

        Args:
            registry: Tool registry used to resolve tool definitions.
            max_steps: Maximum number of model steps allowed.
            tool_timeout: Timeout in seconds for tool execution.
            argument_error_formatter: Optional formatter for argument parsing errors.
        """
        self._registry = registry
        self._max_steps = max_steps
        self._tool_timeout = tool_timeout
        self._argument_error_formatter = argument_error_formatter or self._default_argument_error

    async def run(self, *, initial_response: Any, adapter: ToolAdapter) -> LoopOutcome:
        """Run the tool execution loop.

        Args:
            initial_response: Initial provider response to inspect.
            adapter: The provider-specific adapter for tool handling.

        Returns:
            The outcome of the loop.
        """
        current_response = initial_response

        for step in range(1, self._max_steps + 1):
            tool_calls = list(adapter.get_tool_calls(current_response))
            adapter.record_assistant_message(current_response)
            await adapter.publish_step(current_response, tool_calls)

            if not tool_calls:
                logger.debug("No tool calls found in response. Loop finished.")
                return LoopOutcome(response=current_response, finish_reason="stop", steps=step)

            direct = [tc for tc in tool_calls if self._executes_directly(tc.name)]
            pending = [tc for tc in tool_calls if not self._executes_directly(tc.name)]
            logger.info(
                f"Step {step}/{self._max_steps}: {len(direct)} direct tool call(s), {len(pending)} awaiting confirmation."
            )

            results = await asyncio.gather(*(self._handle_tool_call(tc) for tc in direct))
            for result in results:
                await adapter.publish_tool_result(result)

            if pending:
                return LoopOutcome(response=current_response, finish_reason="tool-calls", pending=pending, steps=step)

            if step == self._max_steps:
                break

            response_messages = [adapter.build_tool_response_message(result) for result in results]
            current_response = await adapter.send_tool_responses(response_messages)

        logger.warning(f"Max steps ({self._max_steps}) reached. Stopping execution.")
        return LoopOutcome(response=current_response, finish_reason="max-steps", steps=self._max_steps)

    def _executes_directly(self, tool_name: str) -> bool:
        # Unknown tools are answered with an error result by _handle_tool_call.
        if not self._registry or tool_name not in self._registry:
            return True
        return self._registry.get(tool_name).executes_directly

    async def _handle_tool_call(self, tool_call: ToolCallRequest) -> ToolCallResult:
        """Handle a single tool call request.

        Validates the tool existence, normalizes arguments, validates them against the
        argument model (if present), and executes the tool.

        Args:
            tool_call: The tool call request containing name, ID, and arguments.

        Returns:
            The result of the tool execution, including any errors.
        """
        logger.debug(f"Handling tool call: {tool_call.name} (ID: {tool_call.call_id})")

        if not self._registry or tool_call.name not in self._registry:
            msg = f"Tool '{tool_call.name}' not found in registry."
            logger.warning(msg)
            return self._error_result(tool_call, msg)

        tool_def = self._registry.get(tool_call.name)

        try:
            function_args = self._normalize_function_args(tool_call.name, tool_call.arguments)
        except ToolExecutionError as exc:
            logger.warning(f"Argument normalization failed for '{tool_call.name}': {exc}")
            return self._error_result(tool_call, str(exc))

        if tool_def.args_model:
            try:
                function_args = dict(tool_def.args_model(**function_args))
            except Exception as validation_error:
                msg = f"Argument validation failed: {validation_error}"
                logger.warning(f"Validation error for '{tool_call.name}': {msg}")
                return self._error_result(tool_call, msg)

        try:
            logger.info(f"Executing tool '{tool_call.name}'...")
            function_result = await invoke_tool(tool_def.func, timeout=self._tool_timeout, **function_args)  # type: ignore[arg-type]
            logger.info(f"Tool '{tool_call.name}' executed successfully.")
        except self.RECOVERABLE_ERRORS as exc:
            msg = str(exc)
            logger.warning(f"Recoverable error in '{tool_call.name}': {msg} ({type(exc).__name__})")
            return self._error_result(tool_call, msg)

        return ToolCallResult(name=tool_call.name, response={"result": function_result}, call_id=tool_call.call_id)

    @staticmethod
    def _error_result(tool_call: ToolCallRequest, message: str) -> ToolCallResult:
        return ToolCallResult(name=tool_call.name, response={"error": message}, call_id=tool_call.call_id)

    def _normalize_function_args(self, tool_name: str, raw_args: Any) -> Dict[str, Any]:
        """Normalize tool arguments into a dictionary.

        Handles JSON strings, dictionaries, or None values.

        Raises:
            ToolExecutionError: If arguments cannot be parsed or are invalid.
        """
        if raw_args is None or raw_args == "":
            return {}

        if isinstance(raw_args, dict):
            return raw_args

        if isinstance(raw_args, str):
            try:
                parsed = json.loads(raw_args)
            except json.JSONDecodeError as exc:
                raise ToolExecutionError(self._argument_error_formatter(tool_name, exc)) from exc

            if parsed is None:
                return {}

            if not isinstance(parsed, dict):
                error = ValueError("Function arguments must decode to a JSON object.")
                raise ToolExecutionError(self._argument_error_formatter(tool_name, error))

            return parsed

        try:
            return dict(raw_args)
        except (TypeError, ValueError) as exc:
            raise ToolExecutionError(self._argument_error_formatter(tool_name, exc)) from exc

    @staticmethod
    def _default_argument_error(tool_name: str, error: Exception) -> str:
        return f"Failed to parse arguments for tool '{tool_name}': {error}"
