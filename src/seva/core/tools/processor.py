"""Resolution of tool invocations that waited for a user answer.

When the model calls a tool that has no execute capability, the client shows the call
to the user and sends the conversation back with an :class:`Approval` value (or, for
UI-deferred tools, the UI's own output) as the invocation result. The processor turns
those placeholders into real results before the model sees the conversation again.
"""

import asyncio
from typing import Any, FrozenSet, List, Optional

from ..exceptions import ToolExecutionError
from ..logger import get_logger
from ..messages import Message, MessagePart, ToolInvocationPart, convert_to_core_messages
from ..stream import DataStreamWriter
from .approval import Approval, DENIED_RESULT, MISSING_EXECUTOR_RESULT
from .execution import invoke_tool
from .models import ExecutionContext
from .policy import ConfirmationPolicy
from .registry import ExecutorTable, ToolRegistry

logger = get_logger(__name__)

# Marks a part that needs no resolution.
_UNCHANGED = object()


class ToolCallProcessor:
    """
    Resolves the confirmation-gated tool invocations of the last message.

    For every tool invocation part of the last message:

    * approved calls run their executor and take its return value as result,
    * denied calls get :data:`DENIED_RESULT`,
    * UI-deferred tools take the result the client sent (or their fallback),
    * everything else is passed through untouched.

    Each resolution is written to the stream as a ``tool_result`` frame as soon as it is
    known. Parts are processed concurrently; when approved calls fail, the remaining
    parts still finish before the first failure is raised.

    A UI-deferred result carries no marker of having been forwarded, so processing an
    already processed message forwards it again.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        executors: ExecutorTable,
        policy: Optional[ConfirmationPolicy] = None,
        *,
        tool_timeout: Optional[float] = None,
        isolate_failures: bool = False,
    ) -> None:
        """Initialize the processor.

        Args:
            registry: Registry describing every tool the model may call.
            executors: Executors of the confirmation-gated tools.
            policy: Confirmation policy; defaults to one built on ``registry`` without
                UI-deferred tools.
            tool_timeout: Timeout in seconds for a single executor, None for no limit.
            isolate_failures: If False, a failing executor aborts the turn with a
                ToolExecutionError. If True, the failure becomes the tool's result.
        """
        self._registry = registry
        self._executors = executors
        self._policy = policy or ConfirmationPolicy(registry)
        self._tool_timeout = tool_timeout
        self._isolate_failures = isolate_failures

    async def process(self, messages: List[Message], stream: DataStreamWriter) -> List[Message]:
        """Resolve the tool invocations of the last message.

        Args:
            messages: The conversation; left untouched.
            stream: Stream receiving one ``tool_result`` frame per resolved invocation.

        Returns:
            A new list holding the earlier messages as they are and a copy of the last
            message with its processed parts. The input list itself when there is
            nothing to process.

        Raises:
            ToolExecutionError: If an approved tool fails and failures are not isolated.
        """
        if not messages:
            return messages

        last_message = messages[-1]
        if not last_message.parts:
            return messages

        requires_confirmation = self._policy.requires_confirmation
        # Siblings of a failed part still finish and stream their results.
        outcomes = await asyncio.gather(
            *(self._process_part(part, messages, requires_confirmation, stream) for part in last_message.parts),
            return_exceptions=True,
        )
        failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if failures:
            raise failures[0]

        return [*messages[:-1], last_message.model_copy(update={"parts": list(outcomes)})]

    async def _process_part(
        self,
        part: MessagePart,
        messages: List[Message],
        requires_confirmation: FrozenSet[str],
        stream: DataStreamWriter,
    ) -> MessagePart:
        if not isinstance(part, ToolInvocationPart):
            return part

        invocation = part.tool_invocation
        tool_name = invocation.tool_name

        # The UI performs these; their result arrives in a later turn.
        if self._policy.is_ui_deferred(tool_name) and invocation.state == "call":
            return part

        if not self._policy.is_gated(tool_name, requires_confirmation) or invocation.state != "result":
            if tool_name not in self._registry:
                logger.warning(f"Invocation {invocation.tool_call_id} references unknown tool '{tool_name}'.")
            return part

        result = await self._resolve(part, messages)
        if result is _UNCHANGED:
            logger.debug(f"Leaving invocation {invocation.tool_call_id} of '{tool_name}' unchanged.")
            return part

        await stream.write_part("tool_result", {"toolCallId": invocation.tool_call_id, "result": result})

        return part.model_copy(update={"tool_invocation": invocation.model_copy(update={"result": result})})

    async def _resolve(self, part: ToolInvocationPart, messages: List[Message]) -> Any:
        invocation = part.tool_invocation

        if invocation.result == Approval.YES:
            return await self._execute(part, messages)

        if invocation.result == Approval.NO:
            logger.info(f"User denied tool '{invocation.tool_name}' ({invocation.tool_call_id}).")
            return DENIED_RESULT

        if self._policy.is_ui_deferred(invocation.tool_name):
            fallback = self._policy.fallback_for(invocation.tool_name)
            if not invocation.result and fallback is not None:
                return fallback
            return invocation.result

        return _UNCHANGED

    async def _execute(self, part: ToolInvocationPart, messages: List[Message]) -> Any:
        invocation = part.tool_invocation
        tool_name = invocation.tool_name

        executor = self._executors.get(tool_name)
        if executor is None:
            logger.error(f"Tool '{tool_name}' was approved but has no executor.")
            return MISSING_EXECUTOR_RESULT

        try:
            args = self._validate_args(tool_name, invocation.args)
            context = ExecutionContext(
                tool_call_id=invocation.tool_call_id,
                messages=convert_to_core_messages(messages),
            )
            logger.info(f"Executing approved tool '{tool_name}' ({invocation.tool_call_id}).")
            result = await invoke_tool(executor, args, context, timeout=self._tool_timeout)
        except Exception as exc:
            msg = f"Approved tool '{tool_name}' failed: {exc}"
            if not self._isolate_failures:
                logger.error(msg, exc_info=True)
                if isinstance(exc, ToolExecutionError):
                    raise
                raise ToolExecutionError(msg) from exc
            logger.warning(msg)
            return f"Error: {exc}"

        logger.info(f"Approved tool '{tool_name}' executed successfully.")
        return result

    def _validate_args(self, tool_name: str, raw_args: Any) -> Any:
        """Validate the arguments with the tool's argument model, if it has one.

        Raises:
            pydantic.ValidationError: If the arguments do not match the model.
        """
        args_model = self._registry.get(tool_name).args_model
        if args_model is None:
            return dict(raw_args or {})
        return dict(args_model.model_validate(raw_args or {}))


async def process_tool_calls(
    messages: List[Message],
    stream: DataStreamWriter,
    registry: ToolRegistry,
    executors: ExecutorTable,
    **kwargs: Any,
) -> List[Message]:
    """Functional shortcut for :meth:`ToolCallProcessor.process`."""
    return await ToolCallProcessor(registry, executors, **kwargs).process(messages, stream)
