"""Executors for tools that run only after the user approved them."""

from typing import Any, Awaitable, Callable, Dict, Iterator, Optional, Union

from ..models import ExecutionContext
from .base import ToolRegistry, tools_requiring_confirmation
from ...exceptions import ToolNotFoundError, ToolRegistrationError
from ...logger import get_logger

logger = get_logger(__name__)

ToolExecutor = Callable[[Dict[str, Any], ExecutionContext], Union[Any, Awaitable[Any]]]


class ExecutorTable:
    """
    Maps confirmation-gated tool names to the executor that runs them once approved.

    Names are checked against the registry when an executor is registered: unknown
    tools and tools that already execute directly are rejected here, not when a
    conversation reaches them.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry
        self._executors: Dict[str, ToolExecutor] = {}

    def register(self, tool_name: str, executor: ToolExecutor) -> None:
        """Register the executor of a confirmation-gated tool.

        Args:
            tool_name: Name of a registered tool without an execute capability.
            executor: Callable taking ``(args, context)``; may be sync or async.

        Raises:
            ToolNotFoundError: If the tool is not registered.
            ToolRegistrationError: If the tool executes directly or already has an executor.
        """
        name = str(getattr(tool_name, "value", tool_name))
        if name not in self._registry:
            msg = f"Cannot register executor: tool '{name}' not found in the registry."
            logger.error(msg)
            raise ToolNotFoundError(msg)
        if name not in tools_requiring_confirmation(self._registry):
            msg = f"Cannot register executor: tool '{name}' executes directly and needs no approval."
            logger.error(msg)
            raise ToolRegistrationError(msg)
        if name in self._executors:
            msg = f"Executor for tool '{name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self._executors[name] = executor
        logger.info(f"Registered executor for tool '{name}'.")

    def executor(self, tool_name: str) -> Callable[[ToolExecutor], ToolExecutor]:
        """Decorator form of :meth:`register`."""

        def decorator(func: ToolExecutor) -> ToolExecutor:
            self.register(tool_name, func)
            return func

        return decorator

    def get(self, tool_name: str) -> Optional[ToolExecutor]:
        return self._executors.get(tool_name)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._executors

    def __iter__(self) -> Iterator[str]:
        return iter(self._executors)

    def __len__(self) -> int:
        return len(self._executors)
