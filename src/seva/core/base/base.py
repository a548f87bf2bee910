"""Core abstractions for chat model implementations."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, TypeVar

from ..logger import get_logger
from ..messages import Message
from ..stream import DataStreamWriter
from ..tools.execution import LoopOutcome

logger = get_logger(__name__)

T = TypeVar("T")


class ChatModel(ABC):
    """Abstract base class for the model behind the chat endpoint.

    Implementations stream one conversation turn into a :class:`DataStreamWriter`.
    Provider calls go through :meth:`_execute_with_retry`.
    """

    def __init__(self, max_retries: int = 3, base_retry_delay: float = 1.0):
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay

    async def _execute_with_retry(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Executes a provider call with retry logic and exponential backoff.

        Args:
            func: The asynchronous function to execute.
            *args: Positional arguments for the function.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            Exception: The last encountered exception if all retries fail.
        """
        delay = self.base_retry_delay
        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if attempt == self.max_retries:
                    logger.error(f"Model call failed after {self.max_retries} retries: {e}")
                    raise

                logger.warning(f"API Error (Retry: {attempt + 1}/{self.max_retries}): {e}. Waiting {delay}s...")
                await asyncio.sleep(delay)
                delay *= 2

        raise AssertionError("unreachable")

    @abstractmethod
    async def stream_turn(self, messages: List[Message], stream: DataStreamWriter) -> LoopOutcome:
        """
        Runs one conversation turn and writes its frames to ``stream``.

        Args:
            messages: The conversation, with approved tool calls already resolved.
            stream: Destination of the turn's frames.

        Returns:
            The outcome of the turn's tool loop.
        """
        pass
