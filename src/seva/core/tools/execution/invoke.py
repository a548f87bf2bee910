"""Run a tool callable, sync or async, under a timeout."""

import asyncio
import inspect
from typing import Any, Callable, Optional

from ...exceptions import ToolExecutionError


async def invoke_tool(func: Callable[..., Any], *args: Any, timeout: Optional[float] = None, **kwargs: Any) -> Any:
    """Execute a tool callable, handling async/sync and timeouts.

    Synchronous callables run in a worker thread so they never block the event loop.

    Args:
        func: The callable to execute.
        *args: Positional arguments for the callable.
        timeout: Timeout in seconds, or None to wait indefinitely.
        **kwargs: Keyword arguments for the callable.

    Returns:
        The result of the callable.

    Raises:
        ToolExecutionError: If execution times out.
    """
    if inspect.iscoroutinefunction(func):
        awaitable = func(*args, **kwargs)
    else:
        awaitable = asyncio.to_thread(func, *args, **kwargs)

    try:
        result = await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise ToolExecutionError(f"Tool execution timed out after {timeout} seconds.") from exc

    # Sync callables returning an awaitable (e.g. lambdas wrapping coroutines)
    if inspect.isawaitable(result):
        result = await asyncio.wait_for(result, timeout=timeout)
    return result
