"""Data stream protocol used to talk to the chat client.

Every frame is one line: ``<code>:<json>\\n``. The response of a chat turn is a single
ordered sequence of such frames.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Dict, Optional

from pydantic import BaseModel

from ..exceptions import StreamClosedError
from ..logger import get_logger

logger = get_logger(__name__)

STREAM_PART_CODES: Dict[str, str] = {
    "text": "0",
    "data": "2",
    "error": "3",
    "message_annotations": "8",
    "tool_call": "9",
    "tool_result": "a",
    "tool_call_streaming_start": "b",
    "tool_call_delta": "c",
    "finish_message": "d",
    "finish_step": "e",
    "start_step": "f",
}

STREAM_HEADERS: Dict[str, str] = {
    "x-vercel-ai-data-stream": "v1",
    "cache-control": "no-cache",
}


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return str(value)


def format_data_stream_part(part_type: str, value: Any) -> str:
    """Render a single data stream frame.

    Args:
        part_type: Frame type, e.g. ``"tool_result"``.
        value: JSON-serializable payload.

    Returns:
        The encoded frame, terminated by a newline.

    Raises:
        ValueError: If the frame type is unknown.
    """
    code = STREAM_PART_CODES.get(part_type)
    if code is None:
        raise ValueError(f"Unknown data stream part type: '{part_type}'")
    return f"{code}:{json.dumps(value, separators=(',', ':'), default=_to_jsonable)}\n"


class DataStreamWriter:
    """
    Append-only frame channel for one client response.

    Writers may run concurrently; each ``write`` appends one complete frame under a lock,
    so frames never interleave. Iterating the writer yields frames in append order until
    :meth:`close` is called.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def write(self, frame: str) -> None:
        """Append an already formatted frame.

        Raises:
            StreamClosedError: If the stream has been closed.
        """
        async with self._lock:
            if self._closed:
                raise StreamClosedError("Cannot write to a closed data stream.")
            await self._queue.put(frame)

    async def write_part(self, part_type: str, value: Any) -> None:
        """Format and append a frame."""
        await self.write(format_data_stream_part(part_type, value))

    async def close(self) -> None:
        """End the stream. Closing twice is a no-op."""
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            await self._queue.put(None)
        logger.debug("Data stream closed.")

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame
