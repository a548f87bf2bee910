import json
from typing import Annotated, Any, Awaitable, Callable, Dict, List, Tuple

import pytest
from pydantic import BaseModel, Field

from seva.core.config import Settings
from seva.core.stream import DataStreamWriter
from seva.llm.openai_api import OpenAIToolRegistry

Frames = List[Tuple[str, Any]]


def parse_frame(frame: str) -> Tuple[str, Any]:
    code, _, payload = frame.rstrip("\n").partition(":")
    return code, json.loads(payload)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        grm_api_url="https://grm.test/api/",
        grm_api_token="grm-token",
        user_id="user-42",
        openai_api_key="dummy_key",
        scheme_search_url="https://search.test/search",
        elevenlabs_api_key="xi-key",
    )


@pytest.fixture
def stream() -> DataStreamWriter:
    return DataStreamWriter()


@pytest.fixture
def read_frames() -> Callable[[DataStreamWriter], Awaitable[Frames]]:
    """Close a stream and return its frames as (code, decoded payload) pairs."""

    async def _read(writer: DataStreamWriter) -> Frames:
        await writer.close()
        return [parse_frame(frame) async for frame in writer]

    return _read


@pytest.fixture
def gated_registry() -> OpenAIToolRegistry:
    """Registry with one direct tool, one approval-gated tool and one UI tool."""
    registry = OpenAIToolRegistry()

    def lookup(query: Annotated[str, Field(description="What to look up")]) -> str:
        """Look something up."""
        return f"found {query}"

    def submit(
        title: Annotated[str, Field(description="Title of the submission")],
        priority: Annotated[int, Field(description="Priority", ge=1)] = 1,
    ) -> Dict[str, Any]:
        """Submit a record."""
        return {"title": title, "priority": priority}

    class UploadArgs(BaseModel):
        prompt: str

    registry.register(lookup)
    registry.register(submit, requires_confirmation=True)
    registry.declare("documentUpload", "Upload a document.", UploadArgs)
    return registry
