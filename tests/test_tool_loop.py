import asyncio
from typing import Any, Dict, List, Sequence

import pytest
from pydantic import BaseModel
from unittest.mock import AsyncMock

from seva.core.exceptions import GrievanceApiError
from seva.core.tools import ToolCallRequest, ToolCallResult, ToolDefinition, ToolExecutionLoop
from seva.llm.openai_api import OpenAIToolRegistry


class SampleArgs(BaseModel):
    required_value: int


class MockAdapter:
    """Adapter over plain dict responses: ``{"tool_calls": [...]}``."""

    def __init__(self, follow_ups: Sequence[Dict[str, Any]] = ()) -> None:
        self.follow_ups = list(follow_ups)
        self.recorded: List[Any] = []
        self.published_steps: List[List[str]] = []
        self.published_results: List[ToolCallResult] = []
        self.sent: List[Sequence[Any]] = []

    def get_tool_calls(self, response: Any) -> Sequence[ToolCallRequest]:
        return response["tool_calls"]

    def record_assistant_message(self, response: Any) -> None:
        self.recorded.append(response)

    async def publish_step(self, response: Any, tool_calls: Sequence[ToolCallRequest]) -> None:
        self.published_steps.append([call.name for call in tool_calls])

    async def publish_tool_result(self, result: ToolCallResult) -> None:
        self.published_results.append(result)

    def build_tool_response_message(self, result: ToolCallResult) -> Any:
        return result

    async def send_tool_responses(self, messages: Sequence[Any]) -> Any:
        self.sent.append(messages)
        return self.follow_ups.pop(0)


def call(name: str, arguments: Any = None, call_id: str = "call_1") -> ToolCallRequest:
    return ToolCallRequest(name=name, arguments=arguments if arguments is not None else {}, call_id=call_id)


@pytest.fixture
def registry() -> OpenAIToolRegistry:
    registry = OpenAIToolRegistry()
    registry.tools["sample"] = ToolDefinition(name="sample", description="sample tool", func=AsyncMock(return_value="ok"))
    registry.tools["gated"] = ToolDefinition(name="gated", description="needs approval")
    return registry


@pytest.mark.asyncio
async def test_answer_without_tool_calls_stops(registry: OpenAIToolRegistry) -> None:
    loop = ToolExecutionLoop(registry=registry, max_steps=3)
    adapter = MockAdapter()
    response = {"tool_calls": []}

    outcome = await loop.run(initial_response=response, adapter=adapter)

    assert outcome.finish_reason == "stop"
    assert outcome.response is response
    assert outcome.steps == 1
    assert adapter.recorded == [response]
    assert adapter.published_steps == [[]]


@pytest.mark.asyncio
async def test_tool_execution_loop_runs_tools(registry: OpenAIToolRegistry) -> None:
    loop = ToolExecutionLoop(registry=registry, max_steps=2)
    final_response: Dict[str, Any] = {"tool_calls": []}
    adapter = MockAdapter(follow_ups=[final_response])
    initial_response = {"tool_calls": [call("sample", {"a": 1})]}

    outcome = await loop.run(initial_response=initial_response, adapter=adapter)

    registry.tools["sample"].func.assert_called_once_with(a=1)
    assert outcome.response == final_response
    assert outcome.finish_reason == "stop"
    assert outcome.steps == 2
    assert adapter.recorded == [initial_response, final_response]
    assert adapter.published_results[0].response == {"result": "ok"}
    assert adapter.sent[0][0].call_id == "call_1"


@pytest.mark.asyncio
async def test_gated_call_ends_the_loop_with_pending(registry: OpenAIToolRegistry) -> None:
    loop = ToolExecutionLoop(registry=registry, max_steps=3)
    adapter = MockAdapter()
    initial_response = {"tool_calls": [call("sample", call_id="call_1"), call("gated", call_id="call_2")]}

    outcome = await loop.run(initial_response=initial_response, adapter=adapter)

    assert outcome.finish_reason == "tool-calls"
    assert [c.call_id for c in outcome.pending] == ["call_2"]
    # The direct call still ran and was published
    assert [r.call_id for r in adapter.published_results] == ["call_1"]
    assert adapter.sent == []


@pytest.mark.asyncio
async def test_max_steps_reached(registry: OpenAIToolRegistry) -> None:
    loop = ToolExecutionLoop(registry=registry, max_steps=2)
    looping = {"tool_calls": [call("sample")]}
    adapter = MockAdapter(follow_ups=[looping])

    outcome = await loop.run(initial_response=looping, adapter=adapter)

    assert outcome.finish_reason == "max-steps"
    assert outcome.steps == 2
    assert len(adapter.sent) == 1
    assert len(adapter.published_results) == 2


@pytest.mark.asyncio
async def test_unknown_tool_gets_error_result(registry: OpenAIToolRegistry) -> None:
    loop = ToolExecutionLoop(registry=registry, max_steps=1)
    adapter = MockAdapter()

    await loop.run(initial_response={"tool_calls": [call("missing")]}, adapter=adapter)

    assert adapter.published_results[0].response == {"error": "Tool 'missing' not found in registry."}


@pytest.mark.asyncio
async def test_tool_execution_loop_handles_invalid_arguments() -> None:
    registry = OpenAIToolRegistry()

    async def tool_func(required_value: int) -> int:
        return required_value

    registry.tools["validated"] = ToolDefinition(
        name="validated", description="validated tool", func=tool_func, args_model=SampleArgs
    )
    loop = ToolExecutionLoop(registry=registry, max_steps=1)
    adapter = MockAdapter()

    await loop.run(initial_response={"tool_calls": [call("validated", {"required_value": "bad"})]}, adapter=adapter)

    error_message = adapter.published_results[0].response["error"]
    assert "Argument validation failed:" in error_message
    assert "required_value" in error_message


@pytest.mark.asyncio
async def test_json_string_arguments_are_decoded(registry: OpenAIToolRegistry) -> None:
    loop = ToolExecutionLoop(registry=registry, max_steps=1)
    adapter = MockAdapter()

    await loop.run(initial_response={"tool_calls": [call("sample", '{"a": 2}')]}, adapter=adapter)

    registry.tools["sample"].func.assert_called_once_with(a=2)


@pytest.mark.asyncio
async def test_malformed_json_arguments_use_formatter(registry: OpenAIToolRegistry) -> None:
    loop = ToolExecutionLoop(
        registry=registry, max_steps=1, argument_error_formatter=lambda name, error: f"bad args for {name}"
    )
    adapter = MockAdapter()

    await loop.run(initial_response={"tool_calls": [call("sample", "{not json")]}, adapter=adapter)

    assert adapter.published_results[0].response == {"error": "bad args for sample"}


@pytest.mark.asyncio
async def test_recoverable_errors_are_returned_to_the_model(registry: OpenAIToolRegistry) -> None:
    registry.tools["failing"] = ToolDefinition(
        name="failing", description="fails", func=AsyncMock(side_effect=GrievanceApiError("Failed to classify grievance"))
    )
    loop = ToolExecutionLoop(registry=registry, max_steps=1)
    adapter = MockAdapter()

    await loop.run(initial_response={"tool_calls": [call("failing")]}, adapter=adapter)

    assert adapter.published_results[0].response == {"error": "Failed to classify grievance"}


@pytest.mark.asyncio
async def test_system_errors_propagate(registry: OpenAIToolRegistry) -> None:
    registry.tools["broken"] = ToolDefinition(
        name="broken", description="breaks", func=AsyncMock(side_effect=ConnectionError("down"))
    )
    loop = ToolExecutionLoop(registry=registry, max_steps=1)

    with pytest.raises(ConnectionError):
        await loop.run(initial_response={"tool_calls": [call("broken")]}, adapter=MockAdapter())


@pytest.mark.asyncio
async def test_tool_timeout_is_reported(registry: OpenAIToolRegistry) -> None:
    async def slow() -> str:
        await asyncio.sleep(10)
        return "late"

    registry.tools["slow"] = ToolDefinition(name="slow", description="slow", func=slow)
    loop = ToolExecutionLoop(registry=registry, max_steps=1, tool_timeout=0.05)
    adapter = MockAdapter()

    await loop.run(initial_response={"tool_calls": [call("slow")]}, adapter=adapter)

    assert "timed out" in adapter.published_results[0].response["error"]
