import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from seva.core.config import Settings
from seva.core.exceptions import ConfigurationError, GrievanceApiError, SchemeSearchError, ToolRegistrationError
from seva.core.messages import Message, ToolInvocationPart
from seva.core.tools import Approval, ToolCallProcessor, tools_requiring_confirmation
from seva.grievance import (
    UI_TOOL_FALLBACKS,
    GrievanceToolkit,
    GrmClient,
    SchemeSearchClient,
    ToolName,
    build_tooling,
    confirmation_policy,
)


class Backend:
    """Records requests and answers them with a canned response per path."""

    def __init__(self, responses: Dict[str, httpx.Response]) -> None:
        self.responses = responses
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses[request.url.path]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def body(self, index: int = 0) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture
def make_toolkit(settings: Settings) -> Callable[[Backend], GrievanceToolkit]:
    def _make(backend: Backend) -> GrievanceToolkit:
        http_client = backend.client()
        return GrievanceToolkit(
            grm_client=GrmClient.from_settings(settings, http_client=http_client),
            scheme_search=SchemeSearchClient.from_settings(settings, http_client=http_client),
        )

    return _make


@pytest.mark.asyncio
async def test_classify_posts_grievance_text(settings: Settings) -> None:
    backend = Backend({"/api/category": httpx.Response(200, json={"department": "Power"})})
    client = GrmClient.from_settings(settings, http_client=backend.client())

    assert await client.classify("No electricity") == {"department": "Power"}

    request = backend.requests[0]
    assert str(request.url) == "https://grm.test/api/category"
    assert request.headers["Authorization"] == "Bearer grm-token"
    assert backend.body() == {"grievance_text": "No electricity"}


@pytest.mark.asyncio
async def test_create_grievance_files_for_configured_user(settings: Settings) -> None:
    backend = Backend({"/api/grievances": httpx.Response(201, json={"id": "G-1"})})
    client = GrmClient.from_settings(settings, http_client=backend.client())

    result = await client.create_grievance(
        title="Street light", description="Broken", category="Power", cpgrams_category="Power > Lights", priority="low"
    )

    assert result == {"id": "G-1"}
    assert backend.body() == {
        "title": "Street light",
        "description": "Broken",
        "user_id": "user-42",
        "category": "Power",
        "priority": "low",
        "cpgrams_category": "Power > Lights",
    }


@pytest.mark.asyncio
async def test_backend_error_message_is_surfaced(settings: Settings) -> None:
    backend = Backend({"/api/grievances": httpx.Response(422, json={"message": "Description too short"})})
    client = GrmClient.from_settings(settings, http_client=backend.client())

    with pytest.raises(GrievanceApiError, match="Description too short") as exc_info:
        await client.create_grievance(title="t", description="d", category="c", cpgrams_category="c", priority="low")
    assert exc_info.value.status_code == 422


@pytest.mark.asyncio
async def test_backend_error_without_message_uses_default(settings: Settings) -> None:
    backend = Backend({"/api/category": httpx.Response(500, text="oops")})
    client = GrmClient.from_settings(settings, http_client=backend.client())

    with pytest.raises(GrievanceApiError, match="Failed to classify grievance"):
        await client.classify("text")


@pytest.mark.asyncio
async def test_unreachable_backend_raises_grievance_error(settings: Settings) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    client = GrmClient.from_settings(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)))

    with pytest.raises(GrievanceApiError, match="Failed to classify grievance: Connection refused") as exc_info:
        await client.classify("text")
    assert exc_info.value.status_code is None


def test_grm_client_requires_url() -> None:
    with pytest.raises(ConfigurationError, match="GRM_API_URL"):
        GrmClient.from_settings(Settings())


@pytest.mark.asyncio
async def test_scheme_search_restricts_site(settings: Settings) -> None:
    backend = Backend({"/search": httpx.Response(200, json={"results": [{"url": "u", "pageContent": "c"}]})})
    client = SchemeSearchClient.from_settings(settings, http_client=backend.client())

    assert await client.search("pension") == {"success": True, "results": [{"url": "u", "pageContent": "c"}]}
    assert backend.body() == {"query": "pension", "site": "myscheme.gov.in", "max_results": 5}


@pytest.mark.asyncio
async def test_scheme_search_error_status(settings: Settings) -> None:
    backend = Backend({"/search": httpx.Response(503)})
    client = SchemeSearchClient.from_settings(settings, http_client=backend.client())

    with pytest.raises(SchemeSearchError, match="503"):
        await client.search("pension")


@pytest.mark.asyncio
async def test_scheme_search_tool_reports_failure_as_result(make_toolkit) -> None:
    toolkit = make_toolkit(Backend({"/search": httpx.Response(503)}))

    result = await toolkit.perform_my_scheme_search("pension")

    assert result["success"] is False
    assert "503" in result["error"]


def test_build_tooling_registers_all_tools(make_toolkit) -> None:
    registry, executors = build_tooling(make_toolkit(Backend({})))

    assert set(registry.tools) == {name.value for name in ToolName}
    assert tools_requiring_confirmation(registry) == frozenset(
        {"createGrievance", "documentUpload", "additionalSupport"}
    )
    assert list(executors) == ["createGrievance"]
    assert registry.get("classifyGrievance").executes_directly
    assert registry.get("performMySchemeSearch").executes_directly


def test_create_grievance_schema(make_toolkit) -> None:
    registry, _ = build_tooling(make_toolkit(Backend({})))
    schema = registry.get("createGrievance").parameters

    assert set(schema["required"]) == {"title", "description", "category", "cpgrams_category", "priority"}
    assert schema["properties"]["priority"]["enum"] == ["low", "medium", "high"]
    assert "title" in schema["properties"]
    assert registry.get("createGrievance").description.startswith("Create a new grievance in the system.")


def test_confirmation_is_configurable(make_toolkit) -> None:
    registry, executors = build_tooling(
        make_toolkit(Backend({})), confirm=[ToolName.CREATE_GRIEVANCE, "classifyGrievance"]
    )

    assert sorted(executors) == ["classifyGrievance", "createGrievance"]
    assert not registry.get("classifyGrievance").executes_directly


def test_confirming_unknown_tool_fails(make_toolkit) -> None:
    with pytest.raises(ToolRegistrationError, match="documentUpload"):
        build_tooling(make_toolkit(Backend({})), confirm=["documentUpload"])


@pytest.mark.asyncio
async def test_approved_grievance_is_filed(make_toolkit, stream, read_frames) -> None:
    backend = Backend({"/api/grievances": httpx.Response(201, json={"id": "G-9", "status": "open"})})
    registry, executors = build_tooling(make_toolkit(backend))
    processor = ToolCallProcessor(registry, executors)
    args = {
        "title": "Street light",
        "description": "Broken since May",
        "category": "Power",
        "cpgrams_category": "Power > Street lights",
        "priority": "medium",
    }
    messages = [
        Message(role="user", content="Please file it"),
        Message.model_validate(
            {
                "role": "assistant",
                "parts": [
                    {
                        "type": "tool-invocation",
                        "toolInvocation": {
                            "state": "result",
                            "toolCallId": "call_1",
                            "toolName": "createGrievance",
                            "args": args,
                            "result": Approval.YES.value,
                        },
                    }
                ],
            }
        ),
    ]

    processed = await processor.process(messages, stream)

    part = processed[-1].parts[0]
    assert isinstance(part, ToolInvocationPart)
    assert part.tool_invocation.result == {"id": "G-9", "status": "open"}
    assert backend.body()["title"] == "Street light"
    assert backend.body()["user_id"] == "user-42"
    assert await read_frames(stream) == [("a", {"toolCallId": "call_1", "result": {"id": "G-9", "status": "open"}})]


def test_assistant_policy_defers_ui_tools(make_toolkit) -> None:
    registry, _ = build_tooling(make_toolkit(Backend({})))
    policy = confirmation_policy(registry)

    assert policy.is_ui_deferred("documentUpload")
    assert policy.is_ui_deferred("additionalSupport")
    assert not policy.is_ui_deferred("createGrievance")
    assert policy.fallback_for("documentUpload") is None
    assert policy.fallback_for("additionalSupport") == UI_TOOL_FALLBACKS["additionalSupport"]


@pytest.mark.asyncio
async def test_empty_support_result_gets_fallback(make_toolkit, stream, read_frames) -> None:
    registry, executors = build_tooling(make_toolkit(Backend({})))
    processor = ToolCallProcessor(registry, executors, confirmation_policy(registry))
    messages = [
        Message(role="user", content="I feel hopeless about this"),
        Message.model_validate(
            {
                "role": "assistant",
                "parts": [
                    {
                        "type": "tool-invocation",
                        "toolInvocation": {
                            "state": "result",
                            "toolCallId": "call_s",
                            "toolName": "additionalSupport",
                            "args": {"reason": "Distress"},
                            "result": "",
                        },
                    }
                ],
            }
        ),
    ]

    processed = await processor.process(messages, stream)

    fallback = "A representative from a support group may reach out to you."
    part = processed[-1].parts[0]
    assert isinstance(part, ToolInvocationPart)
    assert part.tool_invocation.result == fallback
    assert await read_frames(stream) == [("a", {"toolCallId": "call_s", "result": fallback})]
