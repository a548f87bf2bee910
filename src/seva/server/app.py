"""FastAPI application serving the chat and text-to-speech endpoints."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Awaitable, Callable, List, Optional, Set, Union

import httpx
from fastapi import FastAPI
from fastapi.responses import JSONResponse, StreamingResponse
from openai import AsyncOpenAI

from seva.core.base import ChatModel
from seva.core.config import Settings
from seva.core.exceptions import SpeechSynthesisError
from seva.core.logger import get_logger
from seva.core.stream import STREAM_HEADERS, DataStreamWriter
from seva.core.tools import ToolCallProcessor
from seva.grievance import (
    SYSTEM_PROMPT,
    GrievanceToolkit,
    GrmClient,
    SchemeSearchClient,
    build_tooling,
    confirmation_policy,
)
from seva.llm import OpenAIChatModel
from seva.speech import ElevenLabsSpeechClient
from .models import ChatRequest, SpeechRequest

logger = get_logger(__name__)

CHAT_ERROR_MESSAGE = "An error occurred."
MISSING_SPEECH_KEY_MESSAGE = "Missing required configuration: ELEVENLABS_API_KEY"


@dataclass
class AppServices:
    """Everything the routes need, built once per application."""

    processor: ToolCallProcessor
    chat_model: ChatModel
    speech: Optional[ElevenLabsSpeechClient] = None
    closables: List[Callable[[], Awaitable[Any]]] = field(default_factory=list)

    async def aclose(self) -> None:
        for close in self.closables:
            await close()


def build_services(settings: Settings) -> AppServices:
    """Wire the clients, tools, processor and chat model from ``settings``.

    Raises:
        ConfigurationError: If the chat endpoint, the grievance backend or the scheme
            search service is not configured.
    """
    settings.require("openai_api_key", "grm_api_url", "scheme_search_url")

    http_client = httpx.AsyncClient(timeout=settings.http_timeout)
    openai_client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)

    toolkit = GrievanceToolkit(
        grm_client=GrmClient.from_settings(settings, http_client=http_client),
        scheme_search=SchemeSearchClient.from_settings(settings, http_client=http_client),
    )
    registry, executors = build_tooling(toolkit, confirm=settings.confirm_tools)

    processor = ToolCallProcessor(
        registry,
        executors,
        confirmation_policy(registry),
        tool_timeout=settings.tool_timeout,
        isolate_failures=settings.isolate_tool_failures,
    )
    chat_model = OpenAIChatModel(
        client=openai_client,
        model_name=settings.model_name,
        sys_instruction=SYSTEM_PROMPT,
        registry=registry,
        temp=settings.temperature,
        max_tokens=settings.max_tokens,
        max_steps=settings.max_steps,
        tool_timeout=settings.tool_timeout,
        max_retries=settings.max_retries,
    )

    speech = None
    if settings.elevenlabs_api_key:
        speech = ElevenLabsSpeechClient.from_settings(settings, http_client=http_client)
    else:
        logger.warning("ELEVENLABS_API_KEY is not set; text-to-speech requests will fail.")

    return AppServices(
        processor=processor,
        chat_model=chat_model,
        speech=speech,
        closables=[openai_client.close, http_client.aclose],
    )


async def run_chat_turn(services: AppServices, request: ChatRequest, stream: DataStreamWriter) -> None:
    """Resolve pending approvals, then let the model answer; always closes ``stream``."""
    try:
        messages = await services.processor.process(request.messages, stream)
        await services.chat_model.stream_turn(messages, stream)
    except Exception:
        logger.exception("Chat turn failed")
        await stream.write_part("error", CHAT_ERROR_MESSAGE)
    finally:
        await stream.close()


def create_app(settings: Optional[Settings] = None, services: Optional[AppServices] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Configuration used to build the services; read from the environment
            when both arguments are None.
        services: Prebuilt services, used as-is.

    Returns:
        The configured application.
    """
    if services is None:
        services = build_services(settings or Settings.from_env())

    turns: Set["asyncio.Task[None]"] = set()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Seva server started")
        yield
        for task in list(turns):
            task.cancel()
        await services.aclose()
        logger.info("Seva server stopped")

    app = FastAPI(title="Seva Grievance Assistant", lifespan=lifespan)
    app.state.services = services

    @app.post("/api/chat")
    async def chat(request: ChatRequest) -> StreamingResponse:
        stream = DataStreamWriter()
        task = asyncio.create_task(run_chat_turn(services, request, stream))
        turns.add(task)
        task.add_done_callback(turns.discard)
        return StreamingResponse(stream, media_type="text/plain; charset=utf-8", headers=STREAM_HEADERS)

    @app.post("/api/text-to-speech", response_model=None)
    async def text_to_speech(request: SpeechRequest) -> Union[StreamingResponse, JSONResponse]:
        if not request.text:
            return JSONResponse({"error": "Text is required"}, status_code=400)
        if services.speech is None:
            return JSONResponse({"error": MISSING_SPEECH_KEY_MESSAGE}, status_code=500)

        try:
            audio = await services.speech.open_stream(request.text, request.voice_id)
        except SpeechSynthesisError as exc:
            return JSONResponse({"error": exc.message}, status_code=500)
        return StreamingResponse(audio, media_type=audio.media_type)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "speech": services.speech is not None}

    return app
