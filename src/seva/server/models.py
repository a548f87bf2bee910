"""Request bodies of the HTTP API."""

from typing import List, Optional

from pydantic import Field

from seva.core.messages import Message, WireModel


class ChatRequest(WireModel):
    """Body of ``POST /api/chat``: the whole conversation as the client holds it."""

    messages: List[Message] = Field(default_factory=list)


class SpeechRequest(WireModel):
    """Body of ``POST /api/text-to-speech``."""

    text: Optional[str] = None
    voice_id: Optional[str] = None
