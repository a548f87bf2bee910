"""HTTP surface of the assistant."""

from .app import AppServices, build_services, create_app, run_chat_turn
from .models import ChatRequest, SpeechRequest

__all__ = ["AppServices", "build_services", "create_app", "run_chat_turn", "ChatRequest", "SpeechRequest"]
