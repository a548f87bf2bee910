"""Re-export the chat model base class shared by all providers."""

from .base import ChatModel

__all__ = ["ChatModel"]
