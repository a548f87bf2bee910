"""Expose the OpenAI-compatible chat model and its tool registry."""

from .core import OpenAIChatModel
from .registry import OpenAIToolRegistry
from .adapter import OpenAIToolAdapter

__all__ = ["OpenAIChatModel", "OpenAIToolRegistry", "OpenAIToolAdapter"]
