"""Model provider implementations."""

from .openai_api import OpenAIChatModel, OpenAIToolRegistry

__all__ = ["OpenAIChatModel", "OpenAIToolRegistry"]
