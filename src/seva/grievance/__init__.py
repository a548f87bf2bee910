"""Grievance domain: backend clients, the assistant's tools and its system prompt."""

from .client import GrmClient
from .scheme_search import SchemeSearchClient
from .tools import ToolName, UI_TOOLS, UI_TOOL_FALLBACKS, GrievanceToolkit, build_tooling, confirmation_policy
from .prompts import SYSTEM_PROMPT

__all__ = [
    "GrmClient",
    "SchemeSearchClient",
    "ToolName",
    "UI_TOOLS",
    "UI_TOOL_FALLBACKS",
    "GrievanceToolkit",
    "build_tooling",
    "confirmation_policy",
    "SYSTEM_PROMPT",
]
