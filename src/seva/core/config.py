"""Explicit configuration for the assistant.

Settings are read from the process environment (and an optional ``.env`` file) exactly
once, by :meth:`Settings.from_env`, and then passed to whatever needs them.
"""

import os
from typing import Any, Dict, List, Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"

# Environment variable -> Settings field
_ENV_FIELDS: Dict[str, str] = {
    "GRM_API_URL": "grm_api_url",
    "GRM_API_TOKEN": "grm_api_token",
    "USER_ID": "user_id",
    "OPENAI_API_KEY": "openai_api_key",
    "OPENAI_BASE_URL": "openai_base_url",
    "SEVA_MODEL": "model_name",
    "SEVA_TEMPERATURE": "temperature",
    "SEVA_MAX_TOKENS": "max_tokens",
    "SEVA_MAX_STEPS": "max_steps",
    "SEVA_MAX_RETRIES": "max_retries",
    "SEVA_TOOL_TIMEOUT": "tool_timeout",
    "SEVA_CONFIRM_TOOLS": "confirm_tools",
    "SEVA_ISOLATE_TOOL_FAILURES": "isolate_tool_failures",
    "SEVA_LOG_LEVEL": "log_level",
    "SCHEME_SEARCH_URL": "scheme_search_url",
    "SCHEME_SEARCH_API_KEY": "scheme_search_api_key",
    "ELEVENLABS_API_KEY": "elevenlabs_api_key",
    "ELEVENLABS_VOICE_ID": "elevenlabs_voice_id",
    "HTTP_TIMEOUT": "http_timeout",
}


class Settings(BaseModel):
    """
    Runtime configuration of the assistant.

    Attributes:
        grm_api_url: Base URL of the grievance (GRM) backend.
        grm_api_token: Bearer token for the grievance backend.
        user_id: Identifier of the citizen account grievances are filed for.
        openai_api_key: Key for the OpenAI-compatible chat endpoint.
        openai_base_url: Optional base URL of the OpenAI-compatible chat endpoint.
        model_name: Chat model identifier.
        temperature: Sampling temperature.
        max_tokens: Maximum number of tokens per model step.
        max_steps: Maximum number of model steps per chat turn.
        max_retries: Retries for a failed model call.
        tool_timeout: Timeout in seconds for a single tool execution.
        confirm_tools: Grievance tools that wait for a user approval before running.
        isolate_tool_failures: Resolve a failing approved tool to an error result
            instead of aborting the turn.
        log_level: Log level used by the server entry point.
        scheme_search_url: Endpoint of the scheme search collaborator.
        scheme_search_api_key: Optional bearer token for the scheme search collaborator.
        elevenlabs_api_key: API key of the speech provider.
        elevenlabs_voice_id: Default voice for speech synthesis.
        http_timeout: Timeout in seconds for backend HTTP calls.
    """

    model_config = ConfigDict(frozen=True)

    grm_api_url: Optional[str] = None
    grm_api_token: Optional[str] = None
    user_id: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    model_name: str = "gpt-4o-mini"
    temperature: float = 1.0
    max_tokens: int = 3000
    max_steps: int = Field(default=3, ge=1)
    max_retries: int = Field(default=3, ge=0)
    tool_timeout: float = Field(default=60.0, gt=0)
    confirm_tools: List[str] = Field(default_factory=lambda: ["createGrievance"])
    isolate_tool_failures: bool = False
    log_level: str = "INFO"
    scheme_search_url: Optional[str] = None
    scheme_search_api_key: Optional[str] = None
    elevenlabs_api_key: Optional[str] = None
    elevenlabs_voice_id: str = DEFAULT_VOICE_ID
    http_timeout: float = Field(default=30.0, gt=0)

    @field_validator("confirm_tools", mode="before")
    @classmethod
    def _split_tool_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value

    @field_validator("grm_api_url", "openai_base_url", "scheme_search_url")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        return value.rstrip("/") if value else value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, env_file: Optional[str] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ`` after loading ``.env``.
            env_file: Explicit ``.env`` path. If None, the nearest ``.env`` is used when present.

        Returns:
            The validated settings.

        Raises:
            ConfigurationError: If a variable cannot be converted to its setting type.
        """
        if environ is None:
            dotenv_path = env_file or find_dotenv(usecwd=True)
            if dotenv_path:
                logger.debug("Loading environment from %s", dotenv_path)
                load_dotenv(dotenv_path)
            environ = os.environ

        values = {field: environ[var] for var, field in _ENV_FIELDS.items() if environ.get(var) not in (None, "")}
        try:
            return cls(**values)
        except ValidationError as exc:
            msg = f"Invalid configuration: {exc}"
            logger.error(msg)
            raise ConfigurationError(msg) from exc

    def require(self, *fields: str) -> None:
        """Ensure the given settings are present.

        Raises:
            ConfigurationError: If any of the fields is empty.
        """
        missing = [name for name in fields if not getattr(self, name)]
        if missing:
            env_names = [var for var, field in _ENV_FIELDS.items() if field in missing]
            msg = f"Missing required configuration: {', '.join(env_names)}"
            logger.error(msg)
            raise ConfigurationError(msg)
