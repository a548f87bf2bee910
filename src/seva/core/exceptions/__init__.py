"""Export the exception hierarchy used across tools, streaming and external services."""

from .exceptions import (
    SevaError,
    ConfigurationError,
    StreamClosedError,
    ToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    ExternalServiceError,
    GrievanceApiError,
    SchemeSearchError,
    SpeechSynthesisError,
)

__all__ = [
    "SevaError",
    "ConfigurationError",
    "StreamClosedError",
    "ToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "ExternalServiceError",
    "GrievanceApiError",
    "SchemeSearchError",
    "SpeechSynthesisError",
]
