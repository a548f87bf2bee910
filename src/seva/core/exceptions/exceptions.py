"""
Custom exception classes for the Seva assistant.

Tool errors cover registration, lookup, validation and execution of the tools the
model may invoke. External service errors wrap failures of the grievance backend,
the scheme search collaborator and the speech provider.
"""

from typing import Optional


class SevaError(Exception):
    """Base exception for all assistant errors."""

    pass


class ConfigurationError(SevaError):
    """Raised when a required setting is missing or malformed."""

    pass


class StreamClosedError(SevaError):
    """Raised when writing to a data stream that has already been closed."""

    pass


class ToolError(SevaError):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(ToolError):
    """Raised when there is an error registering a tool or an executor."""

    pass


class ToolNotFoundError(ToolError):
    """Raised when a requested tool is not found in the registry."""

    pass


class ToolExecutionError(ToolError):
    """Raised when a tool fails during execution."""

    pass


class ToolValidationError(ToolError):
    """Raised when tool parameters or definition are invalid."""

    pass


class ExternalServiceError(SevaError):
    """Raised when a remote collaborator answers with an error.

    Attributes:
        message: Human readable error message, safe to show to the model.
        status_code: HTTP status code of the failed response, if any.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GrievanceApiError(ExternalServiceError):
    """Raised when the grievance (GRM) backend rejects a request."""

    pass


class SchemeSearchError(ExternalServiceError):
    """Raised when the scheme search collaborator fails."""

    pass


class SpeechSynthesisError(ExternalServiceError):
    """Raised when the text-to-speech provider fails."""

    pass
