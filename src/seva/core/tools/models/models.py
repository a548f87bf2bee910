"""Tool definition model shared by registries, executors and the chat model."""

from typing import Optional, Any, Callable, Type

from pydantic import BaseModel


class ToolDefinition(BaseModel):
    """
    Represents the definition of a tool that can be offered to the model.

    Attributes:
        name: The unique name of the tool.
        description: A brief description of what the tool does.
        func: The callable implementing the tool. When set, the tool executes directly
              as soon as the model calls it. When None, the tool has no execute
              capability here: it waits for a user approval or for the client UI.
        parameters: A JSON schema defining the input parameters for the tool.
        args_model: Optional Pydantic model used for validating and coercing arguments.
    """

    name: str
    description: str
    func: Optional[Callable] = None
    parameters: Optional[Any] = None
    args_model: Optional[Type[BaseModel]] = None

    @property
    def executes_directly(self) -> bool:
        """Whether the tool runs without waiting for confirmation."""
        return self.func is not None
