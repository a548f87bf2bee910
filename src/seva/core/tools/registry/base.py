"""Tool registry abstraction and helper utilities."""

import inspect
from abc import abstractmethod, ABC
from typing import Callable, Dict, Any, FrozenSet, Union, Optional, Type, cast

from pydantic import BaseModel, create_model

from ..models import ToolDefinition
from ..schema import SchemaValidator, ToolParameterFactory
from ...exceptions import ToolNotFoundError, ToolRegistrationError, ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)


class ToolRegistry(ABC):
    """
    A central registry of the tools offered to the model.

    Tools registered with an implementation execute directly when the model calls them.
    Tools registered without one (``requires_confirmation=True`` or :meth:`declare`)
    are only described to the model; running them is up to the confirmation flow.
    """

    def __init__(self) -> None:
        """Initialize the ToolRegistry."""
        self.tools: Dict[str, ToolDefinition] = {}

    def register(
        self,
        name_or_tool: Union[str, ToolDefinition, Callable],
        description: Optional[str] = None,
        func: Optional[Callable] = None,
        parameters: Optional[Any] = None,
        requires_confirmation: bool = False,
    ) -> ToolDefinition:
        """
        Register a new tool.

        A tool can be registered from a `ToolDefinition`, from its individual components
        (name, description, function, parameters), or from a function alone, in which case
        the definition is generated from its signature and docstring.

        Args:
            name_or_tool: Either a `ToolDefinition` object, the name of the tool (str), or a Callable.
            description: A brief description of what the tool does. Required if `name_or_tool` is a string and parameters are provided.
            func: The callable function implementing the tool's logic. Required if `name_or_tool` is a string.
            parameters: A schema defining the tool's input parameters. If None, it will be inferred from `func`.
            requires_confirmation: Keep the generated schema but drop the implementation, so the
                tool waits for a user approval instead of executing directly.

        Returns:
            The stored definition.

        Raises:
            ToolRegistrationError: If individual arguments are provided but some are missing or if the tool already exists.
        """
        if isinstance(name_or_tool, ToolDefinition):
            tool = name_or_tool
        elif callable(name_or_tool):
            tool = self._generate_tool_definition(name_or_tool, description=description)
        else:
            if func is None:
                raise ToolRegistrationError("If passing name as string, func is required.")

            if parameters is None:
                tool = self._generate_tool_definition(func, name=name_or_tool, description=description)
            else:
                if description is None:
                    raise ToolRegistrationError("If passing name and parameters, description is required.")
                tool = ToolDefinition(name=name_or_tool, description=description, func=func, parameters=parameters)

        if requires_confirmation:
            tool = tool.model_copy(update={"func": None})

        return self._store(tool)

    def declare(self, name: str, description: str, args_model: Type[BaseModel]) -> ToolDefinition:
        """Register a tool that has no implementation on this side.

        Used for tools whose result comes from the user or the client UI.

        Args:
            name: The tool name.
            description: What the tool does, as shown to the model.
            args_model: Pydantic model describing the tool arguments.

        Returns:
            The stored definition.
        """
        tool = ToolDefinition(
            name=name,
            description=description,
            parameters=SchemaValidator.build_parameters_schema(args_model),
            args_model=args_model,
        )
        return self._store(tool)

    def unregister(self, tool_name: str) -> None:
        """Unregister a tool from the registry.

        Args:
            tool_name: The name of the tool to remove.

        Raises:
            ToolNotFoundError: If the tool does not exist in the registry.
        """
        if tool_name not in self.tools:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in the registry.")
        del self.tools[tool_name]
        logger.info(f"Successfully unregistered tool: '{tool_name}'")

    def tool(self, func: Callable) -> Callable:
        """A decorator to turn a function into a directly executing tool.

        Args:
            func: The function to decorate.

        Returns:
            The original function, after registering it as a tool.
        """
        self.register(func)
        return func

    def get(self, tool_name: str) -> ToolDefinition:
        """Return the definition of a registered tool.

        Raises:
            ToolNotFoundError: If the tool does not exist in the registry.
        """
        try:
            return self.tools[tool_name]
        except KeyError:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in the registry.") from None

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self.tools

    @property
    @abstractmethod
    def tool_object(self) -> Any:
        """Constructs the tool declarations in the format of the model provider.

        Returns:
            The provider-specific tool representation.
        """
        pass

    @property
    def implementations(self) -> Dict[str, Callable]:
        """Returns a dictionary mapping the names of directly executing tools to their callables."""
        return {name: tool.func for name, tool in self.tools.items() if tool.func is not None}

    def _store(self, tool: ToolDefinition) -> ToolDefinition:
        if tool.name in self.tools:
            msg = f"Tool '{tool.name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self.tools[tool.name] = tool
        mode = "direct execution" if tool.executes_directly else "confirmation required"
        logger.info(f"Successfully registered tool: '{tool.name}' ({mode})")
        return tool

    def _generate_tool_definition(
        self, func: Callable, name: Optional[str] = None, description: Optional[str] = None
    ) -> ToolDefinition:
        """Generate a ToolDefinition from a callable function.

        Args:
            func: The function to generate a definition for.
            name: Optional name override for the tool.
            description: Optional description override for the tool.

        Returns:
            A ToolDefinition object containing the tool's metadata and schema.

        Raises:
            ToolValidationError: If the function is missing a docstring or parameter descriptions.
        """
        tool_name = name or func.__name__
        if description is None:
            description = self._get_docstring_from_func(func, tool_name)

        fields = self._build_fields(inspect.signature(func), tool_name)

        # create_model expects **field_definitions: Any
        args_model = create_model(f"{tool_name}Params", **cast(Dict[str, Any], fields))

        return ToolDefinition(
            name=tool_name,
            description=description,
            func=func,
            parameters=SchemaValidator.build_parameters_schema(args_model),
            args_model=args_model,
        )

    @staticmethod
    def _get_docstring_from_func(func: Callable, tool_name: str) -> str:
        doc = inspect.getdoc(func)
        if not doc:
            msg = f"Tool '{tool_name}' missing docstring. The model needs a description of what the tool does."
            logger.error(msg)
            raise ToolValidationError(msg)
        return doc

    @staticmethod
    def _build_fields(signature: inspect.Signature, tool_name: str) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for param_name, param in signature.parameters.items():
            if param_name == "self":
                continue
            ft = ToolParameterFactory.build_field_tuple(param_name=param_name, param=param, tool_name=tool_name)
            fields[param_name] = (ft.annotation, ft.field)
        return fields


def tools_requiring_confirmation(registry: ToolRegistry) -> FrozenSet[str]:
    """Names of all tools without an execute capability.

    Computed from the registry on every call; registries may change after startup.

    Args:
        registry: The registry to inspect.

    Returns:
        The names of the tools that must wait for an approval or the client UI.
    """
    return frozenset(name for name, tool in registry.tools.items() if not tool.executes_directly)
