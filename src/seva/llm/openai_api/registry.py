"""Render registered tools in the chat-completions ``tools`` format."""

from typing import Any, Dict, List

from seva.core.tools import ToolRegistry


class OpenAIToolRegistry(ToolRegistry):
    """
    A ToolRegistry for OpenAI-compatible chat-completion endpoints.

    Tools that need a confirmation are offered to the model like any other tool;
    only their execution differs.
    """

    @property
    def tool_object(self) -> List[Dict[str, Any]] | None:
        """
        Generates the list of tool declarations for the chat-completions API.

        Returns:
            A list of tool dictionaries, or None if no tools are registered.
        """
        if not self.tools:
            return None

        tools_list = []
        for tool in self.tools.values():
            tools_list.append(
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        # The API expects an object schema even for tools without parameters.
                        "parameters": tool.parameters or {"type": "object", "properties": {}},
                    },
                }
            )
        return tools_list
