"""Decides which tool invocations must wait for a human answer."""

from typing import FrozenSet, Mapping, Optional

from .registry import ToolRegistry, tools_requiring_confirmation


class ConfirmationPolicy:
    """
    Answers whether a tool invocation is gated.

    A tool is gated when its definition has no execute capability. UI-deferred tools are
    gated as well, but their result comes from a client-side action instead of an
    approval answer.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        ui_deferred: Optional[Mapping[str, Optional[str]]] = None,
    ) -> None:
        """Initialize the policy.

        Args:
            registry: Registry the gated set is computed from.
            ui_deferred: Tools whose result is produced by the client UI, mapped to the
                result used when the UI sends back an empty one (None keeps the result
                as sent).
        """
        self._registry = registry
        self._ui_deferred = dict(ui_deferred or {})

    @property
    def requires_confirmation(self) -> FrozenSet[str]:
        """Tool names that need a confirmation, recomputed from the registry."""
        return tools_requiring_confirmation(self._registry)

    def is_gated(self, tool_name: str, requires_confirmation: Optional[FrozenSet[str]] = None) -> bool:
        gated = self.requires_confirmation if requires_confirmation is None else requires_confirmation
        return tool_name in gated

    def is_ui_deferred(self, tool_name: str) -> bool:
        return tool_name in self._ui_deferred

    def fallback_for(self, tool_name: str) -> Optional[str]:
        return self._ui_deferred.get(tool_name)
