from seva.core.tools import ConfirmationPolicy
from seva.llm.openai_api import OpenAIToolRegistry


def test_gated_tools_are_those_without_execute(gated_registry: OpenAIToolRegistry) -> None:
    policy = ConfirmationPolicy(gated_registry)

    assert policy.requires_confirmation == frozenset({"submit", "documentUpload"})
    assert policy.is_gated("submit")
    assert not policy.is_gated("lookup")
    assert not policy.is_gated("unknown")


def test_confirmation_set_is_recomputed(gated_registry: OpenAIToolRegistry) -> None:
    policy = ConfirmationPolicy(gated_registry)
    assert policy.is_gated("submit")

    gated_registry.unregister("submit")

    assert not policy.is_gated("submit")


def test_is_gated_against_snapshot(gated_registry: OpenAIToolRegistry) -> None:
    policy = ConfirmationPolicy(gated_registry)

    assert policy.is_gated("lookup", frozenset({"lookup"}))
    assert not policy.is_gated("submit", frozenset())


def test_no_ui_deferred_tools_by_default(gated_registry: OpenAIToolRegistry) -> None:
    policy = ConfirmationPolicy(gated_registry)

    assert not policy.is_ui_deferred("documentUpload")
    assert policy.fallback_for("documentUpload") is None


def test_custom_ui_deferred_tools(gated_registry: OpenAIToolRegistry) -> None:
    policy = ConfirmationPolicy(gated_registry, ui_deferred={"submit": "Submitted by the client."})

    assert policy.is_ui_deferred("submit")
    assert not policy.is_ui_deferred("documentUpload")
    assert policy.fallback_for("submit") == "Submitted by the client."
