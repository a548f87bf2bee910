import json

from seva.core.messages import Message, OtherPart, TextPart, ToolInvocation, ToolInvocationPart, convert_to_core_messages


class TestMessageParsing:
    """Tests for parsing client messages."""

    def test_parts_are_discriminated_by_type(self):
        message = Message.model_validate(
            {
                "role": "assistant",
                "content": "",
                "parts": [
                    {"type": "text", "text": "Hello"},
                    {
                        "type": "tool-invocation",
                        "toolInvocation": {"state": "call", "toolCallId": "c1", "toolName": "lookup", "args": {}},
                    },
                    {"type": "reasoning", "reasoning": "thinking"},
                ],
            }
        )

        assert isinstance(message.parts[0], TextPart)
        assert isinstance(message.parts[1], ToolInvocationPart)
        assert message.parts[1].tool_invocation.tool_call_id == "c1"
        assert isinstance(message.parts[2], OtherPart)
        # Unknown part fields are kept
        assert message.parts[2].to_wire() == {"type": "reasoning", "reasoning": "thinking"}

    def test_to_wire_uses_camel_case(self):
        invocation = ToolInvocation(state="result", tool_call_id="c1", tool_name="submit", result="ok")

        assert invocation.to_wire() == {
            "state": "result",
            "toolCallId": "c1",
            "toolName": "submit",
            "args": {},
            "result": "ok",
        }

    def test_legacy_tool_invocations_are_used_without_parts(self):
        message = Message.model_validate(
            {
                "role": "assistant",
                "toolInvocations": [{"state": "result", "toolCallId": "c1", "toolName": "lookup", "result": 1}],
            }
        )

        assert [inv.tool_call_id for inv in message.iter_tool_invocations()] == ["c1"]

    def test_text_prefers_text_parts(self):
        message = Message(role="assistant", content="flat", parts=[TextPart(text="a"), TextPart(text="b")])
        assert message.text() == "ab"
        assert Message(role="user", content="flat").text() == "flat"


class TestMessageConversion:
    """Tests for converting client messages to chat-completion messages."""

    def test_convert_plain_conversation(self):
        history = [
            Message(role="system", content="You are a helpful assistant."),
            Message(role="user", content="Hello"),
            Message(role="assistant", content="Hi there!"),
            Message(role="data", content="ignored"),
        ]

        assert convert_to_core_messages(history) == [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hi there!"},
        ]

    def test_resolved_invocations_become_tool_calls_and_results(self):
        message = Message(
            role="assistant",
            parts=[
                TextPart(text="Filing it."),
                ToolInvocationPart(
                    tool_invocation=ToolInvocation(
                        state="result",
                        tool_call_id="call_1",
                        tool_name="createGrievance",
                        args={"title": "Water"},
                        result={"id": 7},
                    )
                ),
                ToolInvocationPart(
                    tool_invocation=ToolInvocation(state="call", tool_call_id="call_2", tool_name="documentUpload")
                ),
            ],
        )

        converted = convert_to_core_messages([message])

        assert converted[0] == {
            "role": "assistant",
            "content": "Filing it.",
            "tool_calls": [
                {
                    "id": "call_1",
                    "type": "function",
                    "function": {"name": "createGrievance", "arguments": json.dumps({"title": "Water"})},
                }
            ],
        }
        assert converted[1] == {
            "role": "tool",
            "tool_call_id": "call_1",
            "name": "createGrievance",
            "content": json.dumps({"id": 7}),
        }
        # The unanswered call is not sent to the model
        assert len(converted) == 2

    def test_assistant_without_text_or_results_is_skipped(self):
        message = Message(
            role="assistant",
            parts=[
                ToolInvocationPart(
                    tool_invocation=ToolInvocation(state="call", tool_call_id="call_2", tool_name="documentUpload")
                )
            ],
        )

        assert convert_to_core_messages([message]) == []
