import asyncio
import json
from typing import Any, Dict, List

from seva.core.config import Settings
from seva.core.exceptions import SevaError
from seva.core.messages import Message, TextPart, ToolInvocation, ToolInvocationPart
from seva.core.stream import DataStreamWriter
from seva.core.tools import Approval
from seva.grievance import UI_TOOLS
from seva.server import build_services, run_chat_turn
from seva.server.models import ChatRequest


def assistant_message_from_frames(frames: List[str], index: int) -> Message:
    """Rebuild the assistant message the way a chat client does from the data stream."""
    parts: List[Any] = []
    invocations: Dict[str, ToolInvocation] = {}
    for frame in frames:
        code, _, payload = frame.rstrip("\n").partition(":")
        value = json.loads(payload)
        if code == "0":
            parts.append(TextPart(text=value))
        elif code == "9":
            invocation = ToolInvocation(
                state="call", tool_call_id=value["toolCallId"], tool_name=value["toolName"], args=value["args"]
            )
            invocations[invocation.tool_call_id] = invocation
            parts.append(ToolInvocationPart(tool_invocation=invocation))
        elif code == "a" and value["toolCallId"] in invocations:
            invocation = invocations[value["toolCallId"]]
            invocation.state = "result"
            invocation.result = value["result"]
        elif code == "3":
            print(f"Error: {value}")
    return Message(id=f"assistant-{index}", role="assistant", parts=parts)


def answer_pending_calls(message: Message) -> bool:
    """Ask the user about every call still waiting; returns True if any was answered."""
    answered = False
    for invocation in message.iter_tool_invocations():
        if invocation.state != "call":
            continue
        print(f"\nThe assistant wants to run '{invocation.tool_name}' with:")
        print(json.dumps(invocation.args, indent=2, ensure_ascii=False))
        if invocation.tool_name in UI_TOOLS:
            invocation.result = input("Your response (empty to skip): ").strip()
        else:
            approved = input("Approve? [y/N]: ").strip().lower() == "y"
            invocation.result = Approval.YES.value if approved else Approval.NO.value
        invocation.state = "result"
        answered = True
    return answered


async def run_turn(services: Any, messages: List[Message]) -> List[str]:
    stream = DataStreamWriter()
    turn = asyncio.create_task(run_chat_turn(services, ChatRequest(messages=messages), stream))
    frames = [frame async for frame in stream]
    await turn
    return frames


async def main() -> None:
    """
    Chat with the grievance assistant in the terminal, approving tool calls by hand.
    """
    print("Welcome to the Seva CLI chat!")

    try:
        services = build_services(Settings.from_env())
    except SevaError as exc:
        print(f"Error: {exc}")
        return

    messages: List[Message] = []
    print("\nDescribe your grievance. Type 'exit' or 'quit' to stop.")
    try:
        while True:
            user_input = input("\nYou: ").strip()
            if user_input.lower() in ["exit", "quit"]:
                print("Goodbye!")
                break
            if not user_input:
                continue

            messages.append(Message(id=f"user-{len(messages)}", role="user", content=user_input))
            while True:
                assistant = assistant_message_from_frames(await run_turn(services, messages), len(messages))
                print(f"Seva: {assistant.text()}")
                messages.append(assistant)
                # Answers travel back on the same assistant message
                if not answer_pending_calls(assistant):
                    break
    finally:
        await services.aclose()


if __name__ == "__main__":
    asyncio.run(main())
