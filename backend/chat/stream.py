"""
Event writer for a single turn.

Collects the UI events produced while handling a turn and assembles them
into the assistant message the client appends to its history.
"""
import uuid
from typing import Any, Dict, List, Optional

from models.schemas import Message, TextPart, ToolInvocationPart, ToolState


class TurnStream:
    """Ordered list of events for one turn."""

    def __init__(self, message_id: Optional[str] = None):
        self.message_id = message_id or f"msg-{uuid.uuid4().hex[:12]}"
        self.events: List[Dict[str, Any]] = []

    def write(self, event: Dict[str, Any]) -> None:
        self.events.append(event)

    def text(self, delta: str, part_id: str = "response") -> None:
        self.write({"type": "text-delta", "id": part_id, "delta": delta})

    def tool_input(self, call_id: str, tool_name: str, tool_input: Dict[str, Any]) -> None:
        self.write({
            "type": "tool-input-available",
            "toolCallId": call_id,
            "toolName": tool_name,
            "input": tool_input,
        })

    def tool_output(self, call_id: str, output: Any) -> None:
        self.write({"type": "tool-output-available", "toolCallId": call_id, "output": output})

    def tool_error(self, call_id: str, error_text: str) -> None:
        self.write({"type": "tool-output-error", "toolCallId": call_id, "errorText": error_text})

    def error(self, error_text: str) -> None:
        self.text(f"\n\n[System Error]: {error_text}", part_id="error-id")

    def output_events(self, call_id: str) -> List[Dict[str, Any]]:
        return [
            e for e in self.events
            if e["type"] == "tool-output-available" and e["toolCallId"] == call_id
        ]

    @property
    def text_content(self) -> str:
        return "".join(e["delta"] for e in self.events if e["type"] == "text-delta")

    def to_message(self) -> Optional[Message]:
        """
        Build the assistant message for this turn.

        Text deltas with the same id are joined into one text part. Output
        events for calls made in an earlier message are not part of this
        message; the client applies them to that message instead.
        """
        parts: List[Any] = []
        text_index: Dict[str, int] = {}
        tool_index: Dict[str, int] = {}

        for event in self.events:
            kind = event["type"]
            if kind == "text-delta":
                idx = text_index.get(event["id"])
                if idx is None:
                    text_index[event["id"]] = len(parts)
                    parts.append(TextPart(text=event["delta"]))
                else:
                    parts[idx] = TextPart(text=parts[idx].text + event["delta"])
            elif kind == "tool-input-available":
                tool_index[event["toolCallId"]] = len(parts)
                parts.append(ToolInvocationPart(
                    tool_name=event["toolName"],
                    call_id=event["toolCallId"],
                    state=ToolState.INPUT_AVAILABLE,
                    input=event["input"],
                ))
            elif kind == "tool-output-available":
                idx = tool_index.get(event["toolCallId"])
                if idx is not None:
                    parts[idx] = parts[idx].model_copy(update={
                        "state": ToolState.OUTPUT_AVAILABLE,
                        "output": event["output"],
                    })
            elif kind == "tool-output-error":
                idx = tool_index.get(event["toolCallId"])
                if idx is not None:
                    parts[idx] = parts[idx].model_copy(update={"error_text": event["errorText"]})

        if not parts:
            return None
        return Message(id=self.message_id, role="assistant", parts=parts)
