"""
Conversation history preparation.

Sanitizes malformed tool parts, bounds history length without splitting a
tool call from its result, and converts UI messages into the role/content
messages the model binding expects. Nothing here mutates its input.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from models.schemas import Message, TextPart, ToolInvocationPart, ToolState
from utils.errors import ErrorKind

logger = logging.getLogger(__name__)


def _is_broken_tool_part(part: ToolInvocationPart) -> bool:
    if part.state == ToolState.INPUT_STREAMING:
        return True
    return part.invalid or bool(part.error_text)


def sanitize(history: Sequence[Message]) -> List[Message]:
    """
    Drop incomplete or failed tool parts, then drop messages left empty.

    A model that sees a dangling or erroring tool call tends to retry it
    forever, so those parts are removed instead of repaired.
    """
    cleaned: List[Message] = []
    dropped = 0

    for message in history:
        kept = []
        for part in message.parts:
            if isinstance(part, TextPart):
                kept.append(part)
            elif isinstance(part, ToolInvocationPart):
                if _is_broken_tool_part(part):
                    dropped += 1
                    continue
                kept.append(part)

        if not kept:
            continue
        if len(kept) == len(message.parts):
            cleaned.append(message)
        else:
            cleaned.append(message.model_copy(update={"parts": kept}))

    if dropped:
        logger.debug(f"{ErrorKind.MALFORMED_HISTORY.value}: removed {dropped} tool part(s)")
    return cleaned


def _result_call_ids(message: Message) -> List[str]:
    return [p.call_id for p in message.tool_parts() if p.state == ToolState.OUTPUT_AVAILABLE]


def window(history: Sequence[Message], max_messages: int) -> List[Message]:
    """
    Keep the last ``max_messages`` messages without starting mid tool exchange.

    When the first kept message carries a tool result, the message right
    before it in the full history is prepended, so the result can hold at
    most ``max_messages + 1`` entries. Only one message is looked back; if
    that message does not hold the matching call the window is returned
    anyway and a truncation warning is logged.
    """
    if max_messages <= 0:
        return []
    if len(history) <= max_messages:
        return list(history)

    start = len(history) - max_messages
    sliced = list(history[start:])

    result_ids = _result_call_ids(sliced[0])
    if not result_ids:
        return sliced

    parent = history[start - 1]
    sliced.insert(0, parent)

    # Calls may sit in the parent or earlier in the first message itself
    visible_calls = {p.call_id for p in parent.tool_parts()}
    visible_calls.update(
        p.call_id for p in sliced[1].tool_parts() if p.state == ToolState.INPUT_AVAILABLE
    )
    orphaned = [cid for cid in result_ids if cid not in visible_calls]
    if orphaned:
        logger.warning(
            f"{ErrorKind.TRUNCATION_BOUNDARY.value}: tool result(s) {orphaned} "
            f"have no matching call within the window"
        )

    return sliced


def extract_text(message: Optional[Message]) -> str:
    """Concatenate the text parts of a message."""
    if message is None:
        return ""
    return "".join(p.text for p in message.parts if isinstance(p, TextPart))


def _stringify_output(output: Any) -> str:
    if isinstance(output, str):
        return output
    try:
        return json.dumps(output)
    except (TypeError, ValueError):
        return str(output)


def to_model_messages(history: Sequence[Message]) -> List[Dict[str, Any]]:
    """
    Convert UI messages into chat-completion messages.

    Tool parts become an assistant ``tool_calls`` entry followed by a ``tool``
    message with the result. Calls still waiting for a result are left out,
    since the model API rejects a call without its answer.
    """
    model_messages: List[Dict[str, Any]] = []

    for message in history:
        if message.role == "user":
            text = extract_text(message)
            if text:
                model_messages.append({"role": "user", "content": text})
            continue

        pending_text: List[str] = []
        for part in message.parts:
            if isinstance(part, TextPart):
                if part.text:
                    pending_text.append(part.text)
                continue

            if part.state != ToolState.OUTPUT_AVAILABLE:
                continue

            model_messages.append({
                "role": "assistant",
                "content": "".join(pending_text) or None,
                "tool_calls": [{
                    "id": part.call_id,
                    "type": "function",
                    "function": {
                        "name": part.tool_name,
                        "arguments": json.dumps(part.input),
                    },
                }],
            })
            pending_text = []
            model_messages.append({
                "role": "tool",
                "tool_call_id": part.call_id,
                "content": _stringify_output(part.output),
            })

        if pending_text:
            model_messages.append({"role": "assistant", "content": "".join(pending_text)})

    return model_messages
