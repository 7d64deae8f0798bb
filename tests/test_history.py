import logging

from chat.history import extract_text, sanitize, to_model_messages, window
from models.schemas import TextPart, ToolState

from helpers import assistant, text, tool, user


def _conversation(n):
    return [user(f"message {i}", msg_id=str(i)) if i % 2 == 0
            else assistant(text(f"message {i}"), msg_id=str(i)) for i in range(n)]


# ========================================
# sanitize
# ========================================

def test_sanitize_drops_broken_tool_parts():
    history = [
        user("hi"),
        assistant(
            text("working on it"),
            tool("a", state=ToolState.INPUT_STREAMING),
            tool("b", invalid=True),
            tool("c", error_text="boom"),
            tool("d", output={"success": True}),
        ),
    ]

    cleaned = sanitize(history)

    assert len(cleaned) == 2
    kept = cleaned[1].parts
    assert isinstance(kept[0], TextPart)
    assert [p.call_id for p in cleaned[1].tool_parts()] == ["d"]


def test_sanitize_drops_messages_left_empty():
    history = [user("hi"), assistant(tool("a", state=ToolState.INPUT_STREAMING)), user("again")]

    cleaned = sanitize(history)

    assert [extract_text(m) for m in cleaned] == ["hi", "again"]


def test_sanitize_is_idempotent_and_does_not_mutate():
    history = [
        assistant(text("x"), tool("a", invalid=True), tool("b", output="ok")),
        assistant(tool("c", error_text="failed")),
    ]

    once = sanitize(history)
    twice = sanitize(once)

    assert once == twice
    assert len(history[0].parts) == 3
    assert len(history) == 2


def test_sanitize_keeps_pending_calls():
    history = [assistant(tool("a", state=ToolState.INPUT_AVAILABLE))]
    assert sanitize(history) == history


# ========================================
# window
# ========================================

def test_window_short_history_unchanged():
    history = _conversation(5)
    assert window(history, 10) == history


def test_window_non_positive_limit_is_empty():
    history = _conversation(5)
    assert window(history, 0) == []
    assert window(history, -3) == []


def test_window_takes_plain_suffix():
    history = _conversation(30)

    result = window(history, 10)

    assert len(result) == 10
    assert result == history[-10:]


def test_window_prepends_parent_of_leading_tool_result_21_messages():
    """
    Index 9 is the first of the last 12 only in a 21-message history; with
    20 messages the last 12 start at index 8, so the count is corrected here.
    """
    history = _conversation(21)
    history[8] = assistant(tool("abc", state=ToolState.INPUT_AVAILABLE), msg_id="8")
    history[9] = assistant(tool("abc", output="Interview cleared"), msg_id="9")

    result = window(history, 12)

    assert len(result) == 13
    assert result[0].id == "8"
    assert result[1].id == "9"
    assert result == history[8:]


def test_window_result_is_contiguous_suffix_within_bound():
    history = _conversation(40)
    history[29] = assistant(tool("x1", output="done"), msg_id="29")

    for n in range(1, 15):
        result = window(history, n)
        assert len(result) <= n + 1
        assert result == history[len(history) - len(result):]


def test_window_logs_unpaired_result_at_boundary(caplog):
    history = _conversation(21)
    history[9] = assistant(tool("orphan", output="done"), msg_id="9")

    with caplog.at_level(logging.WARNING, logger="chat.history"):
        result = window(history, 12)

    # Best effort: the parent is still prepended and the turn goes on
    assert len(result) == 13
    assert result[0].id == "8"
    assert "TruncationBoundary" in caplog.text
    assert "orphan" in caplog.text


def test_window_accepts_call_in_same_message():
    history = _conversation(21)
    history[9] = assistant(
        tool("same", state=ToolState.INPUT_AVAILABLE),
        tool("same", output="done"),
        msg_id="9",
    )

    result = window(history, 12)

    assert result[0].id == "8"


# ========================================
# model messages
# ========================================

def test_to_model_messages_pairs_calls_with_results():
    history = [
        user("please clear"),
        assistant(
            text("Clearing now."),
            tool("c1", input={}, output="Interview cleared"),
            tool("c2", state=ToolState.INPUT_AVAILABLE),
        ),
    ]

    messages = to_model_messages(history)

    assert messages[0] == {"role": "user", "content": "please clear"}
    assert messages[1]["role"] == "assistant"
    assert messages[1]["content"] == "Clearing now."
    assert messages[1]["tool_calls"][0]["id"] == "c1"
    assert messages[1]["tool_calls"][0]["function"]["name"] == "clear_interview"
    assert messages[2] == {"role": "tool", "tool_call_id": "c1", "content": "Interview cleared"}
    assert len(messages) == 3


def test_to_model_messages_serializes_structured_output():
    history = [assistant(tool("c1", name="save_interview_setup", output={"success": True}))]

    messages = to_model_messages(history)

    assert messages[1]["content"] == '{"success": true}'
