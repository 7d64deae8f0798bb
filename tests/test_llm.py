import pytest
import requests

from llm import client as client_module
from llm.client import LLMClient
from utils.cleaning import ResponseCleaner
from utils.errors import ProviderFailure


class FakeResponse:
    def __init__(self, payload=None, status=200, body_error=None):
        self.payload = payload
        self.status = status
        self.body_error = body_error

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} error")

    def json(self):
        if self.body_error:
            raise self.body_error
        return self.payload


def _completion(content, tool_calls=None):
    message = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return {"choices": [{"message": message}], "usage": {"total_tokens": 42}}


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(client_module.time, "sleep", lambda seconds: None)


# ========================================
# Response cleaning
# ========================================

def test_clean_chat_reply_strips_reasoning():
    assert ResponseCleaner.clean_chat_reply("<think>hmm</think>  Hello ") == "Hello"
    assert ResponseCleaner.clean_chat_reply("half a thought</think>Answer") == "Answer"
    assert ResponseCleaner.clean_chat_reply(None) == ""


def test_parse_json_object_from_chatty_output():
    text = 'Sure! Here you go:\n```json\n{"questions": ["a", "b",]}\n```\nGood luck.'
    assert ResponseCleaner.parse_json_object(text) == {"questions": ["a", "b"]}


def test_parse_json_object_rejects_non_objects():
    assert ResponseCleaner.parse_json_object("no json here") is None
    assert ResponseCleaner.parse_json_object("[1, 2, 3]") is None


# ========================================
# Client
# ========================================

def test_chat_decodes_content_and_tool_calls(monkeypatch):
    sent = {}

    def fake_post(url, json, timeout):
        sent.update(json)
        return FakeResponse(_completion("<think>x</think>Done.", [
            {"id": "c1", "type": "function",
             "function": {"name": "clear_interview", "arguments": "{}"}},
            {"id": "c2", "type": "function",
             "function": {"name": "save_interview_setup", "arguments": "{broken"}},
        ]))

    monkeypatch.setattr(client_module.requests, "post", fake_post)
    llm = LLMClient(base_url="http://model", model="test-model")

    completion = llm.chat("system prompt", [{"role": "user", "content": "hi"}], tools=[{"type": "function"}])

    assert completion.content == "Done."
    assert completion.tokens_used == 42
    assert [c.call_id for c in completion.tool_calls] == ["c1", "c2"]
    assert completion.tool_calls[0].invalid is False
    assert completion.tool_calls[1].invalid is True
    assert sent["messages"][0] == {"role": "system", "content": "system prompt"}
    assert sent["model"] == "test-model"
    assert "tools" in sent


def test_request_retries_then_raises_provider_failure(monkeypatch, no_sleep):
    attempts = []

    def failing_post(url, json, timeout):
        attempts.append(url)
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(client_module.requests, "post", failing_post)
    llm = LLMClient(base_url="http://model")

    with pytest.raises(ProviderFailure):
        llm.chat("system", [])
    assert len(attempts) == llm.max_retries + 1


def test_request_recovers_after_transient_error(monkeypatch, no_sleep):
    responses = [requests.exceptions.Timeout("slow"), FakeResponse(_completion("ok"))]

    def flaky_post(url, json, timeout):
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(client_module.requests, "post", flaky_post)

    assert LLMClient(base_url="http://model").chat("system", []).content == "ok"


def test_non_json_body_is_not_retried(monkeypatch, no_sleep):
    attempts = []

    def post(url, json, timeout):
        attempts.append(url)
        return FakeResponse(body_error=ValueError("Expecting value"))

    monkeypatch.setattr(client_module.requests, "post", post)

    with pytest.raises(ProviderFailure):
        LLMClient(base_url="http://model").chat("system", [])
    assert len(attempts) == 1


def test_unexpected_shape_raises_provider_failure(monkeypatch):
    monkeypatch.setattr(client_module.requests, "post", lambda url, json, timeout: FakeResponse({"error": "x"}))

    with pytest.raises(ProviderFailure):
        LLMClient(base_url="http://model").chat("system", [])


def test_generate_json_returns_none_for_prose(monkeypatch):
    monkeypatch.setattr(
        client_module.requests, "post",
        lambda url, json, timeout: FakeResponse(_completion("I'd rather not answer in JSON.")),
    )

    assert LLMClient(base_url="http://model").generate_json("system", "prompt") is None
