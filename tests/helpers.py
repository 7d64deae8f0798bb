"""
Shared builders and fakes for the test suite.
"""
from typing import Any, Dict, List, Optional

from llm.client import ChatCompletion, ToolCallRequest
from models.schemas import Message, TextPart, ToolInvocationPart, ToolState
from utils.errors import ProviderFailure

QUESTIONS = [
    "Tell me about a Go service you built.",
    "How do you design a REST API?",
    "How do you handle concurrency in Go?",
    "Describe a production incident you resolved.",
    "How do you test backend code?",
]

JOB_DESCRIPTION = (
    "We are hiring a Backend Go engineer to build and run high throughput "
    "payment services on Kubernetes."
)


def user(text: str, msg_id: Optional[str] = None) -> Message:
    return Message(id=msg_id, role="user", parts=[TextPart(text=text)])


def assistant(*parts: Any, msg_id: Optional[str] = None) -> Message:
    return Message(id=msg_id, role="assistant", parts=list(parts))


def text(value: str) -> TextPart:
    return TextPart(text=value)


def tool(
    call_id: str,
    name: str = "clear_interview",
    state: ToolState = ToolState.OUTPUT_AVAILABLE,
    output: Any = None,
    **extra: Any,
) -> ToolInvocationPart:
    return ToolInvocationPart(tool_name=name, call_id=call_id, state=state, output=output, **extra)


class FakeLLM:
    """
    Stands in for LLMClient. Chat completions and JSON answers are served
    from queues; an exception in a queue is raised instead of returned.
    """

    def __init__(
        self,
        completions: Optional[List[Any]] = None,
        json_results: Optional[List[Any]] = None,
    ):
        self.completions = list(completions or [])
        self.json_results = list(json_results or [])
        self.chat_calls: List[Dict[str, Any]] = []
        self.json_calls: List[Dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.chat_calls) + len(self.json_calls)

    def chat(self, system, messages, tools=None, temperature=None, max_tokens=800) -> ChatCompletion:
        self.chat_calls.append({"system": system, "messages": list(messages), "tools": tools})
        if not self.completions:
            return ChatCompletion(content="")
        result = self.completions.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def generate_json(self, system, prompt, max_tokens=600):
        self.json_calls.append({"system": system, "prompt": prompt})
        if not self.json_results:
            return None
        result = self.json_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def health_check(self) -> bool:
        return True


def reply(content: str = "", *calls: ToolCallRequest) -> ChatCompletion:
    return ChatCompletion(content=content, tool_calls=list(calls))


def call(call_id: str, name: str, arguments: Optional[Dict[str, Any]] = None, invalid: bool = False) -> ToolCallRequest:
    return ToolCallRequest(call_id=call_id, name=name, arguments=arguments or {}, invalid=invalid)


def provider_down() -> ProviderFailure:
    return ProviderFailure("Failed to reach model server after 4 attempts: connection refused")
