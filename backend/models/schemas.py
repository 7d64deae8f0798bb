"""
Pydantic schemas for the AI Recruiter backend.
Covers the durable recruiter state, chat messages with tagged parts, and API payloads.
"""
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the web client."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ================================================================
# Recruiter State
# ================================================================

class RecruiterPhase(str, Enum):
    """Observable stage of the interview workflow, derived from state shape."""
    EMPTY = "empty"
    QUESTIONS_READY = "questions_ready"
    INTERVIEW_IN_PROGRESS = "interview_in_progress"
    SCORECARD_READY = "scorecard_ready"

    @classmethod
    def get_order(cls) -> List["RecruiterPhase"]:
        return [cls.EMPTY, cls.QUESTIONS_READY, cls.INTERVIEW_IN_PROGRESS, cls.SCORECARD_READY]


class RecruiterState(CamelModel):
    """Durable per-session record. Only the state machine writes it."""
    job_description: Optional[str] = None
    questions: List[str] = Field(default_factory=list)
    current_question_index: int = -1
    responses: Dict[int, str] = Field(default_factory=dict)
    scorecard: Optional[str] = None


# ================================================================
# Chat Messages
# ================================================================

class ToolState(str, Enum):
    INPUT_STREAMING = "input-streaming"
    INPUT_AVAILABLE = "input-available"
    OUTPUT_AVAILABLE = "output-available"


class TextPart(CamelModel):
    type: Literal["text"] = "text"
    text: str = ""


class ToolInvocationPart(CamelModel):
    """A model tool call, and once available its result."""
    type: Literal["tool"] = "tool"
    tool_name: str
    call_id: str
    state: ToolState
    input: Dict[str, Any] = Field(default_factory=dict)
    output: Any = None
    error_text: Optional[str] = None
    invalid: bool = False


Part = Annotated[Union[TextPart, ToolInvocationPart], Field(discriminator="type")]


class Message(CamelModel):
    id: Optional[str] = None
    role: Literal["user", "assistant"]
    parts: List[Part] = Field(default_factory=list)

    def tool_parts(self) -> List[ToolInvocationPart]:
        return [p for p in self.parts if isinstance(p, ToolInvocationPart)]


# ================================================================
# API Payloads
# ================================================================

class ChatRequest(CamelModel):
    session_id: str = "default"
    messages: List[Message] = Field(default_factory=list)


class ResultEntry(CamelModel):
    question_index: int
    answer: str


class ResultsPayload(CamelModel):
    """
    Body that follows the results marker in a submit-results turn.

    Accepts a list of ``{questionIndex, answer}`` entries, a mapping of
    index to answer, or a plain list of answers in question order.
    """
    responses: List[ResultEntry] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _coerce_responses(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw = data.get("responses")
        if isinstance(raw, dict):
            data = {**data, "responses": [
                {"questionIndex": int(k), "answer": v} for k, v in raw.items()
            ]}
        elif isinstance(raw, list) and all(isinstance(r, str) for r in raw):
            data = {**data, "responses": [
                {"questionIndex": i, "answer": v} for i, v in enumerate(raw)
            ]}
        return data

    def as_mapping(self) -> Dict[int, str]:
        return {entry.question_index: entry.answer for entry in self.responses}


class TranscriptionResponse(BaseModel):
    text: str
