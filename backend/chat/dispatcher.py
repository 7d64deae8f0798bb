"""
Turn dispatcher.

Classifies each incoming user turn with literal and pattern checks and routes
it to the state machine or to the generic chat path. This is also the turn
boundary: every error raised while handling a turn is caught here and
rendered into the stream.
"""
import json
import logging
from enum import Enum
from typing import Dict, List, Optional

from pydantic import ValidationError

from chat.approval import resolve_tool_calls
from chat.history import extract_text, sanitize, to_model_messages, window
from chat.stream import TurnStream
from interview.agents import AgentController, agent_controller
from interview.state import InterviewStateMachine
from interview.tools import build_tool_registry
from llm.prompts import REPLIES
from models.schemas import Message, ResultsPayload
from utils.config import config
from utils.errors import ErrorKind, ParseFailure, RecruiterError

logger = logging.getLogger(__name__)


class TurnIntent(str, Enum):
    RESET = "reset"
    SUBMIT_RESULTS = "submit_results"
    JOB_DESCRIPTION = "job_description"
    CHAT = "chat"


def is_reset_command(text: str) -> bool:
    return text.strip().lower() in config.recruiter.reset_commands


def looks_like_job_description(text: str, has_questions: bool, min_length: Optional[int] = None) -> bool:
    """
    Heuristic: a long message sent before any questions exist is a JD.

    Known misses: a JD shorter than the threshold is treated as chat, and a
    long chat message sent before setup is treated as a JD. Once questions
    exist nothing is classified as a JD; a new JD needs a reset first.
    """
    threshold = config.recruiter.jd_min_length if min_length is None else min_length
    return not has_questions and len(text) > threshold


def classify_turn(text: str, has_questions: bool) -> TurnIntent:
    if is_reset_command(text):
        return TurnIntent.RESET
    if text.lstrip().startswith(config.recruiter.results_prefix):
        return TurnIntent.SUBMIT_RESULTS
    if looks_like_job_description(text, has_questions):
        return TurnIntent.JOB_DESCRIPTION
    return TurnIntent.CHAT


def parse_results_payload(text: str) -> Dict[int, str]:
    """
    Parse the JSON that follows the results marker.

    Raises:
        ParseFailure: if the remainder is not a valid results payload
    """
    body = text.lstrip()[len(config.recruiter.results_prefix):].strip()
    if not body:
        raise ParseFailure("The results payload is empty")
    try:
        payload = ResultsPayload.model_validate(json.loads(body))
    except json.JSONDecodeError as e:
        raise ParseFailure(f"The results payload is not valid JSON: {e.msg}") from e
    except (ValidationError, ValueError, TypeError) as e:
        raise ParseFailure(f"The results payload has the wrong shape: {e}") from e

    answers = payload.as_mapping()
    if not answers:
        raise ParseFailure("The results payload contains no answers")
    return answers


class TurnDispatcher:
    """
    Routes one turn and writes its events into a TurnStream.
    """

    def __init__(self, agents: Optional[AgentController] = None, max_history_messages: Optional[int] = None):
        self.agents = agents or agent_controller
        if max_history_messages is None:
            max_history_messages = config.recruiter.max_history_messages
        self.max_history_messages = max_history_messages

    async def handle_turn(
        self,
        machine: InterviewStateMachine,
        messages: List[Message],
        stream: TurnStream,
    ) -> TurnIntent:
        """
        Handle one turn for the session owned by ``machine``.

        State changes committed before a failure are kept; the failure is
        reported as a single error delta.
        """
        intent = TurnIntent.CHAT
        try:
            last = messages[-1] if messages else None
            if last is not None and last.role == "user":
                intent = classify_turn(extract_text(last), machine.has_questions)
            logger.info(f"Session {machine.session_id}: turn classified as {intent.value}")

            if intent == TurnIntent.RESET:
                self._handle_reset(machine, stream)
            elif intent == TurnIntent.SUBMIT_RESULTS:
                await self._handle_results(machine, extract_text(last), stream)
            elif intent == TurnIntent.JOB_DESCRIPTION:
                await self._handle_job_description(machine, extract_text(last), stream)
            else:
                await self._handle_chat(machine, messages, stream)

        except RecruiterError as e:
            logger.error(f"{e.kind.value} in session {machine.session_id}: {e}")
            stream.error(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error in session {machine.session_id}")
            stream.error(str(e) or "Unknown error")

        return intent

    # ========================================
    # Routes
    # ========================================

    def _handle_reset(self, machine: InterviewStateMachine, stream: TurnStream) -> None:
        machine.reset()
        stream.text(REPLIES["reset"], part_id="reset")

    @staticmethod
    def _report(stream: TurnStream, kind: ErrorKind, message: str, label: str) -> None:
        stream.write({"type": "data-error", "kind": kind.value, "message": message})
        stream.text(f"[{label}]: {message}", part_id="response")

    async def _handle_results(self, machine: InterviewStateMachine, text: str, stream: TurnStream) -> None:
        try:
            answers = parse_results_payload(text)
        except ParseFailure as e:
            logger.warning(f"{ErrorKind.PARSE_FAILURE.value}: {e}")
            self._report(stream, ErrorKind.PARSE_FAILURE, str(e), "Results Error")
            return

        recorded = machine.record_responses(answers)
        if not recorded.ok:
            self._report(stream, recorded.error, recorded.message, "Missing Information")
            return

        problem = machine.scorecard_prerequisite_error()
        if problem:
            self._report(stream, ErrorKind.MISSING_PREREQUISITE, problem, "Missing Information")
            return

        stream.text("📝 Generating scorecard...", part_id="thinking")
        report = await self.agents.scorecards.generate(machine.state)
        outcome = machine.generate_scorecard(report)
        if not outcome.ok:
            self._report(stream, outcome.error, outcome.message, "Missing Information")
            return
        stream.text(f"\n\n{report}", part_id="response")

    async def _handle_job_description(self, machine: InterviewStateMachine, text: str, stream: TurnStream) -> None:
        stream.text(REPLIES["analyzing"], part_id="thinking")

        questions, used_fallback = await self.agents.questions.generate_questions(text)
        state = machine.setup_interview(text, questions)

        formatted = "\n".join(f"**{i + 1}.** {q}" for i, q in enumerate(state.questions))
        note = " (default set, the model answer could not be used)" if used_fallback else ""
        stream.text(
            f"\n\nI have prepared {len(state.questions)} questions based on the JD{note}:\n\n"
            f"{formatted}\n\nReady to start?",
            part_id="response",
        )

    async def _handle_chat(self, machine: InterviewStateMachine, messages: List[Message], stream: TurnStream) -> None:
        registry = build_tool_registry(machine)

        history = window(sanitize(messages), self.max_history_messages)
        history = await resolve_tool_calls(history, registry.executions, stream)

        await self.agents.chat.reply(
            to_model_messages(history),
            registry,
            machine.state.questions,
            stream,
        )
