"""
Interview state machine for the recruiter workflow.
Owns the RecruiterState of one session, persists every change and
notifies subscribers.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from models.schemas import RecruiterPhase, RecruiterState
from interview.phases import RecruiterPhases
from llm.prompts import FALLBACK_QUESTIONS
from storage.state_store import StateStore
from utils.config import config
from utils.errors import ErrorKind

logger = logging.getLogger(__name__)

StateListener = Callable[[RecruiterState], None]


@dataclass
class TransitionResult:
    """Outcome of a state machine operation that can be refused."""
    ok: bool
    state: RecruiterState
    error: Optional[ErrorKind] = None
    message: str = ""


def normalize_questions(questions: List[str], count: int) -> List[str]:
    """
    Trim blanks and fit the list to exactly ``count`` questions.

    Short lists are padded from the fallback set, skipping questions that are
    already present.
    """
    cleaned = [q.strip() for q in questions if isinstance(q, str) and q.strip()]
    cleaned = cleaned[:count]
    for fallback in FALLBACK_QUESTIONS:
        if len(cleaned) >= count:
            break
        if fallback not in cleaned:
            cleaned.append(fallback)
    return cleaned


class InterviewStateMachine:
    """
    Manages the recruiter state of a single session.

    The current snapshot is replaced, never edited: each operation builds a
    new RecruiterState, writes it to the store, and only then makes it
    visible. A failed write leaves the previous snapshot in place.
    """

    def __init__(self, session_id: str, store: StateStore):
        """
        Initialize a state machine for one session.

        Args:
            session_id: The session this state belongs to
            store: Persistence collaborator
        """
        self.session_id = session_id
        self.store = store
        self.storage_key = f"{config.storage.key_prefix}:{session_id}"
        self.question_count = config.recruiter.question_count
        self._state = RecruiterState()
        self._listeners: List[StateListener] = []

    # ========================================
    # Lifecycle
    # ========================================

    def load(self) -> RecruiterState:
        """Restore the persisted record, or start empty."""
        stored = self.store.get(self.storage_key)
        if stored is not None:
            problems = RecruiterPhases.check_invariants(stored, self.question_count)
            if problems:
                logger.warning(f"Discarding inconsistent stored state for {self.session_id}: {problems}")
                stored = None
        self._state = stored or RecruiterState()
        logger.info(f"Session {self.session_id} loaded in phase {self.phase.value}")
        return self.state

    @property
    def state(self) -> RecruiterState:
        """A copy of the current snapshot."""
        return self._state.model_copy(deep=True)

    @property
    def phase(self) -> RecruiterPhase:
        return RecruiterPhases.derive(self._state)

    @property
    def has_questions(self) -> bool:
        return bool(self._state.questions)

    @property
    def has_subscribers(self) -> bool:
        return bool(self._listeners)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a callback invoked with every committed snapshot.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: RecruiterState) -> RecruiterState:
        current = self.phase
        target = RecruiterPhases.derive(new_state)
        if not RecruiterPhases.can_transition(current, target):
            raise RuntimeError(f"Illegal transition {current.value} -> {target.value}")

        self.store.put(self.storage_key, new_state)
        self._state = new_state
        logger.info(f"Session {self.session_id}: {current.value} -> {target.value}")
        self._notify()
        return self.state

    def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"State listener failed for session {self.session_id}: {e}")

    # ========================================
    # Transitions
    # ========================================

    def setup_interview(self, job_description: str, questions: List[str]) -> RecruiterState:
        """
        Store a job description and its questions, replacing any previous setup.

        Args:
            job_description: The JD text
            questions: Generated questions (must not be empty)

        Returns:
            The committed snapshot
        """
        if not questions:
            raise ValueError("setup_interview requires at least one question")

        normalized = normalize_questions(questions, self.question_count)
        if len(normalized) != len(questions):
            logger.info(f"Normalized {len(questions)} question(s) to {len(normalized)}")

        return self._commit(RecruiterState(
            job_description=job_description,
            questions=normalized,
            current_question_index=0,
            responses={},
            scorecard=None,
        ))

    def record_responses(self, answers: Mapping[int, str]) -> TransitionResult:
        """
        Attach transcribed answers keyed by question index.

        Recording answers never produces a scorecard; that only happens in
        generate_scorecard.
        """
        if not self._state.questions:
            return TransitionResult(
                ok=False,
                state=self.state,
                error=ErrorKind.MISSING_PREREQUISITE,
                message="There is no interview to record answers for. Submit a job description first.",
            )

        last_index = len(self._state.questions) - 1
        responses: Dict[int, str] = dict(self._state.responses)
        for index, answer in answers.items():
            if not 0 <= index <= last_index:
                logger.warning(f"Ignoring answer for unknown question index {index}")
                continue
            responses[index] = answer

        next_index = self._state.current_question_index
        if responses:
            next_index = min(max(responses) + 1, last_index)

        new_state = self._state.model_copy(update={
            "responses": responses,
            "current_question_index": next_index,
        })
        return TransitionResult(ok=True, state=self._commit(new_state))

    def scorecard_prerequisite_error(self) -> Optional[str]:
        """Explain why a scorecard cannot be generated yet, or None if it can."""
        if not self._state.job_description:
            return "I need a job description before I can write a scorecard."
        if len(self._state.questions) != self.question_count:
            return "The interview questions have not been generated yet."
        if not self._state.responses:
            return "No candidate responses have been recorded yet."
        return None

    def generate_scorecard(self, report: str) -> TransitionResult:
        """
        Store the scorecard for the recorded interview.

        On missing prerequisites the state is left untouched and the result
        carries an explanatory message instead.
        """
        problem = self.scorecard_prerequisite_error()
        if problem:
            logger.info(f"{ErrorKind.MISSING_PREREQUISITE.value} for session {self.session_id}: {problem}")
            return TransitionResult(
                ok=False,
                state=self.state,
                error=ErrorKind.MISSING_PREREQUISITE,
                message=problem,
            )

        new_state = self._state.model_copy(update={"scorecard": report})
        return TransitionResult(ok=True, state=self._commit(new_state))

    def reset(self) -> RecruiterState:
        """Clear everything and delete the persisted record."""
        self.store.delete(self.storage_key)
        self._state = RecruiterState()
        logger.info(f"Session {self.session_id} reset")
        self._notify()
        return self.state

    # ========================================
    # Status
    # ========================================

    def get_status(self) -> Dict[str, Any]:
        """Get current recruiter status."""
        info = RecruiterPhases.get_phase_info(self.phase)
        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "description": info.description,
            "next_step": info.next_step,
            "questions_total": len(self._state.questions),
            "responses_recorded": len(self._state.responses),
            "current_question_index": self._state.current_question_index,
            "has_scorecard": self._state.scorecard is not None,
        }
