"""
Recruiter phase definitions and transition rules.

The phase is never stored. Server and client both derive it from the shape
of RecruiterState, which keeps the two views from drifting apart.
"""
from dataclasses import dataclass
from typing import Dict, List, Any

from models.schemas import RecruiterPhase, RecruiterState


@dataclass
class PhaseInfo:
    """Information about a single recruiter phase."""
    phase: RecruiterPhase
    description: str
    next_step: str

    def get_config(self) -> Dict[str, Any]:
        return {"description": self.description, "next_step": self.next_step}


PHASE_ORDER = RecruiterPhase.get_order()


class RecruiterPhases:
    """
    Derives phases from state and validates transitions between them.
    """

    PHASES: Dict[RecruiterPhase, PhaseInfo] = {
        RecruiterPhase.EMPTY: PhaseInfo(
            phase=RecruiterPhase.EMPTY,
            description="Waiting for a job description",
            next_step="Paste a job description to generate questions",
        ),
        RecruiterPhase.QUESTIONS_READY: PhaseInfo(
            phase=RecruiterPhase.QUESTIONS_READY,
            description="Interview questions generated",
            next_step="Start the interview",
        ),
        RecruiterPhase.INTERVIEW_IN_PROGRESS: PhaseInfo(
            phase=RecruiterPhase.INTERVIEW_IN_PROGRESS,
            description="Candidate answers being recorded",
            next_step="Submit the results to generate a scorecard",
        ),
        RecruiterPhase.SCORECARD_READY: PhaseInfo(
            phase=RecruiterPhase.SCORECARD_READY,
            description="Scorecard available",
            next_step="Reset to start a new session",
        ),
    }

    # Reset is allowed from every phase and is not listed here
    TRANSITIONS: Dict[RecruiterPhase, List[RecruiterPhase]] = {
        RecruiterPhase.EMPTY: [RecruiterPhase.QUESTIONS_READY],
        RecruiterPhase.QUESTIONS_READY: [
            RecruiterPhase.QUESTIONS_READY,
            RecruiterPhase.INTERVIEW_IN_PROGRESS,
            RecruiterPhase.SCORECARD_READY,
        ],
        RecruiterPhase.INTERVIEW_IN_PROGRESS: [
            RecruiterPhase.QUESTIONS_READY,
            RecruiterPhase.INTERVIEW_IN_PROGRESS,
            RecruiterPhase.SCORECARD_READY,
        ],
        RecruiterPhase.SCORECARD_READY: [
            RecruiterPhase.QUESTIONS_READY,
            RecruiterPhase.SCORECARD_READY,
        ],
    }

    @classmethod
    def derive(cls, state: RecruiterState) -> RecruiterPhase:
        """Map a state snapshot to its phase."""
        if not state.questions:
            return RecruiterPhase.EMPTY
        if state.scorecard is not None:
            return RecruiterPhase.SCORECARD_READY
        if state.responses:
            return RecruiterPhase.INTERVIEW_IN_PROGRESS
        return RecruiterPhase.QUESTIONS_READY

    @classmethod
    def can_transition(cls, current: RecruiterPhase, target: RecruiterPhase) -> bool:
        if target == RecruiterPhase.EMPTY:
            return True
        return target in cls.TRANSITIONS.get(current, [])

    @classmethod
    def check_invariants(cls, state: RecruiterState, question_count: int) -> List[str]:
        """Return a description of every shape invariant the state violates."""
        problems = []
        if state.questions and len(state.questions) != question_count:
            problems.append(f"expected 0 or {question_count} questions, got {len(state.questions)}")
        if state.scorecard is not None and len(state.questions) != question_count:
            problems.append("scorecard set without a full question set")
        if state.current_question_index >= 0 and not state.questions:
            problems.append("question index set without questions")
        if not state.questions and state.current_question_index != -1:
            problems.append("empty state must have question index -1")
        return problems

    @classmethod
    def get_phase_info(cls, phase: RecruiterPhase) -> PhaseInfo:
        return cls.PHASES[phase]

    @classmethod
    def get_all_phases_info(cls) -> List[Dict[str, Any]]:
        return [{"phase": phase.value, **cls.PHASES[phase].get_config()} for phase in PHASE_ORDER]
