# Interview module
from .phases import RecruiterPhases, PHASE_ORDER
from .state import InterviewStateMachine, TransitionResult
from .sessions import SessionManager
from .scoring import ScorecardBuilder
