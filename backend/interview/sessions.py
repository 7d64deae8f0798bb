"""
Session registry: one state machine and one turn lock per session id.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from interview.state import InterviewStateMachine
from storage.state_store import StateStore, create_state_store

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Hands out the state machine for a session.

    Turns for the same session are serialized through ``turn(session_id)``,
    so the state machine only ever has one writer. Machines are a cache over
    the store: an idle one can be released at any time and is reloaded on
    the next request.
    """

    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or create_state_store()
        self._machines: Dict[str, InterviewStateMachine] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._active_turns: Dict[str, int] = {}

    def get(self, session_id: str) -> InterviewStateMachine:
        machine = self._machines.get(session_id)
        if machine is None:
            machine = InterviewStateMachine(session_id, self.store)
            machine.load()
            self._machines[session_id] = machine
            logger.info(f"Session {session_id} opened")
        return machine

    def lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    @asynccontextmanager
    async def turn(self, session_id: str) -> AsyncIterator[InterviewStateMachine]:
        """Hold the session lock and yield its machine."""
        self._active_turns[session_id] = self._active_turns.get(session_id, 0) + 1
        try:
            async with self.lock(session_id):
                yield self.get(session_id)
        finally:
            self._active_turns[session_id] -= 1
            if not self._active_turns[session_id]:
                del self._active_turns[session_id]

    def release(self, session_id: str) -> bool:
        """
        Drop the cached machine and lock of an idle session.

        A session is busy while a turn holds or waits for its lock, or while
        anything is subscribed to its state. The persisted record stays.

        Returns:
            True if the session was released
        """
        machine = self._machines.get(session_id)
        if self._active_turns.get(session_id):
            return False
        if machine is not None and machine.has_subscribers:
            return False
        self._machines.pop(session_id, None)
        self._locks.pop(session_id, None)
        if machine is not None:
            logger.info(f"Session {session_id} released")
        return True

    def active_sessions(self) -> int:
        return len(self._machines)
