import asyncio

from interview.sessions import SessionManager
from models.schemas import RecruiterPhase
from storage.state_store import InMemoryStateStore

from helpers import QUESTIONS


def _manager():
    return SessionManager(store=InMemoryStateStore())


def test_get_reuses_machine_per_session():
    sessions = _manager()

    assert sessions.get("a") is sessions.get("a")
    assert sessions.get("a") is not sessions.get("b")
    assert sessions.active_sessions() == 2


def test_release_evicts_idle_session_and_keeps_record():
    sessions = _manager()
    sessions.get("a").setup_interview("JD", QUESTIONS)

    assert sessions.release("a")
    assert sessions.active_sessions() == 0

    reloaded = sessions.get("a")
    assert reloaded.phase == RecruiterPhase.QUESTIONS_READY
    assert reloaded.state.questions == QUESTIONS


def test_release_refused_while_subscribed():
    sessions = _manager()
    unsubscribe = sessions.get("a").subscribe(lambda state: None)

    assert not sessions.release("a")
    assert sessions.active_sessions() == 1

    unsubscribe()
    assert sessions.release("a")


def test_release_refused_during_turn():
    sessions = _manager()

    async def run():
        async with sessions.turn("a") as machine:
            machine.setup_interview("JD", QUESTIONS)
            held = sessions.release("a")
        return held, sessions.release("a")

    during, after = asyncio.run(run())

    assert during is False
    assert after is True
    assert sessions.active_sessions() == 0


def test_turns_on_one_session_are_serialized():
    sessions = _manager()
    order = []

    async def turn(name):
        async with sessions.turn("a"):
            order.append(f"{name}-start")
            await asyncio.sleep(0.01)
            order.append(f"{name}-end")

    async def run():
        await asyncio.gather(turn("first"), turn("second"))

    asyncio.run(run())

    assert order == ["first-start", "first-end", "second-start", "second-end"]
