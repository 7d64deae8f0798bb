import pytest

from chat.dispatcher import TurnDispatcher
from interview.agents import AgentController
from interview.state import InterviewStateMachine
from storage.state_store import InMemoryStateStore

from helpers import FakeLLM


@pytest.fixture
def store():
    return InMemoryStateStore()


@pytest.fixture
def machine(store):
    m = InterviewStateMachine("test-session", store)
    m.load()
    return m


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def dispatcher(fake_llm):
    return TurnDispatcher(agents=AgentController(llm=fake_llm), max_history_messages=10)
