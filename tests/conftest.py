"""Pytest configuration and shared fixtures."""

import pytest
import tempfile
import shutil
from pathlib import Path

from prompt_lab.models import User
from prompt_lab.providers.base import AIProvider, AIResponse, EvaluationResult, ProviderError
from prompt_lab.storage import MemoryStore
from prompt_lab.workspace import Workspace


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1) -> None:
        self.now += ms


class FakeTimer:
    """perf_counter stand-in returning scripted readings (seconds)."""

    def __init__(self, *readings: float):
        self.readings = list(readings)

    def __call__(self) -> float:
        return self.readings.pop(0) if len(self.readings) > 1 else self.readings[0]


class StubProvider(AIProvider):
    """Provider returning fixed results and recording calls."""

    def __init__(self, evaluation=None, enhanced=None, plan=None, fun="Be a pirate.", fail=False):
        super().__init__()
        self.evaluation = evaluation or EvaluationResult(score=7, feedback="ok", tokens=50)
        self.enhanced = enhanced or AIResponse(text="Enhanced!", tokens=120)
        self.plan = plan or AIResponse(text="# Plan", tokens=2500)
        self.fun = fun
        self.fail = fail
        self.calls = []

    async def evaluate(self, content):
        self.calls.append(("evaluate", content))
        if self.fail:
            raise ProviderError("boom")
        return self.evaluation

    async def enhance(self, content):
        self.calls.append(("enhance", content))
        if self.fail:
            raise ProviderError("boom")
        return self.enhanced

    async def code_plan(self, idea):
        self.calls.append(("code_plan", idea))
        if self.fail:
            raise ProviderError("boom")
        return self.plan

    async def fun_prompt(self):
        self.calls.append(("fun_prompt", None))
        return self.fun

    @property
    def provider_name(self):
        return "Stub"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def empty_store():
    """Store whose namespaces exist but hold nothing (no seeding)."""
    return MemoryStore({"prompts": [], "categories": []})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def user():
    return User(id="u1", name="Ada", email="ada@example.com")


@pytest.fixture
def workspace(store, stub_provider, clock, user):
    """Workspace opened on the seeded store."""
    ws = Workspace(store, stub_provider, clock=clock, timer=FakeTimer(1.0, 1.25))
    ws.open(user)
    return ws
