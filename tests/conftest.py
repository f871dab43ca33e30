"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings
from adaptest.algorithms import STRATEGIES, Strategy
from adaptest.clock import CooperativeScheduler, ManualClock
from adaptest.generator import GeneratedTest
from adaptest.models import (
    DKTKnowledge,
    Difficulty,
    Question,
    SessionPolicy,
    Topic,
    VariableRatioReward,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


def build_question(
    question_id: str,
    topic: Topic = Topic.ARRAYS,
    difficulty: Difficulty = Difficulty.EASY,
    correct: int = 0,
    options: tuple[str, ...] = ("A", "B", "C", "D"),
) -> Question:
    return Question(
        id=question_id,
        topic=topic,
        difficulty=difficulty,
        title=f"Question {question_id}",
        prompt=f"Prompt for {question_id}?",
        options=options,
        correct_answer=correct,
        explanation="Because.",
    )


class StubGenerator:
    """Generator that hands back a fixed session."""

    def __init__(self, questions, policy=None, results=None):
        self.generated = GeneratedTest(questions=list(questions), policy=policy, results=list(results or []))
        self.calls = 0

    def generate(self, questions, config):
        self.calls += 1
        return self.generated

    def generate_review(self, questions):
        self.calls += 1
        return GeneratedTest(questions=list(questions), policy=None, results=[])


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def make_question():
    """Factory for questions with sensible defaults."""
    return build_question


@pytest.fixture
def question_pool():
    """4 Arrays and 3 Linked Lists questions of mixed difficulty."""
    difficulties = [Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD]
    arrays = [
        build_question(f"arr-{i}", Topic.ARRAYS, difficulties[i % 3], correct=i % 4)
        for i in range(4)
    ]
    linked = [
        build_question(f"ll-{i}", Topic.LINKED_LISTS, difficulties[i % 3], correct=i % 4)
        for i in range(3)
    ]
    return arrays + linked


@pytest.fixture
def five_questions():
    """Five questions whose correct answers are 0, 1, 2, 3, 0."""
    return [build_question(f"q-{i}", correct=i % 4) for i in range(5)]


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def clock():
    return ManualClock(start=100.0)


@pytest.fixture
def scheduler(clock):
    return CooperativeScheduler(clock=clock)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def default_policy():
    return SessionPolicy(
        review_interval=1,
        scheduling_strategy="SM2",
        reward_policy=VariableRatioReward(should_reward=False),
        knowledge_state=DKTKnowledge(predictions=(0.5,)),
    )


@pytest.fixture
def strategies_with():
    """Copy of the strategy registry with one strategy replaced."""
    def _build(family, name, func):
        strategies = {f: dict(registered) for f, registered in STRATEGIES.items()}
        strategies[family][name] = Strategy(family=family, name=name, func=func)
        return strategies
    return _build


@pytest.fixture
def stub_generator():
    """The StubGenerator class, for sessions with a hand-built policy."""
    return StubGenerator
