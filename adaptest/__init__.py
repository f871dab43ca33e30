"""
adaptest - adaptive assessment orchestration.

Composes four pluggable algorithm families (selection, scheduling, reward,
knowledge tracing) into a single test-taking session:
- StrategyDispatcher: strategy lookup, input synthesis, output normalization
- TestGenerator: topic-balanced question selection and session policy
- TestSession: question-by-question state machine with algorithm feedback
- AttemptFinalizer: scoring and hand-off of the finished attempt
"""

from adaptest.dispatch import StrategyDispatcher
from adaptest.finalizer import AttemptFinalizer
from adaptest.generator import GeneratedTest, TestGenerator, TopicBucket
from adaptest.models import (
    AlgorithmConfig,
    AlgorithmExecutionResult,
    Attempt,
    NavigationPayload,
    Question,
    SessionPolicy,
)
from adaptest.session import SessionPhase, TestSession

__all__ = [
    "AlgorithmConfig",
    "AlgorithmExecutionResult",
    "Attempt",
    "AttemptFinalizer",
    "GeneratedTest",
    "NavigationPayload",
    "Question",
    "SessionPhase",
    "SessionPolicy",
    "StrategyDispatcher",
    "TestGenerator",
    "TestSession",
    "TopicBucket",
]
