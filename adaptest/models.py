"""
Domain models for adaptive test sessions.

Questions, algorithm configuration, execution results, the per-session
policy derived from algorithm output, and the attempt record produced when
a session completes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from adaptest.errors import QuestionFormatError


class Topic(str, Enum):
    """Question topics available in the bank."""

    ARRAYS = "arrays"
    LINKED_LISTS = "linkedlists"


class Difficulty(str, Enum):
    """Question difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Family(str, Enum):
    """Algorithm families a session composes."""

    SELECTION = "selection"
    SCHEDULING = "scheduling"
    REWARD = "reward"
    KNOWLEDGE_TRACING = "knowledge_tracing"


class SessionType(str, Enum):
    NORMAL = "normal"
    SPACED_REPETITION = "spaced_repetition"


class FeedbackTag(str, Enum):
    """Correctness feedback for the active question."""

    NONE = "none"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class Question:
    """A multiple choice question from the bank."""

    id: str
    topic: Topic
    difficulty: Difficulty
    title: str
    prompt: str
    options: tuple[str, ...]
    correct_answer: int
    explanation: str = ""

    def __post_init__(self):
        if not self.options:
            raise QuestionFormatError("question has no options", self.id)
        if not 0 <= self.correct_answer < len(self.options):
            raise QuestionFormatError(
                f"correct answer index {self.correct_answer} out of range "
                f"for {len(self.options)} options",
                self.id,
            )

    def is_correct(self, option_index: int) -> bool:
        return option_index == self.correct_answer

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "topic": self.topic.value,
            "difficulty": self.difficulty.value,
            "title": self.title,
            "question": self.prompt,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        """
        Build a question from the bank's JSON shape.

        Accepts both snake_case and the camelCase keys used by exported banks
        (``question`` for the prompt, ``correctAnswer`` for the answer index).
        """
        question_id = str(data.get("id", ""))
        try:
            return cls(
                id=question_id,
                topic=Topic(str(data["topic"]).lower()),
                difficulty=Difficulty(str(data["difficulty"]).lower()),
                title=data.get("title", ""),
                prompt=data.get("prompt", data.get("question", "")),
                options=tuple(data.get("options") or ()),
                correct_answer=int(data.get("correct_answer", data.get("correctAnswer", -1))),
                explanation=data.get("explanation", ""),
            )
        except KeyError as e:
            raise QuestionFormatError(f"missing field {e.args[0]!r}", question_id) from e
        except (TypeError, ValueError) as e:
            raise QuestionFormatError(str(e), question_id) from e


class AlgorithmConfig(BaseModel):
    """One strategy name per algorithm family, fixed for a session."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question_selection: str = Field(default="QLearning", alias="questionSelection")
    review_scheduling: str = Field(default="SM2", alias="reviewScheduling")
    reward_system: str = Field(default="VariableRatio", alias="rewardSystem")
    knowledge_tracing: str = Field(default="DKT", alias="knowledgeTracing")

    def strategy_for(self, family: Family) -> str:
        return {
            Family.SELECTION: self.question_selection,
            Family.SCHEDULING: self.review_scheduling,
            Family.REWARD: self.reward_system,
            Family.KNOWLEDGE_TRACING: self.knowledge_tracing,
        }[family]


class NavigationPayload(BaseModel):
    """What the caller hands over when a test session is opened."""

    model_config = ConfigDict(populate_by_name=True)

    algorithms: AlgorithmConfig | None = None
    review_mode: bool = Field(default=False, alias="reviewMode")
    review_questions: list[Question] = Field(default_factory=list, alias="reviewQuestions")

    @property
    def is_spaced_repetition(self) -> bool:
        return self.review_mode and len(self.review_questions) > 0


@dataclass
class AlgorithmExecutionResult:
    """Output of a single algorithm invocation."""

    family: Family
    algorithm_name: str
    result: dict[str, Any]
    execution_time: float  # milliseconds
    time_complexity: str
    space_complexity: str
    topic: str | None = None

    def with_topic(self, topic: str) -> "AlgorithmExecutionResult":
        return replace(self, topic=topic)

    def to_dict(self) -> dict:
        return {
            "family": self.family.value,
            "algorithm_name": self.algorithm_name,
            "result": self.result,
            "execution_time": self.execution_time,
            "time_complexity": self.time_complexity,
            "space_complexity": self.space_complexity,
            "topic": self.topic,
        }


# =============================================================================
# Session policy variants
# =============================================================================


@dataclass(frozen=True)
class VariableRatioReward:
    schedule: tuple[bool, ...] = ()
    should_reward: bool = False
    kind: Literal["variable_ratio"] = "variable_ratio"


@dataclass(frozen=True)
class FenwickTreeReward:
    total_reward: float = 0
    prefix_sums: tuple[float, ...] = ()
    kind: Literal["fenwick_tree"] = "fenwick_tree"


@dataclass(frozen=True)
class DKTKnowledge:
    predictions: tuple[float, ...] = ()
    hidden_states: tuple[float, ...] = ()
    kind: Literal["dkt"] = "dkt"

    def prediction_at(self, index: int, default: float = 0.5) -> float:
        """Prediction for a question position, or ``default`` when absent."""
        if 0 <= index < len(self.predictions) and self.predictions[index]:
            return self.predictions[index]
        return default


@dataclass(frozen=True)
class DPKnowledge:
    max_value: float = 0
    path: tuple[tuple[int, int], ...] = ()
    kind: Literal["dp"] = "dp"


RewardPolicy = Union[VariableRatioReward, FenwickTreeReward]
KnowledgeState = Union[DKTKnowledge, DPKnowledge]


@dataclass(frozen=True)
class SessionPolicy:
    """Actionable policy derived from the scheduling, reward and knowledge results."""

    review_interval: int
    scheduling_strategy: str
    reward_policy: RewardPolicy
    knowledge_state: KnowledgeState

    def __post_init__(self):
        if self.review_interval < 1:
            raise ValueError(f"review_interval must be >= 1, got {self.review_interval}")


# =============================================================================
# Attempt records
# =============================================================================


@dataclass(frozen=True)
class Attempt:
    """Immutable record of a completed session."""

    student_id: str
    questions: tuple[Question, ...]
    answers: tuple[int, ...]
    score: int
    time_spent_ms: int
    algorithms_used: AlgorithmConfig | None
    execution_times: dict[str, float]
    completed_at: datetime
    test_type: SessionType = SessionType.NORMAL
    attempt_id: str = ""

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    def missed_questions(self) -> list[Question]:
        """Questions answered incorrectly, in presentation order."""
        return [
            q for q, answer in zip(self.questions, self.answers)
            if not q.is_correct(answer)
        ]

    def to_dict(self) -> dict:
        return {
            "attempt_id": self.attempt_id,
            "student_id": self.student_id,
            "questions": [q.to_dict() for q in self.questions],
            "answers": list(self.answers),
            "score": self.score,
            "time_spent_ms": self.time_spent_ms,
            "algorithms_used": (
                self.algorithms_used.model_dump(by_alias=True)
                if self.algorithms_used else None
            ),
            "execution_times": dict(self.execution_times),
            "completed_at": self.completed_at.isoformat(),
            "test_type": self.test_type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Attempt":
        algorithms = data.get("algorithms_used")
        return cls(
            attempt_id=data.get("attempt_id", ""),
            student_id=data["student_id"],
            questions=tuple(Question.from_dict(q) for q in data["questions"]),
            answers=tuple(data["answers"]),
            score=data["score"],
            time_spent_ms=data["time_spent_ms"],
            algorithms_used=AlgorithmConfig.model_validate(algorithms) if algorithms else None,
            execution_times=dict(data.get("execution_times", {})),
            completed_at=datetime.fromisoformat(data["completed_at"]),
            test_type=SessionType(data.get("test_type", SessionType.NORMAL.value)),
        )


@dataclass
class ResultsPayload:
    """Everything the results screen needs after a session completes."""

    questions: list[Question]
    answers: list[int]
    correct_answers: int
    time_spent_ms: int
    algorithms: AlgorithmConfig | None
    execution_results: list[AlgorithmExecutionResult] = field(default_factory=list)
    test_type: SessionType = SessionType.NORMAL

    @property
    def percentage(self) -> float:
        if not self.questions:
            return 0.0
        return round(self.correct_answers / len(self.questions) * 100, 1)
