"""
Test Session: question-by-question state machine.

Lifecycle:
    LOADING -> ACTIVE -> COMPLETED
                     \-> ABANDONED (navigated away, no attempt recorded)

While ACTIVE the learner selects one answer per question (the first
selection is final), gets correctness feedback plus reward and knowledge
messages derived from the session policy, then advances. Advancing past the
last question completes the session and hands it to the finalizer, once.

All timers (elapsed-time ticker, feedback expiry, delayed feedback) run on
the session's cooperative scheduler and are released when the session ends.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from loguru import logger

from config import Settings, get_settings
from adaptest.clock import CooperativeScheduler, TimerHandle
from adaptest.errors import ConfigurationAbsentError, EmptySessionError
from adaptest.feedback import FeedbackChannel, MessageKind
from adaptest.finalizer import AttemptFinalizer
from adaptest.generator import TestGenerator, buckets_from_settings
from adaptest.models import (
    AlgorithmConfig,
    AlgorithmExecutionResult,
    Attempt,
    DKTKnowledge,
    DPKnowledge,
    FeedbackTag,
    FenwickTreeReward,
    NavigationPayload,
    Question,
    SessionPolicy,
    SessionType,
    VariableRatioReward,
)

OVERCONFIDENCE_THRESHOLD = 0.7
UNDERCONFIDENCE_THRESHOLD = 0.3


class SessionPhase(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class TestSession:
    """
    One end-to-end test-taking interaction.

    Build it, call ``start()`` to generate questions, then drive it with
    ``select_answer()`` and ``advance()``. Illegal calls (answering twice,
    advancing without an answer, anything outside ACTIVE) are ignored and
    return False.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        student_id: str | None,
        payload: NavigationPayload,
        questions: Sequence[Question],
        generator: TestGenerator | None = None,
        finalizer: AttemptFinalizer | None = None,
        scheduler: CooperativeScheduler | None = None,
        settings: Settings | None = None,
    ):
        if not student_id:
            raise ConfigurationAbsentError("learner")
        if not payload.is_spaced_repetition and payload.algorithms is None:
            raise ConfigurationAbsentError("algorithm configuration")

        self.settings = settings or get_settings()
        self.student_id = student_id
        self.payload = payload
        self.pool = list(questions)
        self.generator = generator or TestGenerator(
            buckets=buckets_from_settings(self.settings),
            session_length=self.settings.session_length,
        )
        self.finalizer = finalizer or AttemptFinalizer()
        self.scheduler = scheduler or CooperativeScheduler()
        self.channel = FeedbackChannel(self.scheduler, dwell_seconds=self.settings.feedback_dwell_seconds)

        self.phase = SessionPhase.LOADING
        self.questions: tuple[Question, ...] = ()
        self.policy: SessionPolicy | None = None
        self.results: list[AlgorithmExecutionResult] = []

        # Per-question state
        self.current_index = 0
        self.answers: list[int] = []
        self.selected_answer: int | None = None
        self.feedback = FeedbackTag.NONE

        # Timing
        self.started_at = self.scheduler.now()
        self.elapsed_ms = 0
        self._ticker: TimerHandle | None = None

        self.attempt: Attempt | None = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def algorithms(self) -> AlgorithmConfig | None:
        return self.payload.algorithms

    @property
    def test_type(self) -> SessionType:
        if self.payload.is_spaced_repetition:
            return SessionType.SPACED_REPETITION
        return SessionType.NORMAL

    @property
    def current_question(self) -> Question | None:
        if self.phase != SessionPhase.ACTIVE:
            return None
        return self.questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_index == len(self.questions) - 1

    @property
    def is_active(self) -> bool:
        return self.phase == SessionPhase.ACTIVE

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """
        Generate the session and enter ACTIVE.

        Strategy exceptions propagate and leave the session in LOADING.
        """
        if self.phase != SessionPhase.LOADING:
            return

        if self.payload.is_spaced_repetition:
            generated = self.generator.generate_review(self.payload.review_questions)
        else:
            generated = self.generator.generate(self.pool, self.payload.algorithms)

        if not generated.questions:
            raise EmptySessionError("No questions available for this session")

        self.questions = tuple(generated.questions)
        self.policy = generated.policy
        self.results = list(generated.results)

        self.started_at = self.scheduler.now()
        self.elapsed_ms = 0
        self._ticker = self.scheduler.call_every(
            self.settings.tick_interval_seconds, self._tick, label="elapsed"
        )
        self.phase = SessionPhase.ACTIVE
        logger.info(
            f"Session started for {self.student_id}: {len(self.questions)} questions "
            f"({self.test_type.value})"
        )

    def abandon(self) -> None:
        """Leave the session without recording an attempt."""
        if self.phase in (SessionPhase.COMPLETED, SessionPhase.ABANDONED):
            return
        self.phase = SessionPhase.ABANDONED
        self._release_timers()
        logger.info(f"Session abandoned at question {self.current_index + 1}")

    # =========================================================================
    # Transitions
    # =========================================================================

    def select_answer(self, option_index: int) -> bool:
        """
        Record the learner's choice for the current question.

        Only the first selection per question counts. Applies the reward and
        knowledge policies and shows their messages; does not advance.
        """
        if self.phase != SessionPhase.ACTIVE or self.selected_answer is not None:
            logger.debug("select_answer ignored: question already answered or session inactive")
            return False

        question = self.questions[self.current_index]
        if not 0 <= option_index < len(question.options):
            logger.debug(f"select_answer ignored: option {option_index} out of range")
            return False

        self.selected_answer = option_index
        is_correct = question.is_correct(option_index)
        self.feedback = FeedbackTag.CORRECT if is_correct else FeedbackTag.INCORRECT

        if self.policy is not None:
            self._apply_reward_policy(is_correct)
            self._apply_knowledge_policy(is_correct)

        return True

    def advance(self) -> bool:
        """
        Commit the selected answer and move on.

        On the last question the session completes and is finalized.
        """
        if self.phase != SessionPhase.ACTIVE or self.selected_answer is None:
            logger.debug("advance ignored: no answer selected or session inactive")
            return False

        self.answers.append(self.selected_answer)
        self.selected_answer = None
        self.feedback = FeedbackTag.NONE

        if self.is_last_question:
            if self.policy is not None:
                self.channel.show(
                    MessageKind.SCHEDULING,
                    f"⏰ Next review scheduled in {self.policy.review_interval} days "
                    f"({self.policy.scheduling_strategy} algorithm)",
                )
            self._complete()
        else:
            self.current_index += 1

        return True

    # =========================================================================
    # Policies
    # =========================================================================

    def _apply_reward_policy(self, is_correct: bool) -> None:
        reward = self.policy.reward_policy

        if isinstance(reward, VariableRatioReward):
            if reward.should_reward and is_correct:
                self.channel.show(MessageKind.REWARD, "🎉 Variable Ratio Reward Applied!")
        elif isinstance(reward, FenwickTreeReward):
            # Session-wide total, not scaled by question position
            if is_correct:
                self.channel.show(
                    MessageKind.REWARD,
                    f"🏆 Fenwick Tree Reward: +{reward.total_reward:g} points",
                )

    def _apply_knowledge_policy(self, is_correct: bool) -> None:
        knowledge = self.policy.knowledge_state

        if isinstance(knowledge, DKTKnowledge):
            prediction = knowledge.prediction_at(self.current_index)
            self.channel.show(
                MessageKind.KNOWLEDGE,
                f"🧠 DKT Prediction: {prediction * 100:.1f}% chance of success",
            )

            delay = self.settings.knowledge_followup_delay_seconds
            if prediction > OVERCONFIDENCE_THRESHOLD and not is_correct:
                self.channel.show_later(
                    delay,
                    MessageKind.KNOWLEDGE,
                    "⚠️ DKT detected overconfidence - question was harder than predicted",
                )
            elif prediction < UNDERCONFIDENCE_THRESHOLD and is_correct:
                self.channel.show_later(
                    delay,
                    MessageKind.KNOWLEDGE,
                    "🎯 DKT detected underconfidence - question was easier than predicted",
                )
        elif isinstance(knowledge, DPKnowledge):
            # Fixed optimal-path value for the whole session
            self.channel.show(
                MessageKind.KNOWLEDGE,
                f"📊 DP Optimal Path Value: {knowledge.max_value:g}",
            )

    # =========================================================================
    # Internals
    # =========================================================================

    def _complete(self) -> None:
        # One-shot: phase leaves ACTIVE before finalizing so re-entry is a no-op
        self.phase = SessionPhase.COMPLETED
        self._tick()
        self._release_timers()
        self.attempt = self.finalizer.finalize(self)

    def _tick(self) -> None:
        self.elapsed_ms = max(self.elapsed_ms, round((self.scheduler.now() - self.started_at) * 1000))

    def _release_timers(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        self.channel.close()
