"""
Test Generator: picks a session's questions and computes its policy.

Questions are chosen per topic bucket (Arrays x3, Linked Lists x2 by
default) with the configured selection strategy. When a strategy returns
fewer usable indices than the bucket quota, the shortfall is filled with a
shuffle of the rest of the bucket's pool.

The scheduling, reward and knowledge-tracing strategies then run once each
to produce the SessionPolicy. Every strategy invocation is logged as an
AlgorithmExecutionResult, in invocation order.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Sequence

from loguru import logger

from adaptest.bank import QuestionBank
from adaptest.dispatch import StrategyDispatcher
from adaptest.models import (
    AlgorithmConfig,
    AlgorithmExecutionResult,
    Question,
    SessionPolicy,
    Topic,
)

SCHEDULING_LABEL = "Review Scheduling"
REWARD_LABEL = "Reward System"
KNOWLEDGE_LABEL = "Knowledge Tracing"


@dataclass(frozen=True)
class TopicBucket:
    """A topic slice of the pool and how many questions to take from it."""

    topic: Topic
    quota: int
    label: str


DEFAULT_BUCKETS = (
    TopicBucket(Topic.ARRAYS, 3, "Arrays"),
    TopicBucket(Topic.LINKED_LISTS, 2, "Linked Lists"),
)
DEFAULT_SESSION_LENGTH = 5


def buckets_from_settings(settings) -> tuple[TopicBucket, ...]:
    """Default buckets with quotas taken from Settings."""
    return (
        TopicBucket(Topic.ARRAYS, settings.arrays_quota, "Arrays"),
        TopicBucket(Topic.LINKED_LISTS, settings.linked_lists_quota, "Linked Lists"),
    )


@dataclass
class GeneratedTest:
    """Questions, policy and algorithm log for one session."""

    questions: list[Question]
    policy: SessionPolicy | None
    results: list[AlgorithmExecutionResult] = field(default_factory=list)


class TestGenerator:
    """
    Builds a session from the question pool and an AlgorithmConfig.

    Strategy exceptions are not caught: a session that cannot be generated
    should fail visibly.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        dispatcher: StrategyDispatcher | None = None,
        buckets: Sequence[TopicBucket] = DEFAULT_BUCKETS,
        session_length: int = DEFAULT_SESSION_LENGTH,
        rng: random.Random | None = None,
    ):
        self.rng = rng or random.Random()
        self.dispatcher = dispatcher or StrategyDispatcher(rng=self.rng)
        self.buckets = tuple(buckets)
        self.session_length = session_length

    def generate(self, questions: Sequence[Question], config: AlgorithmConfig) -> GeneratedTest:
        bank = questions if isinstance(questions, QuestionBank) else QuestionBank(questions)
        results: list[AlgorithmExecutionResult] = []
        selected: list[Question] = []

        for bucket in self.buckets:
            pool = bank.by_topic(bucket.topic)
            picked, result = self.select_for_bucket(pool, bucket, config.question_selection)
            results.append(result)
            selected.extend(picked)

        if len(selected) < self.session_length:
            logger.warning(
                f"Generated {len(selected)} questions, short of session length {self.session_length}"
            )
        selected = selected[: self.session_length]

        review_interval, scheduling_result = self.dispatcher.schedule(config.review_scheduling)
        results.append(scheduling_result.with_topic(SCHEDULING_LABEL))

        reward_policy, reward_result = self.dispatcher.reward(config.reward_system)
        results.append(reward_result.with_topic(REWARD_LABEL))

        knowledge_state, knowledge_result = self.dispatcher.knowledge(config.knowledge_tracing)
        results.append(knowledge_result.with_topic(KNOWLEDGE_LABEL))

        policy = SessionPolicy(
            review_interval=review_interval,
            scheduling_strategy=config.review_scheduling,
            reward_policy=reward_policy,
            knowledge_state=knowledge_state,
        )
        logger.info(
            f"Generated session: {len(selected)} questions, review in {review_interval} days, "
            f"reward={reward_policy.kind}, knowledge={knowledge_state.kind}"
        )
        return GeneratedTest(questions=selected, policy=policy, results=results)

    def generate_review(self, questions: Sequence[Question]) -> GeneratedTest:
        """Spaced repetition: replay the given questions without running any strategy."""
        logger.info(f"Spaced repetition session with {len(questions)} questions")
        return GeneratedTest(questions=list(questions), policy=None, results=[])

    def select_for_bucket(
        self,
        pool: list[Question],
        bucket: TopicBucket,
        strategy_name: str,
    ) -> tuple[list[Question], AlgorithmExecutionResult]:
        """
        Select ``bucket.quota`` questions from ``pool``.

        Indices outside the pool and repeats are dropped. Any shortfall is
        filled from the unselected remainder in shuffled order until the
        quota is met or the pool runs out.
        """
        outcome = self.dispatcher.select(strategy_name, pool, bucket.quota)

        chosen: list[int] = []
        for index in outcome.indices:
            if isinstance(index, int) and 0 <= index < len(pool) and index not in chosen:
                chosen.append(index)
        chosen = chosen[: bucket.quota]

        if len(chosen) < bucket.quota:
            remaining = [i for i in range(len(pool)) if i not in chosen]
            self.rng.shuffle(remaining)
            fill = remaining[: bucket.quota - len(chosen)]
            if fill:
                logger.debug(
                    f"{bucket.label}: strategy chose {len(chosen)}/{bucket.quota}, "
                    f"filled {len(fill)} at random"
                )
            chosen.extend(fill)

        return [pool[i] for i in chosen], outcome.result.with_topic(bucket.label)
