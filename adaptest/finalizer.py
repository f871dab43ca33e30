"""
Attempt Finalizer: turns a completed session into an Attempt.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from loguru import logger

from adaptest.models import AlgorithmExecutionResult, Attempt, Question, ResultsPayload
from adaptest.store import AttemptStore, InMemoryAttemptStore

if TYPE_CHECKING:
    from adaptest.session import TestSession


def count_correct(questions: Sequence[Question], answers: Sequence[int]) -> int:
    """Number of positions where the answer is the question's correct option."""
    return sum(1 for q, answer in zip(questions, answers) if q.is_correct(answer))


def execution_times(results: Iterable[AlgorithmExecutionResult]) -> dict[str, float]:
    """Fold a result log into {algorithm name: execution time}. Last entry wins."""
    times: dict[str, float] = {}
    for result in results:
        times[result.algorithm_name] = result.execution_time
    return times


class AttemptFinalizer:
    """
    Scores a session, hands the Attempt to the store and the results
    payload to the presentation callback.

    The session guarantees this runs once per completed session.
    """

    def __init__(
        self,
        store: AttemptStore | None = None,
        on_results: Callable[[ResultsPayload], None] | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.store = store if store is not None else InMemoryAttemptStore()
        self.on_results = on_results
        self.now = now

    def finalize(self, session: "TestSession") -> Attempt:
        questions = list(session.questions)
        answers = list(session.answers)
        score = count_correct(questions, answers)
        time_spent_ms = max(0, round((session.scheduler.now() - session.started_at) * 1000))

        attempt = Attempt(
            attempt_id=str(uuid.uuid4())[:8],
            student_id=session.student_id,
            questions=tuple(questions),
            answers=tuple(answers),
            score=score,
            time_spent_ms=time_spent_ms,
            algorithms_used=session.algorithms,
            execution_times=execution_times(session.results),
            completed_at=self.now(),
            test_type=session.test_type,
        )

        # Fire-and-forget: the store's return value is not consulted
        self.store.add_test_attempt(attempt)
        logger.info(
            f"Attempt {attempt.attempt_id} for {attempt.student_id}: "
            f"{score}/{len(questions)} in {time_spent_ms / 1000:.1f}s ({attempt.test_type.value})"
        )

        if self.on_results is not None:
            self.on_results(
                ResultsPayload(
                    questions=questions,
                    answers=answers,
                    correct_answers=score,
                    time_spent_ms=time_spent_ms,
                    algorithms=session.algorithms,
                    execution_results=list(session.results),
                    test_type=session.test_type,
                )
            )

        return attempt
