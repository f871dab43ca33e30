"""
Base types for algorithm strategies.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from adaptest.models import AlgorithmExecutionResult, Family


@dataclass(frozen=True)
class Strategy:
    """A named algorithm within a family.

    Calling the strategy runs the wrapped computation and returns its payload
    as an AlgorithmExecutionResult with the elapsed time attached.
    """

    family: Family
    name: str
    func: Callable[..., dict[str, Any] | None]
    time_complexity: str = "O(1)"
    space_complexity: str = "O(1)"

    def __call__(self, *inputs: Any, **options: Any) -> AlgorithmExecutionResult:
        started = time.perf_counter()
        payload = self.func(*inputs, **options)
        elapsed_ms = (time.perf_counter() - started) * 1000
        return AlgorithmExecutionResult(
            family=self.family,
            algorithm_name=self.name,
            result=dict(payload or {}),
            execution_time=max(0.0, elapsed_ms),
            time_complexity=self.time_complexity,
            space_complexity=self.space_complexity,
        )
