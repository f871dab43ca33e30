"""
Review scheduling strategies.

SM-2 Grade Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall
"""

from __future__ import annotations

import heapq

from adaptest.algorithms import register
from adaptest.models import Family

MINIMUM_EASINESS = 1.3
FIRST_INTERVAL = 1  # Days for first review
SECOND_INTERVAL = 6  # Days for second review


@register(Family.SCHEDULING, "SM2", time_complexity="O(1)", space_complexity="O(1)")
def sm2(
    ease_factor: float,
    interval: int,
    repetitions: int,
    quality: int = 4,
) -> dict:
    """
    One SuperMemo 2 step.

    Args:
        ease_factor: Current easiness factor (2.5 default, min 1.3)
        interval: Current interval in days
        repetitions: Consecutive correct recalls so far
        quality: Grade for this review (0-5)

    Returns:
        Payload with ``newInterval``, ``easeFactor`` and ``repetitions``
    """
    # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    ef_delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
    new_ef = max(MINIMUM_EASINESS, ease_factor + ef_delta)

    if quality < 3:
        new_repetitions = 0
        new_interval = FIRST_INTERVAL
    else:
        new_repetitions = repetitions + 1
        if new_repetitions == 1:
            new_interval = FIRST_INTERVAL
        elif new_repetitions == 2:
            new_interval = SECOND_INTERVAL
        else:
            new_interval = round(interval * new_ef)

    return {
        "newInterval": new_interval,
        "easeFactor": round(new_ef, 4),
        "repetitions": new_repetitions,
    }


@register(Family.SCHEDULING, "MinHeap", time_complexity="O(n log n)", space_complexity="O(n)")
def min_heap(priorities: list[int]) -> dict:
    """Order review slots by priority, smallest first."""
    heap: list[int] = []
    for priority in priorities:
        heapq.heappush(heap, priority)

    order = [heapq.heappop(heap) for _ in range(len(heap))]
    return {"schedulingOrder": order}
