"""
Reward strategies.
"""

from __future__ import annotations

import random

from adaptest.algorithms import register
from adaptest.models import Family


@register(Family.REWARD, "VariableRatio", time_complexity="O(n)", space_complexity="O(n)")
def variable_ratio(
    trials: int,
    ratios: list[int],
    rng: random.Random | None = None,
) -> dict:
    """
    Simulate a variable-ratio reinforcement schedule.

    After each reinforcement a new response requirement is drawn from
    ``ratios``. ``shouldReward`` reports whether the next response would
    meet the current requirement.
    """
    rng = rng or random
    if not ratios:
        return {"reinforcementHistory": [], "shouldReward": False, "totalReinforcements": 0}

    history: list[bool] = []
    required = rng.choice(ratios)
    since_last = 0

    for _ in range(max(0, trials)):
        since_last += 1
        if since_last >= required:
            history.append(True)
            since_last = 0
            required = rng.choice(ratios)
        else:
            history.append(False)

    return {
        "reinforcementHistory": history,
        "shouldReward": since_last + 1 >= required,
        "totalReinforcements": sum(history),
    }


class FenwickTree:
    """Binary indexed tree over a list of values (1-based internally)."""

    def __init__(self, values: list[float]):
        self.size = len(values)
        self.tree = [0.0] * (self.size + 1)
        for i, value in enumerate(values):
            self.add(i, value)

    def add(self, index: int, delta: float) -> None:
        i = index + 1
        while i <= self.size:
            self.tree[i] += delta
            i += i & -i

    def prefix_sum(self, index: int) -> float:
        """Sum of values[0..index] inclusive."""
        total = 0.0
        i = min(index, self.size - 1) + 1
        while i > 0:
            total += self.tree[i]
            i -= i & -i
        return total

    def range_sum(self, left: int, right: int) -> float:
        if right < left:
            return 0.0
        return self.prefix_sum(right) - (self.prefix_sum(left - 1) if left > 0 else 0.0)


@register(Family.REWARD, "FenwickTree", time_complexity="O(log n)", space_complexity="O(n)")
def fenwick_tree(values: list[float], left: int, right: int) -> dict:
    """Cumulative rewards: all prefix sums plus the total over [left, right]."""
    if not values:
        return {"prefixSums": [], "totalReward": 0}

    tree = FenwickTree(values)
    left = max(0, left)
    right = min(right, len(values) - 1)
    return {
        "prefixSums": [tree.prefix_sum(i) for i in range(len(values))],
        "totalReward": tree.range_sum(left, right),
    }
