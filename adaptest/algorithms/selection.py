"""
Question selection strategies.

QLearning picks an action from a state's Q-values with epsilon-greedy
exploration. Knapsack picks the subset of items with the highest total
value that fits a weight capacity.
"""

from __future__ import annotations

import random

from adaptest.algorithms import register
from adaptest.models import Family


@register(Family.SELECTION, "QLearning", time_complexity="O(A)", space_complexity="O(S*A)")
def q_learning(
    q_table: list[list[float]],
    state: int,
    epsilon: float,
    rng: random.Random | None = None,
) -> dict:
    """
    Choose an action for ``state`` using epsilon-greedy exploration.

    Args:
        q_table: States x actions value table (not modified)
        state: Row of the table to act from
        epsilon: Exploration probability (0.0 - 1.0)
        rng: Random source, module random if None

    Returns:
        Payload with the chosen action, the state's Q-values and whether
        the action was exploratory
    """
    rng = rng or random
    q_values = list(q_table[state]) if 0 <= state < len(q_table) else []
    if not q_values:
        return {"action": None, "qValues": [], "explored": False}

    explored = rng.random() < epsilon
    if explored:
        action = rng.randrange(len(q_values))
    else:
        action = max(range(len(q_values)), key=lambda i: q_values[i])

    return {"action": action, "qValues": q_values, "explored": explored}


@register(Family.SELECTION, "Knapsack", time_complexity="O(n*W)", space_complexity="O(n*W)")
def knapsack(weights: list[int], values: list[float], capacity: int) -> dict:
    """
    0/1 knapsack over integer weights.

    Returns:
        Payload with ``maxValue`` and the sorted ``selectedItems`` indices
    """
    n = min(len(weights), len(values))
    capacity = max(0, int(capacity))
    table = [[0.0] * (capacity + 1) for _ in range(n + 1)]

    for i in range(1, n + 1):
        weight, value = int(weights[i - 1]), values[i - 1]
        for w in range(capacity + 1):
            table[i][w] = table[i - 1][w]
            if weight <= w:
                table[i][w] = max(table[i][w], table[i - 1][w - weight] + value)

    # Walk back through the table to recover the chosen items
    selected = []
    w = capacity
    for i in range(n, 0, -1):
        if table[i][w] != table[i - 1][w]:
            selected.append(i - 1)
            w -= int(weights[i - 1])

    return {"maxValue": table[n][capacity], "selectedItems": sorted(selected)}
