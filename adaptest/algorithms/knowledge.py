"""
Knowledge tracing strategies.

DKT runs a single-unit recurrent pass over interaction inputs and emits a
success probability per step. DP finds the highest-value monotone path
through a grid of skill values.
"""

from __future__ import annotations

import math

from adaptest.algorithms import register
from adaptest.models import Family

RECURRENT_WEIGHT = 0.5


def _sigmoid(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-x))


@register(Family.KNOWLEDGE_TRACING, "DKT", time_complexity="O(n)", space_complexity="O(n)")
def dkt(inputs: list[float], weights: list[float]) -> dict:
    """
    Forward pass of a toy deep knowledge tracing model.

    h_t = tanh(w_t * x_t + 0.5 * h_{t-1}), p_t = sigmoid(h_t)
    """
    hidden = 0.0
    hidden_states = []
    predictions = []
    for x, w in zip(inputs, weights):
        hidden = math.tanh(w * x + RECURRENT_WEIGHT * hidden)
        hidden_states.append(round(hidden, 4))
        predictions.append(round(_sigmoid(hidden), 4))

    return {"predictions": predictions, "hiddenStates": hidden_states}


@register(Family.KNOWLEDGE_TRACING, "DP", time_complexity="O(m*n)", space_complexity="O(m*n)")
def dp(grid: list[list[float]]) -> dict:
    """Maximum-sum path from top-left to bottom-right moving right or down."""
    if not grid or not grid[0]:
        return {"maxValue": 0, "path": []}

    rows, cols = len(grid), len(grid[0])
    best = [[0.0] * cols for _ in range(rows)]
    for r in range(rows):
        for c in range(cols):
            if r == 0 and c == 0:
                prior = 0.0
            elif r == 0:
                prior = best[r][c - 1]
            elif c == 0:
                prior = best[r - 1][c]
            else:
                prior = max(best[r - 1][c], best[r][c - 1])
            best[r][c] = prior + grid[r][c]

    path = [(rows - 1, cols - 1)]
    r, c = rows - 1, cols - 1
    while (r, c) != (0, 0):
        if r == 0:
            c -= 1
        elif c == 0:
            r -= 1
        elif best[r - 1][c] >= best[r][c - 1]:
            r -= 1
        else:
            c -= 1
        path.append((r, c))
    path.reverse()

    return {"maxValue": best[rows - 1][cols - 1], "path": path}
