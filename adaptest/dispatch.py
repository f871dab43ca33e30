"""
Strategy Dispatcher: from configured strategy names to session policy.

Maps the strategy named for each algorithm family to a registered
strategy, synthesizes that strategy's inputs from the question pool, and
normalizes its output into the shapes the session works with:

- selection -> ranked list of pool indices
- scheduling -> review interval in days (always >= 1)
- reward -> VariableRatioReward | FenwickTreeReward
- knowledge_tracing -> DKTKnowledge | DPKnowledge

Unknown strategy names fall back to the family default and never abort a
session. Exceptions raised by a strategy are not caught here.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from loguru import logger

from adaptest.algorithms import DEFAULT_STRATEGIES, STRATEGIES, Strategy, get_strategy
from adaptest.models import (
    AlgorithmExecutionResult,
    Difficulty,
    DKTKnowledge,
    DPKnowledge,
    Family,
    FenwickTreeReward,
    KnowledgeState,
    Question,
    RewardPolicy,
    VariableRatioReward,
)

# Selection inputs derived from difficulty
DIFFICULTY_WEIGHTS = {Difficulty.EASY: 1, Difficulty.MEDIUM: 2, Difficulty.HARD: 3}
DIFFICULTY_BASE_VALUES = {Difficulty.EASY: 5, Difficulty.MEDIUM: 8, Difficulty.HARD: 12}
KNAPSACK_CAPACITY = 8
Q_TABLE_STATES = 3
Q_LEARNING_EPSILON = 0.2

# Fixed inputs for the once-per-session strategies
SM2_INPUTS = (2.5, 1, 0)
MIN_HEAP_PRIORITIES = [3, 1, 6, 5, 2, 4]
VARIABLE_RATIO_INPUTS = (10, [2, 3, 4, 5])
FENWICK_INPUTS = ([5, 3, 7, 2, 6], 2, 4)
DKT_INPUTS = ([0.7, 0.5, 0.9], [0.8, 0.6, 0.7])
DP_GRID = [
    [1, 2, 3],
    [4, 5, 6],
    [7, 8, 9],
]


@dataclass
class SelectionOutcome:
    """Pool indices chosen by a selection strategy, best first."""

    indices: list[int]
    result: AlgorithmExecutionResult


def coerce_interval(value: Any) -> int:
    """Turn whatever a scheduler returned into a whole number of days >= 1."""
    if isinstance(value, bool) or value is None:
        return 1
    try:
        days = int(value)
    except (TypeError, ValueError):
        return 1
    return max(1, days)


class StrategyDispatcher:
    """
    Dispatches algorithm families through a closed lookup table.

    Each family has a table of strategy name -> handler. The handler builds
    the strategy's inputs, runs it, and normalizes the output. A name missing
    from the table resolves to the family default.
    """

    def __init__(
        self,
        strategies: dict[Family, dict[str, Strategy]] | None = None,
        rng: random.Random | None = None,
    ):
        self.strategies = strategies if strategies is not None else STRATEGIES
        self.rng = rng or random.Random()

        self._selection: dict[str, Callable[[list[Question], int], SelectionOutcome]] = {
            "QLearning": self._select_q_learning,
            "Knapsack": self._select_knapsack,
        }
        self._scheduling: dict[str, Callable[[], tuple[int, AlgorithmExecutionResult]]] = {
            "SM2": self._schedule_sm2,
            "MinHeap": self._schedule_min_heap,
        }
        self._reward: dict[str, Callable[[], tuple[RewardPolicy, AlgorithmExecutionResult]]] = {
            "VariableRatio": self._reward_variable_ratio,
            "FenwickTree": self._reward_fenwick_tree,
        }
        self._knowledge: dict[str, Callable[[], tuple[KnowledgeState, AlgorithmExecutionResult]]] = {
            "DKT": self._knowledge_dkt,
            "DP": self._knowledge_dp,
        }

    # =========================================================================
    # Generic dispatch
    # =========================================================================

    def resolve(self, family: Family, name: str | None) -> str:
        """Effective strategy name for ``name``, falling back to the default."""
        if get_strategy(family, name, self.strategies) is not None:
            return name

        default = DEFAULT_STRATEGIES[family]
        logger.warning(
            f"Unknown {family.value} strategy {name!r}, falling back to {default}"
        )
        return default

    def dispatch(self, family: Family, strategy_name: str | None, *inputs: Any, **options: Any) -> AlgorithmExecutionResult:
        """
        Run a strategy by name.

        Inputs are passed through untouched; they must suit the resolved
        strategy, so callers that may hit the fallback should ``resolve()``
        first and build inputs for the resolved name.
        """
        name = self.resolve(family, strategy_name)
        strategy = get_strategy(family, name, self.strategies)
        result = strategy(*inputs, **options)
        logger.debug(
            f"{family.value}/{name} ran in {result.execution_time:.3f}ms "
            f"({result.time_complexity} time, {result.space_complexity} space)"
        )
        return result

    # =========================================================================
    # Family operations
    # =========================================================================

    def select(self, strategy_name: str | None, pool: Sequence[Question], count: int) -> SelectionOutcome:
        """Rank pool indices with the selection strategy. May return fewer than ``count``."""
        name = self.resolve(Family.SELECTION, strategy_name)
        handler = self._selection.get(name, self._selection[DEFAULT_STRATEGIES[Family.SELECTION]])
        return handler(list(pool), count)

    def schedule(self, strategy_name: str | None) -> tuple[int, AlgorithmExecutionResult]:
        name = self.resolve(Family.SCHEDULING, strategy_name)
        handler = self._scheduling.get(name, self._scheduling[DEFAULT_STRATEGIES[Family.SCHEDULING]])
        return handler()

    def reward(self, strategy_name: str | None) -> tuple[RewardPolicy, AlgorithmExecutionResult]:
        name = self.resolve(Family.REWARD, strategy_name)
        handler = self._reward.get(name, self._reward[DEFAULT_STRATEGIES[Family.REWARD]])
        return handler()

    def knowledge(self, strategy_name: str | None) -> tuple[KnowledgeState, AlgorithmExecutionResult]:
        name = self.resolve(Family.KNOWLEDGE_TRACING, strategy_name)
        handler = self._knowledge.get(name, self._knowledge[DEFAULT_STRATEGIES[Family.KNOWLEDGE_TRACING]])
        return handler()

    # =========================================================================
    # Selection
    # =========================================================================

    def _select_q_learning(self, pool: list[Question], count: int) -> SelectionOutcome:
        q_table = [
            [self.rng.random() * 2 - 1 for _ in pool]
            for _ in range(Q_TABLE_STATES)
        ]
        result = self.dispatch(
            Family.SELECTION, "QLearning", q_table, 0, Q_LEARNING_EPSILON, rng=self.rng
        )

        # Higher Q-value in the starting state = better question
        q_values = q_table[0]
        ranked = sorted(range(len(q_values)), key=lambda i: q_values[i], reverse=True)
        if q_values:
            logger.debug(
                f"Q-Learning: best Q-value {max(q_values):.3f}, "
                f"avg Q-value {sum(q_values) / len(q_values):.3f}"
            )
        return SelectionOutcome(indices=ranked[:count], result=result)

    def _select_knapsack(self, pool: list[Question], count: int) -> SelectionOutcome:
        weights = [DIFFICULTY_WEIGHTS[q.difficulty] for q in pool]
        values = [
            DIFFICULTY_BASE_VALUES[q.difficulty] * (self.rng.random() * 3 + 1)
            for q in pool
        ]
        result = self.dispatch(Family.SELECTION, "Knapsack", weights, values, KNAPSACK_CAPACITY)

        indices = list(result.result.get("selectedItems") or [])
        logger.debug(
            f"Knapsack: total value {result.result.get('maxValue') or 0:.1f}, "
            f"{len(indices)} items within capacity {KNAPSACK_CAPACITY}"
        )
        return SelectionOutcome(indices=indices, result=result)

    # =========================================================================
    # Scheduling
    # =========================================================================

    def _schedule_sm2(self) -> tuple[int, AlgorithmExecutionResult]:
        result = self.dispatch(Family.SCHEDULING, "SM2", *SM2_INPUTS)
        return coerce_interval(result.result.get("newInterval")), result

    def _schedule_min_heap(self) -> tuple[int, AlgorithmExecutionResult]:
        result = self.dispatch(Family.SCHEDULING, "MinHeap", list(MIN_HEAP_PRIORITIES))
        order = result.result.get("schedulingOrder") or []
        return coerce_interval(order[0] if order else None), result

    # =========================================================================
    # Reward
    # =========================================================================

    def _reward_variable_ratio(self) -> tuple[RewardPolicy, AlgorithmExecutionResult]:
        trials, ratios = VARIABLE_RATIO_INPUTS
        result = self.dispatch(Family.REWARD, "VariableRatio", trials, list(ratios), rng=self.rng)
        policy = VariableRatioReward(
            schedule=tuple(result.result.get("reinforcementHistory") or ()),
            should_reward=bool(result.result.get("shouldReward") or False),
        )
        return policy, result

    def _reward_fenwick_tree(self) -> tuple[RewardPolicy, AlgorithmExecutionResult]:
        values, left, right = FENWICK_INPUTS
        result = self.dispatch(Family.REWARD, "FenwickTree", list(values), left, right)
        policy = FenwickTreeReward(
            total_reward=result.result.get("totalReward") or 0,
            prefix_sums=tuple(result.result.get("prefixSums") or ()),
        )
        return policy, result

    # =========================================================================
    # Knowledge tracing
    # =========================================================================

    def _knowledge_dkt(self) -> tuple[KnowledgeState, AlgorithmExecutionResult]:
        inputs, weights = DKT_INPUTS
        result = self.dispatch(Family.KNOWLEDGE_TRACING, "DKT", list(inputs), list(weights))
        state = DKTKnowledge(
            predictions=tuple(result.result.get("predictions") or ()),
            hidden_states=tuple(result.result.get("hiddenStates") or ()),
        )
        return state, result

    def _knowledge_dp(self) -> tuple[KnowledgeState, AlgorithmExecutionResult]:
        result = self.dispatch(Family.KNOWLEDGE_TRACING, "DP", [list(row) for row in DP_GRID])
        state = DPKnowledge(
            max_value=result.result.get("maxValue") or 0,
            path=tuple(tuple(step) for step in result.result.get("path") or ()),
        )
        return state, result
