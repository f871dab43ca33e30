"""
Algorithm strategies for adaptive test sessions.

Four families, each a closed set of named strategies:
- selection: which questions to present (QLearning, Knapsack)
- scheduling: when to review next (SM2, MinHeap)
- reward: how to reinforce correct answers (VariableRatio, FenwickTree)
- knowledge_tracing: mastery estimate (DKT, DP)

Strategies are pure computations returning an AlgorithmExecutionResult.
"""

from typing import Callable

from adaptest.algorithms.base import Strategy
from adaptest.models import Family

# Strategy registry - populated by @register decorator
STRATEGIES: dict[Family, dict[str, Strategy]] = {family: {} for family in Family}

# Used when a configured name is not registered
DEFAULT_STRATEGIES: dict[Family, str] = {
    Family.SELECTION: "QLearning",
    Family.SCHEDULING: "SM2",
    Family.REWARD: "VariableRatio",
    Family.KNOWLEDGE_TRACING: "DKT",
}


def register(
    family: Family,
    name: str,
    time_complexity: str = "O(1)",
    space_complexity: str = "O(1)",
):
    """Decorator to register an algorithm function as a named strategy."""
    def decorator(func: Callable) -> Callable:
        STRATEGIES[family][name] = Strategy(
            family=family,
            name=name,
            func=func,
            time_complexity=time_complexity,
            space_complexity=space_complexity,
        )
        return func
    return decorator


def get_strategy(
    family: Family | str,
    name: str | None,
    registry: dict[Family, dict[str, Strategy]] | None = None,
) -> Strategy | None:
    """Get a strategy from ``registry`` (the global one by default), or None if unknown."""
    if isinstance(family, str):
        try:
            family = Family(family.lower())
        except ValueError:
            return None
    if not name:
        return None
    registry = STRATEGIES if registry is None else registry
    return registry.get(family, {}).get(name)


# Import strategy modules to trigger registration
from . import selection
from . import scheduling
from . import reward
from . import knowledge

__all__ = [
    "DEFAULT_STRATEGIES",
    "STRATEGIES",
    "Strategy",
    "get_strategy",
    "register",
]
