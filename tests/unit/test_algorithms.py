"""
Unit tests for the algorithm strategies and their registry.
"""

import random

import pytest

from adaptest.algorithms import DEFAULT_STRATEGIES, STRATEGIES, get_strategy
from adaptest.algorithms.reward import FenwickTree
from adaptest.models import AlgorithmExecutionResult, Family


class TestStrategyRegistry:
    """Test the strategy registry."""

    def test_two_strategies_per_family(self):
        assert set(STRATEGIES[Family.SELECTION]) == {"QLearning", "Knapsack"}
        assert set(STRATEGIES[Family.SCHEDULING]) == {"SM2", "MinHeap"}
        assert set(STRATEGIES[Family.REWARD]) == {"VariableRatio", "FenwickTree"}
        assert set(STRATEGIES[Family.KNOWLEDGE_TRACING]) == {"DKT", "DP"}

    def test_defaults_are_registered(self):
        for family, name in DEFAULT_STRATEGIES.items():
            assert name in STRATEGIES[family]

    def test_get_strategy_by_string_family(self):
        assert get_strategy("scheduling", "SM2") is STRATEGIES[Family.SCHEDULING]["SM2"]

    def test_get_strategy_unknown(self):
        assert get_strategy(Family.REWARD, "Lottery") is None
        assert get_strategy("astrology", "SM2") is None
        assert get_strategy(Family.REWARD, None) is None

    def test_get_strategy_from_custom_registry(self):
        registry = {Family.SCHEDULING: {"SM2": STRATEGIES[Family.SCHEDULING]["SM2"]}}
        assert get_strategy(Family.SCHEDULING, "SM2", registry) is STRATEGIES[Family.SCHEDULING]["SM2"]
        assert get_strategy(Family.SCHEDULING, "MinHeap", registry) is None
        assert get_strategy(Family.REWARD, "VariableRatio", registry) is None

    def test_calling_strategy_returns_execution_result(self):
        result = STRATEGIES[Family.SCHEDULING]["MinHeap"]([3, 1, 2])

        assert isinstance(result, AlgorithmExecutionResult)
        assert result.family == Family.SCHEDULING
        assert result.algorithm_name == "MinHeap"
        assert result.execution_time >= 0
        assert result.time_complexity == "O(n log n)"
        assert result.topic is None


class TestSelection:
    def test_knapsack_picks_best_subset(self):
        result = get_strategy(Family.SELECTION, "Knapsack")([1, 2, 3], [6, 10, 12], 5)

        assert result.result["maxValue"] == 22
        assert result.result["selectedItems"] == [1, 2]

    def test_knapsack_zero_capacity(self):
        result = get_strategy(Family.SELECTION, "Knapsack")([1, 2], [5, 8], 0)

        assert result.result["selectedItems"] == []
        assert result.result["maxValue"] == 0

    def test_q_learning_greedy_picks_best_action(self):
        q_table = [[0.1, 0.9, -0.3], [0.0, 0.0, 0.0]]
        result = get_strategy(Family.SELECTION, "QLearning")(q_table, 0, 0.0, rng=random.Random(1))

        assert result.result["action"] == 1
        assert result.result["explored"] is False
        assert result.result["qValues"] == [0.1, 0.9, -0.3]

    def test_q_learning_does_not_modify_table(self):
        q_table = [[0.5, -0.5]]
        get_strategy(Family.SELECTION, "QLearning")(q_table, 0, 1.0, rng=random.Random(1))
        assert q_table == [[0.5, -0.5]]

    def test_q_learning_empty_state(self):
        result = get_strategy(Family.SELECTION, "QLearning")([[]], 0, 0.2)
        assert result.result["action"] is None


class TestScheduling:
    @pytest.fixture
    def sm2(self):
        return get_strategy(Family.SCHEDULING, "SM2")

    def test_first_repetition_is_one_day(self, sm2):
        result = sm2(2.5, 1, 0)
        assert result.result["newInterval"] == 1
        assert result.result["repetitions"] == 1

    def test_second_repetition_is_six_days(self, sm2):
        assert sm2(2.5, 1, 1).result["newInterval"] == 6

    def test_later_repetitions_scale_by_easiness(self, sm2):
        result = sm2(2.5, 6, 2, quality=5)
        assert result.result["easeFactor"] == pytest.approx(2.6)
        assert result.result["newInterval"] == round(6 * 2.6)

    def test_failed_review_resets(self, sm2):
        result = sm2(2.5, 20, 5, quality=1)
        assert result.result["newInterval"] == 1
        assert result.result["repetitions"] == 0

    def test_easiness_never_below_minimum(self, sm2):
        assert sm2(1.3, 1, 0, quality=0).result["easeFactor"] == pytest.approx(1.3)

    def test_min_heap_orders_ascending(self):
        result = get_strategy(Family.SCHEDULING, "MinHeap")([3, 1, 6, 5, 2, 4])
        assert result.result["schedulingOrder"] == [1, 2, 3, 4, 5, 6]


class TestReward:
    def test_fenwick_prefix_sums_and_range(self):
        result = get_strategy(Family.REWARD, "FenwickTree")([5, 3, 7, 2, 6], 2, 4)

        assert result.result["prefixSums"] == [5, 8, 15, 17, 23]
        assert result.result["totalReward"] == 15

    def test_fenwick_tree_point_update(self):
        tree = FenwickTree([1, 1, 1, 1])
        tree.add(2, 4)
        assert tree.prefix_sum(3) == 8
        assert tree.range_sum(2, 2) == 5
        assert tree.range_sum(3, 1) == 0

    def test_fenwick_empty_values(self):
        result = get_strategy(Family.REWARD, "FenwickTree")([], 0, 3)
        assert result.result == {"prefixSums": [], "totalReward": 0}

    def test_variable_ratio_history_length(self):
        result = get_strategy(Family.REWARD, "VariableRatio")(10, [2, 3, 4, 5], rng=random.Random(7))

        history = result.result["reinforcementHistory"]
        assert len(history) == 10
        assert result.result["totalReinforcements"] == sum(history)
        assert isinstance(result.result["shouldReward"], bool)

    def test_variable_ratio_fixed_ratio_of_one_rewards_everything(self):
        result = get_strategy(Family.REWARD, "VariableRatio")(4, [1])

        assert result.result["reinforcementHistory"] == [True, True, True, True]
        assert result.result["shouldReward"] is True

    def test_variable_ratio_without_ratios(self):
        result = get_strategy(Family.REWARD, "VariableRatio")(10, [])
        assert result.result["shouldReward"] is False


class TestKnowledgeTracing:
    def test_dkt_one_prediction_per_step(self):
        result = get_strategy(Family.KNOWLEDGE_TRACING, "DKT")([0.7, 0.5, 0.9], [0.8, 0.6, 0.7])

        predictions = result.result["predictions"]
        assert len(predictions) == 3
        assert len(result.result["hiddenStates"]) == 3
        assert all(0 < p < 1 for p in predictions)

    def test_dkt_positive_inputs_predict_above_half(self):
        result = get_strategy(Family.KNOWLEDGE_TRACING, "DKT")([1.0], [1.0])
        assert result.result["predictions"][0] > 0.5

    def test_dp_max_path(self):
        result = get_strategy(Family.KNOWLEDGE_TRACING, "DP")([[1, 2, 3], [4, 5, 6], [7, 8, 9]])

        assert result.result["maxValue"] == 29
        assert result.result["path"] == [(0, 0), (1, 0), (2, 0), (2, 1), (2, 2)]

    def test_dp_empty_grid(self):
        result = get_strategy(Family.KNOWLEDGE_TRACING, "DP")([])
        assert result.result == {"maxValue": 0, "path": []}
