"""
Cost Tracking Tests

Validates the cost-key resolution rules and the usage/cost accumulator.

Test Categories:
1. TestResolveCostKey - mapping (service, operation) to a cost key
2. TestCostTracker - accumulation, breakdowns, reset
"""

import pytest

from vitals.metrics.cost import DEFAULT_UNIT_COSTS, CostTracker, resolve_cost_key


class TestResolveCostKey:
    """Tests for resolve_cost_key()."""

    @pytest.mark.parametrize(
        "service,operation,expected",
        [
            ("openai", "chat_completion", "openai_completion"),
            ("openai", "completion", "openai_completion"),
            ("OpenAI", "Chat_Completion", "openai_completion"),
            ("openai", "text_embedding", "openai_embedding"),
            ("openai", "embedding_batch", "openai_embedding"),
            ("openai", "moderation", None),
            ("tensorflow", "predict", "tensorflow_inference"),
            ("TensorFlow", "anything", "tensorflow_inference"),
            ("firebase", "meal_log_read", "firebase_query"),
            ("vector_search", "knowledge_query", None),
            ("nutrition_db", "food_lookup", None),
        ],
    )
    def test_resolution(self, service, operation, expected):
        assert resolve_cost_key(service, operation) == expected

    def test_service_match_is_exact(self):
        """Substrings of provider names are not metered."""
        assert resolve_cost_key("openai_proxy", "chat_completion") is None


class TestCostTracker:
    """Tests for CostTracker accumulation."""

    def test_default_prices(self):
        tracker = CostTracker()

        assert tracker.unit_cost("openai_completion") == 0.002
        assert tracker.unit_cost("openai_embedding") == 0.0001
        assert tracker.unit_cost("tensorflow_inference") == 0.0
        assert tracker.unit_cost("firebase_query") == 0.0
        assert tracker.unit_cost("unknown") == 0.0

    def test_negative_prices_rejected(self):
        with pytest.raises(ValueError, match="openai_completion"):
            CostTracker({"openai_completion": -0.01, "openai_embedding": 0.0001})

    def test_price_table_is_read_only(self):
        tracker = CostTracker()

        with pytest.raises(TypeError):
            tracker.unit_costs["openai_completion"] = 1.0

    def test_custom_prices_do_not_alias_input(self):
        prices = {"search_query": 0.01}
        tracker = CostTracker(prices)
        prices["search_query"] = 5.0

        tracker.track_usage("search_query")

        assert tracker.get_total_cost() == pytest.approx(0.01)

    def test_track_usage_accumulates(self):
        tracker = CostTracker()

        tracker.track_usage("openai_completion")
        tracker.track_usage("openai_completion", count=2)
        tracker.track_usage("openai_embedding", count=10)

        assert tracker.get_usage_breakdown() == {
            "openai_completion": 3,
            "openai_embedding": 10,
        }
        assert tracker.get_cost_breakdown()["openai_completion"] == pytest.approx(0.006)
        assert tracker.get_cost_breakdown()["openai_embedding"] == pytest.approx(0.001)
        assert tracker.get_total_cost() == pytest.approx(0.007)

    def test_unknown_key_counts_usage_at_zero_cost(self):
        tracker = CostTracker()

        tracker.track_usage("mystery", count=4)

        assert tracker.get_usage_breakdown() == {"mystery": 4}
        assert tracker.get_total_cost() == 0.0

    def test_breakdowns_are_copies(self):
        tracker = CostTracker()
        tracker.track_usage("openai_completion")

        tracker.get_cost_breakdown()["openai_completion"] = 100.0
        tracker.get_usage_breakdown()["openai_completion"] = 100

        assert tracker.get_total_cost() == pytest.approx(0.002)
        assert tracker.get_usage_breakdown()["openai_completion"] == 1

    def test_reset(self):
        tracker = CostTracker()
        tracker.track_usage("openai_completion", count=5)

        tracker.reset()

        assert tracker.get_total_cost() == 0.0
        assert tracker.get_usage_breakdown() == {}
        assert tracker.unit_costs == DEFAULT_UNIT_COSTS
