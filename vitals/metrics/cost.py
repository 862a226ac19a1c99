"""
Cost Tracker for Metered Dependencies

Counts billable calls and accumulates their USD cost per cost key.
Prices are fixed when the tracker is built; there is no runtime price
mutation.

Which calls are billable is decided by resolve_cost_key(), the single
place that maps a (service, operation) pair onto a priced cost key.
"""

import threading
from collections import defaultdict
from collections.abc import Callable, Mapping
from types import MappingProxyType

DEFAULT_UNIT_COSTS: Mapping[str, float] = MappingProxyType(
    {
        "openai_completion": 0.002,
        "openai_embedding": 0.0001,
        "tensorflow_inference": 0.0,  # Local processing
        "firebase_query": 0.0,  # Free tier
    }
)

CostKeyResolver = Callable[[str, str], str | None]


def resolve_cost_key(service: str, operation: str) -> str | None:
    """
    Map a recorded call onto the cost key it should be billed under.

    The service is matched case-insensitively against the known
    providers; providers with several priced endpoints are split by a
    substring match on the operation name.

    Args:
        service: Service the call was made against
        operation: Operation name recorded by the caller

    Returns:
        Cost key, or None when the call is not metered
    """
    operation_lower = operation.lower()

    match service.lower():
        case "openai":
            if "completion" in operation_lower:
                return "openai_completion"
            if "embedding" in operation_lower:
                return "openai_embedding"
            return None
        case "tensorflow":
            return "tensorflow_inference"
        case "firebase":
            return "firebase_query"
        case _:
            return None


class CostTracker:
    """
    Thread-safe usage and cost accumulator.

    Example:
        tracker = CostTracker()
        tracker.track_usage("openai_embedding", count=20)
        print(f"${tracker.get_total_cost():.4f}")
    """

    def __init__(self, unit_costs: Mapping[str, float] | None = None):
        """
        Initialize the tracker.

        Args:
            unit_costs: Cost key to USD price per call.
                        Defaults to DEFAULT_UNIT_COSTS.

        Raises:
            ValueError: If any price is negative
        """
        prices = DEFAULT_UNIT_COSTS if unit_costs is None else unit_costs
        negative = sorted(key for key, price in prices.items() if price < 0)
        if negative:
            raise ValueError(f"Unit costs cannot be negative: {', '.join(negative)}")

        self._unit_costs = MappingProxyType(dict(prices))
        self._lock = threading.Lock()
        self._usage: dict[str, int] = defaultdict(int)
        self._costs: dict[str, float] = defaultdict(float)

    @property
    def unit_costs(self) -> Mapping[str, float]:
        """Read-only price table."""
        return self._unit_costs

    def unit_cost(self, key: str) -> float:
        """Price per call for a cost key, 0.0 when unknown."""
        return self._unit_costs.get(key, 0.0)

    def track_usage(self, key: str, count: int = 1) -> None:
        """
        Record billable usage.

        Args:
            key: Cost key being charged
            count: Number of calls to charge
        """
        with self._lock:
            self._usage[key] += count
            self._costs[key] += self.unit_cost(key) * count

    def get_total_cost(self) -> float:
        """Sum of accumulated cost across all keys."""
        with self._lock:
            return sum(self._costs.values())

    def get_cost_breakdown(self) -> dict[str, float]:
        """Copy of accumulated cost per key."""
        with self._lock:
            return dict(self._costs)

    def get_usage_breakdown(self) -> dict[str, int]:
        """Copy of usage count per key."""
        with self._lock:
            return dict(self._usage)

    def reset(self) -> None:
        """Zero all usage and cost."""
        with self._lock:
            self._usage.clear()
            self._costs.clear()
