#!/usr/bin/env python3
"""
Outage Simulation Script

Drives simulated external calls through a PerformanceMonitor and reports
how the circuit breakers, statistics and cost tracking respond.

This script:
1. Builds a monitor from settings (environment / .env)
2. Issues simulated calls to several services, one of which goes down
   for part of the run
3. Skips calls whose circuit breaker is open, as feature code would
4. Prints the dashboard, health check and component checks

Usage:
    python scripts/simulate_outage.py                       Default run
    python scripts/simulate_outage.py --calls 200           More calls per service
    python scripts/simulate_outage.py --failing-service openai
    python scripts/simulate_outage.py --failure-rate 0.1    Background flakiness
    python scripts/simulate_outage.py --verbose             Show each call
"""

import argparse
import asyncio
import random
import sys
from dataclasses import dataclass
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from vitals.config import configure_logging, get_settings
from vitals.dispatcher.handlers import ServiceUnavailableError, call_monitored
from vitals.health.checks import SystemHealthChecker
from vitals.metrics.monitor import PerformanceMonitor


# (service, operation, simulated latency range in seconds)
SIMULATED_CALLS = [
    ("openai", "chat_completion", (0.02, 0.08)),
    ("openai", "text_embedding", (0.005, 0.02)),
    ("vector_search", "knowledge_query", (0.005, 0.03)),
    ("nutrition_db", "food_lookup", (0.01, 0.04)),
    ("firebase", "meal_log_read", (0.002, 0.01)),
]


@dataclass
class CallTally:
    """Outcome counts for the simulated calls."""

    succeeded: int = 0
    failed: int = 0
    refused: int = 0


class SimulatedOutage(Exception):
    """Raised by a simulated dependency that is down."""


async def fake_call(latency: tuple[float, float], should_fail: bool) -> str:
    await asyncio.sleep(random.uniform(*latency))
    if should_fail:
        raise SimulatedOutage("upstream returned 503")
    return "ok"


async def run_simulation(
    monitor: PerformanceMonitor,
    calls: int,
    failing_service: str,
    failure_rate: float,
    verbose: bool = False,
) -> CallTally:
    """
    Issue simulated calls round-robin across the configured services.

    The failing service is down for the middle third of the run.

    Args:
        monitor: Monitor to record against
        calls: Rounds of calls (one call per service per round)
        failing_service: Service that suffers the outage
        failure_rate: Background failure probability for every call
        verbose: Whether to print each call

    Returns:
        CallTally with success, failure and refusal counts
    """
    tally = CallTally()
    outage = range(calls // 3, 2 * calls // 3)

    for i in range(calls):
        for service, operation, latency in SIMULATED_CALLS:
            down = service == failing_service and i in outage
            should_fail = down or random.random() < failure_rate

            try:
                await call_monitored(
                    monitor, service, operation, fake_call, latency, should_fail
                )
                tally.succeeded += 1
                outcome = "OK"
            except ServiceUnavailableError:
                tally.refused += 1
                outcome = "REFUSED"
            except SimulatedOutage:
                tally.failed += 1
                outcome = "FAILED"

            if verbose:
                print(f"[{i + 1:4d}/{calls}] {outcome:8s} | {service}.{operation}")

        if not verbose and (i + 1) % 25 == 0:
            print(f"  Completed {i + 1}/{calls} rounds...")

    return tally


def print_report(monitor: PerformanceMonitor, tally: CallTally) -> None:
    """Print a formatted report of the simulation."""
    dashboard = monitor.get_dashboard_data()
    health = monitor.get_health_check()
    checks = SystemHealthChecker(monitor).perform_health_check()

    print("\n" + "=" * 60)
    print("VITALS OUTAGE SIMULATION RESULTS")
    print("=" * 60)

    print("\nCalls:")
    print(f"  Succeeded: {tally.succeeded}")
    print(f"  Failed:    {tally.failed}")
    print(f"  Refused:   {tally.refused} (circuit breaker open)")

    print("\nBy Service:")
    print(f"  {'Service':<16} {'Success':>8} {'Total':>6} {'Avg ms':>8} {'Max ms':>8}")
    print(f"  {'-'*16} {'-'*8} {'-'*6} {'-'*8} {'-'*8}")
    for service in sorted(dashboard.service_stats):
        stats = dashboard.service_stats[service]
        print(
            f"  {service:<16} {stats.success_rate:>7.1%} "
            f"{stats.total_operations:>6} "
            f"{stats.average_duration_ms:>7.1f} {stats.max_duration_ms:>7.1f}"
        )

    print("\nCost:")
    for key, cost in sorted(dashboard.cost_breakdown.items()):
        usage = dashboard.usage_breakdown.get(key, 0)
        print(f"  {key:<22} {usage:>6} calls  ${cost:.6f}")
    print(f"  {'Total':<22} {'':>12}  ${dashboard.total_cost_usd:.6f}")

    print(f"\nMonitor status: {health.status}")
    if health.open_circuit_breakers:
        print(f"  Open breakers: {', '.join(health.open_circuit_breakers)}")

    print("\nComponent checks:")
    for name, check in checks.items():
        print(f"  {name:<14} {check.status.value:<10} {check.message}")

    print("\n" + "=" * 60)


def main():
    """Main entry point for the outage simulation."""

    parser = argparse.ArgumentParser(
        description="Simulate a dependency outage against the Vitals monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--calls",
        type=int,
        default=60,
        help="Rounds of calls to issue (default: 60)",
    )
    parser.add_argument(
        "--failing-service",
        default="vector_search",
        choices=sorted({service for service, _, _ in SIMULATED_CALLS}),
        help="Service that goes down mid-run (default: vector_search)",
    )
    parser.add_argument(
        "--failure-rate",
        type=float,
        default=0.02,
        help="Background failure probability per call (default: 0.02)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible run",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show each call",
    )

    args = parser.parse_args()

    if args.calls < 1:
        print("ERROR: --calls must be at least 1")
        sys.exit(1)
    if not 0.0 <= args.failure_rate <= 1.0:
        print("ERROR: --failure-rate must be between 0 and 1")
        sys.exit(1)

    if args.seed is not None:
        random.seed(args.seed)

    settings = get_settings()
    configure_logging(settings)
    monitor = PerformanceMonitor.from_settings(settings)

    print("=" * 60)
    print("Vitals Outage Simulation")
    print("=" * 60)
    print(f"\nSimulating {args.calls} rounds across {len(SIMULATED_CALLS)} operations")
    print(f"Failing service: {args.failing_service}")

    tally = asyncio.run(
        run_simulation(
            monitor,
            calls=args.calls,
            failing_service=args.failing_service,
            failure_rate=args.failure_rate,
            verbose=args.verbose,
        )
    )

    print_report(monitor, tally)
    sys.exit(0)


if __name__ == "__main__":
    main()
