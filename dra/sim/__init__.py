"""
DRA Simulation Module.

Drivers that exercise the engine from outside:
- Monte-Carlo deviation and timed-session harness
- Centralized auctioneer comparison driver
- Scenario runner used by the CLI
"""

from dra.sim.harness import (
    FalseBid,
    FixedDeviation,
    MultipleDeviation,
    ThresholdReveal,
    SimulationResult,
    SafeDeviationStats,
    TimedSimulationReport,
    auctioneer_revenue,
    run_protocol,
    simulate_deviation,
    simulate_safe_deviation_bound,
    simulate_timed_protocol,
)
from dra.sim.centralized import (
    CentralizedAuctioneer,
    AdaptiveReserveReport,
    adaptive_reserve_deviation,
    scripted_adaptive_reserve_run,
)
from dra.sim.runner import run_scenario

__all__ = [
    # Harness
    "FalseBid",
    "FixedDeviation",
    "MultipleDeviation",
    "ThresholdReveal",
    "SimulationResult",
    "SafeDeviationStats",
    "TimedSimulationReport",
    "auctioneer_revenue",
    "run_protocol",
    "simulate_deviation",
    "simulate_safe_deviation_bound",
    "simulate_timed_protocol",
    # Centralized
    "CentralizedAuctioneer",
    "AdaptiveReserveReport",
    "adaptive_reserve_deviation",
    "scripted_adaptive_reserve_run",
    # Runner
    "run_scenario",
]
