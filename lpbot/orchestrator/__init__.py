"""
Orchestrator package.

The fixed-interval scheduler driving every pair's reconciliation.
"""

from lpbot.orchestrator.scheduler import CycleOutcome, PairCycleResult, Scheduler

__all__ = ["CycleOutcome", "PairCycleResult", "Scheduler"]
