"""
Strategy package.

Pure sizing logic; no I/O.
"""

from lpbot.strategy.sizing import SizedAmounts, SizingCalculator, size

__all__ = ["SizedAmounts", "SizingCalculator", "size"]
