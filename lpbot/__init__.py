"""
lpbot - concentrated-liquidity position manager for DLMM pools.

Periodically reconciles one position per configured pair against wallet
balances and the pool's active bin.
"""

__version__ = "0.3.0"
