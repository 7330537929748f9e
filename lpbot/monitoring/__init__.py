"""
Monitoring package.

Prometheus metrics for the reconciliation loop.
"""

from lpbot.monitoring.metrics import LPMetrics, start_metrics_server

__all__ = ["LPMetrics", "start_metrics_server"]
