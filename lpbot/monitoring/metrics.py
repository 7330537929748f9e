"""
Prometheus metrics and a small HTTP endpoint.

- /metrics - Prometheus text exposition of LPMetrics
- /health  - liveness JSON (no auth)
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from lpbot.execution.position_state import PositionState, PositionStatus

# Numeric codes for the position_state gauge
STATE_CODES = {
    "NO_POSITION": 0,
    "WAITING": 1,
    "ONE_SIDED:X": 2,
    "ONE_SIDED:Y": 3,
    "BALANCED": 4,
}


def state_code(state: PositionState) -> int:
    if state.status is PositionStatus.NO_POSITION:
        return STATE_CODES["NO_POSITION"]
    return STATE_CODES[state.label]


class LPMetrics:
    """Per-pair metrics for the reconciliation loop."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        reg = registry or CollectorRegistry()

        # === Cycle Metrics ===
        self.cycles_total = Counter(
            'lp_cycles_total',
            'Reconciliation cycles by outcome (acted, noop, error)',
            labelnames=['pair', 'outcome'],
            registry=reg
        )
        self.cycle_duration_seconds = Histogram(
            'lp_cycle_duration_seconds',
            'Per-pair cycle duration (seconds)',
            labelnames=['pair'],
            buckets=[0.5, 1, 2, 5, 10, 30, 60, 120],
            registry=reg
        )
        self.errors_total = Counter(
            'lp_errors_total',
            'Per-pair cycle failures by error type',
            labelnames=['pair', 'error_type'],
            registry=reg
        )

        # === Execution Metrics ===
        self.commands_total = Counter(
            'lp_commands_total',
            'Liquidity commands executed successfully',
            labelnames=['pair', 'command'],
            registry=reg
        )

        # === Position Metrics ===
        self.position_state = Gauge(
            'lp_position_state',
            'Position state (0=none, 1=waiting, 2=one-sided X, 3=one-sided Y, 4=balanced)',
            labelnames=['pair'],
            registry=reg
        )
        self.unclaimed_fees_usd = Gauge(
            'lp_unclaimed_fees_usd',
            'Unclaimed fees of the managed position (USD)',
            labelnames=['pair'],
            registry=reg
        )

        # === Lifecycle ===
        self.pairs_registered = Gauge(
            'lp_pairs_registered',
            'Pairs accepted at registration',
            registry=reg
        )
        self.pairs_rejected = Counter(
            'lp_pairs_rejected_total',
            'Pairs rejected at registration (invalid config)',
            registry=reg
        )

        self.registry = reg

    def get_registry(self):
        """Return the Prometheus registry for export."""
        return self.registry

    def record_command(self, pair: str, command: str) -> None:
        self.commands_total.labels(pair=pair, command=command).inc()

    def record_state(self, pair: str, state: PositionState) -> None:
        self.position_state.labels(pair=pair).set(state_code(state))

    def render(self) -> bytes:
        return generate_latest(self.registry)


async def start_metrics_server(metrics: LPMetrics, port: int, host: str = "0.0.0.0") -> asyncio.AbstractServer:
    """Serve /metrics and /health on port."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        req = await reader.read(2048)
        path = "/"
        first_line = req.split(b"\r\n", 1)[0]
        parts = first_line.split(b" ")
        if len(parts) >= 2:
            path = parts[1].decode("utf-8", errors="ignore").split("?", 1)[0]

        if path == "/health":
            body = json.dumps({"healthy": True}).encode()
            content_type = "application/json"
        else:
            body = metrics.render()
            content_type = CONTENT_TYPE_LATEST

        writer.write(
            b"HTTP/1.1 200 OK\r\n"
            + f"Content-Type: {content_type}\r\n".encode()
            + f"Content-Length: {len(body)}\r\n".encode()
            + b"Connection: close\r\n\r\n"
            + body
        )
        await writer.drain()
        writer.close()

    return await asyncio.start_server(handle, host, port)
