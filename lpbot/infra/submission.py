"""
Wallet-level submission coordinator.

Provides a single asyncio.Lock per signing wallet so concurrent pair tasks
sharing one wallet never have two transactions in flight at once. Reads are
not serialized.
"""

from __future__ import annotations

import asyncio
from typing import Dict


class SubmissionCoordinator:
    def __init__(self) -> None:
        # map wallet -> asyncio.Lock
        self._locks: Dict[str, asyncio.Lock] = {}
        # guard for creating locks
        self._guard = asyncio.Lock()

    async def get_lock(self, wallet: str) -> asyncio.Lock:
        """Return the shared lock for a wallet, creating it on first use."""
        async with self._guard:
            lock = self._locks.get(wallet)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[wallet] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)
