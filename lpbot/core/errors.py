"""
Error taxonomy.

- InvalidPairConfig: rejected at registration, fatal for that pair only.
- BootstrapError: missing credentials or pool adapter, process exits non-zero.
- CollaboratorError and subclasses: transient, the pair's cycle becomes a no-op.
- TransactionNotSent: raised by pool adapters when a write provably never
  left the process; the only write failure that is retried.
"""

from __future__ import annotations

from typing import List


class LPBotError(Exception):
    """Base class for bot errors."""


class InvalidPairConfig(LPBotError):
    def __init__(self, pair: str, problems: List[str]) -> None:
        self.pair = pair
        self.problems = list(problems)
        super().__init__(f"invalid config for {pair}: {'; '.join(self.problems)}")


class BootstrapError(LPBotError):
    """Unrecoverable startup failure."""


class CollaboratorError(LPBotError):
    """Transient failure in a chain, oracle or wallet call."""


class TransactionError(CollaboratorError):
    """Submission or confirmation of a transaction failed."""


class TransactionNotSent(TransactionError):
    """The transaction never reached the network and is safe to resubmit."""


class SimulationError(CollaboratorError):
    """Dry run rejected the transaction before submission. Not retried."""


class OracleError(CollaboratorError):
    """No price could be obtained."""
