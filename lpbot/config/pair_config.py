"""Per-pair configuration loaded from YAML.

Optional file path via env `LP_PAIRS_CONFIG`, default `configs/pairs.yaml`.
The file maps a pair name to its settings:

    SOL-USDC:
      pool_address: BVRbyLjjfSBcoyiYFuxbgKYnWuiFaF9CSXEa5vdSZ9Hh
      min_reserve_x: 2
      min_reserve_y: 200
      bin_step: 10
      total_range_interval: 6
      max_position_size_in_y: 10
      strategy_type: BidAskImBalanced
      balance_out_position: true
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from lpbot.core.errors import InvalidPairConfig
from lpbot.core.types import StrategyType


@dataclass(frozen=True)
class PairConfig:
    name: str
    pool_address: str
    min_reserve_x: float  # token X units kept untouched in the wallet
    min_reserve_y: float
    bin_step: int
    max_position_size_in_y: float  # ceiling on committed value, in token Y
    total_range_interval: int  # width in bins of a new position
    strategy_type: StrategyType
    balance_out_position: bool  # rebalance one-sided positions back to two-sided

    @classmethod
    def from_dict(cls, name: str, raw: Dict[str, Any]) -> "PairConfig":
        """Build a PairConfig, collecting every malformed field before failing."""
        problems: List[str] = []

        def _get(key: str, conv, default: Any = None) -> Any:
            if key not in raw or raw[key] is None:
                if default is None:
                    problems.append(f"{key} is required")
                return default
            try:
                return conv(raw[key])
            except (TypeError, ValueError) as exc:
                problems.append(f"{key}={raw[key]!r} ({exc})")
                return default

        def _strict_int(v: Any) -> int:
            if isinstance(v, bool) or (isinstance(v, float) and not v.is_integer()):
                raise ValueError("expected an integer")
            return int(v)

        def _strict_bool(v: Any) -> bool:
            if isinstance(v, bool):
                return v
            if isinstance(v, str) and v.lower() in {"true", "false", "yes", "no", "1", "0"}:
                return v.lower() in {"true", "yes", "1"}
            raise ValueError("expected a boolean")

        pool_address = _get("pool_address", lambda v: str(v).strip())
        min_reserve_x = _get("min_reserve_x", float)
        min_reserve_y = _get("min_reserve_y", float)
        bin_step = _get("bin_step", _strict_int)
        max_size = _get("max_position_size_in_y", float)
        total_range = _get("total_range_interval", _strict_int)
        strategy = _get("strategy_type", lambda v: StrategyType.parse(str(v)))
        balance_out = _get("balance_out_position", _strict_bool, default=False)

        if problems:
            raise InvalidPairConfig(name, problems)

        return cls(
            name=name,
            pool_address=pool_address,
            min_reserve_x=min_reserve_x,
            min_reserve_y=min_reserve_y,
            bin_step=bin_step,
            max_position_size_in_y=max_size,
            total_range_interval=total_range,
            strategy_type=strategy,
            balance_out_position=balance_out,
        )


def load_pair_overrides(path: str | None = None) -> Dict[str, Dict[str, Any]]:
    """Return the raw name -> settings mapping from the pairs file ({} if missing)."""
    if path is None:
        path = os.getenv("LP_PAIRS_CONFIG", "configs/pairs.yaml")
    p = Path(path)
    if not p.exists():
        return {}
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if not isinstance(data, dict):
        return {}
    return {str(k): v for k, v in data.items() if isinstance(v, dict)}


def load_pair_configs(path: str | None = None) -> Tuple[List[PairConfig], List[InvalidPairConfig]]:
    """
    Parse every pair in the file.

    Malformed pairs are returned separately so the caller can log them
    and still start the well-formed ones.
    """
    configs: List[PairConfig] = []
    rejected: List[InvalidPairConfig] = []
    for name, raw in load_pair_overrides(path).items():
        try:
            configs.append(PairConfig.from_dict(name, raw))
        except InvalidPairConfig as exc:
            rejected.append(exc)
    return configs, rejected
