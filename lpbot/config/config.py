"""
Environment-driven process configuration with validation.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def env_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    private_key: str | None  # JSON array of 64 ints
    keypair_file: str | None  # base64-encoded secret key
    check_interval_min: float
    priority_fee_micro_lamports: int
    pairs_config: str
    pool_service: str | None  # "module:factory" for the chain adapter
    meteora_api_url: str
    jupiter_price_url: str
    coingecko_url: str
    http_timeout: float
    call_timeout_sec: float
    submit_retries: int
    metrics_port: int
    log_file: str | None
    log_level: str
    log_json_console: bool

    def dump(self) -> dict:
        """Return a dict of settings safe for logging (secrets redacted)."""
        data = self.__dict__.copy()
        if data.get("private_key"):
            data["private_key"] = "***"
        return data

    @property
    def check_interval_sec(self) -> float:
        return self.check_interval_min * 60.0

    @classmethod
    def load(cls) -> "Settings":
        def _int_env(key: str, default: int) -> int:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return int(raw)

        def _float_env(key: str, default: float) -> float:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return float(raw)

        cfg = cls(
            rpc_url=os.getenv("LP_RPC_URL", "https://api.mainnet-beta.solana.com"),
            private_key=os.getenv("LP_PRIVATE_KEY"),
            keypair_file=os.getenv("LP_KEYPAIR_FILE"),
            check_interval_min=_float_env("LP_CHECK_INTERVAL_MIN", 5.0),
            priority_fee_micro_lamports=_int_env("LP_PRIORITY_FEE", 20000),
            pairs_config=os.getenv("LP_PAIRS_CONFIG", "configs/pairs.yaml"),
            pool_service=os.getenv("LP_POOL_SERVICE"),
            meteora_api_url=os.getenv("LP_METEORA_API_URL", "https://dlmm-api.meteora.ag"),
            jupiter_price_url=os.getenv("LP_JUPITER_PRICE_URL", "https://lite-api.jup.ag/price/v2"),
            coingecko_url=os.getenv("LP_COINGECKO_URL", "https://api.coingecko.com/api/v3"),
            http_timeout=_float_env("LP_HTTP_TIMEOUT", 10.0),
            call_timeout_sec=_float_env("LP_CALL_TIMEOUT_SEC", 60.0),
            submit_retries=_int_env("LP_SUBMIT_RETRIES", 15),
            metrics_port=_int_env("LP_METRICS_PORT", 9096),
            log_file=os.getenv("LP_LOG_FILE", "lpbot.log") or None,
            log_level=os.getenv("LP_LOG_LEVEL", "INFO").upper(),
            log_json_console=env_bool("LP_LOG_JSON_CONSOLE", False),
        )
        cfg._validate()
        _sanity_check(cfg)
        return cfg

    def _validate(self) -> None:
        if self.check_interval_min <= 0:
            raise ValueError("LP_CHECK_INTERVAL_MIN must be > 0")
        if self.priority_fee_micro_lamports < 0:
            raise ValueError("LP_PRIORITY_FEE must be >= 0")
        if self.http_timeout <= 0 or self.call_timeout_sec <= 0:
            raise ValueError("Timeouts must be > 0")
        if self.submit_retries <= 0:
            raise ValueError("LP_SUBMIT_RETRIES must be > 0")
        if self.metrics_port < 0:
            raise ValueError("LP_METRICS_PORT must be >= 0")
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LP_LOG_LEVEL={self.log_level} is not a logging level")

        if self.call_timeout_sec >= self.check_interval_sec:
            logging.getLogger("lpbot").warning(
                "WARNING: LP_CALL_TIMEOUT_SEC is not shorter than the check interval. "
                "A hung call can stall a pair for a whole cycle."
            )


def _sanity_check(cfg: Settings) -> None:
    """
    Log critical settings once at startup so overrides are obvious.
    """
    logger = logging.getLogger("lpbot")
    payload = {
        "event": "config_loaded",
        "rpc_url": cfg.rpc_url,
        "check_interval_min": cfg.check_interval_min,
        "priority_fee": cfg.priority_fee_micro_lamports,
        "pairs_config": cfg.pairs_config,
        "submit_retries": cfg.submit_retries,
    }
    logger.info(json.dumps(payload))
