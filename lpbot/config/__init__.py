"""
Configuration package.

This package contains process settings, per-pair configuration and
registration-time validation.
"""

from lpbot.config.config import Settings
from lpbot.config.config_validator import PairConfigValidator, validate_and_log
from lpbot.config.pair_config import PairConfig, load_pair_configs

__all__ = [
    "Settings",
    "PairConfig",
    "PairConfigValidator",
    "validate_and_log",
    "load_pair_configs",
]
