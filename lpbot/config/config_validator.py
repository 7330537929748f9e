"""
Registration-time validation for pair configurations.

- Range checks for reserves, bin step, position size and range width
- Warnings for valid but unusual setups (odd range width, range wider than
  the empty position that hosts it)

Errors reject the pair before the scheduler starts; they never stop the
process or affect other pairs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

from lpbot.config.pair_config import PairConfig
from lpbot.core.types import StrategyType

logger = logging.getLogger("lpbot")

# Bins spanned by a freshly created empty position
EMPTY_POSITION_BINS = 69


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    ERROR = auto()    # Rejects the pair
    WARNING = auto()  # Logged, pair still registered


@dataclass
class ValidationIssue:
    """A single validation issue."""
    field: str
    message: str
    severity: ValidationSeverity
    value: Any = None
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of a pair config validation."""
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)

    def get_errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    def get_warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]


class PairConfigValidator:
    """
    Validates a PairConfig.

    Checks:
    - Pool address is present
    - Numeric values are within range
    - Strategy type is a known shape
    """

    # (min, max) inclusive; None means unbounded
    NUMERIC_RANGES: Dict[str, Tuple[Optional[float], Optional[float]]] = {
        "min_reserve_x": (0.0, None),
        "min_reserve_y": (0.0, None),
        "bin_step": (1, 10_000),
        "max_position_size_in_y": (1e-12, None),
        "total_range_interval": (2, 1_400),
    }

    def validate(self, cfg: PairConfig) -> ValidationResult:
        issues: List[ValidationIssue] = []

        if not cfg.pool_address or not cfg.pool_address.strip():
            issues.append(ValidationIssue(
                field="pool_address",
                message="pool_address is missing or empty",
                severity=ValidationSeverity.ERROR,
            ))

        issues.extend(self._validate_numeric_ranges(cfg))

        if not isinstance(cfg.strategy_type, StrategyType):
            issues.append(ValidationIssue(
                field="strategy_type",
                message=f"unknown strategy type {cfg.strategy_type!r}",
                severity=ValidationSeverity.ERROR,
                value=cfg.strategy_type,
            ))

        issues.extend(self._check_unusual_configs(cfg))

        has_errors = any(i.severity == ValidationSeverity.ERROR for i in issues)
        return ValidationResult(valid=not has_errors, issues=issues)

    def _validate_numeric_ranges(self, cfg: PairConfig) -> List[ValidationIssue]:
        issues = []
        for field_name, (min_val, max_val) in self.NUMERIC_RANGES.items():
            value = getattr(cfg, field_name)
            try:
                num_value = float(value)
            except (TypeError, ValueError):
                issues.append(ValidationIssue(
                    field=field_name,
                    message=f"'{field_name}' has invalid numeric value: {value}",
                    severity=ValidationSeverity.ERROR,
                    value=value,
                ))
                continue
            if num_value != num_value or num_value in (float("inf"), float("-inf")):
                issues.append(ValidationIssue(
                    field=field_name,
                    message=f"'{field_name}' must be finite",
                    severity=ValidationSeverity.ERROR,
                    value=value,
                ))
            elif min_val is not None and num_value < min_val:
                issues.append(ValidationIssue(
                    field=field_name,
                    message=f"'{field_name}' value {value} is below minimum {min_val}",
                    severity=ValidationSeverity.ERROR,
                    value=value,
                    suggestion=f"Set to at least {min_val}",
                ))
            elif max_val is not None and num_value > max_val:
                issues.append(ValidationIssue(
                    field=field_name,
                    message=f"'{field_name}' value {value} is above maximum {max_val}",
                    severity=ValidationSeverity.ERROR,
                    value=value,
                    suggestion=f"Set to at most {max_val}",
                ))
        return issues

    def _check_unusual_configs(self, cfg: PairConfig) -> List[ValidationIssue]:
        issues = []
        if cfg.total_range_interval % 2:
            issues.append(ValidationIssue(
                field="total_range_interval",
                message=f"odd range width {cfg.total_range_interval}; half-widths are floored",
                severity=ValidationSeverity.WARNING,
                value=cfg.total_range_interval,
            ))
        if cfg.total_range_interval + 1 > EMPTY_POSITION_BINS:
            issues.append(ValidationIssue(
                field="total_range_interval",
                message=(
                    f"range width {cfg.total_range_interval} exceeds the "
                    f"{EMPTY_POSITION_BINS}-bin position that hosts it"
                ),
                severity=ValidationSeverity.WARNING,
                value=cfg.total_range_interval,
                suggestion=f"Use at most {EMPTY_POSITION_BINS - 1}",
            ))
        return issues


def validate_and_log(cfg: PairConfig, logger_instance: Optional[logging.Logger] = None) -> ValidationResult:
    """Validate a pair config and log all issues."""
    log = logger_instance or logger
    result = PairConfigValidator().validate(cfg)

    for issue in result.get_errors():
        msg = f"CONFIG ERROR [{cfg.name}]: {issue.message}"
        if issue.suggestion:
            msg += f" (suggestion: {issue.suggestion})"
        log.error(msg)

    for issue in result.get_warnings():
        msg = f"CONFIG WARNING [{cfg.name}]: {issue.message}"
        if issue.suggestion:
            msg += f" (suggestion: {issue.suggestion})"
        log.warning(msg)

    return result
