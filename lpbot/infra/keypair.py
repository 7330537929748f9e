"""
Signing keypair loading.

Sources, first usable wins:
- LP_PRIVATE_KEY: JSON array of 64 byte values
- LP_KEYPAIR_FILE: file holding the base64-encoded 64-byte secret key
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Optional, Sequence, TYPE_CHECKING

from solders.keypair import Keypair

from lpbot.core.errors import BootstrapError

if TYPE_CHECKING:
    from lpbot.config.config import Settings

log = logging.getLogger("lpbot")

SECRET_KEY_LEN = 64


def keypair_from_array(values: Sequence[int]) -> Keypair:
    if len(values) != SECRET_KEY_LEN or not all(isinstance(v, int) and 0 <= v <= 255 for v in values):
        raise BootstrapError(f"secret key must be an array of {SECRET_KEY_LEN} byte values")
    try:
        return Keypair.from_bytes(bytes(values))
    except ValueError as exc:
        raise BootstrapError(f"invalid secret key: {exc}") from exc


def keypair_from_file(path: str) -> Keypair:
    try:
        encoded = Path(path).read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise BootstrapError(f"cannot read keypair file {path}: {exc}") from exc
    try:
        secret = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise BootstrapError(f"keypair file {path} is not base64: {exc}") from exc
    return keypair_from_array(list(secret))


def load_keypair(private_key: Optional[str], keypair_file: Optional[str]) -> Keypair:
    """Load the wallet keypair or raise BootstrapError."""
    if private_key:
        try:
            values = json.loads(private_key)
        except json.JSONDecodeError as exc:
            log.error(json.dumps({"event": "private_key_parse_failed", "error": str(exc)}))
            values = None
        if isinstance(values, list) and len(values) == SECRET_KEY_LEN:
            return keypair_from_array(values)
        log.warning(json.dumps({
            "event": "private_key_invalid",
            "detail": f"expected a JSON array of {SECRET_KEY_LEN} numbers",
        }))

    if keypair_file:
        return keypair_from_file(keypair_file)

    raise BootstrapError("no valid private key: set LP_PRIVATE_KEY or LP_KEYPAIR_FILE")


def load_keypair_from_settings(settings: "Settings") -> Keypair:
    return load_keypair(settings.private_key, settings.keypair_file)
