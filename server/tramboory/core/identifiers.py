"""Human-readable business identifiers (``PROD-…``, ``MOV-…``, ``PO-…``)."""

import secrets
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def _random_chars(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def _base36(value: int) -> str:
    digits = ""
    while value:
        value, remainder = divmod(value, 36)
        digits = _BASE36[remainder] + digits
    return digits or "0"


def new_business_id(prefix: str, suffix: str | None = None) -> str:
    """Return ``<prefix>-<epoch ms>-<9 random chars>`` with an optional suffix."""
    value = f"{prefix}-{int(time.time() * 1000)}-{_random_chars(9)}"
    if suffix:
        value = f"{value}-{suffix}"
    return value


def new_batch_id() -> str:
    """Twelve upper-case characters, used when a stock entry names no batch."""
    return f"{_base36(int(time.time() * 1000))}{_random_chars(6)}".upper()[:12]


def supplier_code(sequence: int) -> str:
    return f"SUP{sequence:06d}"
