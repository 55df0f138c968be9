from __future__ import annotations

from typing import Any


def normalize_key(raw: Any) -> str:
    """Canonical comparison key: surrounding whitespace trimmed, upper-cased."""
    if raw is None:
        return ""
    return str(raw).strip().upper()


def is_valid_key(key: str) -> bool:
    return bool(key)
