"""Shared utility helpers used across services."""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return timezone-aware UTC now. Replaces deprecated datetime.utcnow()."""
    return datetime.now(timezone.utc)


def parse_bool(raw) -> bool:
    """Interpret query-string flags such as ?confirm_unresolved=true."""
    if isinstance(raw, bool):
        return raw
    return str(raw or "").strip().lower() in ("1", "true", "yes", "on")
