# core/utils.py

from datetime import datetime, timezone
from typing import Optional


def sanitize(data: dict) -> dict:
    """
    Sanitize payload data before it is written:
    - Empty strings → None
    - Strip string whitespace
    - Everything else is kept as-is
    """
    clean = {}

    for k, v in data.items():
        if isinstance(v, str):
            stripped = v.strip()
            clean[k] = stripped or None
            continue
        clean[k] = v

    return clean


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse Supabase timestamps ("2024-05-01T10:00:00+00:00", trailing "Z",
    or naive) into aware UTC datetimes. Returns None for empty values.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).replace("Z", "+00:00")
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def full_name(row: dict) -> str:
    return " ".join(p for p in [row.get("first_name"), row.get("last_name")] if p) or (row.get("email") or "")
