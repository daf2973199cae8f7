"""
Timestamp helpers.

All timestamps are timezone-aware UTC datetimes in memory and
ISO-8601 strings with a trailing "Z" on disk.
"""

import re
from datetime import datetime, timezone
from typing import Optional, Union

# Fractional seconds of any length, and "+HHMM" offsets without a colon
FRACTION_PATTERN = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")
COMPACT_OFFSET_PATTERN = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)([+-]\d{2})(\d{2})$")


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (or pass through a datetime) as aware UTC.

    Accepts date-only strings ("2024-06-01", as entered on the manual
    review form), a trailing "Z", fractional seconds of any length and
    "+HHMM" offsets. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _normalize_iso(text)
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _normalize_iso(text: str) -> str:
    """Rewrite ISO-8601 variants into the subset datetime.fromisoformat accepts."""
    text = FRACTION_PATTERN.sub(
        lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text
    )
    return COMPACT_OFFSET_PATTERN.sub(r"\1\2:\3", text)
