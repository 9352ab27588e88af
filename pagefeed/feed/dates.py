"""Best-effort date normalisation to ISO 8601 (UTC, ``Z`` suffix)."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

import dateparser

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")

_DATEPARSER_SETTINGS = {
    "TIMEZONE": "UTC",
    "TO_TIMEZONE": "UTC",
    "RETURN_AS_TIMEZONE_AWARE": True,
    "PREFER_DAY_OF_MONTH": "first",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(value: datetime, timespec: str = "seconds") -> str:
    """Render *value* in UTC as ``YYYY-MM-DDTHH:MM:SS[.ffffff]Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec=timespec).replace("+00:00", "Z")


def parse_date(raw: str | None) -> datetime | None:
    """Parse absolute or relative ("2 minutes ago") dates; ``None`` on failure."""
    if not raw:
        return None
    text = _WS_RE.sub(" ", raw.strip())
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return dateparser.parse(text, settings=_DATEPARSER_SETTINGS)
    except Exception as exc:  # dateparser raises a variety of errors on junk input
        logger.debug("Date parse failed for %r: %s", text, exc)
        return None


def normalize_date(raw: str | None, now: datetime | None = None) -> str:
    """ISO 8601 form of *raw*, or of *now* when *raw* cannot be parsed.

    Dates that parse but cannot be shifted to UTC (e.g. year 1 with a
    positive offset) count as unparseable.
    """
    parsed = parse_date(raw)
    if parsed is not None:
        try:
            return isoformat_utc(parsed)
        except (OverflowError, ValueError) as exc:
            logger.debug("Date out of range %r: %s", raw, exc)
    return isoformat_utc(now or utcnow())
