import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

from dateutil import parser as dtparser

logger = logging.getLogger(__name__)

_ORDINAL = re.compile(r"(\d+)(st|nd|rd|th)\b", re.IGNORECASE)

DateLike = Union[str, date, datetime]


def tomorrow(today: Optional[date] = None) -> date:
    return (today or date.today()) + timedelta(days=1)


def parse_date(value: DateLike, today: Optional[date] = None) -> Optional[date]:
    """
    Parse a free-text or ISO date. Ordinal suffixes are stripped and a
    missing year is filled with the current one. Returns None if unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _ORDINAL.sub(r"\1", (value or "").strip())
    if not text:
        return None

    today = today or date.today()
    default = datetime(today.year, 1, 1)
    try:
        return dtparser.parse(text, default=default, fuzzy=False).date()
    except (ValueError, OverflowError):
        return None


def ensure_future(d: date, today: Optional[date] = None) -> date:
    today = today or date.today()
    if d < today:
        logger.warning(f"Date {d.isoformat()} is in the past, using tomorrow instead")
        return tomorrow(today)
    return d


def normalize_date(value: DateLike, today: Optional[date] = None) -> str:
    """
    Normalize a date-like value to YYYY-MM-DD, never in the past.
    Unparseable input resolves to tomorrow.
    """
    today = today or date.today()
    parsed = parse_date(value, today=today)
    if parsed is None:
        logger.warning(f"Could not parse date {value!r}, using tomorrow instead")
        return tomorrow(today).isoformat()
    return ensure_future(parsed, today=today).isoformat()
