from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional
import re

from dateutil import parser

DATE_RE = re.compile(
    r"""
    (?P<day>\d{1,2})[./-](?P<month>\d{1,2})[./-](?P<year>\d{2,4})
    """,
    re.VERBOSE,
)


def parse_date_eu(raw: str) -> Optional[date]:
    m = DATE_RE.search(raw)
    if not m:
        return None

    day = int(m.group("day"))
    month = int(m.group("month"))
    year = int(m.group("year"))
    if year < 100:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # naive values are taken as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _parse_text(raw: str) -> Optional[datetime]:
    s = raw.strip()
    if not s:
        return None
    try:
        return _as_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))
    except ValueError:
        pass

    if DATE_RE.fullmatch(s):
        d = parse_date_eu(s)
        if d is None:
            return None
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)

    try:
        return _as_utc(parser.parse(s))
    except (ValueError, OverflowError):
        return None


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Coerce a string, date, datetime or epoch-milliseconds number to an aware
    UTC datetime. Returns ``None`` for empty or unparsable input."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return _as_utc(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)
    if isinstance(raw, (int, float, Decimal)):
        if not raw:
            return None
        try:
            return datetime.fromtimestamp(float(raw) / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(raw, str):
        return _parse_text(raw)
    return None


def isoformat_utc(dt: datetime) -> str:
    return _as_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_date_str(raw: Any) -> Optional[str]:
    dt = parse_timestamp(raw)
    if dt is None:
        return None
    return dt.date().isoformat()


def to_timestamp_str(raw: Any, default: Optional[datetime] = None) -> Optional[str]:
    dt = parse_timestamp(raw)
    if dt is None:
        if default is None:
            return None
        dt = default
    return isoformat_utc(dt)
