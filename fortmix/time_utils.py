from datetime import date, datetime, time, timedelta, timezone
from typing import Annotated, Optional

import pytz
from fastapi import HTTPException
from pydantic import AfterValidator


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical storage format)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(dt: datetime) -> datetime:
    """Stored timestamps are naive UTC; outgoing ones carry the offset."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


UtcDateTime = Annotated[datetime, AfterValidator(as_utc)]


def get_tz(name: str):
    return pytz.timezone(name)


def _to_utc_naive(local_dt: datetime, tz) -> datetime:
    # pytz zones must localize(), never replace(tzinfo=...)
    return tz.localize(local_dt).astimezone(pytz.utc).replace(tzinfo=None)


def local_day_start(tz, day: date) -> datetime:
    return _to_utc_naive(datetime.combine(day, time.min), tz)


def local_today(tz) -> date:
    return datetime.now(tz).date()


def start_of_today(tz) -> datetime:
    return local_day_start(tz, local_today(tz))


def end_of_today(tz) -> datetime:
    return _to_utc_naive(datetime.combine(local_today(tz), time.max), tz)


def start_of_month(tz) -> datetime:
    return local_day_start(tz, local_today(tz).replace(day=1))


def days_ago_start(tz, days: int) -> datetime:
    return local_day_start(tz, local_today(tz) - timedelta(days=days))


def local_date(dt: datetime, tz) -> date:
    """Calendar date, in the shop's zone, of a stored UTC timestamp."""
    return pytz.utc.localize(dt).astimezone(tz).date()


def parse_bound(value: Optional[str], tz, end: bool = False) -> Optional[datetime]:
    """
    Parse a from/to query value into a naive UTC datetime.

    - None / "" -> None
    - "YYYY-MM-DD" -> start of that local day (or its last instant when end=True)
    - naive datetime -> interpreted in the shop's zone; an end bound given in
      whole seconds covers that entire second
    - "...Z" or "...+HH:MM" -> converted to UTC
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    try:
        if len(s) == 10:
            day = date.fromisoformat(s)
            return _to_utc_naive(datetime.combine(day, time.max if end else time.min), tz)

        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value}")

    if end and "." not in s:
        dt = dt.replace(microsecond=999999)

    if dt.tzinfo is None:
        return _to_utc_naive(dt, tz)
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
