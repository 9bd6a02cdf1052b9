"""Wall-clock helpers shared by services and workers."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from .config import settings

ANALYTICS_RANGES = ("last7days", "last30days", "last90days", "thisMonth", "lastMonth", "thisYear")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database columns store."""
    return datetime.utcnow()


def business_today() -> date:
    """Current calendar date at the venue."""
    return datetime.now(ZoneInfo(settings.business_timezone)).date()


def analytics_window(range_name: str, today: Optional[date] = None) -> tuple[date, date]:
    """
    First and last day (both inclusive) of a named reporting range.

    Unknown names fall back to the last 30 days.
    """
    today = today or business_today()
    if range_name == "last7days":
        return today - timedelta(days=7), today
    if range_name == "last90days":
        return today - timedelta(days=90), today
    if range_name == "thisMonth":
        return today.replace(day=1), today
    if range_name == "lastMonth":
        last = today.replace(day=1) - timedelta(days=1)
        return last.replace(day=1), last
    if range_name == "thisYear":
        return date(today.year, 1, 1), today
    return today - timedelta(days=30), today


def local_date(moment: datetime) -> date:
    """Venue calendar date of a naive UTC timestamp."""
    return moment.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(settings.business_timezone)).date()


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Naive UTC instants spanning the venue days ``start`` through ``end``."""
    zone = ZoneInfo(settings.business_timezone)
    first = datetime.combine(start, time.min, zone).astimezone(timezone.utc).replace(tzinfo=None)
    after = datetime.combine(end + timedelta(days=1), time.min, zone).astimezone(timezone.utc).replace(tzinfo=None)
    return first, after - timedelta(microseconds=1)
