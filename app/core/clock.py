"""Naive-UTC time helpers; every timestamp column stores naive UTC."""
from datetime import date, datetime, time, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    return utc_now().date()


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize aware datetimes (PostgreSQL) to the naive UTC used in memory."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)
