"""Date manipulation utilities"""

from datetime import date, timedelta
from typing import Dict, Iterable, List, TypeVar

T = TypeVar("T")


def days_before(anchor: date, days: int) -> date:
    """Window boundary `days` calendar days before the anchor date"""
    return anchor - timedelta(days=days)


def month_key(day: date) -> str:
    """Calendar month bucket, e.g. 2024-03"""
    return day.strftime("%Y-%m")


def group_by_month(items: Iterable[T], key) -> Dict[str, List[T]]:
    """Group items by calendar month of `key(item)`, preserving input order within a month"""
    grouped: Dict[str, List[T]] = {}
    for item in items:
        grouped.setdefault(month_key(key(item)), []).append(item)
    return grouped
