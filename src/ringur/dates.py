"""Calendar-day arithmetic shared by the engine"""

from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """Reduce a datetime or ISO string to its calendar date (midnight-normalised)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value).date()


def days_since(value: Optional[DateLike], today: Optional[date] = None) -> Optional[int]:
    """Whole days from ``value`` to ``today``; None when there is no date"""
    if value is None:
        return None
    today = today or date.today()
    return (today - to_date(value)).days


def days_until(value: Optional[DateLike], today: Optional[date] = None) -> Optional[int]:
    """Whole days from ``today`` to ``value``, negative once it has passed"""
    if value is None:
        return None
    today = today or date.today()
    return (to_date(value) - today).days


def week_start(day: Optional[date] = None) -> date:
    """Monday of the week containing ``day``"""
    day = day or date.today()
    return day - timedelta(days=day.weekday())
