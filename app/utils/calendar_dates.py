"""
Labor Administration - Calendar Dates

All contract, leave, history and bonus dates are plain calendar dates
(datetime.date), never instants in time. These helpers keep every conversion
in one place so dates never drift across timezones.
"""

from datetime import date, datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from app.config import settings


def today(tz: Optional[str] = None) -> date:
    """Current calendar date in the configured business timezone."""
    return datetime.now(ZoneInfo(tz or settings.timezone)).date()


def parse_calendar_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD string (or date/datetime) into a calendar date.

    Datetimes keep their own calendar day; no timezone conversion is applied.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def add_months(start: date, months: int) -> date:
    """
    Add calendar months to a date.

    When the target month is shorter than the start day, the result is clamped
    to the last day of the target month (Jan 31 + 1 month -> Feb 28/29); it
    never rolls over into the following month.
    """
    return start + relativedelta(months=months)
