"""Date codec for spreadsheet cells.

Export writes dates as dd/mm/yyyy; import reads them back here.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

import pandas as pd
from dateutil import parser as dtparse

from ifood_crm.core.clock import local_tz


def _local_midnight(year: int, month: int, day: int) -> datetime:
    """Local midnight for a day/month/year triple.

    Out-of-range months and days roll over into neighbouring months/years
    (32/01 → 01/02, 00/03 → last day of February, month 13 → January next year).
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    d = date(year, month, 1) + timedelta(days=day - 1)
    return local_tz().localize(datetime.combine(d, time.min))


def _localize(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return local_tz().localize(dt)
    return dt


def parse_local_date(value) -> Optional[datetime]:
    """Parse a dd/mm/yyyy cell (or anything dateutil understands) into a local datetime.

    Two-digit years are read as 1900-1999. Returns None for empty or
    unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else _localize(value.to_pydatetime())
    if isinstance(value, datetime):
        return _localize(value)
    if isinstance(value, date):
        return _local_midnight(value.year, value.month, value.day)

    s = str(value).strip()
    if not s or s.lower() == "nan":
        return None

    parts = [p.strip() for p in s.split("/")]
    if len(parts) == 3 and all(p.isdigit() for p in parts):
        day, month, year = (int(p) for p in parts)
        if year < 100:
            # 25/12/24 is 1924
            year += 1900
        try:
            return _local_midnight(year, month, day)
        except (ValueError, OverflowError):
            return None

    try:
        return _localize(dtparse.parse(s))
    except (ValueError, OverflowError):
        return None


def format_local_date(dt: datetime) -> str:
    """dd/mm/yyyy in the configured timezone."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(local_tz())
    return dt.strftime("%d/%m/%Y")
