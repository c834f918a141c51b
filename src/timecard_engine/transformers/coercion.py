"""Lenient parsing helpers shared by every pipeline stage.

Client extracts arrive with inconsistent cell types: spreadsheet serial
numbers, ``M/D/YY`` strings, ISO strings, ``datetime`` objects, currency
formatted numbers. Every helper here returns a default on bad input instead
of raising, so one malformed row can never abort a batch.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENTS = Decimal("0.01")
ZERO = Decimal("0")

# Spreadsheet day zero (serial 1 == 1899-12-31 once the 1900 leap bug is absorbed)
SPREADSHEET_EPOCH = date(1899, 12, 30)
MAX_SERIAL_DAY = 1_000_000

# Cells at or above 10**9 in magnitude are treated as unparseable
MAX_MAGNITUDE_EXPONENT = 9

_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})(?!\d)")
_COMPACT_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_SERIAL = re.compile(r"^\d+(\.\d+)?$")
_CLOCK_TIME = re.compile(
    r"(\d{1,2}):(\d{1,2})(?::\d{1,2}(?:\.\d+)?)?\s*([AaPp])?\.?[Mm]?\.?"
)
_BARE_HOUR = re.compile(r"^(\d{1,2})\s*([AaPp])?\.?[Mm]?\.?$")
_NUMERIC_NOISE = re.compile(r"[$,\s]")


def round2(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_text(value: Any) -> str:
    """Render a cell as stripped text; integral floats lose their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Parse a number, returning ``default`` for anything unparseable."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return default
        result = Decimal(str(value))
    elif isinstance(value, int):
        result = Decimal(value)
    else:
        text = _NUMERIC_NOISE.sub("", str(value))
        if not text:
            return default
        try:
            result = Decimal(text)
        except InvalidOperation:
            return default
    if not result.is_finite() or (result and result.adjusted() >= MAX_MAGNITUDE_EXPONENT):
        return default
    return result


def _from_serial(serial: float) -> date | None:
    if not 0 < serial < MAX_SERIAL_DAY:
        return None
    return SPREADSHEET_EPOCH + timedelta(days=math.floor(serial))


def to_date(value: Any) -> date | None:
    """Parse a calendar date, returning ``None`` when it cannot be read."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return _from_serial(float(value))

    text = str(value).strip()
    if not text:
        return None

    try:
        match = _ISO_DATE.match(text)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return date(year, month, day)

        match = _US_DATE.match(text)
        if match:
            month, day = int(match.group(1)), int(match.group(2))
            year_text = match.group(3)
            year = int(year_text) + 2000 if len(year_text) == 2 else int(year_text)
            return date(year, month, day)

        match = _COMPACT_DATE.match(text)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return date(year, month, day)
    except ValueError:
        return None

    if _SERIAL.match(text):
        return _from_serial(float(text))
    return None


def _apply_meridiem(hour: int, meridiem: str | None) -> int | None:
    if meridiem is None or hour > 12:
        return hour if hour < 24 else None
    if hour == 0:
        return None
    is_pm = meridiem.lower() == "p"
    if hour == 12:
        return 12 if is_pm else 0
    return hour + 12 if is_pm else hour


def to_minute_of_day(value: Any) -> int | None:
    """Parse a time of day into minutes after midnight."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (datetime, time)):
        return value.hour * 60 + value.minute
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        fraction = value - math.floor(value) if value >= 1 else value
        if fraction < 0:
            return None
        return round(fraction * 24 * 60) % (24 * 60)

    text = str(value).strip()
    if not text:
        return None

    match = _CLOCK_TIME.search(text)
    if match:
        hour = _apply_meridiem(int(match.group(1)), match.group(3))
        minute = int(match.group(2))
        if hour is None or minute >= 60:
            return None
        return hour * 60 + minute

    match = _BARE_HOUR.match(text)
    if match:
        hour = _apply_meridiem(int(match.group(1)), match.group(2))
        if hour is None:
            return None
        return hour * 60
    return None


def format_minute(minutes: int | None) -> str:
    """Render a minute of day as ``HH:MM``; ``None`` gives ``""``."""
    if minutes is None:
        return ""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_short_date(value: Any) -> str:
    """Render a date as unpadded ``M/D/YY``; unreadable input gives ``""``."""
    parsed = to_date(value)
    if parsed is None:
        return ""
    return f"{parsed.month}/{parsed.day}/{parsed.year % 100:02d}"


def format_padded_date(value: date) -> str:
    """Render a date as ``MM/DD/YY``."""
    return value.strftime("%m/%d/%y")


def format_decimal(value: Decimal) -> str:
    """Render a decimal without exponent notation."""
    return format(value, "f")


def week_bounds(value: date) -> tuple[date, date]:
    """Return the Sunday and Saturday of the week containing ``value``."""
    sunday = value - timedelta(days=(value.weekday() + 1) % 7)
    return sunday, sunday + timedelta(days=6)
