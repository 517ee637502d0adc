from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

from ..models.config_models import DEFAULT_REGIONAL_SUFFIXES, ImportSettings

"""Date/time parsing shared by staging and commit.

Both phases go through ``combine_day_time`` so a draft that stages cleanly
commits to the same instant.

Accepted day encodings:
- native ``date`` / ``datetime`` (pandas Timestamp included)
- Excel serial day numbers (days since 1899-12-30), as numbers or digit text
- slash-delimited ``a/b/c`` text. This is locale-ambiguous; it is read with
  ``ImportSettings.date_order`` (``MDY`` or ``DMY``). A four-digit first
  field is always year/month/day. Two-digit years < 50 are 20xx, else 19xx.
- ISO-like text (``2025-03-04``, ``2025-03-04T07:30:00Z``)

Accepted hour encodings:
- ``HH:MM`` / ``H:MM:SS``
- 12-hour forms with ``AM``/``PM`` or the localized ``a. m.`` / ``p. m.``
  markers, optionally followed by a regional suffix such as
  ``(hora peruana)``
- native ``time`` / ``datetime`` values
- numbers, or text that reads as a number: a day fraction (0 < x < 1) or a
  whole hour 1..23. ``7``, ``7.0`` and ``"7"`` all mean 07:00, so the hour
  text kept on a draft re-parses to the time staging computed
- the epoch-midnight sentinel (1900-01-01 00:00 or 1899-12-30 00:00, native
  or as text, and zero) which spreadsheets emit for an empty time cell; it
  means 12:00
"""

__all__ = [
    "DEFAULT_TIME",
    "parse_day",
    "parse_time",
    "combine_day_time",
    "format_time",
    "day_text",
    "hour_text",
]

BASE_DATE = datetime(1899, 12, 30)
EPOCH_SENTINELS = (datetime(1900, 1, 1), datetime(1899, 12, 30))
DEFAULT_TIME = time(12, 0)

_MERIDIEM_MARKERS = (
    (re.compile(r"\s*a\.\s*m\.", re.IGNORECASE), " AM"),
    (re.compile(r"\s*p\.\s*m\.", re.IGNORECASE), " PM"),
)
_TIME_RE = re.compile(r"^(\d{1,2})(?::(\d{1,2}))?(?::(\d{1,2})(?:\.\d+)?)?\s*(AM|PM)?$", re.IGNORECASE)
_SLASH_RE = re.compile(r"^(\d{1,4})/(\d{1,2})/(\d{1,4})$")
_SERIAL_RE = re.compile(r"^\d+(\.\d+)?$")
_ISO_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_NUMBER_RE = re.compile(r"^\d+(\.\d+)?([eE][-+]?\d+)?$")


def _parse_iso(text: str) -> datetime | None:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _expand_year(year: int) -> int:
    if year >= 100:
        return year
    return 2000 + year if year < 50 else 1900 + year


def _from_serial(number: float) -> date | None:
    if number <= 0:
        return None
    try:
        return (BASE_DATE + timedelta(days=number)).date()
    except (OverflowError, ValueError):
        return None


def _from_slash(match: re.Match[str], date_order: str) -> date | None:
    a, b, c = (int(g) for g in match.groups())
    if len(match.group(1)) == 4:
        year, month, day = a, b, c
    elif date_order == "DMY":
        day, month, year = a, b, c
    else:
        month, day, year = a, b, c
    try:
        return date(_expand_year(year), month, day)
    except ValueError:
        return None


def parse_day(value: Any, date_order: str = "MDY", tz: tzinfo | None = None) -> date | None:
    """Return the calendar day encoded by ``value`` or None.

    Timezone-aware datetimes are converted to ``tz`` before the date is taken.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None and tz is not None:
            return value.astimezone(tz).date()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return _from_serial(float(value))

    text = str(value).strip()
    if not text:
        return None
    match = _SLASH_RE.match(text)
    if match:
        return _from_slash(match, date_order)
    if _SERIAL_RE.match(text):
        return _from_serial(float(text))
    if _ISO_PREFIX_RE.match(text):
        parsed = _parse_iso(text)
        if parsed is not None:
            return parse_day(parsed, date_order, tz)
    return None


def _time_from_number(number: float) -> time | None:
    # 数値セルと数値テキストは同じ規則で読む
    if number == 0:
        return DEFAULT_TIME
    if 0 < number < 1:
        minutes = round(number * 24 * 60) % (24 * 60)
        return time(minutes // 60, minutes % 60)
    if number.is_integer() and 1 <= number <= 23:
        return time(int(number), 0)
    return None


def parse_time(value: Any, suffixes: tuple[str, ...] = DEFAULT_REGIONAL_SUFFIXES) -> time | None:
    """Return the wall-clock time (minute precision) encoded by ``value`` or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        naive = value.replace(tzinfo=None)
        if any(naive == sentinel for sentinel in EPOCH_SENTINELS):
            return DEFAULT_TIME
        return time(value.hour, value.minute)
    if isinstance(value, time):
        return time(value.hour, value.minute)
    if isinstance(value, (int, float)):
        return _time_from_number(float(value))

    text = str(value).strip()
    if not text:
        return None
    if _ISO_PREFIX_RE.match(text):
        parsed = _parse_iso(text)
        return parse_time(parsed, suffixes) if parsed is not None else None
    if _NUMBER_RE.match(text):
        return _time_from_number(float(text))

    cleaned = text
    for suffix in suffixes:
        cleaned = re.sub(re.escape(suffix), " ", cleaned, flags=re.IGNORECASE)
    for pattern, replacement in _MERIDIEM_MARKERS:
        cleaned = pattern.sub(replacement, cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()

    match = _TIME_RE.match(cleaned)
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    period = (match.group(4) or "").upper()
    if period:
        if not 1 <= hours <= 12:
            return None
        if period == "PM" and hours != 12:
            hours += 12
        elif period == "AM" and hours == 12:
            hours = 0
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return time(hours, minutes)


def combine_day_time(day: Any, hour: Any, settings: ImportSettings) -> datetime | None:
    """Combine day and hour into a timezone-aware timestamp.

    A blank hour means 12:00. Returns None when the day is unparseable or a
    non-blank hour is unparseable.
    """
    tz = ZoneInfo(settings.timezone)
    parsed_day = parse_day(day, settings.date_order, tz)
    if parsed_day is None:
        return None
    if hour is None or (isinstance(hour, str) and not hour.strip()):
        parsed_time = DEFAULT_TIME
    else:
        parsed_time = parse_time(hour, settings.regional_time_suffixes)
        if parsed_time is None:
            return None
    return datetime.combine(parsed_day, parsed_time, tzinfo=tz)


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def day_text(value: Any) -> str:
    """Text form of a raw day cell, kept when the day cannot be parsed."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def hour_text(value: Any) -> str:
    """Original hour text as shown in the workbook."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, time):
        return format_time(value)
    return str(value).strip()
