from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

from ..excel.reader import (
    COL_CITY,
    COL_COMPLIMENTARY,
    COL_COUNTRY,
    COL_DAY,
    COL_DISCIPLINE,
    COL_HOUR,
    COL_ID,
    COL_INSTRUCTOR,
    COL_NOTE,
    COL_PAID_RESERVATIONS,
    COL_ROOM,
    COL_SPOTS,
    COL_TOTAL_RESERVATIONS,
    COL_VENUE,
    COL_WAITING_LIST,
    COL_WEEK,
)
from ..models.class_draft import ClassDraft
from ..models.config_models import ImportSettings
from ..models.raw_row import RawRow
from .temporal import combine_day_time, day_text, hour_text

"""Row normalizer: RawRow -> ClassDraft.

Cleans names, resolves the day/hour pair into one timestamp and maps the
workbook week onto the 4-week import window that starts at the caller's
initial week. Rows outside the window are dropped here and never reach the
staging table.
"""

__all__ = [
    "WINDOW_WEEKS",
    "title_case",
    "normalize_row",
    "normalize_rows",
]

logger = logging.getLogger(__name__)

WINDOW_WEEKS = 4


def title_case(name: str) -> str:
    """``"ana LOPEZ"`` -> ``"Ana Lopez"`` (word by word, whitespace collapsed)."""
    return " ".join(w[:1].upper() + w[1:].lower() for w in name.split())


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _to_count(value: Any) -> int:
    if value is None:
        return 0
    try:
        number = float(str(value).strip()) if not isinstance(value, (int, float)) else float(value)
    except ValueError:
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return max(0, int(number))


def _to_week(value: Any) -> int:
    # 空 / 解析不能 / 0 は 1 週目扱い
    if value is None:
        return 1
    try:
        return int(float(str(value).strip())) or 1
    except (ValueError, OverflowError):
        return 1


def _has_critical_data(raw: RawRow) -> bool:
    return all(_text(raw.get(col)) for col in (COL_INSTRUCTOR, COL_DISCIPLINE, COL_DAY))


def normalize_row(raw: RawRow, initial_week: int, settings: ImportSettings) -> ClassDraft | None:
    """Normalize one row; None when the row lacks instructor/discipline/day."""
    if not _has_critical_data(raw):
        return None

    raw_day = raw.get(COL_DAY)
    raw_hour = raw.get(COL_HOUR)
    original_hour = hour_text(raw_hour)
    timestamp = combine_day_time(raw_day, raw_hour, settings)

    errors: list[str] = []
    if timestamp is None:
        # 解析失敗時は元のテキストを保持
        day = day_text(raw_day)
        errors.append(f"Invalid date/time: {day} {original_hour}".rstrip())
    else:
        day = timestamp.isoformat()

    source_week = _to_week(raw.get(COL_WEEK))
    source_id = _text(raw.get(COL_ID))
    note = _text(raw.get(COL_NOTE))

    return ClassDraft(
        id=source_id or f"clase-{raw.row_number}",
        source_row=raw.row_number,
        country=_text(raw.get(COL_COUNTRY)) or settings.default_country,
        city=_text(raw.get(COL_CITY)) or settings.default_city,
        instructor=title_case(_text(raw.get(COL_INSTRUCTOR))),
        discipline=_text(raw.get(COL_DISCIPLINE)),
        venue=_text(raw.get(COL_VENUE)),
        room=_text(raw.get(COL_ROOM)),
        day=day,
        hour=original_hour,
        timestamp=timestamp,
        source_week=source_week,
        week=source_week - initial_week + 1,
        total_reservations=_to_count(raw.get(COL_TOTAL_RESERVATIONS)),
        waiting_list=_to_count(raw.get(COL_WAITING_LIST)),
        complimentary=_to_count(raw.get(COL_COMPLIMENTARY)),
        spots=_to_count(raw.get(COL_SPOTS)),
        paid_reservations=_to_count(raw.get(COL_PAID_RESERVATIONS)),
        note=note or None,
        errors=errors,
    )


def normalize_rows(rows: Iterable[RawRow], initial_week: int, settings: ImportSettings) -> list[ClassDraft]:
    """Normalize rows and keep those whose mapped week falls inside the window."""
    drafts: list[ClassDraft] = []
    skipped_incomplete = 0
    skipped_window = 0
    for raw in rows:
        draft = normalize_row(raw, initial_week, settings)
        if draft is None:
            skipped_incomplete += 1
            continue
        if not 1 <= draft.week <= WINDOW_WEEKS:
            skipped_window += 1
            continue
        drafts.append(draft)
    logger.debug(
        "normalized drafts=%d skipped_incomplete=%d skipped_outside_window=%d initial_week=%d",
        len(drafts),
        skipped_incomplete,
        skipped_window,
        initial_week,
    )
    return drafts
