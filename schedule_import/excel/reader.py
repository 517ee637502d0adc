from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.raw_row import RawRow

"""Workbook reader.

The studio schedule workbook has its header on the first row of the first
worksheet and one class per data row. Only ``Día`` and ``Hora`` are required;
all other recognized columns are optional.

pandas (openpyxl engine) does the decoding. Cells are read with
``dtype=object`` so that native dates/times survive untouched for the
normalizer.
"""

__all__ = [
    "WorkbookFormatError",
    "read_workbook",
    "read_workbook_file",
    "COL_ID",
    "COL_COUNTRY",
    "COL_CITY",
    "COL_INSTRUCTOR",
    "COL_DISCIPLINE",
    "COL_VENUE",
    "COL_ROOM",
    "COL_DAY",
    "COL_HOUR",
    "COL_WEEK",
    "COL_TOTAL_RESERVATIONS",
    "COL_WAITING_LIST",
    "COL_COMPLIMENTARY",
    "COL_SPOTS",
    "COL_PAID_RESERVATIONS",
    "COL_NOTE",
    "REQUIRED_COLUMNS",
]

# Column labels as written by the studio's booking export (keep verbatim,
# including the misspelled note column).
COL_ID = "ID_clase"
COL_COUNTRY = "País"
COL_CITY = "Ciudad"
COL_INSTRUCTOR = "Instructor"
COL_DISCIPLINE = "Disciplina"
COL_VENUE = "Estudio"
COL_ROOM = "Salon"
COL_DAY = "Día"
COL_HOUR = "Hora"
COL_WEEK = "Semana"
COL_TOTAL_RESERVATIONS = "Reservas Totales"
COL_WAITING_LIST = "Listas de Espera"
COL_COMPLIMENTARY = "Cortesias"
COL_SPOTS = "Lugares"
COL_PAID_RESERVATIONS = "Reservas Pagadas"
COL_NOTE = "Texto espcial"

REQUIRED_COLUMNS = (COL_DAY, COL_HOUR)


class WorkbookFormatError(Exception):
    """Raised when the workbook is unreadable, empty or lacks required columns."""


def _cell(value: Any) -> Any:
    # NaN / NaT -> None
    if value is None or pd.isna(value):
        return None
    return value


def read_workbook(blob: bytes) -> list[RawRow]:
    """Decode ``blob`` into RawRows (first worksheet only).

    Raises:
        WorkbookFormatError: unreadable file, no worksheet, no data rows, or
            missing ``Día`` / ``Hora`` columns. Nothing is returned in that case.
    """
    if not blob:
        raise WorkbookFormatError("workbook is empty")
    try:
        xls = pd.ExcelFile(BytesIO(blob))
    except Exception as e:
        raise WorkbookFormatError(f"unable to read workbook: {e}") from e

    if not xls.sheet_names:
        raise WorkbookFormatError("workbook contains no worksheets")
    sheet_name = xls.sheet_names[0]
    try:
        # ヘッダなしで生読みし、1行目をヘッダとして適用
        df = xls.parse(sheet_name, header=None, dtype=object)
    except Exception as e:
        raise WorkbookFormatError(f"unable to read worksheet '{sheet_name}': {e}") from e

    if df.shape[0] < 1:
        raise WorkbookFormatError("workbook is empty")

    columns = [("" if _cell(c) is None else str(c).strip()) for c in df.iloc[0].tolist()]

    rows: list[RawRow] = []
    for idx in range(1, df.shape[0]):
        raw = df.iloc[idx]
        if raw.isna().all():
            continue
        values: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            if not col:
                continue
            values[col] = _cell(val)
        rows.append(RawRow(row_number=idx + 1, values=values))

    if not rows:
        raise WorkbookFormatError("workbook is empty")

    missing = [c for c in REQUIRED_COLUMNS if c not in columns]
    if missing:
        raise WorkbookFormatError(
            f"workbook must contain the columns {', '.join(repr(c) for c in REQUIRED_COLUMNS)}; "
            f"missing: {', '.join(missing)}"
        )
    return rows


def read_workbook_file(path: Path) -> list[RawRow]:
    """Read a workbook from disk; see ``read_workbook``."""
    try:
        blob = path.read_bytes()
    except OSError as e:
        raise WorkbookFormatError(f"unable to read workbook file {path}: {e}") from e
    return read_workbook(blob)
