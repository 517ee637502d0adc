from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any

from .commit_result import RowError

"""One line of the commit error log (contracts/error_log_schema.json)."""

__all__ = [
    "PERIOD_ROW",
    "ErrorRecord",
]

# 期間単位の失敗 (特定の行に帰属しない)
PERIOD_ROW = -1


def _utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    """A draft that failed to import, or a commit that failed as a whole.

    ``source`` is the staging file name, ``period`` the target period id as
    text and ``row`` the sheet row of the draft (``PERIOD_ROW`` when the whole
    commit failed). Field order is the key order of the JSON line.
    """

    timestamp: str
    source: str
    period: str
    row: int
    error_type: str
    message: str

    @classmethod
    def create(cls, source: str, period: Any, row: int, error_type: str, message: str) -> ErrorRecord:
        return cls(
            timestamp=_utc_now(),
            source=source,
            period=str(period),
            row=row,
            error_type=error_type,
            message=message,
        )

    @classmethod
    def from_row_error(cls, source: str, period: Any, error: RowError) -> ErrorRecord:
        return cls.create(source, period, error.row, error.error_type, error.message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
