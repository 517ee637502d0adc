from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..models.commit_result import RowError
from ..models.error_record import PERIOD_ROW, ErrorRecord

"""JSON Lines error log for one commit run.

The buffer is bound to the staging file and the target period, collects the
row errors of the commit (and the fatal error, if any) and writes them to
``<logs_dir>/errors-YYYYMMDD-HHMMSS.log``. Nothing is written for a clean
commit.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    def __init__(self, logs_dir: Path | None = None, *, source: str = "", period: Any = "") -> None:
        self.source = source
        self.period = str(period)
        self._records: list[ErrorRecord] = []
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        # 初回参照時に確定し、以後の flush は同じファイルへ追記
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def add_row_error(self, error: RowError) -> None:
        self.append(ErrorRecord.from_row_error(self.source, self.period, error))

    def add_period_error(self, error_type: str, message: str) -> None:
        """Record a failure of the whole commit (``row`` = -1)."""
        self.append(ErrorRecord.create(self.source, self.period, PERIOD_ROW, error_type, message))

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records and clear the buffer; None when there was nothing to write."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            f.writelines(r.to_json_line() + "\n" for r in self._records)
        self._records.clear()
        return fp
