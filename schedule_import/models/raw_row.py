from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RawRow model: one worksheet row as read, before any cleaning."""

__all__ = [
    "RawRow",
]


@dataclass(frozen=True)
class RawRow:
    """Column label -> raw cell value for a single worksheet row.

    ``row_number`` is the sheet row number (header = 1, first data row = 2) so
    that commit errors can point reviewers at the line they see in the
    spreadsheet. Blank cells are ``None``.
    """
    row_number: int
    values: dict[str, Any]

    def get(self, column: str, default: Any = None) -> Any:
        value = self.values.get(column)
        return default if value is None else value
