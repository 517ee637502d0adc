from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .class_draft import ClassDraft

"""Commit models: request, per-row outcome and the aggregated result."""

__all__ = [
    "ROW_VALIDATION_ERROR",
    "ENTITY_CREATION_ERROR",
    "CommitRequest",
    "RowError",
    "RowOutcome",
    "CommitResult",
]

ROW_VALIDATION_ERROR = "ROW_VALIDATION_ERROR"
ENTITY_CREATION_ERROR = "ENTITY_CREATION_ERROR"


@dataclass(frozen=True)
class CommitRequest:
    """Target period plus the reviewed drafts, in original order."""
    period_id: Any
    drafts: list[ClassDraft]


@dataclass(frozen=True)
class RowError:
    """Row-scoped failure; recorded in the report, never raised."""
    row: int  # 元の行番号
    message: str
    error_type: str = ROW_VALIDATION_ERROR
    draft_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "message": self.message}


@dataclass(frozen=True)
class RowOutcome:
    """Result of importing one draft: a created class id or an error."""
    draft_id: str
    row: int
    class_id: Any = None
    error: RowError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CommitResult:
    """Summary returned by the commit call.

    ``total_rows`` counts every draft received (deleted ones included);
    ``errored_rows`` is the number of error entries.
    """
    total_rows: int
    imported_rows: int
    classes_created: int
    instructors_created: int
    errors: list[RowError] = field(default_factory=list)
    deleted_classes: int = 0

    @property
    def errored_rows(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "importedRows": self.imported_rows,
            "erroredRows": self.errored_rows,
            "errors": [e.to_dict() for e in self.errors],
            "classesCreated": self.classes_created,
            "instructorsCreated": self.instructors_created,
        }
