from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

"""Staging models: ClassDraft, StagingTable, StagingResult.

A ClassDraft is one candidate class awaiting human review. Drafts travel to
the reviewer as JSON (camelCase keys) and come back, possibly edited, as the
commit payload; ``to_dict`` / ``from_dict`` are the two ends of that trip.
"""

__all__ = [
    "ClassDraft",
    "StagingTable",
    "StagingResult",
]

# python 属性名 -> JSON キー
_JSON_KEYS: dict[str, str] = {
    "id": "id",
    "source_row": "sourceRow",
    "country": "country",
    "city": "city",
    "instructor": "instructor",
    "discipline": "discipline",
    "venue": "venue",
    "room": "room",
    "day": "day",
    "hour": "hour",
    "timestamp": "timestamp",
    "source_week": "sourceWeek",
    "week": "week",
    "total_reservations": "totalReservations",
    "waiting_list": "waitingList",
    "complimentary": "complimentary",
    "spots": "spots",
    "paid_reservations": "paidReservations",
    "note": "note",
    "is_composite": "isComposite",
    "composite_instructors": "compositeInstructors",
    "discipline_mapping": "disciplineMapping",
    "instructor_exists": "instructorExists",
    "instructor_new": "instructorNew",
    "marked_deleted": "markedDeleted",
    "errors": "errors",
}


@dataclass
class ClassDraft:
    """Canonical staged unit.

    ``day`` holds the combined ISO timestamp when the row's date and time
    could be parsed, otherwise the raw day text. ``hour`` always keeps the
    hour exactly as the workbook had it, because spreadsheet time
    serialization does not always agree with the recomputed 24-hour value.
    """
    id: str
    source_row: int
    instructor: str
    discipline: str
    day: str
    hour: str
    week: int
    source_week: int
    country: str = ""
    city: str = ""
    venue: str = ""
    room: str = ""
    timestamp: datetime | None = None
    total_reservations: int = 0
    waiting_list: int = 0
    complimentary: int = 0
    spots: int = 0
    paid_reservations: int = 0
    note: str | None = None
    is_composite: bool = False
    composite_instructors: list[str] = field(default_factory=list)
    discipline_mapping: str | None = None
    instructor_exists: bool = False
    instructor_new: bool = True
    marked_deleted: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def versus_number(self) -> int | None:
        """Sibling count for composite rows, None otherwise."""
        if self.is_composite and self.composite_instructors:
            return len(self.composite_instructors)
        return None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for attr, key in _JSON_KEYS.items():
            value = getattr(self, attr)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, list):
                value = list(value)
            out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClassDraft:
        """Build a draft from its JSON form (unknown keys are ignored).

        ``timestamp`` is informational only on the way back in; the committer
        recomputes it from ``day``/``hour`` because a reviewer may have edited
        either.
        """
        kwargs: dict[str, Any] = {}
        for attr, key in _JSON_KEYS.items():
            if key not in data:
                continue
            value = data[key]
            if attr == "timestamp":
                value = _parse_iso(value)
            elif attr in ("composite_instructors", "errors"):
                value = list(value or [])
            elif attr in ("note", "discipline_mapping") and value == "":
                value = None
            kwargs[attr] = value
        kwargs.setdefault("source_week", kwargs.get("week", 1))
        return cls(**kwargs)


def _parse_iso(value: Any) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class StagingTable:
    """Drafts plus the counts shown above the review grid."""
    drafts: list[ClassDraft]

    @property
    def total_count(self) -> int:
        return len(self.drafts)

    @property
    def valid_count(self) -> int:
        return sum(1 for d in self.drafts if not d.marked_deleted)

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.drafts if d.errors)

    @property
    def deleted_count(self) -> int:
        return sum(1 for d in self.drafts if d.marked_deleted)

    def to_dict(self) -> dict[str, Any]:
        return {
            "drafts": [d.to_dict() for d in self.drafts],
            "totalCount": self.total_count,
            "validCount": self.valid_count,
            "errorCount": self.error_count,
            "deletedCount": self.deleted_count,
        }


@dataclass(frozen=True)
class StagingResult:
    """Output of the staging call.

    ``discipline_alias_suggestions`` maps a workbook discipline name to the
    closest existing discipline. Advisory only: nothing applies it.
    """
    staging_table: StagingTable
    discipline_alias_suggestions: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stagingTable": self.staging_table.to_dict(),
            "disciplineAliasSuggestions": dict(self.discipline_alias_suggestions),
        }
