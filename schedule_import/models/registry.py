from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

"""Registry records and the per-commit lookup caches.

The caches are plain values: the committer builds them once per call and
passes them down explicitly. Keys are lower-cased names.
"""

__all__ = [
    "InstructorRecord",
    "DisciplineRecord",
    "InstructorCache",
    "DisciplineCache",
]


@dataclass(frozen=True)
class InstructorRecord:
    id: Any
    name: str
    full_name: str | None = None
    active: bool = True


@dataclass(frozen=True)
class DisciplineRecord:
    id: Any
    name: str
    active: bool = True


def _key(name: str) -> str:
    return (name or "").strip().lower()


@dataclass
class InstructorCache:
    """lower(name) -> instructor id."""
    ids: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: Iterable[InstructorRecord]) -> InstructorCache:
        return cls({_key(r.name): r.id for r in records})

    def lookup(self, name: str) -> Any | None:
        return self.ids.get(_key(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _key(name) in self.ids

    def add(self, name: str, instructor_id: Any) -> None:
        self.ids[_key(name)] = instructor_id


@dataclass(frozen=True)
class DisciplineCache:
    """lower(name) -> discipline id, active disciplines only."""
    ids: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: Iterable[DisciplineRecord]) -> DisciplineCache:
        return cls({_key(r.name): r.id for r in records if r.active})

    def lookup(self, name: str) -> Any | None:
        return self.ids.get(_key(name))
