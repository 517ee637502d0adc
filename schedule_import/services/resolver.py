from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from ..models.class_draft import ClassDraft
from ..models.registry import DisciplineRecord, InstructorRecord

"""Entity resolution against the tenant's instructor and discipline registries.

Exact matching is case-insensitive. For disciplines without an exact match a
containment test (either name contains the other) proposes an alias, which is
only reported; reviewers decide whether to rename before committing.
"""

__all__ = [
    "resolve_drafts",
    "suggest_discipline_alias",
    "build_alias_suggestions",
]


def _key(name: str) -> str:
    return (name or "").strip().lower()


def suggest_discipline_alias(name: str, disciplines: Iterable[DisciplineRecord]) -> str | None:
    """First active discipline whose name contains ``name`` or is contained in it."""
    source = _key(name)
    if not source:
        return None
    for discipline in disciplines:
        if not discipline.active:
            continue
        candidate = _key(discipline.name)
        if candidate and (source in candidate or candidate in source):
            return discipline.name
    return None


def resolve_drafts(
    drafts: Iterable[ClassDraft],
    instructors: Iterable[InstructorRecord],
    disciplines: Iterable[DisciplineRecord],
) -> list[ClassDraft]:
    """Set instructor exists/new flags and the discipline mapping on each draft.

    Only active instructors and disciplines count as matches.
    """
    known_instructors = {_key(i.name) for i in instructors if i.active}
    canonical_disciplines = {_key(d.name): d.name for d in disciplines if d.active}

    resolved: list[ClassDraft] = []
    for draft in drafts:
        exists = _key(draft.instructor) in known_instructors
        resolved.append(
            replace(
                draft,
                instructor_exists=exists,
                instructor_new=not exists,
                discipline_mapping=canonical_disciplines.get(_key(draft.discipline)),
            )
        )
    return resolved


def build_alias_suggestions(
    drafts: Iterable[ClassDraft],
    disciplines: Iterable[DisciplineRecord],
) -> dict[str, str]:
    """Source discipline name -> suggested canonical name, for unmapped drafts."""
    active = [d for d in disciplines if d.active]
    suggestions: dict[str, str] = {}
    seen: set[str] = set()
    for draft in drafts:
        if draft.discipline_mapping is not None or draft.discipline in seen:
            continue
        seen.add(draft.discipline)
        suggestion = suggest_discipline_alias(draft.discipline, active)
        if suggestion is not None:
            suggestions[draft.discipline] = suggestion
    return suggestions
