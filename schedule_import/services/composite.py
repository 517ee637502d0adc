from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import replace

from ..models.class_draft import ClassDraft

"""Composite ("versus") instructor splitting.

A row such as ``Ana Lopez vs Juan Perez`` describes one class slot taught
jointly. It becomes one draft per instructor; the siblings share every slot
field and differ only in ``instructor`` and the id suffix (``a``, ``b``, ...).

Known limitation: the split is purely textual, so a real name containing
" vs " is split as well.
"""

__all__ = [
    "VERSUS_PATTERN",
    "split_instructors",
    "split_composite",
    "expand_composites",
]

VERSUS_PATTERN = re.compile(r"\s+vs\.?\s+", re.IGNORECASE)


def _suffix(index: int) -> str:
    return chr(ord("a") + index) if index < 26 else str(index + 1)


def split_instructors(name: str) -> list[str]:
    """Names in a composite field; a single-element list when not composite."""
    if not VERSUS_PATTERN.search(name):
        return [name]
    names = [part.strip() for part in VERSUS_PATTERN.split(name) if part.strip()]
    return names if len(names) >= 2 else [name]


def split_composite(draft: ClassDraft) -> list[ClassDraft]:
    names = split_instructors(draft.instructor)
    if len(names) < 2:
        return [draft]
    return [
        replace(
            draft,
            id=f"{draft.id}{_suffix(i)}",
            instructor=name,
            is_composite=True,
            composite_instructors=list(names),
            errors=list(draft.errors),
        )
        for i, name in enumerate(names)
    ]


def expand_composites(drafts: Iterable[ClassDraft]) -> list[ClassDraft]:
    out: list[ClassDraft] = []
    for draft in drafts:
        out.extend(split_composite(draft))
    return out
