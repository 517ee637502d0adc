from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..excel.reader import read_workbook
from ..models.class_draft import ClassDraft, StagingResult, StagingTable
from ..models.config_models import ImportSettings
from ..models.raw_row import RawRow
from ..models.registry import DisciplineRecord, InstructorRecord
from .composite import expand_composites
from .normalizer import normalize_rows
from .resolver import build_alias_suggestions, resolve_drafts

"""Staging pipeline: workbook -> reviewable staging table.

read -> normalize (+ week window) -> split composites -> resolve entities ->
aggregate. Everything after the workbook decode is a pure in-memory
transform; the registries are passed in by the caller.
"""

__all__ = [
    "build_staging_table",
    "stage_rows",
    "stage_workbook",
]

logger = logging.getLogger(__name__)


def build_staging_table(
    drafts: Iterable[ClassDraft],
    alias_suggestions: dict[str, str] | None = None,
) -> StagingResult:
    return StagingResult(
        staging_table=StagingTable(drafts=list(drafts)),
        discipline_alias_suggestions=dict(alias_suggestions or {}),
    )


def stage_rows(
    rows: Iterable[RawRow],
    initial_week: int,
    instructors: Sequence[InstructorRecord],
    disciplines: Sequence[DisciplineRecord],
    settings: ImportSettings,
) -> StagingResult:
    """Run the staging pipeline over already-decoded rows."""
    drafts = normalize_rows(rows, initial_week, settings)
    drafts = expand_composites(drafts)
    drafts = resolve_drafts(drafts, instructors, disciplines)
    suggestions = build_alias_suggestions(drafts, disciplines)
    result = build_staging_table(drafts, suggestions)
    table = result.staging_table
    logger.info(
        "staged drafts=%d valid=%d errors=%d new_instructors=%d unmapped_disciplines=%d",
        table.total_count,
        table.valid_count,
        table.error_count,
        len({d.instructor.lower() for d in drafts if d.instructor_new}),
        len({d.discipline.lower() for d in drafts if d.discipline_mapping is None}),
    )
    return result


def stage_workbook(
    blob: bytes,
    initial_week: int,
    instructors: Sequence[InstructorRecord],
    disciplines: Sequence[DisciplineRecord],
    settings: ImportSettings,
) -> StagingResult:
    """Decode ``blob`` and stage it.

    Raises:
        WorkbookFormatError: the workbook is unreadable, empty or lacks the
            ``Día`` / ``Hora`` columns
    """
    rows = read_workbook(blob)
    logger.debug("workbook rows=%d initial_week=%d", len(rows), initial_week)
    return stage_rows(rows, initial_week, instructors, disciplines, settings)
