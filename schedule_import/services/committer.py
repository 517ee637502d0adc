from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..db.store import ScheduleStore
from ..logging.error_log import ErrorLogBuffer
from ..models.class_draft import ClassDraft
from ..models.commit_result import (
    ENTITY_CREATION_ERROR,
    ROW_VALIDATION_ERROR,
    CommitRequest,
    CommitResult,
    RowError,
    RowOutcome,
)
from ..models.config_models import ImportSettings
from ..models.registry import DisciplineCache, InstructorCache
from .progress import ProgressTracker
from .temporal import combine_day_time

"""Import committer: replace a period's classes with the reviewed drafts.

Flow (single transaction):
    1. lock + verify the period (FatalImportError when missing)
    2. instructor cache; create missing instructors, one SAVEPOINT each
    3. discipline cache (active only, exact name)
    4. delete the period's classes
    5. one SAVEPOINT per draft: validate, link instructor/discipline, insert

Row failures are collected as RowOutcome errors and never raised. Anything
that fails outside a row scope rolls the whole import back.
"""

__all__ = [
    "FatalImportError",
    "ImportAbortedError",
    "RowValidationError",
    "EntityCreationError",
    "commit_import",
]

logger = logging.getLogger(__name__)


class FatalImportError(Exception):
    """Import cannot proceed; nothing was changed."""


class ImportAbortedError(FatalImportError):
    """Store failure outside a row scope; the transaction was rolled back."""


class RowValidationError(Exception):
    """A single draft cannot be imported."""


class EntityCreationError(Exception):
    """Creating a missing instructor failed."""


def _create_missing_instructors(
    drafts: Iterable[ClassDraft],
    cache: InstructorCache,
    store: ScheduleStore,
) -> tuple[int, dict[str, str]]:
    """Create each unknown instructor once.

    Returns (created count, lower(name) -> failure message).
    """
    created = 0
    failures: dict[str, str] = {}
    for draft in drafts:
        name = (draft.instructor or "").strip()
        if not name or name in cache or name.lower() in failures:
            continue
        try:
            with store.savepoint("import_instructor"):
                try:
                    record = store.instructors.create(name)
                except Exception as exc:
                    raise EntityCreationError(f'Error creating instructor "{name}": {exc}') from exc
        except EntityCreationError as exc:
            failures[name.lower()] = str(exc)
            logger.warning("%s", exc)
            continue
        cache.add(name, record.id)
        created += 1
        logger.debug("instructor created name=%s id=%s", name, record.id)
    return created, failures


def _class_values(
    draft: ClassDraft,
    period_id: Any,
    instructor_id: Any,
    discipline_id: Any,
    timestamp: Any,
    settings: ImportSettings,
) -> dict[str, Any]:
    return {
        "period_id": period_id,
        "instructor_id": instructor_id,
        "discipline_id": discipline_id,
        "week": draft.week,
        "date": timestamp,
        "studio": draft.venue or "",
        "room": draft.room or "",
        "country": draft.country or settings.default_country,
        "city": draft.city or settings.default_city,
        "total_reservations": draft.total_reservations or 0,
        "waiting_lists": draft.waiting_list or 0,
        "complimentary": draft.complimentary or 0,
        "spots": draft.spots or 0,
        "paid_reservations": draft.paid_reservations or 0,
        "special_text": draft.note or None,
        "is_versus": draft.is_composite,
        "versus_number": draft.versus_number,
    }


def _import_draft(
    draft: ClassDraft,
    period_id: Any,
    instructors: InstructorCache,
    disciplines: DisciplineCache,
    linked: set[tuple[Any, Any]],
    store: ScheduleStore,
    settings: ImportSettings,
) -> RowOutcome:
    """Import one draft inside its own savepoint.

    The timestamp is recomputed from ``day``/``hour``; an edited ``hour`` wins
    over the time embedded in an ISO ``day``.
    """
    try:
        instructor_id = instructors.lookup(draft.instructor)
        if instructor_id is None:
            raise RowValidationError(f"Instructor not found: {draft.instructor}")
        discipline_id = disciplines.lookup(draft.discipline)
        if discipline_id is None:
            raise RowValidationError(f"Discipline not found: {draft.discipline}")
        timestamp = combine_day_time(draft.day, draft.hour, settings)
        if timestamp is None:
            raise RowValidationError(f"Invalid date/time: {draft.day} {draft.hour}")

        pair = (instructor_id, discipline_id)
        with store.savepoint("import_row"):
            try:
                if pair not in linked:
                    store.instructors.link_discipline(instructor_id, discipline_id)
                class_id = store.classes.create(
                    _class_values(draft, period_id, instructor_id, discipline_id, timestamp, settings)
                )
            except Exception as exc:
                raise RowValidationError(str(exc)) from exc
        linked.add(pair)
    except RowValidationError as exc:
        return RowOutcome(
            draft_id=draft.id,
            row=draft.source_row,
            error=RowError(
                row=draft.source_row,
                message=f"Error creating class: {exc}",
                error_type=ROW_VALIDATION_ERROR,
                draft_id=draft.id,
            ),
        )
    return RowOutcome(draft_id=draft.id, row=draft.source_row, class_id=class_id)


def commit_import(
    request: CommitRequest,
    store: ScheduleStore,
    settings: ImportSettings,
    *,
    error_log: ErrorLogBuffer | None = None,
    show_progress: bool = True,
) -> CommitResult:
    """Replace the classes of ``request.period_id`` with the non-deleted drafts.

    Args:
        request: target period and reviewed drafts (original order)
        store: repositories bound to one cursor and tenant
        settings: timezone / date order / location defaults
        error_log: when given, every row error is added to it
        show_progress: tqdm bar over drafts (TTY only)

    Raises:
        FatalImportError: the period does not exist (no side effects)
        ImportAbortedError: a store failure outside row scope (rolled back)
    """
    drafts = [d for d in request.drafts if not d.marked_deleted]
    outcomes: list[RowOutcome] = []
    try:
        with store.transaction():
            if not store.periods.exists(request.period_id, lock=True):
                raise FatalImportError(f"Period not found: {request.period_id}")

            instructors = InstructorCache.from_records(store.instructors.list_all())
            instructors_created, creation_failures = _create_missing_instructors(drafts, instructors, store)

            disciplines = DisciplineCache.from_records(store.disciplines.list_active())

            deleted = store.classes.delete_for_period(request.period_id)
            logger.info("period=%s deleted_classes=%d", request.period_id, deleted)

            linked: set[tuple[Any, Any]] = set()
            with ProgressTracker(len(drafts), description="Importing classes", enabled=show_progress) as progress:
                for draft in drafts:
                    failure = creation_failures.get((draft.instructor or "").strip().lower())
                    if failure is not None:
                        # 作成失敗の講師: エラーは1件のみ、クラス作成はスキップ
                        outcome = RowOutcome(
                            draft_id=draft.id,
                            row=draft.source_row,
                            error=RowError(
                                row=draft.source_row,
                                message=failure,
                                error_type=ENTITY_CREATION_ERROR,
                                draft_id=draft.id,
                            ),
                        )
                    else:
                        outcome = _import_draft(
                            draft, request.period_id, instructors, disciplines, linked, store, settings
                        )
                    outcomes.append(outcome)
                    progress.advance(ok=outcome.ok)
    except FatalImportError:
        raise
    except Exception as exc:
        raise ImportAbortedError(f"Import aborted, no changes applied: {exc}") from exc

    errors = [o.error for o in outcomes if o.error is not None]
    imported = sum(1 for o in outcomes if o.ok)
    for error in errors:
        logger.warning("row=%d %s", error.row, error.message)
        if error_log is not None:
            error_log.add_row_error(error)

    return CommitResult(
        total_rows=len(request.drafts),
        imported_rows=imported,
        classes_created=imported,
        instructors_created=instructors_created,
        errors=errors,
        deleted_classes=deleted,
    )
