from __future__ import annotations

from ..models.class_draft import StagingResult
from ..models.commit_result import CommitResult

"""SUMMARY line rendering.

Format:
    SUMMARY stage drafts={n} valid={v} errors={e} deleted={d} alias_suggestions={a}
    SUMMARY commit period={p} total={t} imported={i} errored={e}
        instructors_created={c} deleted_classes={d} elapsed_sec={s}
(the commit line is a single line)
"""

__all__ = [
    "format_elapsed",
    "render_staging_summary",
    "render_commit_summary",
]


def format_elapsed(seconds: float) -> str:
    """Render seconds without scientific notation or trailing zeros."""
    if seconds <= 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_staging_summary(result: StagingResult) -> str:
    table = result.staging_table
    return (
        f"SUMMARY stage drafts={table.total_count} "
        f"valid={table.valid_count} "
        f"errors={table.error_count} "
        f"deleted={table.deleted_count} "
        f"alias_suggestions={len(result.discipline_alias_suggestions)}"
    )


def render_commit_summary(period_id: object, result: CommitResult, elapsed_seconds: float) -> str:
    """Single SUMMARY line for a finished commit.

    >>> r = CommitResult(total_rows=10, imported_rows=9, classes_created=9, instructors_created=0)
    >>> render_commit_summary(3, r, 2.0)  # doctest: +ELLIPSIS
    'SUMMARY commit period=3 total=10 imported=9 errored=0 ... elapsed_sec=2'
    """
    return (
        f"SUMMARY commit period={period_id} "
        f"total={result.total_rows} "
        f"imported={result.imported_rows} "
        f"errored={result.errored_rows} "
        f"instructors_created={result.instructors_created} "
        f"deleted_classes={result.deleted_classes} "
        f"elapsed_sec={format_elapsed(elapsed_seconds)}"
    )
