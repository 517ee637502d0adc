from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .repositories import ClassRepository, DisciplineRepository, InstructorRepository, PeriodRepository

"""ScheduleStore: the repositories of one tenant sharing one cursor.

The commit runs as one transaction; each row runs in a SAVEPOINT so that a
failing INSERT is rolled back alone instead of aborting the transaction.
"""

__all__ = [
    "ScheduleStore",
]

logger = logging.getLogger(__name__)


class ScheduleStore:
    def __init__(self, cursor: Any, tenant_id: str) -> None:
        self.cursor = cursor
        self.tenant_id = tenant_id
        self.periods = PeriodRepository(cursor, tenant_id)
        self.instructors = InstructorRepository(cursor, tenant_id)
        self.disciplines = DisciplineRepository(cursor, tenant_id)
        self.classes = ClassRepository(cursor, tenant_id)

    def _rollback(self, statement: str) -> None:
        try:
            self.cursor.execute(statement)
        except Exception:
            # 元の例外を優先するため、ここでは記録のみ
            logger.exception("%s failed", statement)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """BEGIN ... COMMIT, ROLLBACK on any exception (re-raised)."""
        self.cursor.execute("BEGIN")
        try:
            yield
        except BaseException:
            self._rollback("ROLLBACK")
            raise
        self.cursor.execute("COMMIT")

    @contextmanager
    def savepoint(self, name: str = "import_row") -> Iterator[None]:
        """SAVEPOINT scope; rolled back to on exception (re-raised)."""
        self.cursor.execute(f"SAVEPOINT {name}")
        try:
            yield
        except Exception:
            self._rollback(f"ROLLBACK TO SAVEPOINT {name}")
            raise
        self.cursor.execute(f"RELEASE SAVEPOINT {name}")
