from __future__ import annotations

from typing import Any

from ..models.registry import DisciplineRecord, InstructorRecord

"""Tenant-scoped repositories over a psycopg2 dict cursor.

Each repository only issues statements; transaction boundaries belong to
``ScheduleStore``. Rows are read by column name (RealDictCursor).

Tables:
    periods(id, tenant_id, ...)
    instructors(id, tenant_id, name, full_name, active)
    disciplines(id, tenant_id, name, active)
    instructor_disciplines(instructor_id, discipline_id)  -- unique pair
    classes(id, tenant_id, period_id, instructor_id, discipline_id, week, date,
            studio, room, country, city, total_reservations, waiting_lists,
            complimentary, spots, paid_reservations, special_text, is_versus,
            versus_number)
"""

__all__ = [
    "CLASS_COLUMNS",
    "PeriodRepository",
    "InstructorRepository",
    "DisciplineRepository",
    "ClassRepository",
]

CLASS_COLUMNS = (
    "period_id",
    "instructor_id",
    "discipline_id",
    "week",
    "date",
    "studio",
    "room",
    "country",
    "city",
    "total_reservations",
    "waiting_lists",
    "complimentary",
    "spots",
    "paid_reservations",
    "special_text",
    "is_versus",
    "versus_number",
)


class _TenantRepository:
    def __init__(self, cursor: Any, tenant_id: str) -> None:
        self.cursor = cursor
        self.tenant_id = tenant_id


class PeriodRepository(_TenantRepository):
    def exists(self, period_id: Any, lock: bool = False) -> bool:
        """True when the period exists for this tenant.

        ``lock=True`` takes a row lock (FOR UPDATE) held until the surrounding
        transaction ends, which serializes concurrent imports of one period.
        """
        sql = "SELECT id FROM periods WHERE id = %s AND tenant_id = %s"
        if lock:
            sql += " FOR UPDATE"
        self.cursor.execute(sql, (period_id, self.tenant_id))
        return self.cursor.fetchone() is not None


class InstructorRepository(_TenantRepository):
    def list_all(self) -> list[InstructorRecord]:
        self.cursor.execute(
            """
            SELECT id, name, full_name, active
            FROM instructors
            WHERE tenant_id = %s
            ORDER BY lower(name)
            """,
            (self.tenant_id,),
        )
        return [_instructor(row) for row in self.cursor.fetchall()]

    def create(self, name: str) -> InstructorRecord:
        """Insert a minimal active instructor (name doubles as full name)."""
        clean = (name or "").strip()
        if not clean:
            raise ValueError("instructor name is required")
        self.cursor.execute(
            """
            INSERT INTO instructors (tenant_id, name, full_name, active)
            VALUES (%s, %s, %s, TRUE)
            RETURNING id, name, full_name, active
            """,
            (self.tenant_id, clean, clean),
        )
        return _instructor(self.cursor.fetchone())

    def link_discipline(self, instructor_id: Any, discipline_id: Any) -> bool:
        """Associate instructor and discipline; False when already linked."""
        self.cursor.execute(
            """
            INSERT INTO instructor_disciplines (instructor_id, discipline_id)
            VALUES (%s, %s)
            ON CONFLICT DO NOTHING
            """,
            (instructor_id, discipline_id),
        )
        return self.cursor.rowcount > 0


class DisciplineRepository(_TenantRepository):
    def list_active(self) -> list[DisciplineRecord]:
        self.cursor.execute(
            """
            SELECT id, name, active
            FROM disciplines
            WHERE tenant_id = %s AND active = TRUE
            ORDER BY lower(name)
            """,
            (self.tenant_id,),
        )
        return [DisciplineRecord(id=row["id"], name=row["name"], active=bool(row["active"])) for row in self.cursor.fetchall()]


class ClassRepository(_TenantRepository):
    def delete_for_period(self, period_id: Any) -> int:
        self.cursor.execute(
            "DELETE FROM classes WHERE period_id = %s AND tenant_id = %s",
            (period_id, self.tenant_id),
        )
        return self.cursor.rowcount

    def create(self, values: dict[str, Any]) -> Any:
        """Insert one class; ``values`` must provide every CLASS_COLUMNS key."""
        missing = [c for c in CLASS_COLUMNS if c not in values]
        if missing:
            raise ValueError(f"class values missing columns: {missing}")
        cols_sql = ", ".join(("tenant_id",) + CLASS_COLUMNS)
        placeholders = ", ".join(["%s"] * (len(CLASS_COLUMNS) + 1))
        self.cursor.execute(
            f"INSERT INTO classes ({cols_sql}) VALUES ({placeholders}) RETURNING id",
            (self.tenant_id, *(values[c] for c in CLASS_COLUMNS)),
        )
        return self.cursor.fetchone()["id"]


def _instructor(row: Any) -> InstructorRecord:
    return InstructorRecord(
        id=row["id"],
        name=row["name"],
        full_name=row.get("full_name"),
        active=bool(row.get("active", True)),
    )
