# Shared pytest fixtures
from __future__ import annotations

import copy
import tempfile
from collections.abc import Callable
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from schedule_import.logging.init import reset_logging
from schedule_import.models.config_models import ImportSettings
from schedule_import.models.registry import DisciplineRecord, InstructorRecord

HEADER = [
    "ID_clase",
    "País",
    "Ciudad",
    "Instructor",
    "Disciplina",
    "Estudio",
    "Salon",
    "Día",
    "Hora",
    "Semana",
    "Reservas Totales",
    "Listas de Espera",
    "Cortesias",
    "Lugares",
    "Reservas Pagadas",
    "Texto espcial",
]


@pytest.fixture(autouse=True)
def _fresh_logging():
    # StreamHandler は生成時の sys.stdout を掴むため、テスト毎に作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("PGDSN", raising=False)
        monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """tenant_id: studio-1
timezone: America/Lima
date_order: MDY
defaults:
  country: Perú
  city: Lima
regional_time_suffixes:
  - "(hora peruana)"
error_log_dir: ./logs
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def settings() -> ImportSettings:
    return ImportSettings(timezone="America/Lima")


def workbook_bytes(rows: list[dict[str, Any]], columns: list[str] | None = None) -> bytes:
    frame = pd.DataFrame(rows, columns=columns or HEADER)
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name="Horario")
    return buf.getvalue()


@pytest.fixture()
def make_workbook() -> Callable[..., bytes]:
    """rows (dicts keyed by header label) -> .xlsx bytes."""
    return workbook_bytes


@pytest.fixture()
def sample_rows() -> list[dict[str, Any]]:
    return [
        {
            "ID_clase": "c1",
            "Instructor": "ana lopez",
            "Disciplina": "Yoga",
            "Estudio": "Miraflores",
            "Salon": "A",
            "Día": "3/4/2025",
            "Hora": "07:30",
            "Semana": 10,
            "Reservas Totales": 12,
            "Lugares": 20,
            "Reservas Pagadas": 10,
        },
        {
            "ID_clase": "c2",
            "Instructor": "Ana Lopez vs Juan Perez",
            "Disciplina": "Barre",
            "Estudio": "San Isidro",
            "Día": "3/5/2025",
            "Hora": "7:30:00 p. m. (hora peruana)",
            "Semana": 10,
        },
        {
            "ID_clase": "c3",
            "Instructor": "Maria Diaz",
            "Disciplina": "Spinning",
            "Día": "3/6/2025",
            "Hora": "06:00 AM",
            "Semana": 11,
        },
        {
            "ID_clase": "c4",
            "Instructor": "Maria Diaz",
            "Disciplina": "Yoga",
            "Día": "3/30/2025",
            "Hora": "09:00",
            "Semana": 14,
        },
    ]


# ---------------------------------------------------------------------------
# In-memory schedule store (duck-types ScheduleStore, SAVEPOINT semantics)
# ---------------------------------------------------------------------------


class _Periods:
    def __init__(self, store: InMemoryScheduleStore) -> None:
        self._store = store

    def exists(self, period_id: Any, lock: bool = False) -> bool:
        self._store.calls.append(("periods.exists", period_id, lock))
        return str(period_id) in {str(p) for p in self._store.state["periods"]}


class _Instructors:
    def __init__(self, store: InMemoryScheduleStore) -> None:
        self._store = store

    def list_all(self) -> list[InstructorRecord]:
        return [InstructorRecord(**row) for row in self._store.state["instructors"]]

    def create(self, name: str) -> InstructorRecord:
        self._store.calls.append(("instructors.create", name))
        if name.lower() in self._store.fail_instructors:
            raise RuntimeError("unique violation")
        row = {"id": self._store.next_id(), "name": name, "full_name": name, "active": True}
        self._store.state["instructors"].append(row)
        return InstructorRecord(**row)

    def link_discipline(self, instructor_id: Any, discipline_id: Any) -> bool:
        self._store.calls.append(("instructors.link", instructor_id, discipline_id))
        links = self._store.state["links"]
        if (instructor_id, discipline_id) in links:
            return False
        links.add((instructor_id, discipline_id))
        return True


class _Disciplines:
    def __init__(self, store: InMemoryScheduleStore) -> None:
        self._store = store

    def list_active(self) -> list[DisciplineRecord]:
        return [DisciplineRecord(**row) for row in self._store.state["disciplines"] if row["active"]]


class _Classes:
    def __init__(self, store: InMemoryScheduleStore) -> None:
        self._store = store

    def delete_for_period(self, period_id: Any) -> int:
        self._store.calls.append(("classes.delete", period_id))
        if self._store.fail_delete:
            raise RuntimeError("connection lost")
        before = self._store.state["classes"]
        kept = [c for c in before if str(c["period_id"]) != str(period_id)]
        self._store.state["classes"] = kept
        return len(before) - len(kept)

    def create(self, values: dict[str, Any]) -> Any:
        self._store.calls.append(("classes.create", values["week"]))
        if values["room"] in self._store.fail_rooms:
            raise RuntimeError("check constraint violated")
        row = dict(values, id=self._store.next_id())
        self._store.state["classes"].append(row)
        return row["id"]


class InMemoryScheduleStore:
    def __init__(
        self,
        periods: list[Any] | None = None,
        instructors: list[dict[str, Any]] | None = None,
        disciplines: list[dict[str, Any]] | None = None,
    ) -> None:
        self.state: dict[str, Any] = {
            "periods": list(periods or []),
            "instructors": [dict(i) for i in instructors or []],
            "disciplines": [dict(d) for d in disciplines or []],
            "links": set(),
            "classes": [],
        }
        self._seq = 1000
        self.calls: list[tuple] = []
        self.statements: list[str] = []
        self.fail_instructors: set[str] = set()
        self.fail_rooms: set[str] = set()
        self.fail_delete = False
        self.periods = _Periods(self)
        self.instructors = _Instructors(self)
        self.disciplines = _Disciplines(self)
        self.classes = _Classes(self)

    def next_id(self) -> int:
        self._seq += 1
        return self._seq

    @contextmanager
    def transaction(self):
        snapshot = copy.deepcopy(self.state)
        self.statements.append("BEGIN")
        try:
            yield
        except BaseException:
            self.state = snapshot
            self.statements.append("ROLLBACK")
            raise
        self.statements.append("COMMIT")

    @contextmanager
    def savepoint(self, name: str = "import_row"):
        snapshot = copy.deepcopy(self.state)
        self.statements.append(f"SAVEPOINT {name}")
        try:
            yield
        except Exception:
            self.state = snapshot
            self.statements.append(f"ROLLBACK TO SAVEPOINT {name}")
            raise
        self.statements.append(f"RELEASE SAVEPOINT {name}")

    def classes_for(self, period_id: Any) -> list[dict[str, Any]]:
        return [c for c in self.state["classes"] if str(c["period_id"]) == str(period_id)]


@pytest.fixture()
def make_store() -> Callable[..., InMemoryScheduleStore]:
    def _make(**kwargs: Any) -> InMemoryScheduleStore:
        kwargs.setdefault("periods", [7])
        kwargs.setdefault("instructors", [{"id": 1, "name": "Ana Lopez", "full_name": "Ana Lopez", "active": True}])
        kwargs.setdefault(
            "disciplines",
            [
                {"id": 10, "name": "Yoga", "active": True},
                {"id": 11, "name": "Barre", "active": True},
                {"id": 12, "name": "Spinning", "active": True},
                {"id": 13, "name": "Pilates", "active": False},
            ],
        )
        return InMemoryScheduleStore(**kwargs)

    return _make


# ---------------------------------------------------------------------------
# Recording DB-API cursor double
# ---------------------------------------------------------------------------


class RecordingCursor:
    """Records execute() calls; fetch results are queued by the test."""

    def __init__(self, results: list[Any] | None = None, rowcount: int = 0) -> None:
        self.executed: list[tuple[str, Any]] = []
        self.results = list(results or [])
        self.rowcount = rowcount
        self.fail_on: str | None = None

    def execute(self, sql: str, params: Any = None) -> None:
        self.executed.append((" ".join(sql.split()), params))
        if self.fail_on is not None and sql.strip().startswith(self.fail_on):
            raise RuntimeError(f"{self.fail_on} failed")

    def fetchone(self) -> Any:
        return self.results.pop(0) if self.results else None

    def fetchall(self) -> list[Any]:
        return self.results.pop(0) if self.results else []

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]


@pytest.fixture()
def recording_cursor() -> Callable[..., RecordingCursor]:
    return RecordingCursor
