from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the schedule importer.

Built by ``schedule_import.config.loader`` after schema validation; the
services only ever see these frozen objects.
"""

DEFAULT_REGIONAL_SUFFIXES = ("(hora peruana)",)


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback configuration.

    Environment variables (DATABASE_URL / PGDSN / PG*) take precedence.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportSettings:
    """Parsing and defaulting rules shared by the staging and commit phases."""
    timezone: str = "UTC"
    date_order: str = "MDY"  # slash dates: MDY (3/4/25 = Mar 4) or DMY
    default_country: str = "Perú"
    default_city: str = "Lima"
    regional_time_suffixes: tuple[str, ...] = DEFAULT_REGIONAL_SUFFIXES


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object."""
    tenant_id: str
    settings: ImportSettings = field(default_factory=ImportSettings)
    error_log_dir: str = "logs"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
