"""Domain models for the schedule importer."""

from .class_draft import ClassDraft, StagingResult, StagingTable
from .commit_result import CommitRequest, CommitResult, RowError, RowOutcome
from .config_models import DatabaseConfig, ImportConfig, ImportSettings
from .raw_row import RawRow
from .registry import DisciplineCache, DisciplineRecord, InstructorCache, InstructorRecord

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "ImportSettings",
    # Staging models
    "RawRow",
    "ClassDraft",
    "StagingTable",
    "StagingResult",
    # Commit models
    "CommitRequest",
    "CommitResult",
    "RowError",
    "RowOutcome",
    # Registries
    "InstructorRecord",
    "DisciplineRecord",
    "InstructorCache",
    "DisciplineCache",
]
