from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema.exceptions import ValidationError

from ..models.class_draft import ClassDraft
from ..models.commit_result import CommitRequest

"""JSON payloads exchanged with the review UI.

Two shapes are accepted as commit input:

* ``{"periodId": ..., "drafts": [...]}``
* a staging output file ``{"stagingTable": {"drafts": [...]}, ...}``, in which
  case the period id must come from the caller (``--period-id``).

An explicit period id always overrides one found in the payload.
"""

__all__ = [
    "COMMIT_SCHEMA_PATH",
    "PayloadError",
    "read_json",
    "load_commit_request",
    "dump_json",
]

COMMIT_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "contracts" / "commit_request_schema.json"


class PayloadError(Exception):
    pass


def read_json(path: Path) -> Any:
    if not path.exists():
        raise PayloadError(f"input file not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PayloadError(f"invalid json in {path}: {e}") from e


def _commit_schema() -> dict[str, Any]:
    return json.loads(COMMIT_SCHEMA_PATH.read_text(encoding="utf-8"))


def load_commit_request(data: Any, period_id: Any = None) -> CommitRequest:
    """Validate ``data`` and build a CommitRequest.

    Raises:
        PayloadError: wrong shape, missing period id or schema violation
    """
    if not isinstance(data, dict):
        raise PayloadError(f"payload root must be an object, got {type(data).__name__}")

    if "stagingTable" in data:
        table = data["stagingTable"]
        drafts = table.get("drafts") if isinstance(table, dict) else None
        payload: dict[str, Any] = {"drafts": drafts}
        if "periodId" in data:
            payload["periodId"] = data["periodId"]
    else:
        payload = dict(data)
    if period_id is not None:
        payload["periodId"] = period_id
    if payload.get("periodId") is None:
        raise PayloadError("period id is required (payload periodId or --period-id)")

    try:
        jsonschema.validate(payload, _commit_schema())
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path)
        raise PayloadError(f"commit payload validation failed at '{where}': {e.message}") from e

    return CommitRequest(
        period_id=payload["periodId"],
        drafts=[ClassDraft.from_dict(d) for d in payload["drafts"]],
    )


def dump_json(data: Any, path: Path | None = None) -> str:
    """Serialize ``data`` (UTF-8, indented); also write it when ``path`` is given."""
    text = json.dumps(data, ensure_ascii=False, indent=2)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
    return text
