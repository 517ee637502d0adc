from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..db.connection import db_connection, dict_cursor
from ..db.store import ScheduleStore
from ..excel.reader import WorkbookFormatError
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.config_models import ImportConfig
from ..models.registry import DisciplineRecord, InstructorRecord
from ..services.committer import FatalImportError, ImportAbortedError, commit_import
from ..services.payloads import PayloadError, dump_json, load_commit_request, read_json
from ..services.staging import stage_workbook
from ..services.summary import render_commit_summary, render_staging_summary

"""CLI entrypoint.

    schedule-import stage  --file schedule.xlsx --initial-week 14 [--output staging.json]
    schedule-import commit --input staging.json --period-id 7 [--output result.json]

Exit codes: 0 success, 2 completed with row errors, 1 fatal.

Without --output the JSON result is the only thing on stdout and log lines go
to stderr, so `schedule-import stage ... > staging.json` feeds `commit`.

DISABLE_DB_CONNECT=1 stages against empty registries (no database); commit
always needs a connection.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

FATAL_IMPORT_ERROR = "FATAL_IMPORT_ERROR"
IMPORT_ABORTED = "IMPORT_ABORTED"


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True により .env の値で既存環境変数を上書きし、PostgreSQL 接続情報を最優先化。
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="schedule-import", description="Spreadsheet -> class schedule importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    stage = sub.add_parser("stage", help="Read a workbook and write the staging table as JSON")
    stage.add_argument("--file", type=Path, required=True, help="Workbook (.xlsx)")
    stage.add_argument("--initial-week", type=int, required=True, help="Source week that becomes week 1")
    stage.add_argument("--output", type=Path, help="Write JSON here instead of stdout")

    commit = sub.add_parser("commit", help="Replace a period's classes with a reviewed staging table")
    commit.add_argument("--input", type=Path, required=True, help="Staging JSON or {periodId, drafts}")
    commit.add_argument("--period-id", help="Target period (overrides periodId in the payload)")
    commit.add_argument("--output", type=Path, help="Write the result JSON here instead of stdout")
    return p.parse_args(argv)


def _emit(data: dict, output: Path | None) -> None:
    text = dump_json(data, output)
    if output is None:
        print(text)


def _load_registries(cfg: ImportConfig, logger) -> tuple[list[InstructorRecord], list[DisciplineRecord]]:
    # DB 接続制御: テスト等で完全に無効化したい場合 DISABLE_DB_CONNECT=1
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> empty registries")
        return [], []
    with db_connection(cfg.database) as conn, dict_cursor(conn) as cur:
        store = ScheduleStore(cur, cfg.tenant_id)
        return store.instructors.list_all(), store.disciplines.list_active()


def _run_stage(args: argparse.Namespace, cfg: ImportConfig, logger) -> int:
    if not args.file.exists():
        logger.error(f"workbook not found: {args.file}")
        return EXIT_FATAL
    if args.initial_week < 1:
        logger.error(f"--initial-week must be >= 1, got {args.initial_week}")
        return EXIT_FATAL

    try:
        instructors, disciplines = _load_registries(cfg, logger)
    except psycopg2.Error as e:
        logger.error(f"db: {e}")
        return EXIT_FATAL

    try:
        result = stage_workbook(args.file.read_bytes(), args.initial_week, instructors, disciplines, cfg.settings)
    except WorkbookFormatError as e:
        logger.error(f"workbook: {e}")
        return EXIT_FATAL

    _emit(result.to_dict(), args.output)
    if args.output is not None:
        logger.info(f"staging table written: {args.output}")

    # "SUMMARY " の接頭辞は formatter 側で付与
    log_summary(render_staging_summary(result)[len("SUMMARY "):])
    if result.staging_table.error_count > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _run_commit(args: argparse.Namespace, cfg: ImportConfig, logger) -> int:
    try:
        request = load_commit_request(read_json(args.input), args.period_id)
    except PayloadError as e:
        logger.error(f"payload: {e}")
        return EXIT_FATAL

    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.error("commit requires a database connection (DISABLE_DB_CONNECT=1 is set)")
        return EXIT_FATAL

    source = args.input.name
    error_log = ErrorLogBuffer(Path(cfg.error_log_dir), source=source, period=request.period_id)
    started = time.perf_counter()
    try:
        with db_connection(cfg.database) as conn, dict_cursor(conn) as cur:
            store = ScheduleStore(cur, cfg.tenant_id)
            result = commit_import(request, store, cfg.settings, error_log=error_log)
    except FatalImportError as e:
        error_type = IMPORT_ABORTED if isinstance(e, ImportAbortedError) else FATAL_IMPORT_ERROR
        error_log.add_period_error(error_type, str(e))
        path = error_log.flush()
        logger.error(f"commit: {e}")
        if path is not None:
            logger.info(f"error log written: {path}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"db: {e}")
        return EXIT_FATAL
    elapsed = time.perf_counter() - started

    path = error_log.flush()
    if path is not None:
        logger.info(f"error log written: {path}")

    _emit(result.to_dict(), args.output)
    log_summary(render_commit_summary(request.period_id, result, elapsed)[len("SUMMARY "):])
    if result.errored_rows > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # NOTE: 空リスト [] が与えられた場合に sys.argv[1:] が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    # JSON を stdout に出す場合、ログは stderr へ
    logger = setup_logging(debug=args.debug, stream=sys.stderr if args.output is None else sys.stdout)
    if args.debug:
        logger.debug("debug mode enabled")

    # .env を最優先で読み込む (DB 接続パラメータ優先順位保証)
    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "stage":
        return _run_stage(args, cfg, logger)
    return _run_commit(args, cfg, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
