from __future__ import annotations

import argparse
import os
import sys
from contextlib import closing
from pathlib import Path

from meter_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from meter_import.db.connection import load_env_file, open_connection
from meter_import.db.memory import InMemoryMeterDirectory, InMemoryReadingStore
from meter_import.db.reading_store import PgMeterDirectory, PgReadingStore
from meter_import.errors import DecodeError, FileError, MappingError, NoValidRowsError, PersistenceError
from meter_import.files.example import write_example
from meter_import.files.reader import check_file, decode_file
from meter_import.logging.error_log import ErrorLogBuffer
from meter_import.logging.init import log_summary, setup_logging
from meter_import.mapping.schema_mapper import build_heuristics, guess_mapping
from meter_import.models.config_models import ImportConfig
from meter_import.models.import_outcome import FrozenImportOutcome
from meter_import.models.ports import MeterDirectory, ReadingStore
from meter_import.models.reading import MeterRef
from meter_import.models.validation_result import RowStatus
from meter_import.services.progress import ImportProgressBar
from meter_import.services.summary import render_summary_body
from meter_import.services.wizard import ImportWizard

"""CLI entrypoint.

Runs the whole wizard non-interactively for one file:
upload -> mapping (guess + --map overrides) -> validation -> confirm -> import.

Exit codes:
    0  every valid row imported (or dry run)
    2  at least one row failed to import
    1  fatal: config / file / decode / mapping error, or no valid rows
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

# 行ごとの警告ログ上限 (大量行でログが溢れないように)
MAX_ROW_ISSUES_LOGGED = 20


class LogOutcomeReporter:
    """Reports the final import outcome through the application logger."""

    def __init__(self, logger) -> None:
        self.logger = logger

    def report(self, outcome: FrozenImportOutcome) -> None:
        if outcome.has_successes:
            self.logger.info(f"{outcome.success_count} reading(s) imported")
        if outcome.has_failures:
            self.logger.warning(f"{outcome.failure_count} row(s) failed, see error log")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="meter-import", description="Bulk import of meter readings (CSV / Excel)")
    p.add_argument("file", nargs="?", help="Readings file (.csv, .xlsx, .xls)")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--overwrite", action="store_true", help="Replace existing readings for the same meter and date")
    p.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="FIELD=HEADER",
        help="Override the column mapping (fields: meter_number, date, value, notes)",
    )
    p.add_argument("--user", default=None, help="User id recorded on imported readings")
    p.add_argument("--meters", type=Path, default=None, help="Meter list file (id, meter_number) for mock mode")
    p.add_argument("--dry-run", action="store_true", help="Validate only, do not import")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, guessed mapping & first rows then exit")
    p.add_argument("--write-example", type=Path, default=None, metavar="PATH", help="Write an example CSV and exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _parse_map_args(items: list[str]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for item in items:
        field, sep, header = item.partition("=")
        if not sep or not field.strip():
            raise MappingError(f"invalid --map value '{item}' (expected FIELD=HEADER)")
        overrides[field.strip()] = header.strip()
    return overrides


def _load_cli_config(path: Path | None) -> ImportConfig:
    if path is None:
        # 既定パスが無い場合は既定値で動作
        if not DEFAULT_CONFIG_PATH.exists():
            return ImportConfig()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)


def _load_meter_file(path: Path) -> list[MeterRef]:
    table = decode_file(path.read_bytes(), path.name)
    lowered = {h.lower(): h for h in table.headers}
    id_col = lowered.get("id")
    number_col = lowered.get("meter_number")
    if id_col is None or number_col is None:
        raise DecodeError(f"meter file {path.name} needs 'id' and 'meter_number' columns")
    return [MeterRef(id=row.get(id_col), meter_number=row.get(number_col)) for row in table.rows if row.get(id_col)]


def _inspect_data(path: Path, cfg: ImportConfig) -> int:
    table = decode_file(path.read_bytes(), path.name, max_size_bytes=cfg.max_file_size_bytes)
    mapping = guess_mapping(table.headers, build_heuristics(cfg.heuristics))
    print(f"FILE: {path.name} rows={len(table.rows)}")
    print(f"  headers={table.headers}")
    if table.duplicate_headers:
        print(f"  duplicate_headers={table.duplicate_headers}")
    print(f"  mapping={mapping}")
    for row in table.rows[:3]:
        print(f"  row {row.row_number}: {dict(row.cells)}")
    return 0


def _run_wizard(
    path: Path,
    args: argparse.Namespace,
    cfg: ImportConfig,
    directory: MeterDirectory,
    store: ReadingStore,
    logger,
) -> int:
    error_log = ErrorLogBuffer(Path(cfg.error_log_dir))
    wizard = ImportWizard(
        directory,
        store,
        args.user or cfg.recorded_by,
        reporter=LogOutcomeReporter(logger),
        heuristics=build_heuristics(cfg.heuristics),
        max_file_size_bytes=cfg.max_file_size_bytes,
        conflict_policy=cfg.conflict_policy,
        error_log=error_log,
    )
    wizard.upload(path.read_bytes(), path.name)
    overrides = _parse_map_args(args.map)
    if overrides:
        wizard.override_mapping(**overrides)
    logger.info(f"mapping {wizard.mapping}")
    stats = wizard.validate()

    issues = [r for r in wizard.results if r.status is not RowStatus.VALID]
    for result in issues[:MAX_ROW_ISSUES_LOGGED]:
        if result.status is RowStatus.ERROR:
            logger.error(f"row={result.row_number} {result.reason}")
        else:
            logger.warning(f"row={result.row_number} {result.reason} ({result.meter_number_raw})")
    if len(issues) > MAX_ROW_ISSUES_LOGGED:
        logger.info(f"... {len(issues) - MAX_ROW_ISSUES_LOGGED} more row issue(s)")

    if args.dry_run:
        log_summary(render_summary_body(path.name, stats, None))
        return EXIT_SUCCESS_ALL

    try:
        wizard.confirm(overwrite_existing=args.overwrite or cfg.overwrite_existing)
    except NoValidRowsError:
        log_summary(render_summary_body(path.name, stats, None))
        raise

    with ImportProgressBar(stats.valid) as bar:
        outcome = wizard.run_import(on_progress=bar)

    log_path = error_log.flush()
    if outcome.has_failures and log_path is not None:
        logger.info(f"error log: {log_path}")

    log_summary(render_summary_body(path.name, stats, outcome))
    return EXIT_PARTIAL_FAILURE if outcome.has_failures else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # NOTE: 空リスト [] が与えられた場合に sys.argv[1:] が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        for h in logger.handlers:
            h.setLevel("DEBUG")
        logger.setLevel("DEBUG")
        logger.debug("debug mode enabled")

    if args.write_example is not None:
        written = write_example(args.write_example)
        logger.info(f"example written: {written}")
        return EXIT_SUCCESS_ALL

    if not args.file:
        logger.error("no input file given")
        return EXIT_FATAL

    # .env を最優先で読み込む (DB 接続パラメータ優先順位保証)
    load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_cli_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    path = Path(args.file)
    if not path.is_file():
        logger.error(f"file not found: {path}")
        return EXIT_FATAL

    try:
        check_file(path.name, path.stat().st_size, cfg.max_file_size_bytes)
        if args.inspect_data:
            return _inspect_data(path, cfg)

        # DB 接続制御: テスト等で完全に無効化したい場合 DISABLE_DB_CONNECT=1
        if os.getenv("DISABLE_DB_CONNECT") == "1":
            logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
            return _run_mock(path, args, cfg, logger)
        try:
            conn = open_connection(cfg.database)
        except PersistenceError as db_e:
            logger.info(f"DB connection failed -> fallback to mock mode: {db_e}")
            return _run_mock(path, args, cfg, logger)
        with closing(conn):
            logger.info("mode=live")
            return _run_wizard(
                path, args, cfg, PgMeterDirectory(conn, cfg.organization_id), PgReadingStore(conn), logger
            )
    except (FileError, DecodeError) as e:
        logger.error(f"file: {e}")
        return EXIT_FATAL
    except MappingError as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL
    except NoValidRowsError as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL
    except PersistenceError as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL


def _run_mock(path: Path, args: argparse.Namespace, cfg: ImportConfig, logger) -> int:
    meters = _load_meter_file(args.meters) if args.meters is not None else []
    logger.info(f"mode=mock meters={len(meters)}")
    return _run_wizard(path, args, cfg, InMemoryMeterDirectory(meters), InMemoryReadingStore(), logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
