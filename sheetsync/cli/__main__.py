from __future__ import annotations

import argparse
import sys
import time
import zipfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import AppConfig, ConfigError, load_config, resolve_config_path
from ..files.reader import FileFormatError, UnsupportedFileError, read_source
from ..files.writer import rows_to_json, write_rows
from ..logging.error_log import ErrorLogBuffer
from ..mapping.row_mapper import SpreadsheetRowMapper
from ..logging.init import get_logger, log_summary, setup_logging
from ..models.diff_result import DiffResult
from ..models.error_record import ErrorRecord
from ..models.import_source import CanonicalRecord, FileType
from ..models.processing_result import FileStat, ProcessingResult
from ..models.schema import Schema
from ..models.validation import ValidationError
from ..services.diff import count_by_status, diff_import, find_duplicate_keys, find_missing
from ..services.exporter import export_columns, export_rows
from ..services.importer import normalize_import
from ..services.progress import ProgressTracker
from ..services.summary import render_diff_summary, render_import_summary
from ..services.validator import is_empty

"""CLI entrypoint.

    sheetsync import FILE... --schema NAME [--preview] [--output PATH|-]
    sheetsync diff INCOMING --existing STORED --schema NAME [--output PATH]
    sheetsync export INPUT --schema NAME --output PATH

Exit codes: 0 success, 2 some input failed validation/reading or an output
could not be written, 1 fatal (config error, unknown schema).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

_READ_ERRORS = (UnsupportedFileError, FileFormatError, OSError, ValueError, zipfile.BadZipFile)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so SHEETSYNC_CONFIG and friends can be set per project."""
    if not path.exists():
        return
    try:
        load_dotenv(dotenv_path=path, override=override)
    except OSError as e:
        get_logger().warning(f"failed to load {path}: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheetsync", description="Spreadsheet import / reconciliation tool")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help="Config YAML (default: $SHEETSYNC_CONFIG or built-in)")
    sub = p.add_subparsers(dest="command", required=True)

    def common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--schema", required=True, help="Record type (schema base name)")
        sp.add_argument(
            "--keep-na", action="append", default=None, metavar="STRING",
            help="Treat STRING as a value, not a missing cell (repeatable)",
        )

    imp = sub.add_parser("import", help="Normalize and validate spreadsheet files")
    imp.add_argument("files", nargs="+", type=Path)
    imp.add_argument("--preview", action="store_true", help="Do not fail rows whose columns match nothing")
    imp.add_argument("--output", default=None, help="Write normalized records to PATH ('-' for stdout JSON)")
    common(imp)

    dif = sub.add_parser("diff", help="Compare a spreadsheet against stored records")
    dif.add_argument("incoming", type=Path)
    dif.add_argument("--existing", type=Path, required=True, help="Stored records (json/csv/xlsx)")
    dif.add_argument("--output", type=Path, default=None, help="Write diff results as JSON")
    common(dif)

    exp = sub.add_parser("export", help="Normalize a file and write it in another format")
    exp.add_argument("input", type=Path)
    exp.add_argument("--output", type=Path, required=True)
    common(exp)
    return p.parse_args(argv)


def _load_records(path: Path, schema: Schema, cfg: AppConfig, args: argparse.Namespace,
                  strict: bool = True) -> list[CanonicalRecord]:
    source = read_source(path, keep_na_strings=args.keep_na)
    return normalize_import(source, schema, strict=strict, settings=cfg.matching)


def _load_stored(path: Path, schema: Schema, cfg: AppConfig,
                 args: argparse.Namespace) -> list[CanonicalRecord]:
    """Map stored records without validating them.

    Incomplete stored records are kept (they diff as modified, or are not
    indexed when the primary key is empty) and only warned about.
    """
    source = read_source(path, keep_na_strings=args.keep_na)
    mapper = SpreadsheetRowMapper(schema, settings=cfg.matching)
    records = [mapper.format_row(row, False) for row in source.data]
    logger = get_logger()
    for index, record in enumerate(records, 1):
        missing = [k for k in schema.keys if k in schema.required_keys and is_empty(record.get(k))]
        if missing:
            logger.warning(f"{path.name}: stored record {index} is missing {', '.join(missing)}")
    return records


def _record_issues(error_log: ErrorLogBuffer, path: Path, schema: Schema, e: ValidationError) -> None:
    error_log.extend([ErrorRecord.from_issue(path.name, schema.base_name, i) for i in e.issues])


def _flush_error_log(error_log: ErrorLogBuffer) -> None:
    fp = error_log.flush()
    if fp is not None:
        get_logger().info(f"error log: {fp}")


def _run_import(args: argparse.Namespace, cfg: AppConfig, schema: Schema) -> int:
    logger = get_logger()
    error_log = ErrorLogBuffer(cfg.error_log_dir)
    start_time = datetime.now(UTC)
    output_failed = False
    stats: list[FileStat] = []
    collected: list[CanonicalRecord] = []

    with ProgressTracker(len(args.files), description=f"Importing {schema.base_name}") as progress:
        for path in args.files:
            progress.start_file(path)
            t0 = time.perf_counter()
            try:
                records = _load_records(path, schema, cfg, args, strict=not args.preview)
            except ValidationError as e:
                _record_issues(error_log, path, schema, e)
                logger.error(f"{path.name}: {e}")
                stats.append(FileStat(path.name, "failed", 0, len(e.issues), time.perf_counter() - t0))
                progress.finish_file(success=False)
                continue
            except _READ_ERRORS as e:
                error_log.append(ErrorRecord.create(path.name, schema.base_name, -1, "FILE_ERROR", str(e)))
                logger.error(f"{path.name}: {e}")
                stats.append(FileStat(path.name, "failed", 0, 1, time.perf_counter() - t0))
                progress.finish_file(success=False)
                continue
            logger.info(f"{path.name}: {len(records)} {schema.base_name} records")
            collected.extend(records)
            stats.append(FileStat(path.name, "success", len(records), 0, time.perf_counter() - t0))
            progress.set_postfix(records=len(collected))
            progress.finish_file(success=True)

    _flush_error_log(error_log)

    if args.output == "-":
        print(rows_to_json(export_rows(collected, schema, FileType.JSON)))
    elif args.output:
        out = Path(args.output)
        try:
            ft = FileType.from_path(out)
            write_rows(export_rows(collected, schema, ft), out, ft,
                       columns=export_columns(collected, schema), sheet_name=schema.base_name)
        except (OSError, ValueError) as e:
            logger.error(f"output: {e}")
            output_failed = True
        else:
            logger.info(f"wrote {len(collected)} records to {out}")

    end_time = datetime.now(UTC)
    success = sum(1 for s in stats if s.status == "success")
    result = ProcessingResult(
        success_files=success,
        failed_files=len(stats) - success,
        total_records=len(collected),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=stats,
    )
    log_summary(render_import_summary(result).removeprefix("SUMMARY "))
    return EXIT_PARTIAL_FAILURE if result.failed_files or output_failed else EXIT_SUCCESS_ALL


def _describe(result: DiffResult, schema: Schema) -> str:
    pk = result.obj.get(schema.primary_key)
    line = f"{result.status.value.upper()} {schema.primary_key}={pk}"
    if result.changes:
        line += " " + "; ".join(f"{k}: {v}" for k, v in result.changes.items())
    return line


def _diff_payload(results: list[DiffResult]) -> list[dict[str, Any]]:
    return [{"status": r.status.value, "changes": r.changes, "obj": r.obj} for r in results]


def _run_diff(args: argparse.Namespace, cfg: AppConfig, schema: Schema) -> int:
    logger = get_logger()
    error_log = ErrorLogBuffer(cfg.error_log_dir)
    loaded: dict[str, list[CanonicalRecord]] = {}
    try:
        loaded["incoming"] = _load_records(args.incoming, schema, cfg, args)
    except ValidationError as e:
        _record_issues(error_log, args.incoming, schema, e)
        logger.error(f"{args.incoming.name}: {e}")
    except _READ_ERRORS as e:
        logger.error(f"{args.incoming.name}: {e}")
    try:
        loaded["existing"] = _load_stored(args.existing, schema, cfg, args)
    except _READ_ERRORS as e:
        logger.error(f"{args.existing.name}: {e}")
    _flush_error_log(error_log)
    if len(loaded) < 2:
        return EXIT_PARTIAL_FAILURE

    incoming, existing = loaded["incoming"], loaded["existing"]
    for pk, count in find_duplicate_keys(existing, schema).items():
        logger.warning(f"stored records share {schema.primary_key}={pk} ({count} times); last one wins")

    results = diff_import(schema.base_name, incoming, {schema.base_name: existing}, cfg.registry)
    for r in results:
        logger.info(_describe(r, schema))

    missing = find_missing(incoming, existing, schema)
    if missing:
        keys = ", ".join(str(r.get(schema.primary_key)) for r in missing)
        logger.info(f"{len(missing)} stored record(s) not in {args.incoming.name} (left untouched): {keys}")

    if args.output is not None:
        try:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(rows_to_json(_diff_payload(results)) + "\n", encoding="utf-8")
        except OSError as e:
            logger.error(f"output: {e}")
            return EXIT_PARTIAL_FAILURE
        logger.info(f"wrote diff to {args.output}")

    log_summary(render_diff_summary(count_by_status(results), len(missing)).removeprefix("SUMMARY "))
    return EXIT_SUCCESS_ALL


def _run_export(args: argparse.Namespace, cfg: AppConfig, schema: Schema) -> int:
    logger = get_logger()
    try:
        records = _load_records(args.input, schema, cfg, args)
        ft = FileType.from_path(args.output)
    except ValidationError as e:
        error_log = ErrorLogBuffer(cfg.error_log_dir)
        _record_issues(error_log, args.input, schema, e)
        _flush_error_log(error_log)
        logger.error(f"{args.input.name}: {e}")
        return EXIT_PARTIAL_FAILURE
    except _READ_ERRORS as e:
        logger.error(f"export: {e}")
        return EXIT_PARTIAL_FAILURE
    try:
        write_rows(export_rows(records, schema, ft), args.output, ft,
                   columns=export_columns(records, schema), sheet_name=schema.base_name)
    except OSError as e:
        logger.error(f"export: {e}")
        return EXIT_PARTIAL_FAILURE
    logger.info(f"wrote {len(records)} records to {args.output}")
    return EXIT_SUCCESS_ALL


_COMMANDS = {
    "import": _run_import,
    "diff": _run_diff,
    "export": _run_export,
}


def main(argv: list[str] | None = None) -> int:
    # [] を渡された場合に sys.argv を読まないよう None のときだけ参照
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    # stdout に JSON を書く場合はログを stderr へ
    json_to_stdout = args.command == "import" and args.output == "-"
    logger = setup_logging(debug=args.debug, stream=sys.stderr if json_to_stdout else None)
    if args.debug:
        logger.debug("debug mode enabled")

    # .env を先に読み込み SHEETSYNC_CONFIG を反映
    _load_env_file(Path(".env"), override=True)
    config_path = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    logger.debug(f"config loaded from {cfg.source}")

    try:
        schema = cfg.registry[args.schema]
    except KeyError as e:
        logger.error(f"schema: {e.args[0]}")
        return EXIT_FATAL

    return _COMMANDS[args.command](args, cfg, schema)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
