# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, getsignal, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from catalogsync.app import catalog_summary, import_catalog_file, write_import_template
from catalogsync.config import SettingsError, configure_logging, get_import_settings
from catalogsync.domain.errors import ConfigurationError
from catalogsync.domain.model import ImportMode, OutcomeAction

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from catalogsync.domain.model import BatchReport, CatalogSummary, ImportSettings

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import catalog spreadsheets")
    subparsers = parser.add_subparsers(dest="command", required=True)

    importer = subparsers.add_parser("import", help="Import a CSV export or Excel workbook")
    importer.add_argument("file", type=Path, help="CSV, .xlsx or .xlsm file to import")
    importer.add_argument(
        "--mode",
        choices=[mode.value for mode in ImportMode],
        default=ImportMode.STRICT.value,
        help="strict rejects the batch on any invalid record (default: %(default)s)",
    )
    importer.add_argument(
        "--chunk-size",
        type=int,
        help="Records per transaction (defaults to config)",
    )
    importer.add_argument(
        "--workers",
        type=int,
        help="Chunks committed in parallel (defaults to config)",
    )
    importer.add_argument(
        "--pause",
        type=float,
        help="Seconds to wait between chunks (defaults to config)",
    )
    importer.add_argument(
        "--deadline",
        type=float,
        help="Stop starting new chunks after this many seconds",
    )
    importer.add_argument(
        "--no-header",
        action="store_true",
        help="Treat the first row as data and map columns by position",
    )
    importer.add_argument(
        "--skip-rows",
        type=int,
        default=0,
        help="Leading lines to drop before the header (default: %(default)s)",
    )
    importer.add_argument(
        "--sheet",
        help="Worksheet to read from an Excel workbook (default: the first one)",
    )
    importer.add_argument(
        "--registry",
        type=Path,
        help="Column registry TOML file replacing the built-in one",
    )
    importer.add_argument(
        "--report-json",
        type=Path,
        help="Write the full batch report as JSON to this path",
    )

    template = subparsers.add_parser(
        "template", help="Write a blank import sheet listing every known column"
    )
    template.add_argument("output", type=Path, help="Destination .xlsx or .csv file")
    template.add_argument(
        "--registry",
        type=Path,
        help="Column registry TOML file replacing the built-in one",
    )
    template.add_argument(
        "--no-sample",
        action="store_true",
        help="Leave out the example data row",
    )

    status = subparsers.add_parser("status", help="Show stored item counts per brand")
    status.add_argument(
        "--recent",
        type=int,
        default=10,
        help="Items added in the last 24 hours to list (default: %(default)s)",
    )
    status.add_argument("--json", action="store_true", help="Print the summary as JSON")

    return parser.parse_args(list(argv))


def _build_settings(args: argparse.Namespace) -> ImportSettings:
    settings = get_import_settings()
    overrides: dict[str, int | float] = {}
    if args.chunk_size is not None:
        overrides["chunk_size"] = args.chunk_size
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    if args.pause is not None:
        overrides["inter_chunk_pause_seconds"] = args.pause
    if args.deadline is not None:
        overrides["deadline_seconds"] = args.deadline
    if args.skip_rows < 0:
        raise ValueError("--skip-rows must be non-negative")
    return replace(settings, **overrides) if overrides else settings


def _print_summary(report: BatchReport) -> None:
    status = "ok" if report.success else "FAILED"
    print(
        f"Import {status}: processed={report.total_processed} "
        f"inserted={report.inserted_count} updated={report.updated_count} "
        f"skipped={report.skipped_count} errors={report.error_count} "
        f"ignored_rows={report.rows_ignored}"
    )
    if report.error:
        print(f"Error: {report.error}")
    for outcome in report.outcomes_with(OutcomeAction.ERROR):
        key = outcome.identity_key or "<no identity>"
        print(f"  row {outcome.source_row} [{key}]: {outcome.message}")


def _write_report(report: BatchReport, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), indent=2, default=str), encoding="utf-8")
    log.info("Wrote report to %s", path)


def _make_sigint_handler(
    cancel_event: threading.Event,
) -> Callable[[int, FrameType | None], None]:
    def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
        """First Ctrl+C stops after the running chunks; a second one exits."""
        if cancel_event.is_set():
            log.info("Closed by user (Ctrl+C)")
            sys.exit(130)
        log.info("Cancelling import after the running chunks (Ctrl+C again to abort)")
        cancel_event.set()

    return sigint_handler


def _print_status(summary: CatalogSummary) -> None:
    print(f"Catalog items: {summary.total}")
    for brand, count in summary.by_brand.items():
        print(f"  {brand}: {count}")
    if summary.recent:
        print("Added in the last 24 hours:")
    for item in summary.recent:
        label = " ".join(part for part in (item.brand, item.model, item.variant) if part)
        print(f"  {item.created_at:%Y-%m-%d %H:%M} {label}")


def _run_import(args: argparse.Namespace, settings: ImportSettings | None) -> None:
    cancel_event = threading.Event()
    previous_handler = None
    if threading.current_thread() is threading.main_thread():
        previous_handler = getsignal(SIGINT)
        signal(SIGINT, _make_sigint_handler(cancel_event))

    try:
        report = import_catalog_file(
            args.file,
            mode=args.mode,
            settings=settings,
            header=not args.no_header,
            skip_rows=args.skip_rows,
            sheet=args.sheet,
            registry_path=args.registry,
            cancel_event=cancel_event,
        )
    except ConfigurationError:
        log.exception("Catalog configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)
    finally:
        if previous_handler is not None:
            signal(SIGINT, previous_handler)

    _print_summary(report)
    if args.report_json is not None:
        _write_report(report, args.report_json)
    if not report.success:
        sys.exit(1)


def _run_template(args: argparse.Namespace) -> None:
    try:
        written = write_import_template(
            args.output,
            registry_path=args.registry,
            include_sample=not args.no_sample,
        )
    except ConfigurationError:
        log.exception("Catalog configuration error")
        sys.exit(2)
    print(f"Template written to {written}")


def _run_status(args: argparse.Namespace) -> None:
    try:
        summary = catalog_summary(recent_limit=args.recent)
    except Exception:
        log.exception("Could not read the catalog store")
        sys.exit(1)
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        _print_status(summary)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    settings: ImportSettings | None = None
    try:
        configure_logging()
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "import":
            settings = _build_settings(parsed_args)
        elif parsed_args.command == "status" and parsed_args.recent < 0:
            raise ValueError("--recent must be non-negative")
    except (ValueError, SettingsError):
        log.exception("CLI validation error")
        sys.exit(2)

    if parsed_args.command == "template":
        _run_template(parsed_args)
    elif parsed_args.command == "status":
        _run_status(parsed_args)
    else:
        _run_import(parsed_args, settings)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    main()


if __name__ == "__main__":
    run()
