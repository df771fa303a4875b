"""Command line interface for sampling Book.io cover images."""

import argparse, json, logging, sys
from pathlib import Path

from bookcovers import __version__
from bookcovers.config import EnvCredentialProvider, load_settings
from bookcovers.errors import InsufficientAssets
from bookcovers.workflow import BatchReport, run_workflow


log = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _resolve_log_level(args: argparse.Namespace) -> int:
    """Resolve effective logging level from explicit level or verbosity flags."""
    if args.log_level is not None:
        return getattr(logging, args.log_level)

    # Start from INFO, then apply -v and -q offsets with DEBUG/ERROR clamp.
    level = logging.INFO - (10 * int(args.verbose)) + (10 * int(args.quiet))
    return max(logging.DEBUG, min(logging.ERROR, level))


def _configure_logging(args: argparse.Namespace) -> None:
    """Configure stdlib logging using Python default handler routing."""
    effective_level = _resolve_log_level(args)
    root_logger = logging.getLogger()
    root_logger.setLevel(effective_level)
    if not root_logger.handlers:
        logging.basicConfig(level=effective_level)


def _write_report(report: BatchReport, report_fp: Path) -> Path:
    """Write the batch report as JSON."""
    report_path = report_fp.expanduser().resolve()
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
    log.debug(f"wrote batch report to\n    {report_path}")
    return report_path


def main_cli(args: argparse.Namespace) -> int:
    """Run the cover workflow for parsed arguments."""
    settings = load_settings(
        args.config,
        sample_offset=args.offset,
        sample_count=args.count,
        timeout=args.timeout,
    )

    # The ledger credential gates the whole run; the gateway credential is checked per item.
    credentials = EnvCredentialProvider()
    credentials.get("ledger")

    try:
        report = run_workflow(
            args.policy_id,
            args.output_dir,
            settings=settings,
            credentials=credentials,
            logger=log,
        )
    except InsufficientAssets as err:
        log.error(f"{err}")
        return 0

    for outcome in report.saved:
        print(outcome.path)
    print(f"saved={len(report.saved)} skipped={len(report.skipped)} failed={len(report.failed)}")
    if args.report is not None:
        _write_report(report, args.report)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the bookcovers CLI and return an exit code."""
    args = _parse_arguments(argv)
    _configure_logging(args)
    try:
        return main_cli(args)
    except Exception as err:
        log.error(f"{err}")
        log.debug("unhandled CLI exception", exc_info=True)
        return 1


def _parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for bookcovers."""
    parser = _ArgumentParser(
        prog="bookcovers",
        description="Download a sample of high-resolution covers for a Book.io Cardano policy id.",
    )
    parser.add_argument("policy_id", help="Cardano policy id of a Book.io collection.")
    parser.add_argument("output_dir", type=Path, help="Directory receiving <name>.png cover files.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (repeatable).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Decrease logging verbosity (repeatable).",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default=None,
        help="Explicit log level override.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional JSON settings file. Defaults to config.json in the user config directory when present.",
    )
    parser.add_argument(
        "--offset",
        type=int,
        default=None,
        help="Index of the first sampled asset (default 1).",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Number of assets to sample (default 10).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds.",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Optional path for a JSON batch report.",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    raise SystemExit(main())
