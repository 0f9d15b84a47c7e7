"""Command line entry point: ``oss-detect-backdoor [options] <purl> [<purl> ...]``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from detect_backdoor.core.config import TOOL_NAME, VERSION, settings
from detect_backdoor.core.containers import build_batch_runner, build_manager_registry
from detect_backdoor.core.errors import (
    DownloadDirectoryUnavailable,
    NoTargets,
    RulesetUnavailable,
    UnknownEngine,
    UnsupportedFormat,
)
from detect_backdoor.core.logging import setup_logging
from detect_backdoor.domain.schemas import AnalysisConfig, parse_format, supported_formats
from detect_backdoor.managers.http import HttpFetcher
from detect_backdoor.reporting.registry import get_renderer

logger = logging.getLogger(__name__)


class UsageError(Exception):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    # argparse exits with status 2 on bad input; this tool reports usage errors with 1
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def _worker_count(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid worker count: {value!r}") from None
    if not 1 <= n <= 64:
        raise argparse.ArgumentTypeError("worker count must be between 1 and 64")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog=TOOL_NAME,
        description="Download packages by package URL and scan their source for backdoors.",
        add_help=False,
    )
    p.add_argument("targets", nargs="*", metavar="purl", help="Package URL(s) to analyze, e.g. pkg:npm/left-pad@1.3.0")
    p.add_argument(
        "--download-directory",
        default=settings.DOWNLOAD_DIR,
        help="Directory to download packages into (default: a temporary directory removed afterwards)",
    )
    p.add_argument(
        "--use-cache",
        action="store_true",
        help="Reuse packages already present in the download directory",
    )
    p.add_argument(
        "--format",
        default="text",
        help=f"Output format: {', '.join(supported_formats())} (default: text)",
    )
    p.add_argument("--output-file", default=None, help="Write the report here instead of standard output")
    p.add_argument(
        "--rules-directory",
        default=settings.RULES_DIR,
        help="Directory holding the backdoor ruleset (default: bundled rules)",
    )
    p.add_argument("--engine", default=settings.ENGINE, help="Rule engine: yara or appinspector (default: yara)")
    p.add_argument(
        "--max-workers",
        type=_worker_count,
        default=settings.MAX_WORKERS,
        help="Number of targets processed concurrently (default: 1)",
    )
    p.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL or INFO)")
    p.add_argument("-h", "--help", action="store_true", help="Show this help message and exit")
    p.add_argument("-v", "--version", action="store_true", help="Show the version and exit")
    return p


def write_report(data: bytes, output_file: Optional[Path]) -> None:
    """Write to ``output_file``, falling back to stdout when it cannot be written."""
    if output_file is not None:
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_bytes(data)
            logger.info("Report written to %s", output_file)
            return
        except OSError as exc:
            logger.error("Unable to write report to %s (%s); writing to standard output", output_file, exc)

    sys.stdout.write(data.decode("utf-8"))
    sys.stdout.flush()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as exc:
        parser.print_usage(sys.stderr)
        print(f"{TOOL_NAME}: error: {exc}", file=sys.stderr)
        return 1

    if args.help:
        parser.print_help(sys.stderr)
        return 1
    if args.version:
        print(f"{TOOL_NAME} {VERSION}", file=sys.stderr)
        return 1

    setup_logging(args.log_level)

    if not args.targets:
        parser.print_usage(sys.stderr)
        logger.error(str(NoTargets()))
        return 1

    # Reject a bad format before anything is downloaded
    try:
        output_format = parse_format(args.format)
        renderer = get_renderer(output_format)
    except UnsupportedFormat as exc:
        logger.error(str(exc))
        return 1

    config = AnalysisConfig(
        download_directory=Path(args.download_directory) if args.download_directory else None,
        use_cache=args.use_cache,
        rules_directory=Path(args.rules_directory).expanduser(),
        output_format=output_format,
        output_file=Path(args.output_file) if args.output_file else None,
        engine=args.engine,
        max_workers=args.max_workers,
    )

    http = HttpFetcher()
    try:
        runner = build_batch_runner(managers=build_manager_registry(http))
        report = runner.run(args.targets, config)
    except (NoTargets, UnknownEngine, RulesetUnavailable, DownloadDirectoryUnavailable) as exc:
        logger.error(str(exc))
        return 1
    finally:
        http.close()

    write_report(renderer.render(report), config.output_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
