# Defines the command-line interface using argparse.

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import IO, Any, Sequence

from refcheck import __version__
from refcheck.api import check_site
from refcheck.cache import CacheConfig, FileCache
from refcheck.config import ConfigError, load_config
from refcheck.models import Issue, Level, Report
from refcheck.ui import render_check_header, render_issue_section, render_summary_line

log = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _issue_to_dict(issue: Issue) -> dict[str, Any]:
    owner = issue.owner
    return {
        "level": issue.level.name,
        "message": issue.message,
        "document": owner.path if owner else None,
        "href": issue.reference.href if issue.reference else None,
    }


def _report_to_dict(report: Report) -> dict[str, Any]:
    return {
        "directory_path": report.directory_path,
        "documents": report.documents,
        "references": report.references,
        "probes": report.probes,
        "cache_hits": report.cache_hits,
        "issues": [_issue_to_dict(i) for i in report.issues],
    }


def _human_bytes(n: int) -> str:
    # Compact human-readable bytes
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    v = float(n)
    while v >= 1024 and i < len(units) - 1:
        v /= 1024.0
        i += 1
    # max 2 decimals, strip trailing zeros
    s = f"{v:.2f}".rstrip("0").rstrip(".")
    return f"{s} {units[i]}"


def _init_file_cache(cache_dir: str | None, os_default: bool) -> FileCache:
    raw = load_config()["cache"]
    cfg = CacheConfig(
        enabled=True,
        directory=str(raw.get("directory", ".refcheck_cache")),
        expire_seconds=int(raw.get("expire_seconds", 14 * 24 * 3600)),
        store_errors=bool(raw.get("store_errors", False)),
    )
    if os_default:
        cfg.directory = "os-default"
    if cache_dir:
        cfg.directory = cache_dir
    return FileCache(cfg)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check the links in a directory of HTML files.",
        prog="refcheck",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging output to stderr.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- check ---
    check_parser = subparsers.add_parser(
        "check", help="Check every link in a directory of HTML files."
    )
    check_parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Site root. Defaults to directory_path from [tool.refcheck].",
    )
    policy_group = check_parser.add_argument_group("policy arguments")
    policy_group.add_argument(
        "--no-external",
        dest="check_external",
        action="store_false",
        default=None,
        help="Do not probe external URLs.",
    )
    policy_group.add_argument(
        "--no-internal",
        dest="check_internal",
        action="store_false",
        default=None,
        help="Do not resolve internal paths.",
    )
    policy_group.add_argument(
        "--enforce-https",
        action="store_true",
        default=None,
        help="Report plain http:// links as errors.",
    )
    check_parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        metavar="N",
        help="Maximum number of links checked at once.",
    )
    check_parser.add_argument(
        "--show-debug",
        action="store_true",
        help="Also list passing and skipped links.",
    )
    check_parser.add_argument(
        "--json",
        dest="json_output",
        metavar="FILEPATH",
        help="Also write the full report as JSON to this path.",
    )

    # --- cache ---
    cache_parser = subparsers.add_parser(
        "cache", help="Manage the on-disk status cache."
    )
    cache_parser.add_argument(
        "--dir",
        dest="cache_dir",
        metavar="PATH",
        default=None,
        help="Cache directory to operate on (defaults to the configured one).",
    )
    cache_parser.add_argument(
        "--os-default",
        dest="cache_os_default",
        action="store_true",
        help="Use the OS-specific default cache directory.",
    )
    cache_sub = cache_parser.add_subparsers(dest="cache_cmd", required=True)
    cache_sub.add_parser("clear", help="Wipe the entire cache directory.")
    cache_sub.add_parser("stats", help="Show total items and size on disk.")
    cache_inspect = cache_sub.add_parser(
        "inspect", help="Dump the cached status for a specific URL."
    )
    cache_inspect.add_argument("url", help="The exact URL key to inspect in cache.")

    return parser


def _run_cache_command(args: argparse.Namespace, stdout: IO[str]) -> int:
    fc = _init_file_cache(args.cache_dir, args.cache_os_default)
    try:
        if args.cache_cmd == "clear":
            fc.clear_all()
            print(f"Cache cleared at: {fc.directory or '(disabled)'}", file=stdout)
            return 0

        if args.cache_cmd == "stats":
            st = fc.stats()
            bytes_on_disk = int(st.get("bytes", 0))
            out = {
                "directory": st.get("directory", ""),
                "items": int(st.get("items", 0)),
                "bytes": bytes_on_disk,
                "human_bytes": _human_bytes(bytes_on_disk),
            }
            print(json.dumps(out, indent=2), file=stdout)
            return 0

        # inspect
        data = fc.get(args.url)
        if data is None:
            print("Cache miss", file=stdout)
            return 2
        print(json.dumps(data, indent=2), file=stdout)
        return 0
    finally:
        fc.close()


async def async_main(
    argv: Sequence[str] | None = None, stdout: IO[str] | None = None
) -> int:
    """Async entry point for the command-line interface."""
    stdout = stdout or sys.stdout

    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "cache":
        return _run_cache_command(args, stdout)

    render_check_header(args.path or "(configured directory)", file=stdout)
    try:
        report = await check_site(
            args.path,
            check_external=args.check_external,
            check_internal=args.check_internal,
            enforce_https=args.enforce_https,
            concurrency=args.concurrency,
        )
    except NotADirectoryError as e:
        log.error("Not a directory: %s", e)
        return 2
    except ConfigError as e:
        log.error("Invalid configuration: %s", e)
        return 2

    min_level = Level.DEBUG if args.show_debug else Level.ERROR
    render_issue_section(report.issues, min_level=min_level, file=stdout)
    render_summary_line(report, file=stdout)

    if args.json_output:
        out_path = Path(args.json_output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with out_path.open("w", encoding="utf-8") as f:
            json.dump(_report_to_dict(report), f, indent=2)
        print(f"Full report written to {args.json_output}", file=stdout)

    return 1 if report.errors else 0


def main(argv: Sequence[str] | None = None) -> int:
    """Synchronous wrapper for the CLI entry point."""
    return asyncio.run(async_main(argv))


if __name__ == "__main__":
    sys.exit(main())
