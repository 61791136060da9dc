# refcheck/ui.py
# Presentation-only utilities for CLI output.
from __future__ import annotations

from typing import IO, Dict, Iterable, List

from refcheck.models import Issue, Level, Report


def _writeln(text: str = "", *, file: IO[str]) -> None:
    file.write(text + "\n")


def render_check_header(directory: str, *, file: IO[str]) -> None:
    _writeln(f"Checking links in: {directory}...", file=file)


def _group_by_document(issues: Iterable[Issue]) -> Dict[str, List[Issue]]:
    grouped: Dict[str, List[Issue]] = {}
    for issue in issues:
        owner = issue.owner
        grouped.setdefault(owner.path if owner else "(no document)", []).append(issue)
    return grouped


def render_issue_section(
    issues: Iterable[Issue], *, min_level: Level = Level.ERROR, file: IO[str]
) -> None:
    shown = [i for i in issues if i.level >= min_level]
    if not shown:
        return
    _writeln("\n--- Issues ---", file=file)
    for path, group in sorted(_group_by_document(shown).items()):
        _writeln(path, file=file)
        for issue in group:
            href = f" --> {issue.reference.href}" if issue.reference else ""
            _writeln(f"  [{issue.level.name:<7}] {issue.message}{href}", file=file)


def render_summary_line(report: Report, *, file: IO[str]) -> None:
    _writeln(
        f"\n{len(report.errors)} errors in {report.documents} documents "
        f"({report.references} links, {report.probes} requests, "
        f"{report.cache_hits} cache hits)",
        file=file,
    )
