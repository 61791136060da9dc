# refcheck/issues.py
"""Append-only, thread-safe store for issues found during a run."""
from __future__ import annotations

import logging
import threading
from typing import Iterator, List

from refcheck.models import Document, Issue, Level, Reference

log = logging.getLogger(__name__)


class IssueStore:
    """
    Collects Issues from every worker.

    Issues added by one worker keep their relative order; there is no ordering
    guarantee between workers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._issues: List[Issue] = []

    def add(self, issue: Issue) -> None:
        with self._lock:
            self._issues.append(issue)
        owner = issue.owner
        log.debug(
            "%s %s: %s",
            issue.level.name,
            owner.path if owner else "-",
            issue.message,
        )

    def add_for_reference(self, level: Level, message: str, ref: Reference) -> None:
        self.add(Issue(level=level, message=message, reference=ref))

    def add_for_document(self, level: Level, message: str, document: Document) -> None:
        self.add(Issue(level=level, message=message, document=document))

    def __len__(self) -> int:
        with self._lock:
            return len(self._issues)

    def __iter__(self) -> Iterator[Issue]:
        return iter(self.all())

    def all(self) -> List[Issue]:
        with self._lock:
            return list(self._issues)
