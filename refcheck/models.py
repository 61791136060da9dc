# Defines the data structures shared by the checker, the cache and the issue store.

from __future__ import annotations

import enum
import posixpath
from dataclasses import dataclass, field
from typing import Any


class Level(enum.IntEnum):
    """Issue severity. Ordered so that levels can be compared and filtered."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class ErrorKind(enum.Enum):
    """Transport failure categories, decided once at the HTTP boundary."""

    DNS_FAILURE = "dns-failure"
    TIMEOUT = "timeout"
    OTHER = "other"


@dataclass(frozen=True)
class Document:
    """One HTML file of the site being checked."""

    path: str  # root-relative, posix separators, e.g. "blog/post.html"
    site_path: str = "."

    @property
    def base_path(self) -> str:
        """Directory of the document, used to resolve relative hrefs."""
        return posixpath.dirname(self.path)


@dataclass(frozen=True)
class Reference:
    """
    A single hyperlink occurrence inside a document.

    The scheme is always lower-cased. Same-site references (no scheme, only a
    path, fragment or query) carry the scheme "file".
    """

    document: Document
    node: Any = field(compare=False, repr=False)
    href: str = ""
    scheme: str = ""
    netloc: str = ""
    path: str = ""
    query: str = ""
    fragment: str = ""
    opaque: str = ""


@dataclass(frozen=True)
class Issue:
    """One finding, optionally tied to a reference or a document."""

    level: Level
    message: str
    reference: Reference | None = None
    document: Document | None = None

    @property
    def owner(self) -> Document | None:
        if self.document is not None:
            return self.document
        if self.reference is not None:
            return self.reference.document
        return None


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single HTTP probe. status is 0 when no response arrived."""

    status: int = 0
    error_kind: ErrorKind | None = None
    error_message: str = ""

    @property
    def ok(self) -> bool:
        return self.error_kind is None and self.status != 0


@dataclass
class Report:
    """The final result of a check_site run."""

    directory_path: str
    documents: int = 0
    references: int = 0
    issues: list[Issue] = field(default_factory=list)
    probes: int = 0
    cache_hits: int = 0

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.level >= Level.ERROR]
