# refcheck/checks.py
"""
Link checking: pre-checks, scheme routing and the per-scheme checkers.

Every checker is terminal for its reference: it reports what it found to the
IssueStore and returns. Only a filesystem error that is not "missing" escapes
as an exception.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from refcheck.cache import RefCache
from refcheck.config import Options
from refcheck.files import check_file
from refcheck.issues import IssueStore
from refcheck.models import Document, ErrorKind, Level, Reference
from refcheck.prober import HttpProber, status_text
from refcheck.references import (
    absolute_path,
    in_list,
    new_reference,
    strip_query_string,
    url_string,
)

log = logging.getLogger(__name__)

PASSING_STATUSES = {200, 206}


def node_attributes(node: Any) -> dict[str, str]:
    """
    Flatten the attributes of a parsed node into a plain str -> str mapping.
    BeautifulSoup hands multi-valued attributes such as rel back as lists.
    """
    attrs: dict[str, str] = {}
    for key, value in (getattr(node, "attrs", None) or {}).items():
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        attrs[str(key).lower()] = "" if value is None else str(value)
    return attrs


class LinkChecker:
    """Checks references against one set of Options, sharing a cache and an issue store."""

    def __init__(
        self,
        options: Options,
        issues: IssueStore,
        cache: RefCache,
        prober: HttpProber | None = None,
    ):
        self.options = options
        self.issues = issues
        self.cache = cache
        self.prober = prober

    # ---- Entry points -------------------------------------------------------

    async def check_link(self, document: Document, node: Any) -> None:
        """Check one <a>/<link> node of `document`."""
        name = (getattr(node, "name", "") or "").lower()
        await self.check_attributes(document, node, name, node_attributes(node))

    async def check_attributes(
        self,
        document: Document,
        node: Any,
        name: str,
        attrs: Mapping[str, str],
    ) -> None:
        # Do not check canonical links
        if "canonical" in attrs.get("rel", "").lower().split():
            return
        if self.options.ignore_attribute in attrs:
            return

        if "href" not in attrs:
            if name == "a":
                self.issues.add_for_document(Level.DEBUG, "anchor without href", document)
                return
            if name == "link":
                self.issues.add_for_document(Level.ERROR, "link tag missing href", document)
                return

        href = attrs.get("href", "")
        ref = new_reference(document, node, href)

        if href == "":
            self.issues.add_for_reference(Level.ERROR, "href blank", ref)
            return
        if href == "#":
            self.issues.add_for_reference(Level.ERROR, "empty hash", ref)
            return
        if any(p.search(href) for p in self.options.ignore_urls):
            self.issues.add_for_reference(Level.DEBUG, "ignored", ref)
            return

        await self.route(ref)

    async def route(self, ref: Reference) -> None:
        """Dispatch a validated reference to exactly one checker."""
        if ref.scheme == "http":
            if self.options.enforce_https:
                self.issues.add_for_reference(Level.ERROR, "is not an HTTPS target", ref)
            await self.check_external(ref)
        elif ref.scheme == "https":
            await self.check_external(ref)
        elif ref.scheme == "file":
            self.check_internal(ref)
        elif ref.scheme == "mailto":
            self.check_mailto(ref)
        elif ref.scheme == "tel":
            self.check_tel(ref)
        else:
            # Could be perfectly valid (ftp:, data:, javascript:) or a typo.
            self.issues.add_for_reference(Level.DEBUG, "unchecked scheme", ref)

    # ---- Checkers -----------------------------------------------------------

    def cache_key(self, ref: Reference) -> str:
        url = url_string(ref)
        if self.options.strip_query_string and not in_list(
            self.options.strip_query_excludes, url
        ):
            url = strip_query_string(url)
        return url

    async def check_external(self, ref: Reference) -> None:
        if not self.options.check_external:
            self.issues.add_for_reference(Level.DEBUG, "skipping", ref)
            return
        if self.prober is None:
            raise RuntimeError("External checks need an HttpProber")

        url = self.cache_key(ref)
        result = await self.cache.get_or_probe(url, self.prober.probe)

        if result.error_kind is ErrorKind.DNS_FAILURE:
            self.issues.add_for_reference(Level.ERROR, result.error_message, ref)
            return
        if result.error_kind is ErrorKind.TIMEOUT:
            self.issues.add_for_reference(
                Level.ERROR, "request exceeded our ExternalTimeout", ref
            )
            return
        if result.error_kind is ErrorKind.OTHER:
            self.issues.add_for_reference(Level.ERROR, result.error_message, ref)
            log.warning("Unhandled http client error for %s: %s", url, result.error_message)
            return

        level = Level.DEBUG if result.status in PASSING_STATUSES else Level.ERROR
        self.issues.add_for_reference(level, status_text(result.status), ref)

    def check_internal(self, ref: Reference) -> None:
        if not self.options.check_internal:
            self.issues.add_for_reference(Level.DEBUG, "skipping", ref)
            return
        check_file(
            ref,
            absolute_path(ref),
            directory_path=self.options.directory_path,
            directory_index=self.options.directory_index,
            issues=self.issues,
        )

    def check_mailto(self, ref: Reference) -> None:
        if not self.options.check_mailto:
            return
        if not ref.opaque:
            self.issues.add_for_reference(Level.ERROR, "mailto is empty", ref)
            return
        if "@" not in ref.opaque:
            self.issues.add_for_reference(
                Level.ERROR, "contains an invalid email address", ref
            )

    def check_tel(self, ref: Reference) -> None:
        if not self.options.check_tel:
            return
        if not ref.opaque:
            self.issues.add_for_reference(Level.ERROR, "tel is empty", ref)
