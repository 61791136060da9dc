"""Pytest configuration and fixtures."""
from __future__ import annotations

import asyncio
from typing import Callable, List

import httpx
import pytest
from bs4 import BeautifulSoup

from refcheck.cache import RefCache
from refcheck.checks import LinkChecker
from refcheck.config import Options
from refcheck.issues import IssueStore
from refcheck.models import Document
from refcheck.prober import HttpProber


def soup_tag(html: str):
    return BeautifulSoup(html, "html.parser").find(True)


class CheckRun:
    """Result of running a LinkChecker over some nodes against a fake server."""

    def __init__(self, issues: IssueStore, cache: RefCache, requests: List[httpx.Request]):
        self.issues = issues
        self.cache = cache
        self.requests = requests

    @property
    def messages(self) -> list[tuple[str, str]]:
        return [(i.level.name, i.message) for i in self.issues.all()]


@pytest.fixture
def run_checker() -> Callable[..., CheckRun]:
    """
    Check one or more HTML snippets, one after the other, with a shared cache.

    `handler` receives each httpx.Request and returns an httpx.Response (or
    raises an httpx exception). Defaults to answering 200 to everything.
    """

    def _run(
        html,
        *,
        handler=None,
        document: Document | None = None,
        cache: RefCache | None = None,
        **option_overrides,
    ) -> CheckRun:
        snippets = [html] if isinstance(html, str) else list(html)
        document = document or Document(path="index.html", site_path=".")
        options = Options(**option_overrides)
        issues = IssueStore()
        cache = cache if cache is not None else RefCache()
        requests: List[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if handler is None:
                return httpx.Response(200)
            return handler(request)

        async def _main() -> None:
            transport = httpx.MockTransport(_handler)
            async with HttpProber(options.http_config(), transport=transport) as prober:
                checker = LinkChecker(options, issues, cache, prober)
                for snippet in snippets:
                    await checker.check_link(document, soup_tag(snippet))

        asyncio.run(_main())
        return CheckRun(issues, cache, requests)

    return _run


@pytest.fixture
def site(tmp_path):
    """
    A small site on disk:

        index.html
        about/index.html
        empty/
        blog/post.html
    """
    (tmp_path / "index.html").write_text("<html><body>home</body></html>", encoding="utf-8")
    (tmp_path / "about").mkdir()
    (tmp_path / "about" / "index.html").write_text("about", encoding="utf-8")
    (tmp_path / "empty").mkdir()
    (tmp_path / "blog").mkdir()
    (tmp_path / "blog" / "post.html").write_text("post", encoding="utf-8")
    return tmp_path
