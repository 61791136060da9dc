from __future__ import annotations

import asyncio
import os

import httpx
import pytest
from bs4 import BeautifulSoup

from refcheck.api import check_nodes, check_site
from refcheck.cache import RefCache
from refcheck.config import Options
from refcheck.issues import IssueStore
from refcheck.models import Document
from refcheck.site import extract_link_nodes, load_documents

PAGE = """
<html><head>
  <link rel="canonical" href="https://example.com/">
  <link rel="stylesheet" href="/style.css">
</head><body>
  <a href="/about/">about</a>
  <a href="/about">about, no slash</a>
  <a href="https://example.com/ok">ok</a>
  <a href="https://example.com/ok?ref=nav">ok again</a>
  <a href="https://example.com/gone">gone</a>
  <a href="mailto:hello@example.com">mail</a>
  <a href="tel:">call</a>
  <a>placeholder</a>
  <a href="#">top</a>
</body></html>
"""


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/gone":
        return httpx.Response(404)
    return httpx.Response(200)


@pytest.fixture
def html_site(site):
    (site / "index.html").write_text(PAGE, encoding="utf-8")
    (site / "style.css").write_text("body {}", encoding="utf-8")
    (site / "notes.txt").write_text("not html", encoding="utf-8")
    return site


def _errors(report) -> list[tuple[str, str | None]]:
    return sorted(
        (i.message, i.reference.href if i.reference else None) for i in report.errors
    )


def test_load_documents_finds_html_only(html_site):
    docs = load_documents(str(html_site))
    assert [d.path for d in docs] == ["index.html", "about/index.html", "blog/post.html"]
    assert all(d.site_path == str(html_site) for d in docs)


def test_load_documents_rejects_missing_directory(tmp_path):
    with pytest.raises(NotADirectoryError):
        load_documents(str(tmp_path / "nope"))


def test_extract_link_nodes_keeps_document_order_and_href_less_nodes():
    soup = BeautifulSoup('<link href="/a"><a>x</a><div href="/no"></div><a href="/b">', "html.parser")
    assert [(n.name, n.get("href")) for n in extract_link_nodes(soup)] == [
        ("link", "/a"),
        ("a", None),
        ("a", "/b"),
    ]


def test_check_site_end_to_end(html_site):
    report = asyncio.run(
        check_site(
            str(html_site),
            pyproject_path=html_site / "no-pyproject.toml",
            transport=httpx.MockTransport(_handler),
        )
    )
    assert report.documents == 3
    assert report.references == 11
    assert _errors(report) == [
        ("Not Found", "https://example.com/gone"),
        ("empty hash", "#"),
        ("target is a directory, href lacks trailing slash", "/about"),
        ("tel is empty", "tel:"),
    ]
    # /ok and /ok?ref=nav share a cache key
    assert report.probes == 2
    assert report.cache_hits == 1


def test_check_site_without_external(html_site):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200)

    report = asyncio.run(
        check_site(
            str(html_site),
            pyproject_path=html_site / "no-pyproject.toml",
            check_external=False,
            concurrency=1,
            transport=httpx.MockTransport(handler),
        )
    )
    assert requests == []
    assert report.probes == 0
    assert ("Not Found", "https://example.com/gone") not in _errors(report)


def test_check_site_reads_tool_section(html_site):
    pyproject = html_site / "pyproject.toml"
    pyproject.write_text(
        "[tool.refcheck]\nenforce_https = true\ncheck_internal = false\n",
        encoding="utf-8",
    )
    (html_site / "blog" / "post.html").write_text(
        '<a href="http://example.com/plain">plain</a>', encoding="utf-8"
    )
    report = asyncio.run(
        check_site(
            str(html_site),
            pyproject_path=pyproject,
            transport=httpx.MockTransport(_handler),
        )
    )
    errors = _errors(report)
    assert ("is not an HTTPS target", "http://example.com/plain") in errors
    assert ("target is a directory, href lacks trailing slash", "/about") not in errors


def test_check_nodes_coalesces_concurrent_probes():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200)

    doc = Document(path="index.html")
    soup = BeautifulSoup('<a href="https://example.com/same">x</a>' * 20, "html.parser")
    nodes = [(doc, n) for n in extract_link_nodes(soup)]
    issues = IssueStore()
    cache = RefCache()

    checked = asyncio.run(
        check_nodes(
            nodes,
            Options(concurrency=8),
            issues,
            cache,
            transport=httpx.MockTransport(handler),
        )
    )
    assert checked == 20
    assert len(requests) == 1
    assert [i.message for i in issues] == ["OK"] * 20


def test_filesystem_error_aborts_the_run(html_site, monkeypatch):
    real_stat = os.stat

    def fake_stat(path, *args, **kwargs):
        if str(path).endswith("style.css"):
            raise PermissionError(13, "Permission denied", str(path))
        return real_stat(path, *args, **kwargs)

    monkeypatch.setattr(os, "stat", fake_stat)
    with pytest.raises(PermissionError):
        asyncio.run(
            check_site(
                str(html_site),
                pyproject_path=html_site / "no-pyproject.toml",
                transport=httpx.MockTransport(_handler),
            )
        )


def test_malformed_hrefs_do_not_abort_the_run(html_site):
    (html_site / "blog" / "post.html").write_text(
        '<a href="https://xn--a.com/">bad host</a>'
        '<a href="/a%00b.html">nul</a>'
        '<a href="/missing.html">missing</a>',
        encoding="utf-8",
    )

    def handler(request):
        request.url.host  # decodes the xn-- label
        return _handler(request)

    report = asyncio.run(
        check_site(
            str(html_site),
            pyproject_path=html_site / "no-pyproject.toml",
            transport=httpx.MockTransport(handler),
        )
    )
    errors = _errors(report)
    assert ("target does not exist", "/a%00b.html") in errors
    assert ("target does not exist", "/missing.html") in errors
    assert "https://xn--a.com/" in {href for _, href in errors}
    assert ("Not Found", "https://example.com/gone") in errors
