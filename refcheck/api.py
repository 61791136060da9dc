# refcheck/api.py
# The primary, programmer-facing API for the library.

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Iterable, Tuple

import httpx

from refcheck.cache import FileCache, RefCache
from refcheck.checks import LinkChecker
from refcheck.config import Options, load_config, options_from_config
from refcheck.issues import IssueStore
from refcheck.models import Document, Report
from refcheck.prober import HttpProber
from refcheck.site import iter_site_nodes, load_documents

log = logging.getLogger(__name__)


async def check_nodes(
    nodes: Iterable[Tuple[Document, Any]],
    options: Options,
    issues: IssueStore,
    cache: RefCache,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """
    Check every (document, node) pair with at most `options.concurrency`
    checks in flight. Returns the number of nodes checked.

    The first exception raised by a worker (a filesystem error other than a
    missing target) cancels the remaining workers and propagates.
    """
    sem = asyncio.Semaphore(options.concurrency)

    async with HttpProber(options.http_config(), transport=transport) as prober:
        checker = LinkChecker(options, issues, cache, prober)

        async def run_one(document: Document, node: Any) -> None:
            async with sem:
                await checker.check_link(document, node)

        tasks = [asyncio.create_task(run_one(d, n)) for d, n in nodes]
        try:
            await asyncio.gather(*tasks)
        finally:
            stragglers = [t for t in tasks if not t.done()]
            for t in stragglers:
                t.cancel()
            if stragglers:
                await asyncio.gather(*stragglers, return_exceptions=True)

    return len(tasks)


async def check_site(
    directory_path: str | None = None,
    *,
    pyproject_path: Path | None = None,
    check_external: bool | None = None,
    check_internal: bool | None = None,
    enforce_https: bool | None = None,
    concurrency: int | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Report:
    """
    The main API function. Finds the HTML documents under a directory and
    checks every link in them.

    Args:
        directory_path: Root of the site. Defaults to `directory_path` from config.
        pyproject_path: Where to read `[tool.refcheck]` from (default: CWD).
        check_external: Override whether external URLs are probed.
        check_internal: Override whether internal paths are resolved.
        enforce_https: Override whether plain http links are errors.
        concurrency: Override the number of checks in flight.
        transport: Custom httpx transport, mostly for tests.

    Returns:
        A Report with every issue found.
    """
    config = load_config(pyproject_path)
    log.debug("Loaded base configuration.")

    if directory_path is not None:
        config["directory_path"] = directory_path
    if check_external is not None:
        config["check_external"] = check_external
        log.info("Applied override - check_external set to: %s", check_external)
    if check_internal is not None:
        config["check_internal"] = check_internal
        log.info("Applied override - check_internal set to: %s", check_internal)
    if enforce_https is not None:
        config["enforce_https"] = enforce_https
        log.info("Applied override - enforce_https set to: %s", enforce_https)
    if concurrency is not None:
        config["concurrency"] = concurrency
        log.info("Applied override - concurrency set to: %d", concurrency)

    options = options_from_config(config)
    log.info("Checking site at: %s", options.directory_path)

    documents = load_documents(options.directory_path, options.file_extension)
    issues = IssueStore()
    file_cache = FileCache(options.cache) if options.cache.enabled else None
    cache = RefCache(store=file_cache)

    try:
        checked = await check_nodes(
            iter_site_nodes(documents), options, issues, cache, transport=transport
        )
    except OSError as e:
        log.critical("Filesystem error, aborting the run: %s", e, exc_info=True)
        raise
    finally:
        if file_cache is not None:
            file_cache.close()

    report = Report(
        directory_path=options.directory_path,
        documents=len(documents),
        references=checked,
        issues=issues.all(),
        probes=cache.probes,
        cache_hits=cache.hits,
    )
    log.info(
        "Check complete. %d references in %d documents, %d errors.",
        report.references,
        report.documents,
        len(report.errors),
    )
    return report
