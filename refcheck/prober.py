# refcheck/prober.py
"""
HTTPX-based prober for external references.

Each probe is a single GET asking for the first 64 bytes only; servers that
honour Range answer 206 without sending the body. Transport failures are
mapped to an ErrorKind here so nothing downstream has to look at exception
types or message text.
"""
from __future__ import annotations

import http
import logging
import re
from typing import Any, Dict

import httpx

from refcheck.models import ErrorKind, ProbeResult

log = logging.getLogger(__name__)

RANGE_HEADER = {"Range": "bytes=0-63"}

_ERRNO_PREFIX = re.compile(r"^\[Errno -?\d+\]\s*")


def classify_error(exc: Exception) -> tuple[ErrorKind, str]:
    """Map an httpx or URL-handling exception to (kind, message)."""
    message = str(exc) or type(exc).__name__
    if isinstance(exc, httpx.TimeoutException):
        return ErrorKind.TIMEOUT, message
    if isinstance(exc, httpx.ConnectError):
        return ErrorKind.DNS_FAILURE, _ERRNO_PREFIX.sub("", message)
    return ErrorKind.OTHER, message


def status_text(status: int) -> str:
    """Reason phrase for a status code, e.g. 404 -> "Not Found"."""
    try:
        return http.HTTPStatus(status).phrase
    except ValueError:
        return f"HTTP {status}"


class HttpProber:
    """
    Async context manager owning the httpx client used for every probe.

    Config keys consumed:
      - external_timeout: float (seconds)
      - user_agent: str
      - http_headers: dict[str, str]
    """

    def __init__(
        self,
        config: Dict[str, Any],
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HttpProber":
        headers = {"User-Agent": self.config.get("user_agent", "refcheck")}
        headers.update(self.config.get("http_headers") or {})
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.config.get("external_timeout", 15.0),
            headers=headers,
            transport=self._transport,
        )
        log.info("httpx session initialized.")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client is not None:
            await self._client.aclose()
        log.info("httpx session closed.")

    async def probe(self, url: str) -> ProbeResult:
        if self._client is None:
            raise RuntimeError("HttpProber must be used as async context manager")

        try:
            resp = await self._client.get(url, headers=RANGE_HEADER)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            # ValueError covers hosts whose IDNA form cannot be decoded
            kind, message = classify_error(e)
            log.debug("Probe of %s failed (%s): %s", url, kind.value, message)
            return ProbeResult(error_kind=kind, error_message=message)

        log.debug("Probe of %s returned %d", url, resp.status_code)
        return ProbeResult(status=resp.status_code)
