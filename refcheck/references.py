# refcheck/references.py
"""
Reference construction and URL helpers.

Parsing never raises: an href that urllib cannot split keeps its raw text and
an empty scheme, which the router reports as an unchecked scheme.
"""
from __future__ import annotations

import logging
import posixpath
from typing import Any, Iterable
from urllib.parse import unquote, urlsplit, urlunsplit

from refcheck.models import Document, Reference

log = logging.getLogger(__name__)

# Scheme given to protocol-relative hrefs such as "//cdn.example.com/x.js".
PROTOCOL_RELATIVE_SCHEME = "https"


def new_reference(document: Document, node: Any, href: str) -> Reference:
    """Build an immutable Reference for one href found on `node` in `document`."""
    try:
        parts = urlsplit(href)
    except ValueError as e:
        log.debug("Could not parse href %r in %s: %s", href, document.path, e)
        return Reference(document=document, node=node, href=href)

    scheme = parts.scheme.lower()
    opaque = ""
    if not scheme:
        scheme = PROTOCOL_RELATIVE_SCHEME if href.startswith("//") else "file"
    elif not parts.netloc and not parts.path.startswith("/"):
        # mailto:, tel: and friends have no hierarchical part
        opaque = parts.path

    return Reference(
        document=document,
        node=node,
        href=href,
        scheme=scheme,
        netloc=parts.netloc,
        path=parts.path,
        query=parts.query,
        fragment=parts.fragment,
        opaque=opaque,
    )


def url_string(ref: Reference) -> str:
    """
    The URL of an external reference as used for probing and caching.
    Scheme and host are lower-cased and the fragment is dropped.
    """
    return urlunsplit(
        (ref.scheme, ref.netloc.lower(), ref.path, ref.query, "")
    )


def strip_query_string(url: str) -> str:
    """Remove the query string (and any fragment) from a URL."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def absolute_path(ref: Reference) -> str:
    """
    Site-root-relative target path of an internal reference.

    "/a/b.html" stays as is, "b.html" is joined to the document's directory and
    an empty path (e.g. href="#top") points back at the document itself.
    """
    path = unquote(ref.path)
    if not path:
        return ref.document.path
    if path.startswith("/"):
        return path
    return posixpath.join(ref.document.base_path, path)


def in_list(items: Iterable[str], item: str) -> bool:
    return any(candidate == item for candidate in items)
