# refcheck/site.py
"""
Local site walking: find the HTML documents under a directory and pull the
link-like nodes out of them with BeautifulSoup.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, List, Tuple

from bs4 import BeautifulSoup, Tag

from refcheck.models import Document

log = logging.getLogger(__name__)

LINK_TAGS = ["a", "link"]


def load_documents(directory_path: str, file_extension: str = ".html") -> List[Document]:
    """Every file ending in `file_extension` below `directory_path`, sorted by path."""
    root = Path(directory_path)
    if not root.is_dir():
        raise NotADirectoryError(directory_path)

    documents: List[Document] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            if not filename.endswith(file_extension):
                continue
            rel = Path(dirpath, filename).relative_to(root).as_posix()
            documents.append(Document(path=rel, site_path=str(root)))
    log.info("Found %d documents under %s", len(documents), directory_path)
    return documents


def parse_document(document: Document) -> BeautifulSoup:
    path = Path(document.site_path, document.path)
    with path.open("r", encoding="utf-8", errors="replace") as f:
        return BeautifulSoup(f.read(), "html.parser")


def extract_link_nodes(soup: BeautifulSoup) -> List[Tag]:
    """
    Return every <a> and <link> element in document order, with or without href.
    Elements without href still matter: they are reported on.
    """
    return list(soup.find_all(LINK_TAGS))


def iter_site_nodes(documents: List[Document]) -> Iterator[Tuple[Document, Tag]]:
    for document in documents:
        soup = parse_document(document)
        for node in extract_link_nodes(soup):
            yield document, node
