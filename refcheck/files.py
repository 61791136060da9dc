# refcheck/files.py
"""Resolution of internal references against the document root."""
from __future__ import annotations

import logging
import os
import posixpath
import stat
from typing import Set

from refcheck.issues import IssueStore
from refcheck.models import Level, Reference

log = logging.getLogger(__name__)


def check_file(
    ref: Reference,
    target: str,
    *,
    directory_path: str,
    directory_index: str,
    issues: IssueStore,
    _seen: Set[str] | None = None,
) -> None:
    """
    Check that `target` (site-root-relative) exists under `directory_path`.

    Directories are accepted only when the href ends in "/", in which case the
    directory index inside them is checked instead. Errors other than a
    missing path are raised: if the filesystem cannot answer, nothing else
    in the run can be trusted either.
    """
    check_path = os.path.join(directory_path, target.lstrip("/"))
    try:
        st = os.stat(check_path)
    except (FileNotFoundError, NotADirectoryError, ValueError):
        # ValueError: the path holds a NUL byte, so nothing can exist there
        issues.add_for_reference(Level.ERROR, "target does not exist", ref)
        return

    if not stat.S_ISDIR(st.st_mode):
        return

    if not ref.path.endswith("/"):
        issues.add_for_reference(
            Level.ERROR, "target is a directory, href lacks trailing slash", ref
        )
        return

    seen = set() if _seen is None else _seen
    real = os.path.realpath(check_path)
    if real in seen:
        issues.add_for_reference(Level.ERROR, "directory index loop", ref)
        return
    seen.add(real)

    issues.add_for_reference(Level.DEBUG, "target is a directory", ref)
    log.debug("Resolving directory index for %s", check_path)
    check_file(
        ref,
        posixpath.join(target, directory_index),
        directory_path=directory_path,
        directory_index=directory_index,
        issues=issues,
        _seen=seen,
    )
