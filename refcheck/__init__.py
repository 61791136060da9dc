# Entrypoint for the refcheck package.
# This file makes the public API available to programmers.

from __future__ import annotations

from refcheck.api import check_nodes, check_site
from refcheck.models import Document, Issue, Level, Reference, Report
from refcheck.__about__ import __version__

# The __all__ variable defines the public API of the package.
# When a user writes `from refcheck import *`, only these names will be imported.
__all__ = [
    "check_nodes",
    "check_site",
    "Document",
    "Issue",
    "Level",
    "Reference",
    "Report",
    "__version__",
]
