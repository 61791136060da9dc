# Allows the package to be run as a script using `python -m refcheck`

from __future__ import annotations

import sys

from refcheck.cli import main

if __name__ == "__main__":
    sys.exit(main())
