"""Entry point for ``python -m turlang`` and the ``turlang`` console script."""

from __future__ import annotations

import sys

from turlang.main import main

__all__ = ["main"]

if __name__ == "__main__":
    sys.exit(main())
