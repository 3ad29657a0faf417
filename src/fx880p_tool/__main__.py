"""CLI entrypoint for fx880p_tool."""

from __future__ import annotations

import sys

from .basicdump import main


if __name__ == "__main__":
    sys.exit(main())
