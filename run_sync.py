"""Convenience shim to run the Bitbucket-to-GitHub commit sync."""

from __future__ import annotations

import sys

from src.sync.runner import main


if __name__ == "__main__":
    main(sys.argv[1:])
