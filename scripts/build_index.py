#!/usr/bin/env python3
"""Rebuild public/index.json from the descriptors in src/.

Run from the marketplace repository root. Accepts the same optional flags
as the ``marketplace-index`` command.
"""
from __future__ import annotations

from marketplace_index.cli import main


if __name__ == "__main__":
    main()
