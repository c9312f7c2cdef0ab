#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

Generate a 15x15 pipe map into ``output/``:

    python main.py generate

Or explore the full CLI:

    python -m tile_collapse.cli --help
    python -m tile_collapse.cli animate --catalog quadrants --seed 7
    python -m tile_collapse.cli step --width 6 --height 6
"""

from tile_collapse.cli import app

if __name__ == "__main__":
    app()
