#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

Drop images into ``images/`` and run:

    python main.py batch

Or dither one file:

    python -m palette_dither.cli single photo.jpg --kernel atkinson --palette gameboy
    python -m palette_dither.cli single photo.jpg --frames 30 -o output/photo.png
"""

from palette_dither.cli import app

if __name__ == "__main__":
    app()
