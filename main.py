#!/usr/bin/env python3
"""
Quick-start entry point for the photo mosaic generator.

    python main.py photo.jpg library/ mosaic.png --min-tiles 20

Equivalent to the installed ``photo-mosaic`` command.
"""

from photo_mosaic.cli import app

if __name__ == "__main__":
    app()
