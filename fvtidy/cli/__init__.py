"""Command line interface (``python -m fvtidy.cli``)."""

from .__main__ import main

__all__ = ["main"]
