"""Workbook access: range addresses -> RawBlock."""

from .reader import parse_range, read_range

__all__ = ["parse_range", "read_range"]
