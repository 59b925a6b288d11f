from __future__ import annotations

from dataclasses import dataclass

"""ColumnLabel model: a (possibly composite) column label from a header block."""

__all__ = [
    "ColumnLabel",
]


@dataclass(frozen=True)
class ColumnLabel:
    """Per-dimension label parts for one data column.

    ``parts`` are the matching form (lower-case, whitespace replaced by the
    separator); ``titles`` are the display form of the same parts.
    """
    parts: tuple[str, ...]
    titles: tuple[str, ...]
    separator: str = "_"

    @property
    def key(self) -> str:
        """Composite matching key, e.g. ``2019-20_non-residential``."""
        return self.separator.join(self.parts)

    @property
    def title(self) -> str:
        return " ".join(self.titles)

    def __str__(self) -> str:  # pragma: no cover (trivial)
        return self.key
