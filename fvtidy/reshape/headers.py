from __future__ import annotations

import numbers
import re
from collections.abc import Sequence
from typing import Any

import pandas as pd

from ..errors import ShapeError
from ..models.column_label import ColumnLabel
from .normalizer import is_blank

"""Header resolver: header block rows -> one ColumnLabel per data column.

Merged header cells only store their text in the leftmost cell, so in multi-row
headers each dimension row is forward-filled to the right before the per-column
labels are composed (``ffill(axis=1)``). Example (2 dimensions)::

    ["2019-20", None, "2020-21", None]
    ["Residential", "Non-Residential", "Residential", "Non-Residential"]
    -> 2019-20_residential, 2019-20_non-residential, 2020-21_residential, ...
"""

__all__ = [
    "clean_text",
    "title_case",
    "slugify",
    "compose_label",
    "split_label",
    "resolve_headers",
    "labels_from_names",
]

_WS = re.compile(r"\s+")


def clean_text(raw: Any) -> str | None:
    """Whitespace-normalized text for a header/key cell, ``None`` when blank.

    Integral floats (Excel stores 2020 as 2020.0) are rendered without the ``.0``.
    """
    if is_blank(raw):
        return None
    if isinstance(raw, numbers.Real) and not isinstance(raw, bool):
        if float(raw).is_integer():
            return str(int(raw))
        return str(raw)
    return _WS.sub(" ", str(raw)).strip()


def title_case(text: str) -> str:
    """Display form: capitalize each word, keep all-caps tokens (``LGA``) as they are."""
    words = []
    for word in text.split(" "):
        if word.isupper():
            words.append(word)
            continue
        pieces = [p[:1].upper() + p[1:].lower() for p in word.split("-")]
        words.append("-".join(pieces))
    return " ".join(words)


def slugify(text: str, separator: str = "_") -> str:
    """Matching form: lower-case, whitespace runs replaced by ``separator``."""
    return _WS.sub(separator, text.strip()).lower()


def compose_label(texts: Sequence[str], separator: str = "_") -> ColumnLabel:
    return ColumnLabel(
        parts=tuple(slugify(t, separator) for t in texts),
        titles=tuple(title_case(t) for t in texts),
        separator=separator,
    )


def split_label(
    key: str, dimension_count: int, separator: str = "_", pattern: str | None = None
) -> tuple[str, ...]:
    """Split a composite key back into its dimension parts.

    With ``pattern`` (one capture group per dimension) the key must fully match.
    Without one, the key is split on the first ``dimension_count - 1`` separators,
    so only the last dimension may itself contain the separator.
    """
    if pattern is not None:
        m = re.fullmatch(pattern, key)
        if m is None or len(m.groups()) != dimension_count:
            raise ShapeError(
                f"label '{key}' does not match split pattern {pattern!r}",
                expected=f"{dimension_count} parts",
                observed=(len(m.groups()) if m else 0),
            )
        return tuple(m.groups())
    parts = key.split(separator, dimension_count - 1)
    if len(parts) != dimension_count:
        raise ShapeError(
            f"label '{key}' cannot be split on '{separator}'",
            expected=f"{dimension_count} parts",
            observed=len(parts),
        )
    return tuple(parts)


def _default_pattern(labels: Sequence[ColumnLabel], dimension_count: int, separator: str) -> str:
    """Split pattern anchored on the distinct values seen in each leading dimension row.

    Longer alternatives come first so ``north_west`` wins over ``north``.
    """
    groups = []
    for d in range(dimension_count - 1):
        values = sorted({lab.parts[d] for lab in labels}, key=lambda v: (-len(v), v))
        groups.append("(" + "|".join(re.escape(v) for v in values) + ")")
    groups.append("(.+)")
    return re.escape(separator).join(groups)


def _checked(label: ColumnLabel, dimension_count: int, pattern: str | None) -> ColumnLabel:
    # compose -> split が可逆であること
    parts = split_label(label.key, dimension_count, label.separator, pattern)
    if parts != label.parts:
        raise ShapeError(
            f"composite label '{label.key}' does not split back into its parts",
            expected=list(label.parts),
            observed=list(parts),
        )
    return label


def resolve_headers(
    header_block: Sequence[Sequence[Any]],
    dimension_count: int,
    *,
    separator: str = "_",
    pattern: str | None = None,
) -> list[ColumnLabel]:
    """Resolve the column labels encoded by a header block.

    The bottom ``dimension_count`` rows of ``header_block`` are the dimension rows,
    top to bottom in dimension order; rows above them are ignored. Without a
    ``pattern``, composite labels are split on the values each leading dimension
    row actually holds, so multi-word leading labels ("Family incidents") resolve.

    Raises:
        ShapeError: more dimensions declared than header rows available, a blank
            header cell that cannot be filled, or a label that would not round-trip.
    """
    available = len(header_block)
    if dimension_count < 1:
        raise ShapeError("at least one header dimension is required", expected=">= 1", observed=dimension_count)
    if dimension_count > available:
        raise ShapeError(
            "declared dimension count exceeds header rows",
            expected=f"{dimension_count} header rows",
            observed=f"{available} header rows",
        )
    first_row = available - dimension_count
    frame = pd.DataFrame(
        [[clean_text(c) for c in row] for row in header_block[first_row:]], dtype=object
    )
    if frame.shape[1] == 0:
        return []

    if dimension_count == 1:
        blank = frame.iloc[0].isna()
        if blank.any():
            j = int(blank.to_numpy().argmax())
            raise ShapeError(f"header cell in column {j} is blank", expected="column label", observed="blank")
    else:
        blank_first = frame.iloc[:, 0].isna()
        if blank_first.any():
            i = int(blank_first.to_numpy().argmax())
            raise ShapeError(
                f"header row {first_row + i} column 0 is blank with no label to its left",
                expected="label in first cell of each dimension row",
                observed="blank",
            )
        # 結合セルは左端セルにのみ値が入る
        frame = frame.ffill(axis=1)

    labels = [compose_label(texts, separator) for texts in frame.T.to_numpy().tolist()]
    if pattern is None and dimension_count > 1:
        pattern = _default_pattern(labels, dimension_count, separator)
    return [_checked(label, dimension_count, pattern) for label in labels]


def labels_from_names(
    names: Sequence[str],
    dimension_count: int,
    *,
    separator: str = "_",
    pattern: str | None = None,
) -> list[ColumnLabel]:
    """Labels for explicitly declared column names (composite names are split).

    There are no header rows to learn the leading values from, so a multi-word
    leading dimension ("Family incidents 2019-20") needs an explicit ``pattern``.
    """
    labels = []
    for name in names:
        key = slugify(name, separator)
        parts = split_label(key, dimension_count, separator, pattern)
        titles = tuple(title_case(p.replace(separator, " ")) for p in parts)
        labels.append(_checked(ColumnLabel(parts=parts, titles=titles, separator=separator), dimension_count, pattern))
    return labels
