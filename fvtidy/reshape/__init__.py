"""Reshaping core: cell normalization, header resolution, hierarchical fill,
melting into tidy tables, and joins/aggregates over the results."""

from .fill import fill
from .headers import resolve_headers, split_label
from .joiner import aggregate, join
from .normalizer import normalize
from .reshaper import reshape, reshape_schema

__all__ = [
    "aggregate",
    "fill",
    "join",
    "normalize",
    "reshape",
    "reshape_schema",
    "resolve_headers",
    "split_label",
]
