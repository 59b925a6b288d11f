"""Domain models for the deck table builder.

Schemas (what to extract), raw blocks (what was read), tidy tables (what the chart
layer consumes) and build results.
"""

from .build_result import BuildResult, TableStat
from .column_label import ColumnLabel
from .config_models import DeckConfig, DerivedTableConfig, HeaderSpec, TableSchema
from .error_record import ErrorRecord
from .raw_block import RawBlock
from .tidy_table import TidyRow, TidyTable

__all__ = [
    # Configuration models
    "DeckConfig",
    "DerivedTableConfig",
    "HeaderSpec",
    "TableSchema",
    # Extraction models
    "ColumnLabel",
    "RawBlock",
    "TidyRow",
    "TidyTable",
    # Results
    "BuildResult",
    "ErrorRecord",
    "TableStat",
]
