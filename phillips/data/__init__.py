"""
Data ingestion and feature construction.
"""

from phillips.data.loader import (
    ColumnSchema,
    DatasetChoice,
    SpreadsheetLoader,
    to_quarterly_index,
    validate_quarterly_index,
)
from phillips.data.features import (
    build_lags,
    derive_features,
    endogenous_columns,
    inflation_surprise,
    instrument_sum,
    unemployment_gap,
)

__all__ = [
    "ColumnSchema",
    "DatasetChoice",
    "SpreadsheetLoader",
    "to_quarterly_index",
    "validate_quarterly_index",
    "build_lags",
    "derive_features",
    "endogenous_columns",
    "inflation_surprise",
    "instrument_sum",
    "unemployment_gap",
]
