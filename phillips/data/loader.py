"""
Spreadsheet ingestion for the Phillips multiplier dataset.

Two input files share one column schema: the paper's estimation sample
(``baseline``) and an extended sample (``extended``). The dataset flag in
settings selects which one is read.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import numpy as np
import pandas as pd

from config.settings import Settings, get_settings
from phillips.errors import DataValidationError, SchemaError

logger = logging.getLogger(__name__)


class DatasetChoice(str, Enum):
    """Which input spreadsheet to read."""

    BASELINE = "baseline"
    EXTENDED = "extended"


@dataclass(frozen=True)
class ColumnSchema:
    """Column names expected in the input spreadsheet."""

    time: str = "date"
    inflation: str = "inflation"
    inflation_expectation: str = "inflation_expectation"
    unemployment_gap: str = "unemployment_gap"
    # Used when the file has the unemployment rate and natural rate instead of a gap
    unemployment: str = "unemployment"
    natural_rate: str = "natural_rate"
    instrument_components: tuple[str, ...] = field(
        default=("shock_target", "shock_path", "shock_lsap")
    )

    def required_columns(self, columns: pd.Index) -> list[str]:
        """Columns that must be present given what the file provides."""
        required = [self.time, self.inflation, self.inflation_expectation]
        required.extend(self.instrument_components)
        if self.unemployment_gap not in columns:
            required.extend([self.unemployment, self.natural_rate])
        else:
            required.append(self.unemployment_gap)
        return required

    def missing_columns(self, columns: pd.Index) -> list[str]:
        return [c for c in self.required_columns(columns) if c not in columns]


DEFAULT_SCHEMA = ColumnSchema()

_QUARTER_PATTERN = re.compile(r"^(\d{4})\s*[-\s]?\s*Q([1-4])$", re.IGNORECASE)


def _decimal_year_to_period(value: float) -> pd.Period:
    """1990.0 -> 1990Q1, 1990.25 -> 1990Q2, ..."""
    year = int(np.floor(value + 1e-9))
    steps = (value - year) * 4
    quarter_offset = int(round(steps))
    if abs(steps - quarter_offset) > 1e-6 or not 0 <= quarter_offset <= 3:
        raise DataValidationError(f"Decimal year {value} is not on a quarter boundary")
    return pd.Period(year=year, quarter=quarter_offset + 1, freq="Q")


def _string_to_period(value: str) -> pd.Period:
    text = value.strip()
    match = _QUARTER_PATTERN.match(text)
    if match:
        return pd.Period(year=int(match.group(1)), quarter=int(match.group(2)), freq="Q")
    try:
        return pd.Timestamp(text).to_period("Q")
    except ValueError as e:
        raise DataValidationError(f"Cannot interpret {value!r} as a quarter") from e


def to_quarterly_index(values: pd.Series) -> pd.PeriodIndex:
    """
    Convert a time column into a quarterly PeriodIndex.

    Accepts datetimes, decimal years (``1990.25`` is 1990Q2) and quarter
    strings such as ``"1990Q2"`` or ``"1990-Q2"``.

    Args:
        values: Raw time column

    Returns:
        PeriodIndex with quarterly frequency named ``quarter``
    """
    if values.isna().any():
        raise DataValidationError(f"Time column has {int(values.isna().sum())} missing values")

    if isinstance(values.dtype, pd.PeriodDtype):
        periods = [p.asfreq("Q") for p in values]
    elif pd.api.types.is_datetime64_any_dtype(values):
        periods = list(values.dt.to_period("Q"))
    elif pd.api.types.is_numeric_dtype(values):
        periods = [_decimal_year_to_period(float(v)) for v in values]
    else:
        periods = []
        for v in values:
            if isinstance(v, pd.Timestamp):
                periods.append(v.to_period("Q"))
            elif isinstance(v, (int, float, np.number)):
                periods.append(_decimal_year_to_period(float(v)))
            else:
                periods.append(_string_to_period(str(v)))

    return pd.PeriodIndex(periods, freq="Q", name="quarter")


def validate_quarterly_index(index: pd.PeriodIndex) -> None:
    """
    Check the index is strictly increasing and gap free at quarterly frequency.

    Raises:
        DataValidationError: On duplicates, disorder or missing quarters
    """
    if len(index) == 0:
        raise DataValidationError("Observation table is empty")
    if index.has_duplicates:
        dups = sorted({str(p) for p in index[index.duplicated()]})
        raise DataValidationError(f"Duplicate quarters in time index: {dups}")
    if not index.is_monotonic_increasing:
        raise DataValidationError("Time index is not sorted in increasing order")

    expected = pd.period_range(start=index[0], periods=len(index), freq="Q")
    if not index.equals(expected):
        full = pd.period_range(start=index[0], end=index[-1], freq="Q")
        gaps = [str(p) for p in full.difference(index)]
        raise DataValidationError(f"Time index has gaps at: {gaps[:10]}")


class SpreadsheetLoader:
    """Reads one of the two input spreadsheets and checks its schema."""

    def __init__(
        self,
        settings: Settings | None = None,
        schema: ColumnSchema = DEFAULT_SCHEMA,
        sheet_name: str | int = 0,
    ):
        self.settings = settings or get_settings()
        self.schema = schema
        self.sheet_name = sheet_name

    def path_for(self, choice: DatasetChoice | str | None = None) -> Path:
        """Resolve the file for a dataset flag (default: the configured one)."""
        if choice is None:
            return self.settings.dataset_path
        choice = DatasetChoice(choice)
        return self.settings.with_overrides(dataset=choice.value).dataset_path

    def read(self, path: str | Path) -> pd.DataFrame:
        """Read a spreadsheet or CSV file without validation."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")

        suffix = path.suffix.lower()
        if suffix in (".xlsx", ".xlsm", ".xls"):
            df = pd.read_excel(path, sheet_name=self.sheet_name)
        elif suffix == ".csv":
            df = pd.read_csv(path)
        else:
            raise DataValidationError(f"Unsupported input file type: {path.name}")

        df.columns = [str(c).strip() for c in df.columns]
        logger.info(f"Read {len(df)} rows x {len(df.columns)} columns from {path.name}")
        return df

    def load(self, choice: DatasetChoice | str | None = None) -> pd.DataFrame:
        """
        Load the selected dataset and check required columns.

        Args:
            choice: baseline or extended (default: settings.dataset)

        Returns:
            Raw DataFrame restricted to rows with a time value
        """
        path = self.path_for(choice)
        df = self.read(path)
        return self.check_schema(df, source=path.name)

    def check_schema(self, df: pd.DataFrame, source: str = "") -> pd.DataFrame:
        """Raise SchemaError when required columns are missing."""
        missing = self.schema.missing_columns(df.columns)
        if missing:
            raise SchemaError(missing, source=source)
        # Spreadsheets often carry trailing blank rows
        return df.dropna(subset=[self.schema.time]).reset_index(drop=True)
