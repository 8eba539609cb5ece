"""
Derived series and lag construction.

All functions here are pure: they never modify their inputs.
"""

import logging

import pandas as pd

from phillips.data.loader import (
    DEFAULT_SCHEMA,
    ColumnSchema,
    to_quarterly_index,
    validate_quarterly_index,
)

logger = logging.getLogger(__name__)


def endogenous_columns(use_inflation_surprise: bool = True) -> list[str]:
    """Series whose lags enter the control set."""
    inflation = "inflation_surprise" if use_inflation_surprise else "inflation"
    return [inflation, "unemployment_gap"]


def instrument_sum(df: pd.DataFrame, components: tuple[str, ...] | list[str]) -> pd.Series:
    """Sum of the instrument components; missing components give a missing sum."""
    return df[list(components)].sum(axis=1, min_count=len(components)).rename("instrument")


def inflation_surprise(inflation: pd.Series, expected: pd.Series) -> pd.Series:
    """Realised inflation minus expected inflation."""
    return (inflation - expected).rename("inflation_surprise")


def unemployment_gap(unemployment: pd.Series, natural_rate: pd.Series) -> pd.Series:
    """Unemployment rate minus its natural rate."""
    return (unemployment - natural_rate).rename("unemployment_gap")


def derive_features(raw: pd.DataFrame, schema: ColumnSchema = DEFAULT_SCHEMA) -> pd.DataFrame:
    """
    Build the observation table from a raw spreadsheet.

    Args:
        raw: DataFrame as read from the input file
        schema: Column names in the file

    Returns:
        DataFrame indexed by quarter with inflation, inflation_expectation,
        inflation_surprise, unemployment_gap, instrument and the raw
        instrument components
    """
    index = to_quarterly_index(raw[schema.time])

    if schema.unemployment_gap in raw.columns:
        gap = raw[schema.unemployment_gap].rename("unemployment_gap")
    else:
        gap = unemployment_gap(raw[schema.unemployment], raw[schema.natural_rate])

    obs = pd.DataFrame(
        {
            "inflation": raw[schema.inflation].astype(float),
            "inflation_expectation": raw[schema.inflation_expectation].astype(float),
            "unemployment_gap": gap.astype(float),
        }
    )
    obs["inflation_surprise"] = inflation_surprise(obs["inflation"], obs["inflation_expectation"])
    for component in schema.instrument_components:
        obs[component] = raw[component].astype(float)
    obs["instrument"] = instrument_sum(obs, schema.instrument_components)

    obs.index = index
    obs = obs.sort_index()
    validate_quarterly_index(obs.index)

    logger.info(
        f"Observation table: {len(obs)} quarters, {obs.index[0]} to {obs.index[-1]}"
    )
    return obs


def build_lags(
    df: pd.DataFrame,
    columns: list[str],
    n_lags: int,
    dropna: bool = True,
) -> pd.DataFrame:
    """
    Lagged copies of each column: ``{col}_lag1`` .. ``{col}_lag{n_lags}``.

    Args:
        df: Time-indexed data
        columns: Series to lag
        n_lags: Lag order k (>= 1)
        dropna: Drop the k leading rows that lack full history

    Returns:
        DataFrame with len(columns) * n_lags columns
    """
    if n_lags < 1:
        raise ValueError(f"n_lags must be at least 1, got {n_lags}")

    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(f"Cannot lag missing columns: {missing}")

    lags = {}
    for col in columns:
        for lag in range(1, n_lags + 1):
            lags[f"{col}_lag{lag}"] = df[col].shift(lag)
    lagged = pd.DataFrame(lags, index=df.index)

    if dropna:
        lagged = lagged.iloc[n_lags:]
    return lagged
