"""
Time-series local projections.

Implements Jordà (2005) local projections of a single series on an
instrument (shock) with lagged controls and Newey-West inference:

    y_{t+h} = alpha_h + beta_h * z_t + Gamma_h * W_t + e_{t+h}

The cumulated outcomes used by the multiplier come from ``cumulative_forward``.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm

from phillips.model.inference import hac_bandwidth, hac_ols

logger = logging.getLogger(__name__)


def lead(series: pd.Series, h: int) -> pd.Series:
    """y_{t+h} aligned at t."""
    return series.shift(-h)


def cumulative_forward(series: pd.Series, h: int) -> pd.Series:
    """sum_{j=0..h} y_{t+j} aligned at t; missing if any term is missing."""
    leads = pd.concat([series.shift(-j) for j in range(h + 1)], axis=1)
    return leads.sum(axis=1, min_count=h + 1).rename(series.name)


def horizon_frame(
    outcomes: dict[str, pd.Series],
    instrument: pd.Series,
    controls: pd.DataFrame | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Align left-hand-side series with the regressors on a common sample.

    Args:
        outcomes: Left-hand-side series by name (already led / cumulated)
        instrument: Shock series, named
        controls: Lagged controls

    Returns:
        (lhs, exog): lhs has one column per outcome; exog has a constant,
        the instrument and the controls, all on rows without missing values
    """
    name = instrument.name or "instrument"
    parts = [pd.DataFrame(outcomes), instrument.rename(name).to_frame()]
    if controls is not None and not controls.empty:
        parts.append(controls)
    combined = pd.concat(parts, axis=1, join="inner").dropna()

    lhs = combined[list(outcomes)]
    exog = sm.add_constant(combined.drop(columns=list(outcomes)), has_constant="add")
    return lhs, exog


@dataclass(frozen=True)
class IRFResult:
    """Impulse response function results across all horizons. Read-only."""

    variable: str
    horizons: tuple[int, ...]
    coefficients: np.ndarray
    std_errors: np.ndarray
    conf_lower: np.ndarray
    conf_upper: np.ndarray
    pvalues: np.ndarray
    nobs: tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "horizons", tuple(self.horizons))
        object.__setattr__(self, "nobs", tuple(self.nobs))
        for name in ["coefficients", "std_errors", "conf_lower", "conf_upper", "pvalues"]:
            values = np.array(getattr(self, name), dtype=float)
            values.setflags(write=False)
            object.__setattr__(self, name, values)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame for plotting."""
        return pd.DataFrame(
            {
                "horizon": list(self.horizons),
                "coefficient": self.coefficients,
                "std_error": self.std_errors,
                "conf_lower": self.conf_lower,
                "conf_upper": self.conf_upper,
                "pvalue": self.pvalues,
                "nobs": list(self.nobs),
            }
        )


def estimate_irf(
    outcome: pd.Series,
    instrument: pd.Series,
    controls: pd.DataFrame | None = None,
    max_horizon: int = 20,
    confidence: float = 0.90,
    min_observations: int = 20,
) -> IRFResult:
    """
    Local-projection impulse response of ``outcome`` to ``instrument``.

    Horizons with fewer than ``min_observations`` usable rows, or whose
    regression fails, are reported as NaN.

    Args:
        outcome: Response series
        instrument: Shock series
        controls: Lagged controls (aligned by index)
        max_horizon: Maximum horizon H
        confidence: Band coverage
        min_observations: Minimum sample per horizon

    Returns:
        IRFResult for h = 0..H
    """
    variable = str(outcome.name or "outcome")
    shock = str(instrument.name or "instrument")

    horizons = list(range(max_horizon + 1))
    coefficients, std_errors, conf_lower, conf_upper, pvalues, nobs = [], [], [], [], [], []

    for h in horizons:
        lhs, exog = horizon_frame({variable: lead(outcome, h)}, instrument.rename(shock), controls)
        n = len(lhs)
        nobs.append(n)

        if n < min_observations:
            logger.warning(f"IRF {variable}, h={h}: only {n} observations, skipped")
            estimate = None
        else:
            try:
                estimate = hac_ols(
                    lhs[variable], exog, shock, hac_bandwidth(h, n), confidence
                )
            except (ValueError, np.linalg.LinAlgError) as e:
                logger.warning(f"IRF {variable}, h={h}: estimation failed: {e}")
                estimate = None

        if estimate is None:
            coefficients.append(np.nan)
            std_errors.append(np.nan)
            conf_lower.append(np.nan)
            conf_upper.append(np.nan)
            pvalues.append(np.nan)
            continue

        coefficients.append(estimate.coefficient)
        std_errors.append(estimate.std_error)
        conf_lower.append(estimate.conf_lower)
        conf_upper.append(estimate.conf_upper)
        pvalues.append(estimate.pvalue)

    return IRFResult(
        variable=variable,
        horizons=horizons,
        coefficients=np.array(coefficients),
        std_errors=np.array(std_errors),
        conf_lower=np.array(conf_lower),
        conf_upper=np.array(conf_upper),
        pvalues=np.array(pvalues),
        nobs=nobs,
    )
