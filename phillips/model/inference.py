"""
Inference for time-series local projections.

- Newey-West HAC Wald intervals (via statsmodels)
- First-stage F for a single instrument
- Anderson-Rubin confidence sets over a grid of trial slopes

The AR set is weak-instrument robust: its coverage does not depend on the
first-stage strength, so it stays valid when the F-statistic is small.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats

logger = logging.getLogger(__name__)

# Staiger-Stock rule of thumb
WEAK_IV_THRESHOLD = 10.0


def hac_bandwidth(h: int, T: int) -> int:
    """
    Newey-West bandwidth for a horizon-h local projection.

    Uses max of:
    - h-dependent: floor(1.3 * h^(2/3))
    - Andrews rule: floor(4 * (T/100)^(2/9))
    - Minimum of max(h, 1)
    """
    bw_h = max(1, math.floor(1.3 * (max(h, 1) ** (2 / 3))))
    bw_andrews = max(1, math.floor(4 * ((T / 100) ** (2 / 9))))
    return max(bw_h, bw_andrews, max(h, 1))


@dataclass(frozen=True)
class HACEstimate:
    """Coefficient on one regressor with HAC inference."""

    term: str
    coefficient: float
    variance: float
    conf_lower: float
    conf_upper: float
    pvalue: float
    nobs: int
    bandwidth: int

    @property
    def std_error(self) -> float:
        return math.sqrt(self.variance) if self.variance >= 0 else float("nan")

    @property
    def wald(self) -> float:
        """Squared t-statistic."""
        if self.variance <= 0:
            return float("nan")
        return self.coefficient**2 / self.variance


def hac_ols(
    y: pd.Series,
    exog: pd.DataFrame,
    term: str,
    bandwidth: int,
    confidence: float = 0.95,
) -> HACEstimate:
    """
    OLS of ``y`` on ``exog`` (which must already hold a constant if wanted)
    with Newey-West covariance, reporting the coefficient on ``term``.
    """
    model = sm.OLS(y, exog).fit(cov_type="HAC", cov_kwds={"maxlags": bandwidth})

    ci = model.conf_int(alpha=1 - confidence).loc[term]
    return HACEstimate(
        term=term,
        coefficient=float(model.params[term]),
        variance=float(model.cov_params().loc[term, term]),
        conf_lower=float(ci[0]),
        conf_upper=float(ci[1]),
        pvalue=float(model.pvalues[term]),
        nobs=int(model.nobs),
        bandwidth=bandwidth,
    )


def first_stage_f(
    endogenous: pd.Series,
    instrument: str,
    exog: pd.DataFrame,
    bandwidth: int,
) -> float:
    """
    HAC first-stage F for a single instrument (F = t^2).

    Args:
        endogenous: Endogenous regressor
        instrument: Name of the instrument column in ``exog``
        exog: Instrument, controls and constant
        bandwidth: Newey-West lags
    """
    return hac_ols(endogenous, exog, instrument, bandwidth).wald


@dataclass(frozen=True)
class ARSet:
    """Anderson-Rubin confidence set evaluated on a grid."""

    grid: np.ndarray
    statistics: np.ndarray
    critical_value: float
    confidence: float

    @property
    def accepted(self) -> np.ndarray:
        """Boolean mask of grid values not rejected."""
        return np.isfinite(self.statistics) & (self.statistics <= self.critical_value)

    @property
    def is_empty(self) -> bool:
        return not self.accepted.any()

    @property
    def is_bounded(self) -> bool:
        """Accepted set lies strictly inside the grid."""
        accepted = self.accepted
        return bool(accepted.any() and not accepted[0] and not accepted[-1])

    @property
    def is_connected(self) -> bool:
        """Accepted grid points form one run."""
        idx = np.flatnonzero(self.accepted)
        return bool(len(idx) > 0 and idx[-1] - idx[0] + 1 == len(idx))

    def bounds(self, point: float | None = None) -> tuple[float, float]:
        """
        Smallest and largest accepted grid values.

        ``point`` (the IV estimate, whose AR statistic is zero when the model
        is just identified) is included so the bounds always contain it.
        """
        values = self.grid[self.accepted]
        if point is not None and np.isfinite(point):
            values = np.append(values, point)
        if len(values) == 0:
            return float("nan"), float("nan")
        return float(values.min()), float(values.max())


def anderson_rubin_set(
    inflation: pd.Series,
    unemployment: pd.Series,
    exog: pd.DataFrame,
    instrument: str,
    grid: np.ndarray,
    bandwidth: int,
    confidence: float = 0.90,
) -> ARSet:
    """
    Anderson-Rubin test of ``phi`` in ``inflation = phi * unemployment + ...``
    for every value on ``grid``.

    For each trial ``phi`` the statistic is the HAC Wald test of the
    instrument in the regression of ``inflation - phi * unemployment`` on
    ``exog``. The instrument coefficient is ``g_pi - phi * g_u`` and the HAC
    variance is the quadratic ``v0 - 2 phi b + phi^2 c`` because the
    sandwich is bilinear in the residuals, so three regressions
    (phi = 0, 1, -1) give the statistic on the whole grid exactly.

    Args:
        inflation: Cumulative inflation (left-hand side)
        unemployment: Cumulative unemployment (endogenous regressor)
        exog: Instrument, controls and constant
        instrument: Name of the instrument column
        grid: Trial slope values
        bandwidth: Newey-West lags
        confidence: Coverage of the set

    Returns:
        ARSet with one statistic per grid value
    """
    grid = np.asarray(grid, dtype=float)

    at_zero = hac_ols(inflation, exog, instrument, bandwidth)
    at_plus = hac_ols(inflation - unemployment, exog, instrument, bandwidth)
    at_minus = hac_ols(inflation + unemployment, exog, instrument, bandwidth)

    g_pi = at_zero.coefficient
    g_u = at_minus.coefficient - g_pi

    v0 = at_zero.variance
    c = (at_plus.variance + at_minus.variance) / 2 - v0
    b = (at_minus.variance - at_plus.variance) / 4

    numerator = (g_pi - grid * g_u) ** 2
    variance = v0 - 2 * grid * b + grid**2 * c
    with np.errstate(divide="ignore", invalid="ignore"):
        statistics = np.where(variance > 0, numerator / variance, np.nan)

    critical_value = float(stats.chi2.ppf(confidence, df=1))
    ar = ARSet(
        grid=grid,
        statistics=statistics,
        critical_value=critical_value,
        confidence=confidence,
    )
    if ar.is_empty:
        logger.warning("Anderson-Rubin set is empty on the supplied grid")
    return ar
