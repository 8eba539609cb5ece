"""
Phillips multiplier estimation (Barnichon & Mesters, 2021).

The Phillips multiplier at horizon h is the cumulative inflation response
divided by the cumulative unemployment response to the same shock:

    P_h = sum_{j<=h} d pi_{t+j} / sum_{j<=h} d u_{t+j}

Estimated by LP-IV on cumulated outcomes:

    Pi_h(t) = alpha_h + P_h * U_h(t) + Gamma_h * W_t + e_t    (U_h instrumented by z_t)

For every horizon the estimator reports:
- conditional multiplier: 2SLS estimate with a weak-instrument robust
  Anderson-Rubin band computed over a grid of trial slopes
- unconditional multiplier: OLS of Pi_h on U_h and W_t with a HAC band
- first-stage F of U_h on z_t
- impulse responses of unemployment and inflation to z_t with HAC bands
"""

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from linearmodels.iv import IV2SLS

from phillips.errors import EstimationError
from phillips.model.inference import (
    WEAK_IV_THRESHOLD,
    anderson_rubin_set,
    hac_bandwidth,
    hac_ols,
)
from phillips.model.local_projections import (
    IRFResult,
    cumulative_forward,
    estimate_irf,
    horizon_frame,
)

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "horizon",
    "conditional",
    "conditional_lower",
    "conditional_upper",
    "unconditional",
    "unconditional_lower",
    "unconditional_upper",
    "f_stat",
    "irf_unemployment",
    "irf_unemployment_lower",
    "irf_unemployment_upper",
    "irf_inflation",
    "irf_inflation_lower",
    "irf_inflation_upper",
    "ar_bounded",
    "nobs",
]


def default_grid() -> np.ndarray:
    """Trial slopes from -3 to 3 in steps of 0.01."""
    return np.linspace(-3.0, 3.0, 601)


@dataclass
class PhillipsMultiplierSpec:
    """Specification for the Phillips multiplier estimator."""

    max_horizon: int = 20
    grid: np.ndarray = field(default_factory=default_grid)
    confidence: float = 0.90
    min_observations: int = 20

    def validate(self) -> None:
        grid = np.asarray(self.grid, dtype=float)
        if grid.ndim != 1 or len(grid) < 2:
            raise EstimationError("Slope grid must be a 1-D array with at least two values")
        if not np.all(np.isfinite(grid)):
            raise EstimationError("Slope grid contains non-finite values")
        if np.any(np.diff(grid) <= 0):
            raise EstimationError("Slope grid must be strictly increasing")
        if not 0.0 < self.confidence < 1.0:
            raise EstimationError(f"Confidence level must lie in (0, 1), got {self.confidence}")
        if self.max_horizon < 0:
            raise EstimationError(f"Horizon must be non-negative, got {self.max_horizon}")
        if self.min_observations < 1:
            raise EstimationError("min_observations must be positive")


@dataclass(frozen=True)
class HorizonEstimate:
    """Estimates at one horizon."""

    horizon: int
    conditional: float = np.nan
    conditional_lower: float = np.nan
    conditional_upper: float = np.nan
    unconditional: float = np.nan
    unconditional_lower: float = np.nan
    unconditional_upper: float = np.nan
    f_stat: float = np.nan
    ar_bounded: bool = False
    ar_connected: bool = True
    nobs: int = 0

    @property
    def weak_instrument(self) -> bool:
        return not (self.f_stat >= WEAK_IV_THRESHOLD)


@dataclass(frozen=True)
class PhillipsMultiplierResult:
    """Result table of the estimator, one row per horizon. Immutable."""

    estimates: tuple[HorizonEstimate, ...]
    unemployment_irf: IRFResult
    inflation_irf: IRFResult
    confidence: float
    grid_bounds: tuple[float, float]

    @property
    def horizons(self) -> list[int]:
        return [e.horizon for e in self.estimates]

    @property
    def table(self) -> pd.DataFrame:
        """Result table (a fresh copy on every access)."""
        rows = []
        for i, e in enumerate(self.estimates):
            rows.append(
                {
                    "horizon": e.horizon,
                    "conditional": e.conditional,
                    "conditional_lower": e.conditional_lower,
                    "conditional_upper": e.conditional_upper,
                    "unconditional": e.unconditional,
                    "unconditional_lower": e.unconditional_lower,
                    "unconditional_upper": e.unconditional_upper,
                    "f_stat": e.f_stat,
                    "irf_unemployment": self.unemployment_irf.coefficients[i],
                    "irf_unemployment_lower": self.unemployment_irf.conf_lower[i],
                    "irf_unemployment_upper": self.unemployment_irf.conf_upper[i],
                    "irf_inflation": self.inflation_irf.coefficients[i],
                    "irf_inflation_lower": self.inflation_irf.conf_lower[i],
                    "irf_inflation_upper": self.inflation_irf.conf_upper[i],
                    "ar_bounded": e.ar_bounded,
                    "nobs": e.nobs,
                }
            )
        return pd.DataFrame(rows, columns=RESULT_COLUMNS)

    def summary(self) -> str:
        """Formatted table of the multipliers."""
        pct = int(round(self.confidence * 100))
        lines = [
            "=" * 78,
            "Phillips Multiplier",
            "=" * 78,
            f"{'h':>3} {'Conditional':>12} {f'{pct}% AR band':>22} "
            f"{'Uncond.':>10} {'F':>8} {'N':>5}",
            "-" * 78,
        ]
        for e in self.estimates:
            band = f"[{e.conditional_lower:.3f}, {e.conditional_upper:.3f}]"
            if not e.ar_bounded and np.isfinite(e.conditional_lower):
                band += "*"
            elif not e.ar_connected:
                band += "~"
            weak = "!" if e.weak_instrument else ""
            lines.append(
                f"{e.horizon:>3} {e.conditional:>12.3f} {band:>22} "
                f"{e.unconditional:>10.3f} {e.f_stat:>7.2f}{weak:1} {e.nobs:>5}"
            )
        lines.append("-" * 78)
        lines.append(
            f"* AR set reaches the grid edge {self.grid_bounds}; "
            f"~ AR set has gaps inside the band; "
            f"! first-stage F below {WEAK_IV_THRESHOLD:g}"
        )
        return "\n".join(lines)


class PhillipsMultiplier:
    """
    LP-IV estimator of the Phillips multiplier.

    Usage:
        pm = PhillipsMultiplier(inflation, unemployment_gap, instrument, controls)
        result = pm.fit(PhillipsMultiplierSpec(max_horizon=20))
        result.table
    """

    def __init__(
        self,
        inflation: pd.Series,
        unemployment_gap: pd.Series,
        instrument: pd.Series,
        controls: pd.DataFrame | None = None,
    ):
        """
        Args:
            inflation: Inflation (or inflation surprise) series
            unemployment_gap: Unemployment gap series
            instrument: Shock series used as the instrument
            controls: Lagged-control matrix, indexed like the series
        """
        for name, obj in [
            ("inflation", inflation),
            ("unemployment_gap", unemployment_gap),
            ("instrument", instrument),
        ]:
            if not isinstance(obj, pd.Series):
                raise EstimationError(f"{name} must be a pandas Series")
        if not (inflation.index.equals(unemployment_gap.index) and inflation.index.equals(instrument.index)):
            raise EstimationError("inflation, unemployment_gap and instrument must share an index")
        if controls is not None and not controls.index.isin(inflation.index).all():
            raise EstimationError("controls index must be a subset of the series index")

        self.inflation = inflation.astype(float).rename("inflation")
        self.unemployment = unemployment_gap.astype(float).rename("unemployment")
        self.instrument = instrument.astype(float).rename("instrument")
        self.controls = controls

    def fit(self, spec: PhillipsMultiplierSpec | None = None) -> PhillipsMultiplierResult:
        """
        Estimate all horizons 0..H.

        Args:
            spec: Estimator specification

        Returns:
            PhillipsMultiplierResult
        """
        if spec is None:
            spec = PhillipsMultiplierSpec()
        spec.validate()
        grid = np.asarray(spec.grid, dtype=float)

        logger.info(
            f"Estimating Phillips multiplier for h=0..{spec.max_horizon} "
            f"over {len(grid)} trial slopes"
        )

        estimates = tuple(self._estimate_horizon(h, grid, spec) for h in range(spec.max_horizon + 1))

        irf_kwargs = dict(
            controls=self.controls,
            max_horizon=spec.max_horizon,
            confidence=spec.confidence,
            min_observations=spec.min_observations,
        )
        unemployment_irf = estimate_irf(self.unemployment, self.instrument, **irf_kwargs)
        inflation_irf = estimate_irf(self.inflation, self.instrument, **irf_kwargs)

        return PhillipsMultiplierResult(
            estimates=estimates,
            unemployment_irf=unemployment_irf,
            inflation_irf=inflation_irf,
            confidence=spec.confidence,
            grid_bounds=(float(grid[0]), float(grid[-1])),
        )

    def _estimate_horizon(
        self,
        h: int,
        grid: np.ndarray,
        spec: PhillipsMultiplierSpec,
    ) -> HorizonEstimate:
        """Conditional and unconditional multipliers at horizon h."""
        lhs, exog = horizon_frame(
            {
                "cum_inflation": cumulative_forward(self.inflation, h),
                "cum_unemployment": cumulative_forward(self.unemployment, h),
            },
            self.instrument,
            self.controls,
        )
        n = len(lhs)
        if n < spec.min_observations:
            logger.warning(f"h={h}: only {n} observations, horizon skipped")
            return HorizonEstimate(horizon=h, nobs=n)

        cum_pi = lhs["cum_inflation"]
        cum_u = lhs["cum_unemployment"]
        bw = hac_bandwidth(h, n)

        try:
            first_stage = hac_ols(cum_u, exog, "instrument", bw, spec.confidence)
            conditional = self._iv_point(cum_pi, cum_u, exog, bw)
            ar = anderson_rubin_set(
                cum_pi, cum_u, exog, "instrument", grid, bw, spec.confidence
            )
            ols_exog = exog.drop(columns=["instrument"]).assign(cum_unemployment=cum_u)
            unconditional = hac_ols(cum_pi, ols_exog, "cum_unemployment", bw, spec.confidence)
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.warning(f"h={h}: estimation failed: {e}")
            return HorizonEstimate(horizon=h, nobs=n)

        lower, upper = ar.bounds(conditional)
        if not ar.is_bounded:
            logger.debug(f"h={h}: AR set not bounded on grid")
        elif not ar.is_connected:
            logger.warning(f"h={h}: AR set is not an interval; band spans its outer bounds")

        return HorizonEstimate(
            horizon=h,
            conditional=conditional,
            conditional_lower=lower,
            conditional_upper=upper,
            unconditional=unconditional.coefficient,
            unconditional_lower=unconditional.conf_lower,
            unconditional_upper=unconditional.conf_upper,
            f_stat=first_stage.wald,
            ar_bounded=ar.is_bounded,
            ar_connected=ar.is_connected or ar.is_empty,
            nobs=n,
        )

    @staticmethod
    def _iv_point(
        cum_pi: pd.Series,
        cum_u: pd.Series,
        exog: pd.DataFrame,
        bandwidth: int,
    ) -> float:
        """2SLS point estimate of the multiplier."""
        model = IV2SLS(
            cum_pi,
            exog.drop(columns=["instrument"]),
            cum_u.to_frame("cum_unemployment"),
            exog[["instrument"]],
        )
        result = model.fit(cov_type="kernel", kernel="bartlett", bandwidth=bandwidth)
        return float(result.params["cum_unemployment"])


def estimate_phillips_multiplier(
    grid: np.ndarray,
    max_horizon: int,
    inflation: pd.Series,
    unemployment_gap: pd.Series,
    instrument: pd.Series,
    controls: pd.DataFrame | None,
    confidence: float = 0.90,
    min_observations: int = 20,
) -> PhillipsMultiplierResult:
    """
    Convenience function with the estimator's positional contract:
    grid, horizon, inflation, unemployment gap, instrument, controls,
    confidence.
    """
    spec = PhillipsMultiplierSpec(
        max_horizon=max_horizon,
        grid=np.asarray(grid, dtype=float),
        confidence=confidence,
        min_observations=min_observations,
    )
    return PhillipsMultiplier(inflation, unemployment_gap, instrument, controls).fit(spec)
