"""
Tests for the Phillips multiplier estimator.

Uses the synthetic economy from tests/fixtures, where the conditional
multiplier equals TRUE_SLOPE at every horizon and supply shocks bias the
unconditional multiplier upward.
"""

import numpy as np
import pandas as pd
import pytest

from phillips.data.features import build_lags, derive_features
from phillips.errors import EstimationError
from phillips.model.phillips_multiplier import (
    RESULT_COLUMNS,
    HorizonEstimate,
    PhillipsMultiplier,
    PhillipsMultiplierResult,
    PhillipsMultiplierSpec,
    default_grid,
    estimate_phillips_multiplier,
)
from tests.fixtures.synthetic_dgp import (
    TRUE_SLOPE,
    make_observation_table,
    make_weak_instrument_dgp,
)

GRID = np.linspace(-3, 3, 121)
MAX_H = 8


def _model(obs: pd.DataFrame) -> PhillipsMultiplier:
    controls = build_lags(obs, ["inflation_surprise", "unemployment_gap"], 4)
    return PhillipsMultiplier(
        inflation=obs["inflation_surprise"],
        unemployment_gap=obs["unemployment_gap"],
        instrument=obs["instrument"],
        controls=controls,
    )


@pytest.fixture(scope="module")
def result():
    obs = make_observation_table(n=240)
    return _model(obs).fit(PhillipsMultiplierSpec(max_horizon=MAX_H, grid=GRID))


@pytest.fixture(scope="module")
def precise_result():
    obs = make_observation_table(n=240, supply_loading=0.3)
    return _model(obs).fit(PhillipsMultiplierSpec(max_horizon=4, grid=GRID))


@pytest.fixture(scope="module")
def weak_result():
    obs = derive_features(make_weak_instrument_dgp(n=240))
    return _model(obs).fit(PhillipsMultiplierSpec(max_horizon=2, grid=GRID))


class TestSpec:
    """Estimator specification checks."""

    def test_default_grid(self):
        grid = default_grid()

        assert len(grid) == 601
        assert grid[0] == -3.0
        assert grid[-1] == 3.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"grid": np.array([1.0, 0.0, -1.0])},
            {"grid": np.array([0.0])},
            {"grid": np.array([0.0, np.inf])},
            {"confidence": 1.5},
            {"confidence": 0.0},
            {"max_horizon": -1},
            {"min_observations": 0},
        ],
    )
    def test_invalid_spec_rejected(self, kwargs):
        with pytest.raises(EstimationError):
            PhillipsMultiplierSpec(**kwargs).validate()

    def test_fit_validates_spec(self):
        obs = make_observation_table(n=60)

        with pytest.raises(EstimationError):
            _model(obs).fit(PhillipsMultiplierSpec(confidence=2.0))


class TestInputs:
    """Constructor checks on the series."""

    def test_mismatched_index_rejected(self):
        obs = make_observation_table(n=60)

        with pytest.raises(EstimationError, match="share an index"):
            PhillipsMultiplier(
                obs["inflation_surprise"],
                obs["unemployment_gap"].iloc[1:],
                obs["instrument"],
            )

    def test_non_series_rejected(self):
        obs = make_observation_table(n=60)

        with pytest.raises(EstimationError):
            PhillipsMultiplier(
                obs["inflation_surprise"].values,
                obs["unemployment_gap"],
                obs["instrument"],
            )


class TestResultTable:
    """Shape and invariants of the result table."""

    def test_one_row_per_horizon(self, result):
        table = result.table

        assert list(table.columns) == RESULT_COLUMNS
        assert list(table["horizon"]) == list(range(MAX_H + 1))
        assert result.horizons == list(range(MAX_H + 1))

    def test_conditional_band_contains_point(self, result):
        table = result.table

        assert (table["conditional_lower"] <= table["conditional"]).all()
        assert (table["conditional"] <= table["conditional_upper"]).all()

    def test_unconditional_band_contains_point(self, result):
        table = result.table

        assert (table["unconditional_lower"] <= table["unconditional"]).all()
        assert (table["unconditional"] <= table["unconditional_upper"]).all()

    def test_irf_bands_contain_point(self, result):
        table = result.table

        for col in ["irf_unemployment", "irf_inflation"]:
            assert (table[f"{col}_lower"] <= table[col]).all()
            assert (table[col] <= table[f"{col}_upper"]).all()

    def test_table_is_a_copy(self, result):
        table = result.table
        table.loc[0, "conditional"] = 999.0

        assert result.table.loc[0, "conditional"] != 999.0

    def test_result_is_immutable(self, result):
        with pytest.raises(AttributeError):
            result.confidence = 0.5

    def test_impulse_responses_are_read_only(self, result):
        before = result.table["irf_inflation"].iloc[0]

        with pytest.raises(ValueError):
            result.inflation_irf.coefficients[0] = 999.0
        with pytest.raises(ValueError):
            result.unemployment_irf.conf_upper[0] = 999.0

        assert result.table["irf_inflation"].iloc[0] == before

    def test_nobs_shrinks_with_horizon(self, result):
        nobs = result.table["nobs"]

        # n - lags - h
        assert nobs.iloc[0] == 236
        assert nobs.iloc[MAX_H] == 236 - MAX_H

    def test_grid_bounds(self, result):
        assert result.grid_bounds == (-3.0, 3.0)


class TestBandsAcrossConfidence:
    """Bands contain their point estimate at any confidence level."""

    @pytest.fixture(scope="class")
    def model(self):
        return _model(make_observation_table(n=240))

    @pytest.mark.parametrize("confidence", [0.5, 0.68, 0.95, 0.99])
    def test_bands_contain_points(self, model, confidence):
        table = model.fit(
            PhillipsMultiplierSpec(max_horizon=4, grid=GRID, confidence=confidence)
        ).table

        for col in ["conditional", "unconditional", "irf_unemployment", "irf_inflation"]:
            assert (table[f"{col}_lower"] <= table[col]).all()
            assert (table[col] <= table[f"{col}_upper"]).all()

    def test_higher_confidence_widens_ols_band(self, model):
        narrow = model.fit(PhillipsMultiplierSpec(max_horizon=2, grid=GRID, confidence=0.5)).table
        wide = model.fit(PhillipsMultiplierSpec(max_horizon=2, grid=GRID, confidence=0.99)).table

        narrow_width = narrow["unconditional_upper"] - narrow["unconditional_lower"]
        wide_width = wide["unconditional_upper"] - wide["unconditional_lower"]
        assert (wide_width > narrow_width).all()


class TestEstimates:
    """Recovery of known multipliers."""

    @pytest.mark.parametrize("h", [0, 2, 4])
    def test_conditional_near_true_slope(self, precise_result, h):
        estimate = precise_result.estimates[h]

        assert estimate.conditional == pytest.approx(TRUE_SLOPE, abs=0.25)

    def test_strong_first_stage(self, result):
        assert result.estimates[0].f_stat > 10
        assert not result.estimates[0].weak_instrument

    def test_strong_instrument_gives_interval_sets(self, result):
        assert all(e.ar_connected for e in result.estimates if e.ar_bounded)

    def test_unconditional_biased_upward(self, result):
        for e in result.estimates[:4]:
            assert e.unconditional > e.conditional

    def test_unemployment_responds_on_impact(self, result):
        assert result.table["irf_unemployment"].iloc[0] > 0

    def test_inflation_response_opposite_sign(self, result):
        assert result.table["irf_inflation"].iloc[0] < 0


class TestWeakInstrument:
    """Flags raised when the instrument barely moves unemployment."""

    def test_weak_flag(self, weak_result):
        assert weak_result.estimates[0].weak_instrument

    def test_summary_marks_weak_horizons(self, weak_result):
        assert "!" in weak_result.summary()

    def test_band_invariant_still_holds(self, weak_result):
        table = weak_result.table

        assert (table["conditional_lower"] <= table["conditional"]).all()
        assert (table["conditional"] <= table["conditional_upper"]).all()


class TestShortSample:
    """Horizons without enough observations."""

    def test_nan_rows_for_short_sample(self):
        obs = make_observation_table(n=40)
        spec = PhillipsMultiplierSpec(max_horizon=6, grid=GRID, min_observations=34)

        table = _model(obs).fit(spec).table

        # 36 rows after lags, so h > 2 falls below 34
        assert table.loc[table["horizon"] <= 2, "conditional"].notna().all()
        assert table.loc[table["horizon"] > 2, "conditional"].isna().all()
        assert list(table["horizon"]) == list(range(7))


class TestSummaryAndWrapper:
    """Text summary and the functional entry point."""

    def test_summary(self, result):
        text = result.summary()

        assert "Phillips Multiplier" in text
        assert "90% AR band" in text
        assert len(text.splitlines()) == MAX_H + 1 + 7

    def test_summary_marks_gapped_sets(self, result):
        gapped = PhillipsMultiplierResult(
            estimates=(
                HorizonEstimate(
                    horizon=0,
                    conditional=-0.5,
                    conditional_lower=-1.0,
                    conditional_upper=0.0,
                    f_stat=25.0,
                    ar_bounded=True,
                    ar_connected=False,
                    nobs=100,
                ),
            ),
            unemployment_irf=result.unemployment_irf,
            inflation_irf=result.inflation_irf,
            confidence=0.9,
            grid_bounds=(-3.0, 3.0),
        )

        assert "]~" in gapped.summary()

    def test_wrapper_matches_class(self, result):
        obs = make_observation_table(n=240)
        controls = build_lags(obs, ["inflation_surprise", "unemployment_gap"], 4)

        wrapped = estimate_phillips_multiplier(
            GRID,
            MAX_H,
            obs["inflation_surprise"],
            obs["unemployment_gap"],
            obs["instrument"],
            controls,
            0.90,
        )

        assert isinstance(wrapped, PhillipsMultiplierResult)
        pd.testing.assert_frame_equal(wrapped.table, result.table)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
