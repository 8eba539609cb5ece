"""
End-to-end tests for the pipeline: file -> observations -> lags -> estimates -> figures.
"""

import matplotlib

matplotlib.use("Agg")

from pathlib import Path  # noqa: E402

import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from config.settings import Settings  # noqa: E402
from phillips import PhillipsPipeline, PipelineResult, run_pipeline  # noqa: E402
from phillips.errors import SchemaError  # noqa: E402
from phillips.model.phillips_multiplier import RESULT_COLUMNS  # noqa: E402
from phillips.output.figures import FIGURE_NAMES, close_figures  # noqa: E402
from tests.fixtures.synthetic_dgp import make_phillips_dgp, write_spreadsheet  # noqa: E402


@pytest.fixture
def settings(tmp_path):
    write_spreadsheet(make_phillips_dgp(n=120), tmp_path, "phillips_baseline.xlsx")
    return Settings(
        project_root=tmp_path,
        data_dir=Path("."),
        max_horizon=6,
        grid_min=-2.0,
        grid_max=2.0,
        grid_step=0.05,
    )


class TestPipelineStages:
    """Individual stages."""

    def test_load(self, settings):
        obs = PhillipsPipeline(settings).load()

        assert len(obs) == 120
        assert isinstance(obs.index, pd.PeriodIndex)

    def test_design_uses_surprise_by_default(self, settings):
        pipeline = PhillipsPipeline(settings)
        design = pipeline.design(pipeline.load())

        assert len(design) == 120 - settings.n_lags
        assert "inflation_surprise_lag1" in design.columns
        assert "unemployment_gap_lag4" in design.columns

    def test_design_with_raw_inflation(self, settings):
        pipeline = PhillipsPipeline(settings.with_overrides(use_inflation_surprise=False))
        design = pipeline.design(pipeline.load())

        assert pipeline.inflation_column == "inflation"
        assert "inflation_lag1" in design.columns

    def test_spec_from_settings(self, settings):
        spec = PhillipsPipeline(settings).spec()

        assert spec.max_horizon == 6
        assert len(spec.grid) == 81
        assert spec.confidence == pytest.approx(0.90)


class TestRun:
    """Full runs."""

    def test_run_produces_table_and_figures(self, settings):
        result = PhillipsPipeline(settings).run()

        assert isinstance(result, PipelineResult)
        assert list(result.table.columns) == RESULT_COLUMNS
        assert list(result.table["horizon"]) == list(range(7))
        assert list(result.figures) == FIGURE_NAMES
        close_figures(result.figures)

    def test_run_without_figures(self, settings):
        result = run_pipeline(settings, render=False)

        assert result.figures == {}

    def test_rerun_is_byte_identical(self, settings):
        first = run_pipeline(settings, render=False)
        second = run_pipeline(settings, render=False)

        assert first.table.to_csv() == second.table.to_csv()

    def test_explicit_path_overrides_dataset(self, settings, tmp_path):
        other = write_spreadsheet(make_phillips_dgp(n=80, seed=1), tmp_path, "other.csv")

        result = PhillipsPipeline(settings).run(path=other, render=False)

        assert len(result.observations) == 80

    def test_prebuilt_observations(self, settings):
        pipeline = PhillipsPipeline(settings)
        obs = pipeline.load()

        result = pipeline.run(observations=obs, render=False)

        assert result.observations is obs

    def test_save_table(self, settings, tmp_path):
        result = run_pipeline(settings, render=False)

        path = result.save_table(tmp_path / "out" / "table.csv")
        saved = pd.read_csv(path)

        assert list(saved.columns) == RESULT_COLUMNS
        assert len(saved) == 7

    def test_schema_error_propagates(self, settings, tmp_path):
        write_spreadsheet(
            make_phillips_dgp(n=60).drop(columns=["shock_lsap"]),
            tmp_path,
            "phillips_baseline.xlsx",
        )

        with pytest.raises(SchemaError):
            run_pipeline(settings, render=False)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
