"""
Tests for the diagnostic figures.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from phillips.model.phillips_multiplier import RESULT_COLUMNS  # noqa: E402
from phillips.output.figures import (  # noqa: E402
    FIGURE_NAMES,
    close_figures,
    plot_phillips_trace,
    render_all,
    save_figures,
)


@pytest.fixture
def table():
    h = np.arange(9)
    point = -0.5 + 0.02 * h
    u = 0.5 * 0.7 ** h
    pi = -0.5 * u
    df = pd.DataFrame(
        {
            "horizon": h,
            "conditional": point,
            "conditional_lower": point - 0.2,
            "conditional_upper": point + 0.2,
            "unconditional": point + 0.6,
            "unconditional_lower": point + 0.5,
            "unconditional_upper": point + 0.7,
            "f_stat": 50.0 / (1 + h),
            "irf_unemployment": u,
            "irf_unemployment_lower": u - 0.05,
            "irf_unemployment_upper": u + 0.05,
            "irf_inflation": pi,
            "irf_inflation_lower": pi - 0.05,
            "irf_inflation_upper": pi + 0.05,
            "ar_bounded": h < 6,
            "nobs": 236 - h,
        }
    )
    return df[RESULT_COLUMNS]


class TestRenderAll:
    """The seven figures."""

    def test_names_and_types(self, table):
        figures = render_all(table)

        assert list(figures) == FIGURE_NAMES
        assert len(figures) == 7
        assert all(isinstance(fig, Figure) for fig in figures.values())
        close_figures(figures)

    def test_nan_rows_are_plotted(self, table):
        table.loc[7:, ["conditional", "conditional_lower", "conditional_upper", "f_stat"]] = np.nan

        figures = render_all(table)

        assert len(figures) == 7
        close_figures(figures)

    def test_trace_uses_cumulative_responses(self, table):
        fig = plot_phillips_trace(table)
        line = fig.axes[0].lines[0]

        assert np.allclose(line.get_xdata(), table["irf_unemployment"].cumsum())
        assert np.allclose(line.get_ydata(), table["irf_inflation"].cumsum())
        plt.close(fig)


class TestSaveFigures:
    """Writing PNGs."""

    def test_writes_one_png_per_figure(self, table, tmp_path):
        paths = save_figures(render_all(table), tmp_path / "figures")

        assert [p.stem for p in paths] == FIGURE_NAMES
        assert all(p.exists() and p.stat().st_size > 0 for p in paths)

    def test_figures_closed_after_save(self, table, tmp_path):
        figures = render_all(table)
        save_figures(figures, tmp_path)

        open_numbers = set(plt.get_fignums())
        assert not any(fig.number in open_numbers for fig in figures.values())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
