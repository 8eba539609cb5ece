"""
Diagnostic plots built from the Phillips multiplier result table.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.figure import Figure

from phillips.model.inference import WEAK_IV_THRESHOLD

logger = logging.getLogger(__name__)

POINT_COLOR = "#2E86AB"
ALT_COLOR = "#E94F37"
BAND_ALPHA = 0.25

FIGURE_NAMES = [
    "conditional_multiplier",
    "unconditional_multiplier",
    "multiplier_comparison",
    "first_stage_f",
    "irf_unemployment",
    "irf_inflation",
    "phillips_trace",
]


def _band_plot(
    table: pd.DataFrame,
    column: str,
    title: str,
    ylabel: str,
    color: str = POINT_COLOR,
    figsize: tuple[int, int] = (8, 5),
) -> Figure:
    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(table["horizon"], table[column], color=color, linewidth=2, label="Point estimate")
    ax.fill_between(
        table["horizon"],
        table[f"{column}_lower"],
        table[f"{column}_upper"],
        color=color,
        alpha=BAND_ALPHA,
        label="Confidence band",
    )
    ax.axhline(0, color="black", linestyle="--", linewidth=0.5)
    ax.set_xlabel("Horizon (quarters)")
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    ax.legend(loc="best", fontsize=8)
    ax.grid(True, alpha=0.3)
    return fig


def plot_conditional_multiplier(table: pd.DataFrame) -> Figure:
    """Conditional multiplier with its Anderson-Rubin band."""
    fig = _band_plot(
        table, "conditional", "Conditional Phillips multiplier", "Multiplier"
    )
    unbounded = table.loc[~table["ar_bounded"].astype(bool) & table["conditional"].notna()]
    if not unbounded.empty:
        fig.axes[0].scatter(
            unbounded["horizon"],
            unbounded["conditional"],
            marker="x",
            color=ALT_COLOR,
            zorder=3,
            label="AR set reaches grid edge",
        )
        fig.axes[0].legend(loc="best", fontsize=8)
    return fig


def plot_unconditional_multiplier(table: pd.DataFrame) -> Figure:
    """OLS (unconditional) multiplier with HAC band."""
    return _band_plot(
        table,
        "unconditional",
        "Unconditional Phillips multiplier",
        "Multiplier",
        color=ALT_COLOR,
    )


def plot_multiplier_comparison(table: pd.DataFrame) -> Figure:
    """Conditional and unconditional multipliers on one axis."""
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(table["horizon"], table["conditional"], color=POINT_COLOR, linewidth=2, label="Conditional (IV)")
    ax.fill_between(
        table["horizon"],
        table["conditional_lower"],
        table["conditional_upper"],
        color=POINT_COLOR,
        alpha=BAND_ALPHA,
    )
    ax.plot(
        table["horizon"],
        table["unconditional"],
        color=ALT_COLOR,
        linewidth=1.5,
        linestyle="--",
        label="Unconditional (OLS)",
    )
    ax.axhline(0, color="black", linestyle="-", linewidth=0.5)
    ax.set_xlabel("Horizon (quarters)")
    ax.set_ylabel("Multiplier")
    ax.set_title("Conditional vs unconditional multiplier")
    ax.legend(loc="best", fontsize=8)
    ax.grid(True, alpha=0.3)
    return fig


def plot_first_stage_f(table: pd.DataFrame) -> Figure:
    """First-stage F-statistic by horizon against the weak-instrument threshold."""
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.bar(table["horizon"], table["f_stat"], color=POINT_COLOR, alpha=0.8)
    ax.axhline(
        WEAK_IV_THRESHOLD,
        color=ALT_COLOR,
        linestyle="--",
        linewidth=1,
        label=f"F = {WEAK_IV_THRESHOLD:g}",
    )
    ax.set_xlabel("Horizon (quarters)")
    ax.set_ylabel("First-stage F")
    ax.set_title("Instrument strength")
    ax.legend(loc="best", fontsize=8)
    ax.grid(True, axis="y", alpha=0.3)
    return fig


def plot_irf_unemployment(table: pd.DataFrame) -> Figure:
    """Unemployment-gap response to the shock."""
    return _band_plot(
        table,
        "irf_unemployment",
        "Response of the unemployment gap",
        "Percentage points",
    )


def plot_irf_inflation(table: pd.DataFrame) -> Figure:
    """Inflation response to the shock."""
    return _band_plot(
        table,
        "irf_inflation",
        "Response of inflation",
        "Percentage points",
        color=ALT_COLOR,
    )


def plot_phillips_trace(table: pd.DataFrame) -> Figure:
    """
    Cumulative inflation response against cumulative unemployment response.

    The slope of the ray from the origin to each point is the multiplier at
    that horizon.
    """
    cum_u = table["irf_unemployment"].cumsum()
    cum_pi = table["irf_inflation"].cumsum()

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.plot(cum_u, cum_pi, color=POINT_COLOR, linewidth=1.5, marker="o", markersize=4)
    for h, x, y in zip(table["horizon"], cum_u, cum_pi):
        if np.isfinite(x) and np.isfinite(y) and h % 4 == 0:
            ax.annotate(f"h={h}", (x, y), textcoords="offset points", xytext=(4, 4), fontsize=7)
    ax.axhline(0, color="black", linewidth=0.5)
    ax.axvline(0, color="black", linewidth=0.5)
    ax.set_xlabel("Cumulative unemployment response")
    ax.set_ylabel("Cumulative inflation response")
    ax.set_title("Phillips trace")
    ax.grid(True, alpha=0.3)
    return fig


_PLOTTERS = {
    "conditional_multiplier": plot_conditional_multiplier,
    "unconditional_multiplier": plot_unconditional_multiplier,
    "multiplier_comparison": plot_multiplier_comparison,
    "first_stage_f": plot_first_stage_f,
    "irf_unemployment": plot_irf_unemployment,
    "irf_inflation": plot_irf_inflation,
    "phillips_trace": plot_phillips_trace,
}


def render_all(table: pd.DataFrame) -> dict[str, Figure]:
    """All seven figures, in display order."""
    return {name: _PLOTTERS[name](table) for name in FIGURE_NAMES}


def save_figures(figures: dict[str, Figure], figures_path: Path, dpi: int = 150) -> list[Path]:
    """Write figures as PNGs and close them."""
    figures_path = Path(figures_path)
    figures_path.mkdir(parents=True, exist_ok=True)

    paths = []
    for name, fig in figures.items():
        path = figures_path / f"{name}.png"
        fig.savefig(path, dpi=dpi, bbox_inches="tight")
        plt.close(fig)
        paths.append(path)
        logger.info(f"Saved {path}")
    return paths


def close_figures(figures: dict[str, Figure]) -> None:
    for fig in figures.values():
        plt.close(fig)
