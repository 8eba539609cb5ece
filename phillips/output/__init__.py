"""
Figures and tables.
"""

from phillips.output.figures import FIGURE_NAMES, render_all, save_figures

__all__ = ["FIGURE_NAMES", "render_all", "save_figures"]
