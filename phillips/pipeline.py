"""
Pipeline orchestration.

read -> derive features -> build lags -> estimate -> plot, run once per
invocation.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pandas as pd
from matplotlib.figure import Figure

from config.settings import Settings, get_settings
from phillips.data.features import build_lags, derive_features, endogenous_columns
from phillips.data.loader import DEFAULT_SCHEMA, ColumnSchema, SpreadsheetLoader
from phillips.model.phillips_multiplier import (
    PhillipsMultiplier,
    PhillipsMultiplierResult,
    PhillipsMultiplierSpec,
)
from phillips.output.figures import render_all

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything produced by one pipeline run."""

    observations: pd.DataFrame
    design: pd.DataFrame
    estimation: PhillipsMultiplierResult
    figures: dict[str, Figure] = field(default_factory=dict)

    @property
    def table(self) -> pd.DataFrame:
        return self.estimation.table

    def save_table(self, path: str | Path) -> Path:
        """Write the result table as CSV."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.table.to_csv(path, index=False)
        logger.info(f"Result table saved to {path}")
        return path


class PhillipsPipeline:
    """Runs the Phillips multiplier replication end to end."""

    def __init__(
        self,
        settings: Settings | None = None,
        schema: ColumnSchema = DEFAULT_SCHEMA,
    ):
        self.settings = settings or get_settings()
        self.schema = schema
        self.loader = SpreadsheetLoader(self.settings, schema)

    @property
    def inflation_column(self) -> str:
        return "inflation_surprise" if self.settings.use_inflation_surprise else "inflation"

    def spec(self) -> PhillipsMultiplierSpec:
        return PhillipsMultiplierSpec(
            max_horizon=self.settings.max_horizon,
            grid=self.settings.grid(),
            confidence=self.settings.confidence,
            min_observations=self.settings.min_observations,
        )

    def load(self, path: str | Path | None = None) -> pd.DataFrame:
        """Read the configured spreadsheet (or ``path``) into the observation table."""
        if path is None:
            raw = self.loader.load()
        else:
            raw = self.loader.check_schema(self.loader.read(path), source=Path(path).name)
        return derive_features(raw, self.schema)

    def design(self, observations: pd.DataFrame) -> pd.DataFrame:
        """Lagged-control matrix for the endogenous series."""
        columns = endogenous_columns(self.settings.use_inflation_surprise)
        return build_lags(observations, columns, self.settings.n_lags)

    def estimate(
        self,
        observations: pd.DataFrame,
        design: pd.DataFrame | None = None,
    ) -> PhillipsMultiplierResult:
        """Run the estimator on an observation table."""
        if design is None:
            design = self.design(observations)
        model = PhillipsMultiplier(
            inflation=observations[self.inflation_column],
            unemployment_gap=observations["unemployment_gap"],
            instrument=observations["instrument"],
            controls=design,
        )
        return model.fit(self.spec())

    def run(
        self,
        observations: pd.DataFrame | None = None,
        path: str | Path | None = None,
        render: bool = True,
    ) -> PipelineResult:
        """
        Execute all stages.

        Args:
            observations: Pre-built observation table (skips ingestion)
            path: Input file overriding the configured dataset
            render: Build the seven figures

        Returns:
            PipelineResult
        """
        np.random.seed(self.settings.seed)

        logger.info("Stage 1/4: loading data")
        if observations is None:
            observations = self.load(path)

        logger.info(f"Stage 2/4: building {self.settings.n_lags} lags")
        design = self.design(observations)

        logger.info("Stage 3/4: estimating Phillips multiplier")
        estimation = self.estimate(observations, design)

        figures = {}
        if render:
            logger.info("Stage 4/4: rendering figures")
            figures = render_all(estimation.table)

        return PipelineResult(
            observations=observations,
            design=design,
            estimation=estimation,
            figures=figures,
        )


def run_pipeline(
    settings: Settings | None = None,
    path: str | Path | None = None,
    render: bool = True,
) -> PipelineResult:
    """Convenience function to run the full pipeline."""
    return PhillipsPipeline(settings).run(path=path, render=render)
