"""
Phillips multiplier replication settings.
"""

from pathlib import Path
from functools import lru_cache
from typing import Any, Literal

import numpy as np
import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables (prefix ``PM_``)."""

    model_config = SettingsConfigDict(
        env_prefix="PM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Directories
    project_root: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent,
        description="Project root directory",
    )
    data_dir: Path = Field(default=Path("data"), description="Data directory")
    output_dir: Path = Field(default=Path("outputs"), description="Output directory")

    # Input files
    dataset: Literal["baseline", "extended"] = Field(
        default="baseline",
        description="Which spreadsheet to load: baseline | extended",
    )
    baseline_file: str = Field(
        default="phillips_baseline.xlsx",
        description="Spreadsheet with the paper's estimation sample",
    )
    extended_file: str = Field(
        default="phillips_extended.xlsx",
        description="Spreadsheet with the extended sample",
    )

    # Estimation
    n_lags: int = Field(default=4, description="Lags of each endogenous series used as controls")
    max_horizon: int = Field(default=20, description="Maximum horizon H (quarters)")
    grid_min: float = Field(default=-3.0, description="Lower end of the trial slope grid")
    grid_max: float = Field(default=3.0, description="Upper end of the trial slope grid")
    grid_step: float = Field(default=0.01, description="Spacing of the trial slope grid")
    confidence: float = Field(default=0.90, description="Confidence level for all bands")
    seed: int = Field(default=42, description="Random seed")
    use_inflation_surprise: bool = Field(
        default=True,
        description="Use inflation minus expected inflation as the inflation series",
    )
    min_observations: int = Field(
        default=20, description="Minimum usable observations per horizon"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if not 0.0 < self.confidence < 1.0:
            raise ValueError(f"confidence must lie in (0, 1), got {self.confidence}")
        if self.n_lags < 1:
            raise ValueError(f"n_lags must be at least 1, got {self.n_lags}")
        if self.max_horizon < 0:
            raise ValueError(f"max_horizon must be non-negative, got {self.max_horizon}")
        if self.grid_step <= 0:
            raise ValueError(f"grid_step must be positive, got {self.grid_step}")
        if self.grid_min >= self.grid_max:
            raise ValueError(
                f"grid_min ({self.grid_min}) must be below grid_max ({self.grid_max})"
            )
        steps = (self.grid_max - self.grid_min) / self.grid_step
        if abs(steps - round(steps)) > 1e-6:
            raise ValueError(
                f"grid_step ({self.grid_step}) does not divide "
                f"[{self.grid_min}, {self.grid_max}] into whole steps"
            )
        return self

    @property
    def dataset_path(self) -> Path:
        """Path of the spreadsheet selected by ``dataset``."""
        filename = self.baseline_file if self.dataset == "baseline" else self.extended_file
        return self.project_root / self.data_dir / filename

    def grid(self) -> np.ndarray:
        """Trial slope values, both ends included."""
        n = int(round((self.grid_max - self.grid_min) / self.grid_step)) + 1
        return np.linspace(self.grid_min, self.grid_max, n)

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a validated copy with the non-None overrides applied."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return Settings(**values)


def load_run_file(path: Path, base: Settings | None = None) -> Settings:
    """
    Load a YAML run file and apply it on top of ``base``.

    The file is a flat mapping of Settings field names, e.g.::

        dataset: extended
        max_horizon: 16
        confidence: 0.68
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Run file {path} must contain a mapping, got {type(data).__name__}")
    unknown = sorted(set(data) - set(Settings.model_fields))
    if unknown:
        raise ValueError(f"Unknown settings in {path}: {unknown}")
    return (base or get_settings()).with_overrides(**data)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
