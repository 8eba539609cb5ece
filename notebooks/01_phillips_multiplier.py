# %% [markdown]
# # Phillips Multiplier - Replication
#
# Loads the quarterly dataset, builds the observation table and lagged
# controls, estimates conditional and unconditional multipliers, and shows
# the diagnostic plots.

# %%
import pandas as pd
import numpy as np
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path.cwd().parent))

import matplotlib.pyplot as plt

from config.settings import get_settings, load_run_file
from phillips.pipeline import PhillipsPipeline
from phillips.output.figures import render_all

# %% [markdown]
# ## 1. Settings
#
# Pick a run file, or edit the settings directly.

# %%
settings = load_run_file(Path.cwd().parent / "config" / "runs" / "baseline.yaml", get_settings())
print(f"Dataset: {settings.dataset} ({settings.dataset_path})")
print(f"Lags: {settings.n_lags}, horizons: 0..{settings.max_horizon}")
print(f"Grid: {settings.grid_min} to {settings.grid_max} step {settings.grid_step}")

pipeline = PhillipsPipeline(settings)

# %% [markdown]
# ## 2. Observation table

# %%
obs = pipeline.load()
print(f"Quarters: {len(obs)} ({obs.index[0]} to {obs.index[-1]})")
obs.describe().T

# %%
fig, axes = plt.subplots(3, 1, figsize=(12, 10), sharex=True)

t = obs.index.to_timestamp()
axes[0].plot(t, obs["inflation"], label="Inflation")
axes[0].plot(t, obs["inflation_expectation"], label="Expected inflation", linestyle="--")
axes[0].set_title("Inflation and expectations")
axes[0].legend()

axes[1].plot(t, obs["unemployment_gap"])
axes[1].axhline(0, color="black", linewidth=0.5)
axes[1].set_title("Unemployment gap")

axes[2].bar(t, obs["instrument"], width=60)
axes[2].set_title("Monetary shock (instrument)")

plt.tight_layout()
plt.show()

# %% [markdown]
# ## 3. Estimation

# %%
design = pipeline.design(obs)
print(f"Lagged controls: {design.shape[1]} columns, {len(design)} rows")

estimation = pipeline.estimate(obs, design)
print(estimation.summary())

# %%
table = estimation.table
weak = table.loc[table["f_stat"] < 10, "horizon"].tolist()
unbounded = table.loc[~table["ar_bounded"], "horizon"].tolist()
print(f"Weak first stage at horizons: {weak or 'none'}")
print(f"AR set reaches the grid edge at horizons: {unbounded or 'none'}")

# %% [markdown]
# ## 4. Figures

# %%
figures = render_all(table)
for name, fig in figures.items():
    fig.show()

# %%
# Multiplier at selected horizons
table.loc[table["horizon"] % 4 == 0].set_index("horizon")[["conditional", "conditional_lower", "conditional_upper", "unconditional"]].round(3)
