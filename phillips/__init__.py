"""
Replication of the Phillips multiplier (Barnichon & Mesters, 2021).

Loads a quarterly dataset, derives the inflation surprise, unemployment gap
and monetary instrument, builds lagged controls, estimates conditional and
unconditional Phillips multipliers by local projections, and renders the
diagnostic plots.
"""

from phillips.pipeline import PhillipsPipeline, PipelineResult, run_pipeline

__all__ = ["PhillipsPipeline", "PipelineResult", "run_pipeline"]
