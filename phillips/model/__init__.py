"""
Econometric model modules.
"""

from phillips.model.inference import ARSet, HACEstimate, anderson_rubin_set, first_stage_f, hac_ols
from phillips.model.local_projections import IRFResult, cumulative_forward, estimate_irf
from phillips.model.phillips_multiplier import (
    HorizonEstimate,
    PhillipsMultiplier,
    PhillipsMultiplierResult,
    PhillipsMultiplierSpec,
    estimate_phillips_multiplier,
)

__all__ = [
    "ARSet",
    "HACEstimate",
    "anderson_rubin_set",
    "first_stage_f",
    "hac_ols",
    "IRFResult",
    "cumulative_forward",
    "estimate_irf",
    "HorizonEstimate",
    "PhillipsMultiplier",
    "PhillipsMultiplierResult",
    "PhillipsMultiplierSpec",
    "estimate_phillips_multiplier",
]
