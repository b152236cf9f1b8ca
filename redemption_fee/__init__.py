from .engine import (
    BETA,
    DEVIATION,
    MINUTE_DECAY_FACTOR,
    FeeCalculationError,
    FeeInputError,
    compute_redemption_fee,
    decay_base_rate,
    decay_factor,
    minutes_passed,
)
from .models import FeeState
from .stats import ProtocolStats

__all__ = [
    "BETA",
    "DEVIATION",
    "FeeCalculationError",
    "FeeInputError",
    "FeeState",
    "MINUTE_DECAY_FACTOR",
    "ProtocolStats",
    "compute_redemption_fee",
    "decay_base_rate",
    "decay_factor",
    "minutes_passed",
]
