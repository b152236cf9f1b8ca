"""Domain schemas for redemption fee computation."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class FeeState:
    """Read-only snapshot of the protocol's fee variables for one collateral."""

    base_rate: Decimal
    last_update_timestamp: int
    spread: Decimal
