"""Pure computation of the dynamic redemption fee.

Arithmetic mirrors the position manager contract: 18-decimal fixed point with
truncation, a floored minute count and a rounded exponentiation by squaring
for the base rate decay.
"""

from decimal import Context, Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Union

from .models import FeeState

PRECISION = 18
SECONDS_IN_MINUTE = 60

BETA = Decimal("2")
DEVIATION = Decimal("0.01")
# (1/2)^(1/720), a 12 hour half-life
MINUTE_DECAY_FACTOR = Decimal("0.999037758833783000")
# Cap on the decay exponent, 1000 years in minutes
MAX_DECAY_MINUTES = 525_600_000

ONE = Decimal("1")
ZERO = Decimal("0")

_SCALE = Decimal(1).scaleb(-PRECISION)
_CONTEXT = Context(prec=80)

Number = Union[Decimal, int, float, str]


class FeeInputError(ValueError):
    """Raised when fee inputs are structurally invalid."""


class FeeCalculationError(RuntimeError):
    """Raised when the computed base rate is inconsistent."""


def minutes_passed(last_update_timestamp: int, current_block_timestamp: int) -> int:
    """Return whole minutes elapsed since the last fee operation."""

    elapsed = int(current_block_timestamp) - int(last_update_timestamp)
    if elapsed < 0:
        raise FeeInputError("Current block timestamp precedes the last fee update.")
    return elapsed // SECONDS_IN_MINUTE


def decay_factor(minutes: int) -> Decimal:
    minutes = min(minutes, MAX_DECAY_MINUTES)
    if minutes == 0:
        return ONE

    result = ONE
    base = MINUTE_DECAY_FACTOR
    while minutes > 1:
        if minutes % 2 == 0:
            base = _round_mul(base, base)
            minutes //= 2
        else:
            result = _round_mul(base, result)
            base = _round_mul(base, base)
            minutes = (minutes - 1) // 2
    return _round_mul(base, result)


def decay_base_rate(base_rate: Number, minutes: int) -> Decimal:
    return _mul(_to_decimal(base_rate), decay_factor(minutes))


def compute_redemption_fee(
    requested_amount: Number,
    collateral_price: Number,
    total_debt_supply: Number,
    fee_state: FeeState,
    current_block_timestamp: int,
) -> Decimal:
    """Return the fee percentage charged for redeeming ``requested_amount`` of debt."""

    amount = _to_decimal(requested_amount)
    price = _to_decimal(collateral_price)
    total_debt = _to_decimal(total_debt_supply)

    if price <= ZERO:
        raise FeeInputError("Collateral price must be positive.")
    if total_debt <= ZERO:
        raise FeeInputError("Total debt supply must be positive.")
    if amount < ZERO:
        raise FeeInputError("Requested amount must be non-negative.")

    collateral_amount = _div(amount, price)
    redeemed_fraction = _div(_mul(collateral_amount, price), total_debt)

    minutes = minutes_passed(fee_state.last_update_timestamp, current_block_timestamp)
    decayed_base_rate = decay_base_rate(fee_state.base_rate, minutes)

    new_base_rate = min(decayed_base_rate + _div(redeemed_fraction, BETA), ONE)
    if new_base_rate <= ZERO:
        raise FeeCalculationError("Calculated base rate cannot be zero or less.")

    return min(new_base_rate + _to_decimal(fee_state.spread) + DEVIATION, ONE)


def _mul(left: Decimal, right: Decimal) -> Decimal:
    return _fixed(_CONTEXT.multiply(left, right), ROUND_DOWN)


def _div(left: Decimal, right: Decimal) -> Decimal:
    return _fixed(_CONTEXT.divide(left, right), ROUND_DOWN)


def _round_mul(left: Decimal, right: Decimal) -> Decimal:
    return _fixed(_CONTEXT.multiply(left, right), ROUND_HALF_UP)


def _fixed(value: Decimal, rounding: str) -> Decimal:
    return value.quantize(_SCALE, rounding=rounding, context=_CONTEXT)


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
