"""Build gas-limited Ethereum transactions from resolved contract calls."""

from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_DOWN
from typing import Any, Awaitable, Callable, Optional, Protocol, Union
import logging

from .models import TransactionCall, TransactionHandle, TransactionRequest

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1
# Wide enough for any uint256 at any token precision
_RAW_CONTEXT = Context(prec=100)


class AdapterError(ValueError):
    """Raised when a call cannot be turned into a transaction request."""


class ChainClient(Protocol):
    async def estimate_gas(self, call: TransactionCall) -> int:
        ...

    async def submit(self, request: TransactionRequest) -> TransactionHandle:
        ...

    async def read(self, call: TransactionCall) -> Any:
        ...

    async def latest_block_timestamp(self) -> int:
        ...

    async def get_code(self, address: str) -> str:
        ...


@dataclass(frozen=True)
class BuiltTransaction:
    request: TransactionRequest
    gas_estimate: Decimal
    gas_limit: Decimal
    send: Callable[[], Awaitable[TransactionHandle]]


async def build_transaction_with_gas_limit(
    chain: ChainClient,
    call: TransactionCall,
    gas_limit_multiplier: Decimal = Decimal("1"),
    tag: Optional[str] = None,
) -> BuiltTransaction:
    """Estimate gas for ``call`` and return a request that is only sent on demand.

    Estimation failures propagate unchanged; they usually mean the call would revert.
    """

    _validate_call(call)
    if gas_limit_multiplier <= 0:
        raise AdapterError("Gas limit multiplier must be positive.")

    gas_estimate = Decimal(await chain.estimate_gas(call))
    gas_limit = gas_estimate * gas_limit_multiplier
    request = TransactionRequest(
        call=call,
        gas_limit=int(gas_limit.to_integral_value(rounding=ROUND_DOWN)),
        data_suffix=encode_frontend_tag(tag) if tag else "",
    )

    async def send() -> TransactionHandle:
        logger.info(
            "Submitting %s to %s with gas limit %d",
            call.method,
            call.to_address,
            request.gas_limit,
        )
        return await chain.submit(request)

    return BuiltTransaction(
        request=request,
        gas_estimate=gas_estimate,
        gas_limit=gas_limit,
        send=send,
    )


def encode_frontend_tag(tag: str) -> str:
    """Hex-encode a frontend tag; it is appended to call data and does not affect execution."""

    try:
        return tag.encode("ascii").hex()
    except UnicodeEncodeError:
        raise AdapterError("Frontend tag must be ASCII.") from None


def to_raw_amount(amount: Decimal, decimals: int) -> int:
    scaled = amount.scaleb(decimals, context=_RAW_CONTEXT)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_raw_amount(raw: Union[int, str], decimals: int) -> Decimal:
    return Decimal(int(raw)).scaleb(-decimals, context=_RAW_CONTEXT)


def _validate_call(call: TransactionCall) -> None:
    if not call.to_address:
        raise AdapterError("Call must include a target address.")
    if not call.method:
        raise AdapterError("Call must name a contract method.")
    if call.value_wei < 0:
        raise AdapterError("Call value must be non-negative.")
