"""In-memory chain client for dry runs; no network calls are made."""

from typing import Any, Dict, List, Mapping, Optional, Tuple
import hashlib

from .models import (
    DryRunResult,
    DryRunTxResult,
    TransactionCall,
    TransactionHandle,
    TransactionRequest,
)


class SimulationError(ValueError):
    """Raised when a dry-run call cannot be served."""


_DEFAULT_GAS_USED = 21_000

ReadKey = Tuple[str, str, Tuple[object, ...]]


class DryRunChain:
    """Deterministic ``ChainClient`` backed by a table of canned reads."""

    def __init__(
        self,
        gas_by_method: Optional[Mapping[str, int]] = None,
        default_gas: int = _DEFAULT_GAS_USED,
        block_timestamp: int = 0,
    ) -> None:
        self._gas_by_method = dict(gas_by_method or {})
        self._default_gas = default_gas
        self._block_timestamp = block_timestamp
        self._reads: Dict[ReadKey, Any] = {}
        self._code: Dict[str, str] = {}
        self.estimated: List[TransactionCall] = []
        self.submitted: List[TransactionRequest] = []
        self.read_calls: List[TransactionCall] = []

    def set_read(
        self, to_address: str, method: str, args: Tuple[object, ...], result: Any
    ) -> None:
        self._reads[_read_key(to_address, method, args)] = result

    def set_block_timestamp(self, timestamp: int) -> None:
        self._block_timestamp = timestamp

    def set_code(self, address: str, code: str) -> None:
        self._code[address.lower()] = code

    async def estimate_gas(self, call: TransactionCall) -> int:
        _validate_call(call)
        self.estimated.append(call)
        return self._gas_by_method.get(call.method, self._default_gas)

    async def submit(self, request: TransactionRequest) -> TransactionHandle:
        _validate_call(request.call)
        if request.gas_limit <= 0:
            raise SimulationError("Request gas limit must be positive.")
        self.submitted.append(request)
        return TransactionHandle(tx_hash=_tx_hash(len(self.submitted), request), request=request)

    async def read(self, call: TransactionCall) -> Any:
        self.read_calls.append(call)
        key = _read_key(call.to_address, call.method, call.args)
        if key not in self._reads:
            raise SimulationError(f"No canned result for {call.method} on {call.to_address}.")
        return self._reads[key]

    async def latest_block_timestamp(self) -> int:
        return self._block_timestamp

    async def get_code(self, address: str) -> str:
        """Deployed bytecode; addresses without canned code are externally owned."""

        return self._code.get(address.lower(), "0x")

    def summary(self) -> DryRunResult:
        tx_results = tuple(
            DryRunTxResult(
                tx_hash=_tx_hash(index, request),
                method=request.call.method,
                to_address=request.call.to_address,
                gas_limit=request.gas_limit,
                value_wei=request.call.value_wei,
                notes=("Dry-run only; no execution performed.",),
            )
            for index, request in enumerate(self.submitted, start=1)
        )
        return DryRunResult(
            success=True,
            tx_results=tx_results,
            total_gas_limit=sum(result.gas_limit for result in tx_results),
            notes=("Simulation completed without network calls.",),
        )


def _read_key(to_address: str, method: str, args: Tuple[object, ...]) -> ReadKey:
    normalized = tuple(arg.lower() if isinstance(arg, str) else arg for arg in args)
    return (to_address.lower(), method, normalized)


def _tx_hash(index: int, request: TransactionRequest) -> str:
    payload = f"{index}|{request.call.to_address}|{request.call.method}|{request.gas_limit}"
    return "0x" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _validate_call(call: TransactionCall) -> None:
    if not call.to_address:
        raise SimulationError("Call must include a target address.")
    if call.value_wei < 0:
        raise SimulationError("Call value must be non-negative.")
