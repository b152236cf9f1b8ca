"""Ethereum adapter models for contract calls, built requests and dry-run output."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class TransactionCall:
    to_address: str
    method: str
    args: Tuple[object, ...] = ()
    value_wei: int = 0


@dataclass(frozen=True)
class TransactionRequest:
    call: TransactionCall
    gas_limit: int
    data_suffix: str = ""


@dataclass(frozen=True)
class TransactionHandle:
    tx_hash: str
    request: TransactionRequest


@dataclass(frozen=True)
class DryRunTxResult:
    tx_hash: str
    method: str
    to_address: str
    gas_limit: int
    value_wei: int
    notes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DryRunResult:
    success: bool
    tx_results: Tuple[DryRunTxResult, ...]
    total_gas_limit: int
    notes: Tuple[str, ...] = ()
