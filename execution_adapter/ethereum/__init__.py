from .adapter import (
    MAX_UINT256,
    AdapterError,
    BuiltTransaction,
    ChainClient,
    build_transaction_with_gas_limit,
    encode_frontend_tag,
    from_raw_amount,
    to_raw_amount,
)
from .models import (
    DryRunResult,
    DryRunTxResult,
    TransactionCall,
    TransactionHandle,
    TransactionRequest,
)
from .oracle import ChainAuthorizationOracle
from .simulator import DryRunChain, SimulationError

__all__ = [
    "MAX_UINT256",
    "AdapterError",
    "BuiltTransaction",
    "ChainAuthorizationOracle",
    "ChainClient",
    "DryRunChain",
    "DryRunResult",
    "DryRunTxResult",
    "SimulationError",
    "TransactionCall",
    "TransactionHandle",
    "TransactionRequest",
    "build_transaction_with_gas_limit",
    "encode_frontend_tag",
    "from_raw_amount",
    "to_raw_amount",
]
