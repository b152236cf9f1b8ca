"""Allowance, delegate-whitelist and account-type reads served by a chain client."""

from decimal import Decimal

from protocol_config.models import NetworkConfig

from .adapter import ChainClient, from_raw_amount
from .models import TransactionCall


class ChainAuthorizationOracle:
    """Reads token allowances, delegate whitelist status and account code from the chain."""

    def __init__(self, config: NetworkConfig, chain: ChainClient) -> None:
        self._config = config
        self._chain = chain

    async def get_allowance(self, token: str, owner: str, spender: str) -> Decimal:
        token_config = self._config.token(token)
        raw = await self._chain.read(
            TransactionCall(
                to_address=token_config.address,
                method="allowance",
                args=(owner, spender),
            )
        )
        return from_raw_amount(raw, token_config.decimals)

    async def is_delegate_whitelisted(self, owner: str, delegate: str) -> bool:
        result = await self._chain.read(
            TransactionCall(
                to_address=self._config.position_manager,
                method="isDelegateWhitelisted",
                args=(owner, delegate),
            )
        )
        return bool(result)

    async def is_contract_account(self, account: str) -> bool:
        code = await self._chain.get_code(account)
        return code not in ("", "0x")
