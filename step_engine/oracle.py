"""Read-only collaborators consulted by the step planner."""

from decimal import Decimal
from typing import Protocol


class AuthorizationOracle(Protocol):
    async def get_allowance(self, token: str, owner: str, spender: str) -> Decimal:
        ...

    async def is_delegate_whitelisted(self, owner: str, delegate: str) -> bool:
        ...

    async def is_contract_account(self, account: str) -> bool:
        """Smart-contract accounts cannot sign permits and always approve on chain."""
        ...


class RedemptionFeeSource(Protocol):
    async def quote_redemption_fee(self, underlying: str, debt_amount: Decimal) -> Decimal:
        ...
