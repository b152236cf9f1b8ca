"""Protocol statistics reader, constructed explicitly per network and chain client."""

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional
import logging

from execution_adapter.ethereum.adapter import ChainClient, from_raw_amount
from execution_adapter.ethereum.models import TransactionCall
from protocol_config.models import NetworkConfig, UnsupportedNetworkError

from .engine import PRECISION, compute_redemption_fee
from .models import FeeState

logger = logging.getLogger(__name__)


class ProtocolStats:
    """Reads protocol-wide values and keeps the last fetched value of each."""

    def __init__(self, config: NetworkConfig, chain: ChainClient) -> None:
        self._config = config
        self._chain = chain
        self._collateral_supply: Dict[str, Decimal] = {}
        self._debt_supply: Optional[Decimal] = None
        self._borrowing_rates: Dict[str, Decimal] = {}
        self._collateral_prices: Dict[str, Decimal] = {}
        self._fee_states: Dict[str, FeeState] = {}
        self._redemption_rates: Dict[str, Decimal] = {}
        self._latest_block_timestamp: Optional[int] = None

    def collateral_supply(self, underlying: str) -> Optional[Decimal]:
        return self._collateral_supply.get(underlying)

    @property
    def debt_supply(self) -> Optional[Decimal]:
        return self._debt_supply

    def borrowing_rate(self, underlying: str) -> Optional[Decimal]:
        return self._borrowing_rates.get(underlying)

    def collateral_price(self, underlying: str) -> Optional[Decimal]:
        return self._collateral_prices.get(underlying)

    def fee_state(self, underlying: str) -> Optional[FeeState]:
        return self._fee_states.get(underlying)

    def redemption_rate(self, underlying: str) -> Optional[Decimal]:
        return self._redemption_rates.get(underlying)

    @property
    def latest_block_timestamp(self) -> Optional[int]:
        return self._latest_block_timestamp

    async def fetch_latest_block_timestamp(self) -> int:
        self._latest_block_timestamp = await self._chain.latest_block_timestamp()
        return self._latest_block_timestamp

    async def fetch_collateral_supply(self, underlying: str) -> Decimal:
        """Total supply of the position token that tracks deposited collateral."""

        info = await self._read_collateral_info(underlying)
        raw = await self._chain.read(
            TransactionCall(to_address=info["collateralToken"], method="totalSupply")
        )
        supply = from_raw_amount(raw, PRECISION)
        self._collateral_supply[underlying] = supply
        return supply

    async def fetch_debt_supply(self) -> Decimal:
        debt_token = self._config.token(self._config.debt_token)
        raw = await self._chain.read(
            TransactionCall(to_address=debt_token.address, method="totalSupply")
        )
        self._debt_supply = from_raw_amount(raw, debt_token.decimals)
        return self._debt_supply

    async def fetch_borrowing_rate(self, underlying: str) -> Decimal:
        token_address = self._underlying_address(underlying)
        raw = await self._chain.read(
            TransactionCall(
                to_address=self._config.underlying(underlying).native_route.position_manager,
                method="getBorrowingRate",
                args=(token_address,),
            )
        )
        rate = from_raw_amount(raw, PRECISION)
        self._borrowing_rates[underlying] = rate
        return rate

    async def fetch_collateral_price(self, underlying: str) -> Decimal:
        price_feed = self._config.underlying(underlying).price_feed
        if not price_feed:
            raise UnsupportedNetworkError(f"No price feed configured for {underlying}.")
        raw = await self._chain.read(TransactionCall(to_address=price_feed, method="getPrice"))
        price = from_raw_amount(raw, PRECISION)
        self._collateral_prices[underlying] = price
        return price

    async def fetch_fee_state(self, underlying: str) -> FeeState:
        info = await self._read_collateral_info(underlying)
        state = _fee_state_from_collateral_info(info)
        self._fee_states[underlying] = state
        return state

    async def fetch_redemption_rate(
        self,
        underlying: str,
        debt_amount: Decimal,
        collateral_price: Decimal,
        total_debt_supply: Decimal,
    ) -> Decimal:
        """Fetch the fee state and latest block, then compute the redemption fee."""

        fee_state = await self.fetch_fee_state(underlying)
        timestamp = await self.fetch_latest_block_timestamp()
        rate = compute_redemption_fee(
            debt_amount,
            collateral_price,
            total_debt_supply,
            fee_state,
            timestamp,
        )
        self._redemption_rates[underlying] = rate
        logger.debug(
            "Redemption rate for %s of %s %s: %s",
            underlying,
            debt_amount,
            self._config.debt_token,
            rate,
        )
        return rate

    async def quote_redemption_fee(self, underlying: str, debt_amount: Decimal) -> Decimal:
        price = await self.fetch_collateral_price(underlying)
        total_debt = await self.fetch_debt_supply()
        return await self.fetch_redemption_rate(underlying, debt_amount, price, total_debt)

    async def _read_collateral_info(self, underlying: str) -> Mapping[str, Any]:
        token_address = self._underlying_address(underlying)
        return await self._chain.read(
            TransactionCall(
                to_address=self._config.underlying(underlying).native_route.position_manager,
                method="collateralInfo",
                args=(token_address,),
            )
        )

    def _underlying_address(self, underlying: str) -> str:
        self._config.underlying(underlying)
        return self._config.token_address(underlying)


def _fee_state_from_collateral_info(info: Mapping[str, int]) -> FeeState:
    return FeeState(
        base_rate=from_raw_amount(info["baseRate"], PRECISION),
        last_update_timestamp=int(info["lastFeeOperationTime"]),
        spread=from_raw_amount(info["redemptionSpread"], PRECISION),
    )
