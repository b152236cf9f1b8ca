"""Network configuration models for the position step planner."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ManagerKind(Enum):
    BASE = "BASE"
    STETH = "STETH"
    WRAPPED = "WRAPPED"
    INTEREST_RATE = "INTEREST_RATE"


class UnsupportedNetworkError(ValueError):
    """Raised when a network, token or bridge lane is not configured."""


@dataclass(frozen=True)
class TokenConfig:
    ticker: str
    address: str
    decimals: int = 18
    supports_permit: bool = False


@dataclass(frozen=True)
class CollateralRoute:
    """A collateral token accepted for an underlying and the manager that moves it."""

    token: str
    position_manager: str
    manager_kind: ManagerKind


@dataclass(frozen=True)
class UnderlyingCollateralConfig:
    ticker: str
    routes: Tuple[CollateralRoute, ...]
    price_feed: str = ""
    interest_rate_vault: bool = False

    def route_for(self, collateral_token: str) -> Optional[CollateralRoute]:
        for route in self.routes:
            if route.token == collateral_token:
                return route
        return None

    @property
    def native_route(self) -> CollateralRoute:
        route = self.route_for(self.ticker)
        if route is None:
            raise UnsupportedNetworkError(
                f"Underlying collateral token {self.ticker} has no native route."
            )
        return route


@dataclass(frozen=True)
class BridgeNetworkConfig:
    name: str
    router_address: str
    chain_selector: str
    token_address: str


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    chain_id: int
    position_manager: str
    tokens: Tuple[TokenConfig, ...]
    underlying_tokens: Tuple[UnderlyingCollateralConfig, ...]
    debt_token: str = "R"
    r_savings_module: str = ""
    bridge_networks: Tuple[BridgeNetworkConfig, ...] = ()
    bridge_lanes: Tuple[Tuple[str, str], ...] = ()
    subgraph_endpoint: str = ""
    test_network: bool = False

    def token(self, ticker: str) -> TokenConfig:
        for token in self.tokens:
            if token.ticker == ticker:
                return token
        raise UnsupportedNetworkError(f"Token {ticker} is not configured for {self.name}.")

    def token_address(self, ticker: str) -> str:
        return self.token(ticker).address

    def token_ticker(self, address: str) -> Optional[str]:
        lowered = address.lower()
        for token in self.tokens:
            if token.address.lower() == lowered:
                return token.ticker
        return None

    def underlying(self, ticker: str) -> UnderlyingCollateralConfig:
        for underlying in self.underlying_tokens:
            if underlying.ticker == ticker:
                return underlying
        raise UnsupportedNetworkError(
            f"Underlying collateral token {ticker} is not configured for {self.name}."
        )

    def position_manager_address(self, underlying: str, collateral_token: str) -> str:
        route = self.underlying(underlying).route_for(collateral_token)
        if route is None:
            raise UnsupportedNetworkError(
                f"Underlying collateral token {underlying} does not support "
                f"collateral token {collateral_token}."
            )
        return route.position_manager

    def bridge_network(self, name: str) -> BridgeNetworkConfig:
        for network in self.bridge_networks:
            if network.name == name:
                return network
        raise UnsupportedNetworkError(f"Bridge network {name} is not configured.")

    def can_bridge(self, source: str, destination: str) -> bool:
        return (source, destination) in self.bridge_lanes
