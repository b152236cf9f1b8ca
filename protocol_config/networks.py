"""Built-in network tables and loaders for explicit configuration objects."""

from pathlib import Path
from typing import Dict, Mapping, Union
import json

from .models import (
    BridgeNetworkConfig,
    CollateralRoute,
    ManagerKind,
    NetworkConfig,
    TokenConfig,
    UnderlyingCollateralConfig,
    UnsupportedNetworkError,
)

_MAINNET_POSITION_MANAGER = "0x5f59b322eb3e16a0c78846195af1f588b77403fc"
_MAINNET_POSITION_MANAGER_STETH = "0x839d6833cee34ffab6fa9057b39f02bd3091a1d6"
_MAINNET_POSITION_MANAGER_WRAPPED_RETH = "0x29f8abb4cab4bbb56f617d9a3c0f62d33758e74e"
_MAINNET_INTEREST_RATE_POSITION_MANAGER = "0x9AB6b21cDF116f611110b048987E58894786C244"
_MAINNET_R_SAVINGS_MODULE = "0x2ba26bae6df1153e29813d7f926143f9c94402f3"

_GOERLI_POSITION_MANAGER = "0xeaf8aad45d563f14d8b443277dd51c426ad8607f"
_GOERLI_POSITION_MANAGER_STETH = "0x4e01f8c03893be67b60af6a1b49d6e51a8781e3c"

BRIDGE_NETWORKS = (
    BridgeNetworkConfig(
        name="ethereum",
        router_address="0xE561d5E02207fb5eB32cca20a699E0d8919a1476",
        chain_selector="5009297550715157269",
        token_address="",
    ),
    BridgeNetworkConfig(
        name="ethereumSepolia",
        router_address="0xd0daae2231e9cb96b94c8512223533293c3693bf",
        chain_selector="16015286601757825753",
        token_address="0x466D489b6d36E7E3b824ef491C225F5830E81cC1",
    ),
    BridgeNetworkConfig(
        name="base",
        router_address="",
        chain_selector="",
        token_address="",
    ),
    BridgeNetworkConfig(
        name="arbitrumGoerli",
        router_address="0x88E492127709447A5ABEFdaB8788a15B4567589E",
        chain_selector="6101244977088475029",
        token_address="",
    ),
)

BRIDGE_LANES = (
    ("ethereum", "base"),
    ("ethereumSepolia", "arbitrumGoerli"),
    ("base", "ethereum"),
    ("arbitrumGoerli", "ethereumSepolia"),
)


def _interest_rate_vault(ticker: str, price_feed: str) -> UnderlyingCollateralConfig:
    return UnderlyingCollateralConfig(
        ticker=ticker,
        routes=(
            CollateralRoute(
                token=ticker,
                position_manager=_MAINNET_INTEREST_RATE_POSITION_MANAGER,
                manager_kind=ManagerKind.INTEREST_RATE,
            ),
        ),
        price_feed=price_feed,
        interest_rate_vault=True,
    )


MAINNET = NetworkConfig(
    name="mainnet",
    chain_id=1,
    position_manager=_MAINNET_POSITION_MANAGER,
    tokens=(
        TokenConfig("stETH", "0xae7ab96520de3a18e5e111b5eaab095312d7fe84", 18, False),
        TokenConfig("wstETH", "0x7f39c581f595b53c5cb19bd0b3f8da6c935e2ca0", 18, True),
        TokenConfig("wstETH-v1", "0x7f39c581f595b53c5cb19bd0b3f8da6c935e2ca0", 18, True),
        TokenConfig("rETH", "0xae78736cd615f374d3085123a210448e74fc6393", 18, False),
        TokenConfig("rETH-v1", "0xae78736cd615f374d3085123a210448e74fc6393", 18, False),
        TokenConfig("wcrETH-v1", "0xb69e35fb4a157028b92f42655090b984609ae598", 18, True),
        TokenConfig("WETH", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18, False),
        TokenConfig("WBTC", "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", 8, False),
        TokenConfig("cbETH", "0xBe9895146f7AF43049ca1c1AE358B0541Ea49704", 18, False),
        TokenConfig("swETH", "0xf951E335afb289353dc249e82926178EaC7DEd78", 18, False),
        TokenConfig("R", "0x183015a9ba6ff60230fdeadc3f43b3d788b13e21", 18, True),
    ),
    underlying_tokens=(
        UnderlyingCollateralConfig(
            ticker="wstETH-v1",
            routes=(
                CollateralRoute("wstETH-v1", _MAINNET_POSITION_MANAGER, ManagerKind.BASE),
                CollateralRoute("stETH", _MAINNET_POSITION_MANAGER_STETH, ManagerKind.STETH),
            ),
            price_feed="0xDB5De0A34b29fFDeEc61E2D8ab4dB63f6641C730",
        ),
        UnderlyingCollateralConfig(
            ticker="wcrETH-v1",
            routes=(
                CollateralRoute("wcrETH-v1", _MAINNET_POSITION_MANAGER, ManagerKind.BASE),
                CollateralRoute(
                    "rETH-v1", _MAINNET_POSITION_MANAGER_WRAPPED_RETH, ManagerKind.WRAPPED
                ),
            ),
            price_feed="0x62ac8d1ebf61636e17d92ec3b24e8e03fb853cda",
        ),
        _interest_rate_vault("wstETH", "0xDB5De0A34b29fFDeEc61E2D8ab4dB63f6641C730"),
        _interest_rate_vault("WETH", "0xE66bC214beef3D61Ce66dA9f80E67E14413bfc5A"),
        _interest_rate_vault("rETH", "0x62ac8d1ebf61636e17d92ec3b24e8e03fb853cda"),
        _interest_rate_vault("WBTC", "0xf65916E410A87953AE075AD7AB7bdE695Ae14D27"),
        _interest_rate_vault("cbETH", "0x3cd40D6e8426C9f02Fe7B23867661377E462df3d"),
        _interest_rate_vault("swETH", "0x2bAE40A96D4aD0150f48E2174CfCDf2BD4f0B39C"),
    ),
    r_savings_module=_MAINNET_R_SAVINGS_MODULE,
    bridge_networks=BRIDGE_NETWORKS,
    bridge_lanes=BRIDGE_LANES,
)

GOERLI = NetworkConfig(
    name="goerli",
    chain_id=5,
    position_manager=_GOERLI_POSITION_MANAGER,
    tokens=(
        TokenConfig("wstETH", "0x6320cD32aA674d2898A68ec82e869385Fc5f7E2f", 18, True),
        TokenConfig("stETH", "0x1643E812aE58766192Cf7D2Cf9567dF2C37e9B7F", 18, False),
        TokenConfig("WETH", "0xb4fbf271143f4fbf7b91a5ded31805e42b2208d6", 18, False),
        TokenConfig("R", "0x9b41fE4EE4F23507953CCA339A4eC27eAc9e02b8", 18, True),
    ),
    underlying_tokens=(
        UnderlyingCollateralConfig(
            ticker="wstETH",
            routes=(
                CollateralRoute("wstETH", _GOERLI_POSITION_MANAGER, ManagerKind.BASE),
                CollateralRoute("stETH", _GOERLI_POSITION_MANAGER_STETH, ManagerKind.STETH),
            ),
            price_feed="0x0341b185e55A0860D6a7e853fd44D1f4fe37dB37",
        ),
        UnderlyingCollateralConfig(
            ticker="WETH",
            routes=(CollateralRoute("WETH", _GOERLI_POSITION_MANAGER, ManagerKind.BASE),),
        ),
    ),
    bridge_networks=BRIDGE_NETWORKS,
    bridge_lanes=BRIDGE_LANES,
    test_network=True,
)

SUPPORTED_NETWORKS: Dict[str, NetworkConfig] = {
    MAINNET.name: MAINNET,
    GOERLI.name: GOERLI,
}


def get_network_config(name: str) -> NetworkConfig:
    try:
        return SUPPORTED_NETWORKS[name]
    except KeyError:
        raise UnsupportedNetworkError(f"Unsupported network: {name}") from None


def network_config_from_dict(data: Mapping[str, object]) -> NetworkConfig:
    tokens = tuple(
        TokenConfig(
            ticker=entry["ticker"],
            address=entry["address"],
            decimals=int(entry.get("decimals", 18)),
            supports_permit=bool(entry.get("supports_permit", False)),
        )
        for entry in data.get("tokens", [])
    )
    underlying_tokens = tuple(
        UnderlyingCollateralConfig(
            ticker=entry["ticker"],
            routes=tuple(
                CollateralRoute(
                    token=route["token"],
                    position_manager=route["position_manager"],
                    manager_kind=ManagerKind(route["manager_kind"]),
                )
                for route in entry.get("routes", [])
            ),
            price_feed=entry.get("price_feed", ""),
            interest_rate_vault=bool(entry.get("interest_rate_vault", False)),
        )
        for entry in data.get("underlying_tokens", [])
    )
    bridge_networks = tuple(
        BridgeNetworkConfig(
            name=entry["name"],
            router_address=entry["router_address"],
            chain_selector=entry["chain_selector"],
            token_address=entry["token_address"],
        )
        for entry in data.get("bridge_networks", [])
    )
    bridge_lanes = tuple(
        (lane[0], lane[1]) for lane in data.get("bridge_lanes", [])
    )
    return NetworkConfig(
        name=data["name"],
        chain_id=int(data["chain_id"]),
        position_manager=data["position_manager"],
        tokens=tokens,
        underlying_tokens=underlying_tokens,
        debt_token=data.get("debt_token", "R"),
        r_savings_module=data.get("r_savings_module", ""),
        bridge_networks=bridge_networks,
        bridge_lanes=bridge_lanes,
        subgraph_endpoint=data.get("subgraph_endpoint", ""),
        test_network=bool(data.get("test_network", False)),
    )


def load_network_config(source: Union[str, Path]) -> NetworkConfig:
    """Resolve a built-in network name or a path to a JSON network document."""

    if isinstance(source, str) and source in SUPPORTED_NETWORKS:
        return SUPPORTED_NETWORKS[source]
    path = Path(source)
    if not path.exists():
        raise UnsupportedNetworkError(f"Unsupported network: {source}")
    return network_config_from_dict(json.loads(path.read_text()))
