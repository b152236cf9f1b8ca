from .models import (
    BridgeNetworkConfig,
    CollateralRoute,
    ManagerKind,
    NetworkConfig,
    TokenConfig,
    UnderlyingCollateralConfig,
    UnsupportedNetworkError,
)
from .networks import (
    GOERLI,
    MAINNET,
    SUPPORTED_NETWORKS,
    get_network_config,
    load_network_config,
    network_config_from_dict,
)

__all__ = [
    "BridgeNetworkConfig",
    "CollateralRoute",
    "GOERLI",
    "MAINNET",
    "ManagerKind",
    "NetworkConfig",
    "SUPPORTED_NETWORKS",
    "TokenConfig",
    "UnderlyingCollateralConfig",
    "UnsupportedNetworkError",
    "get_network_config",
    "load_network_config",
    "network_config_from_dict",
]
