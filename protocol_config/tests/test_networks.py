"""Network table and loader tests."""

import json
import tempfile
import unittest
from pathlib import Path

from protocol_config.models import ManagerKind, UnsupportedNetworkError
from protocol_config.networks import (
    GOERLI,
    MAINNET,
    get_network_config,
    load_network_config,
    network_config_from_dict,
)

CUSTOM_NETWORK = {
    "name": "devnet",
    "chain_id": 31337,
    "position_manager": "0x00000000000000000000000000000000000000f1",
    "tokens": [
        {"ticker": "WETH", "address": "0x00000000000000000000000000000000000000e1"},
        {
            "ticker": "R",
            "address": "0x00000000000000000000000000000000000000e2",
            "supports_permit": True,
        },
    ],
    "underlying_tokens": [
        {
            "ticker": "WETH",
            "routes": [
                {
                    "token": "WETH",
                    "position_manager": "0x00000000000000000000000000000000000000f1",
                    "manager_kind": "BASE",
                }
            ],
        }
    ],
    "bridge_lanes": [["devnet", "mainnet"]],
    "r_savings_module": "0x00000000000000000000000000000000000000f9",
    "test_network": True,
}


class NetworkConfigTests(unittest.TestCase):
    def test_builtin_networks(self) -> None:
        self.assertIs(get_network_config("mainnet"), MAINNET)
        self.assertIs(get_network_config("goerli"), GOERLI)
        self.assertTrue(GOERLI.test_network)
        self.assertTrue(MAINNET.r_savings_module)
        self.assertEqual(GOERLI.r_savings_module, "")

        with self.assertRaises(UnsupportedNetworkError):
            get_network_config("sepolia")

    def test_routes_for_underlying(self) -> None:
        underlying = MAINNET.underlying("wstETH-v1")

        self.assertEqual(underlying.native_route.manager_kind, ManagerKind.BASE)
        self.assertEqual(underlying.route_for("stETH").manager_kind, ManagerKind.STETH)
        self.assertIsNone(underlying.route_for("rETH-v1"))
        self.assertEqual(
            MAINNET.position_manager_address("wcrETH-v1", "rETH-v1"),
            MAINNET.underlying("wcrETH-v1").route_for("rETH-v1").position_manager,
        )
        with self.assertRaises(UnsupportedNetworkError):
            MAINNET.position_manager_address("wstETH-v1", "rETH-v1")

    def test_interest_rate_vaults(self) -> None:
        vault = MAINNET.underlying("WBTC")

        self.assertTrue(vault.interest_rate_vault)
        self.assertEqual(vault.native_route.manager_kind, ManagerKind.INTEREST_RATE)
        self.assertEqual(MAINNET.token("WBTC").decimals, 8)
        self.assertFalse(MAINNET.underlying("wstETH-v1").interest_rate_vault)

    def test_token_lookup(self) -> None:
        address = MAINNET.token_address("R")

        self.assertTrue(MAINNET.token("R").supports_permit)
        self.assertFalse(MAINNET.token("stETH").supports_permit)
        self.assertEqual(MAINNET.token_ticker(address.upper().replace("0X", "0x")), "R")
        self.assertIsNone(MAINNET.token_ticker("0x0000000000000000000000000000000000000000"))
        with self.assertRaises(UnsupportedNetworkError):
            MAINNET.token("DOGE")

    def test_bridge_lanes(self) -> None:
        self.assertTrue(MAINNET.can_bridge("ethereumSepolia", "arbitrumGoerli"))
        self.assertFalse(MAINNET.can_bridge("arbitrumGoerli", "base"))
        with self.assertRaises(UnsupportedNetworkError):
            MAINNET.bridge_network("polygon")

    def test_config_from_dict(self) -> None:
        config = network_config_from_dict(CUSTOM_NETWORK)

        self.assertEqual(config.chain_id, 31337)
        self.assertEqual(config.token("WETH").decimals, 18)
        self.assertTrue(config.token("R").supports_permit)
        self.assertEqual(config.underlying("WETH").native_route.manager_kind, ManagerKind.BASE)
        self.assertTrue(config.can_bridge("devnet", "mainnet"))
        self.assertEqual(config.debt_token, "R")
        self.assertEqual(config.r_savings_module, "0x00000000000000000000000000000000000000f9")

    def test_load_network_config_from_file(self) -> None:
        with tempfile.TemporaryDirectory() as tempdir:
            path = Path(tempdir) / "devnet.json"
            path.write_text(json.dumps(CUSTOM_NETWORK))

            config = load_network_config(str(path))

        self.assertEqual(config.name, "devnet")
        self.assertIs(load_network_config("mainnet"), MAINNET)
        with self.assertRaises(UnsupportedNetworkError):
            load_network_config("does-not-exist.json")


if __name__ == "__main__":
    unittest.main()
