"""Smoke tests for the position planner web API."""

import unittest

from fastapi.testclient import TestClient

from web import app as web_app


class WebApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(web_app.app)

    def test_dashboard_lists_networks(self) -> None:
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("wstETH-v1", response.text)

        networks = self.client.get("/api/networks").json()["networks"]
        self.assertEqual({network["name"] for network in networks}, {"mainnet", "goerli"})

    def test_redemption_fee_quote(self) -> None:
        response = self.client.post(
            "/api/redemption-fee",
            json={
                "requested_amount": "100",
                "collateral_price": "2",
                "total_debt_supply": "1000",
                "base_rate": "0.01",
                "spread": "0.005",
                "last_update_timestamp": 0,
                "current_block_timestamp": 0,
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"fee_percentage": "0.075"})

    def test_redemption_fee_zero_price_is_rejected(self) -> None:
        response = self.client.post(
            "/api/redemption-fee",
            json={
                "requested_amount": "100",
                "collateral_price": "0",
                "total_debt_supply": "1000",
                "base_rate": "0.01",
                "spread": "0.005",
                "last_update_timestamp": 0,
                "current_block_timestamp": 0,
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("price", response.json()["error"])

    def test_plan_manage_preview(self) -> None:
        response = self.client.post(
            "/api/plan/manage",
            json={
                "underlying_collateral_token": "wstETH-v1",
                "collateral_token": "wstETH-v1",
                "collateral_change": "2",
                "debt_change": "1500",
                "gas": {"managePosition": 400000},
            },
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(
            [(step["type"], step["token"]) for step in payload["steps"]],
            [("permit", "wstETH-v1"), ("manage", None)],
        )
        self.assertEqual(payload["steps"][1]["gas_estimate"], "400000")
        self.assertEqual(len(payload["dry_run"]["transactions"]), 1)

    def test_plan_manage_with_approve_override(self) -> None:
        response = self.client.post(
            "/api/plan/manage",
            json={
                "underlying_collateral_token": "wstETH-v1",
                "collateral_token": "wstETH-v1",
                "collateral_change": "2",
                "debt_change": "0",
                "options": {"approval_type": "approve"},
            },
        )
        self.assertEqual(response.status_code, 200)
        kinds = [step["type"] for step in response.json()["steps"]]
        self.assertEqual(kinds, ["approve", "manage"])

    def test_plan_manage_validation_error(self) -> None:
        response = self.client.post(
            "/api/plan/manage",
            json={
                "underlying_collateral_token": "wstETH-v1",
                "collateral_token": "rETH-v1",
                "collateral_change": "1",
                "debt_change": "0",
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("rETH-v1", response.json()["error"])

    def test_plan_redeem_preview(self) -> None:
        response = self.client.post(
            "/api/plan/redeem",
            json={
                "underlying_collateral_token": "wstETH-v1",
                "debt_amount": "10",
                "max_fee_percentage": "0.03",
            },
        )
        self.assertEqual(response.status_code, 200)
        steps = response.json()["steps"]
        self.assertEqual([step["type"] for step in steps], ["redeem"])

    def test_plan_close_preview(self) -> None:
        response = self.client.post(
            "/api/plan/close",
            json={
                "underlying_collateral_token": "wstETH-v1",
                "collateral_token": "stETH",
                "options": {"is_delegate_whitelisted": True, "is_contract_owner": True},
            },
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(
            [(step["type"], step["token"]) for step in payload["steps"]],
            [("approve", "R"), ("manage", None)],
        )
        self.assertEqual(payload["dry_run"]["transactions"][-1]["method"], "managePositionStETH")

    def test_plan_savings_preview(self) -> None:
        response = self.client.post(
            "/api/plan/savings",
            json={"amount": "75", "options": {"r_token_allowance": "100"}},
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual([step["type"] for step in payload["steps"]], ["savings"])
        self.assertEqual(payload["dry_run"]["transactions"][0]["method"], "deposit")

    def test_plan_savings_requires_deployed_module(self) -> None:
        response = self.client.post("/api/plan/savings", json={"network": "goerli", "amount": "1"})
        self.assertEqual(response.status_code, 400)

    def test_plan_bridge_preview(self) -> None:
        response = self.client.post(
            "/api/plan/bridge",
            json={
                "source_network": "ethereumSepolia",
                "destination_network": "arbitrumGoerli",
                "amount": "10",
                "fee_wei": 500,
                "r_token_allowance": "10",
            },
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual([step["type"] for step in payload["steps"]], ["bridge"])
        self.assertEqual(payload["dry_run"]["transactions"][0]["value_wei"], 500)

    def test_unknown_network_is_rejected(self) -> None:
        response = self.client.post(
            "/api/plan/redeem",
            json={
                "network": "sepolia",
                "underlying_collateral_token": "wstETH-v1",
                "debt_amount": "10",
            },
        )
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
