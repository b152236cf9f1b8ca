"""Local-first FastAPI shell for fee quotes and plan previews."""

from __future__ import annotations

from decimal import Decimal
import html
from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from execution_adapter.ethereum.adapter import AdapterError
from execution_adapter.ethereum.simulator import SimulationError
from protocol_config.models import UnsupportedNetworkError
from protocol_config.networks import SUPPORTED_NETWORKS, get_network_config
from redemption_fee.engine import FeeCalculationError, FeeInputError, compute_redemption_fee
from redemption_fee.models import FeeState
from step_engine.models import (
    ApprovalType,
    BridgeRequest,
    PlanOptions,
    PositionChange,
    RedemptionRequest,
    SavingsRequest,
)
from step_engine.planner import MissingAuthorizationError, PlanValidationError
from step_engine.preview import preview_plan

DEFAULT_ACCOUNT = "0x0000000000000000000000000000000000000001"

app = FastAPI(title="Position Planner", description="Local-first web shell")


class RedemptionFeeRequest(BaseModel):
    requested_amount: Decimal
    collateral_price: Decimal
    total_debt_supply: Decimal
    base_rate: Decimal
    spread: Decimal
    last_update_timestamp: int
    current_block_timestamp: int


class PlanOptionsInput(BaseModel):
    is_delegate_whitelisted: bool = False
    is_contract_owner: bool = False
    collateral_token_allowance: Decimal = Decimal("0")
    r_token_allowance: Decimal = Decimal("0")
    approval_type: str = ApprovalType.PERMIT.value
    gas_limit_multiplier: Decimal = Decimal("1")
    max_fee_percentage: Optional[Decimal] = None
    frontend_tag: Optional[str] = None


class ManagePlanRequest(BaseModel):
    network: str = "mainnet"
    account: str = DEFAULT_ACCOUNT
    underlying_collateral_token: str
    collateral_token: str
    collateral_change: Decimal
    debt_change: Decimal
    options: PlanOptionsInput = PlanOptionsInput()
    gas: Optional[Dict[str, int]] = None


class ClosePlanRequest(BaseModel):
    network: str = "mainnet"
    account: str = DEFAULT_ACCOUNT
    underlying_collateral_token: str
    collateral_token: Optional[str] = None
    options: PlanOptionsInput = PlanOptionsInput()
    gas: Optional[Dict[str, int]] = None


class RedeemPlanRequest(BaseModel):
    network: str = "mainnet"
    account: str = DEFAULT_ACCOUNT
    underlying_collateral_token: str
    debt_amount: Decimal
    max_fee_percentage: Optional[Decimal] = None
    gas_limit_multiplier: Decimal = Decimal("1")
    gas: Optional[Dict[str, int]] = None


class SavingsPlanRequest(BaseModel):
    network: str = "mainnet"
    account: str = DEFAULT_ACCOUNT
    amount: Decimal
    options: PlanOptionsInput = PlanOptionsInput()
    gas: Optional[Dict[str, int]] = None


class BridgePlanRequest(BaseModel):
    network: str = "mainnet"
    account: str = DEFAULT_ACCOUNT
    source_network: str
    destination_network: str
    amount: Decimal
    fee_wei: int
    r_token_allowance: Decimal = Decimal("0")
    gas_limit_multiplier: Decimal = Decimal("1")
    gas: Optional[Dict[str, int]] = None


@app.middleware("http")
async def _local_only(request: Request, call_next):
    client = request.client
    if client is not None:
        host = client.host
        if host not in {"127.0.0.1", "::1", "testclient"}:
            return JSONResponse({"error": "Remote access disabled."}, status_code=403)
    return await call_next(request)


async def _handle_errors(request: Request, exc: Exception):
    return JSONResponse({"error": str(exc)}, status_code=400)


for _exc_class in (
    AdapterError,
    FeeCalculationError,
    FeeInputError,
    MissingAuthorizationError,
    PlanValidationError,
    SimulationError,
    UnsupportedNetworkError,
    ValueError,
):
    app.add_exception_handler(_exc_class, _handle_errors)


@app.get("/", response_class=HTMLResponse)
async def dashboard() -> HTMLResponse:
    return HTMLResponse(_render_dashboard())


@app.get("/api/networks")
async def list_networks():
    return {
        "networks": [
            {
                "name": config.name,
                "chain_id": config.chain_id,
                "test_network": config.test_network,
                "underlying_tokens": [
                    {
                        "ticker": underlying.ticker,
                        "collateral_tokens": [route.token for route in underlying.routes],
                    }
                    for underlying in config.underlying_tokens
                ],
            }
            for config in SUPPORTED_NETWORKS.values()
        ]
    }


@app.post("/api/redemption-fee")
async def redemption_fee(payload: RedemptionFeeRequest):
    fee_state = FeeState(
        base_rate=payload.base_rate,
        last_update_timestamp=payload.last_update_timestamp,
        spread=payload.spread,
    )
    fee = compute_redemption_fee(
        payload.requested_amount,
        payload.collateral_price,
        payload.total_debt_supply,
        fee_state,
        payload.current_block_timestamp,
    )
    return {"fee_percentage": format(fee.normalize(), "f")}


@app.post("/api/plan/manage")
async def plan_manage(payload: ManagePlanRequest):
    change = PositionChange(
        underlying_collateral_token=payload.underlying_collateral_token,
        collateral_token=payload.collateral_token,
        collateral_change=payload.collateral_change,
        debt_change=payload.debt_change,
        options=_plan_options(payload.options),
    )
    config = get_network_config(payload.network)
    preview = await preview_plan(config, payload.account, change, gas_by_method=payload.gas)
    return preview.to_dict()


@app.post("/api/plan/close")
async def plan_close(payload: ClosePlanRequest):
    change = PositionChange.close(
        payload.underlying_collateral_token,
        payload.collateral_token,
        _plan_options(payload.options),
    )
    config = get_network_config(payload.network)
    preview = await preview_plan(config, payload.account, change, gas_by_method=payload.gas)
    return preview.to_dict()


@app.post("/api/plan/redeem")
async def plan_redeem(payload: RedeemPlanRequest):
    request = RedemptionRequest(
        underlying_collateral_token=payload.underlying_collateral_token,
        debt_amount=payload.debt_amount,
        options=PlanOptions(
            gas_limit_multiplier=payload.gas_limit_multiplier,
            max_fee_percentage=payload.max_fee_percentage,
        ),
    )
    config = get_network_config(payload.network)
    preview = await preview_plan(config, payload.account, request, gas_by_method=payload.gas)
    return preview.to_dict()


@app.post("/api/plan/savings")
async def plan_savings(payload: SavingsPlanRequest):
    request = SavingsRequest(amount=payload.amount, options=_plan_options(payload.options))
    config = get_network_config(payload.network)
    preview = await preview_plan(config, payload.account, request, gas_by_method=payload.gas)
    return preview.to_dict()


@app.post("/api/plan/bridge")
async def plan_bridge(payload: BridgePlanRequest):
    request = BridgeRequest(
        source_network=payload.source_network,
        destination_network=payload.destination_network,
        amount=payload.amount,
        options=PlanOptions(
            r_token_allowance=payload.r_token_allowance,
            bridge_fee_wei=payload.fee_wei,
            gas_limit_multiplier=payload.gas_limit_multiplier,
        ),
    )
    config = get_network_config(payload.network)
    preview = await preview_plan(config, payload.account, request, gas_by_method=payload.gas)
    return preview.to_dict()


def _plan_options(options: PlanOptionsInput) -> PlanOptions:
    return PlanOptions(
        is_delegate_whitelisted=options.is_delegate_whitelisted,
        is_contract_owner=options.is_contract_owner,
        collateral_token_allowance=options.collateral_token_allowance,
        r_token_allowance=options.r_token_allowance,
        approval_type=ApprovalType(options.approval_type),
        gas_limit_multiplier=options.gas_limit_multiplier,
        max_fee_percentage=options.max_fee_percentage,
        frontend_tag=options.frontend_tag,
    )


def _render_dashboard() -> str:
    rows: List[str] = []
    for config in SUPPORTED_NETWORKS.values():
        for underlying in config.underlying_tokens:
            routes = ", ".join(route.token for route in underlying.routes)
            rows.append(
                "<tr><td>{}</td><td>{}</td><td>{}</td></tr>".format(
                    html.escape(config.name),
                    html.escape(underlying.ticker),
                    html.escape(routes),
                )
            )
    return """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8" />
  <title>Position Planner</title>
  <style>
    body { font-family: system-ui, sans-serif; margin: 2rem; color: #0b0d12; background: #f7f8fb; }
    table { border-collapse: collapse; }
    td, th { border: 1px solid #d3d8e0; padding: 0.4rem 0.8rem; text-align: left; }
    code { background: #ffffff; padding: 0.1rem 0.3rem; }
  </style>
</head>
<body>
  <h1>Position Planner</h1>
  <p>Preview the steps needed to change or close a position, redeem collateral,
  manage R savings or bridge R, or quote a redemption fee. Nothing is signed or
  submitted from this page.</p>
  <ul>
    <li><code>POST /api/redemption-fee</code></li>
    <li><code>POST /api/plan/manage</code></li>
    <li><code>POST /api/plan/close</code></li>
    <li><code>POST /api/plan/redeem</code></li>
    <li><code>POST /api/plan/savings</code></li>
    <li><code>POST /api/plan/bridge</code></li>
  </ul>
  <table>
    <tr><th>Network</th><th>Underlying</th><th>Collateral tokens</th></tr>
    %s
  </table>
</body>
</html>
""" % "\n    ".join(rows)
