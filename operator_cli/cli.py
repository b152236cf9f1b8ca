"""Operator CLI for the position step planner."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from execution_adapter.ethereum.adapter import AdapterError
from execution_adapter.ethereum.simulator import SimulationError
from protocol_config.models import UnsupportedNetworkError
from protocol_config.networks import load_network_config
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


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="position-planner")
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fee_parser = subparsers.add_parser("fee")
    fee_parser.add_argument("--amount", required=True, type=_decimal)
    fee_parser.add_argument("--price", required=True, type=_decimal)
    fee_parser.add_argument("--total-debt", required=True, type=_decimal)
    fee_parser.add_argument("--base-rate", required=True, type=_decimal)
    fee_parser.add_argument("--spread", required=True, type=_decimal)
    fee_parser.add_argument("--last-update", required=True, type=int)
    fee_parser.add_argument("--timestamp", required=True, type=int)
    fee_parser.set_defaults(func=_fee)

    plan_parser = subparsers.add_parser("plan")
    plan_sub = plan_parser.add_subparsers(dest="plan_command", required=True)

    plan_manage = plan_sub.add_parser("manage")
    _add_common_plan_args(plan_manage)
    plan_manage.add_argument("--underlying", required=True)
    plan_manage.add_argument("--collateral-token", required=True)
    plan_manage.add_argument("--collateral-change", required=True, type=_decimal)
    plan_manage.add_argument("--debt-change", required=True, type=_decimal)
    plan_manage.add_argument("--whitelisted", action="store_true")
    plan_manage.add_argument("--collateral-allowance", type=_decimal, default=Decimal("0"))
    _add_authorization_args(plan_manage)
    plan_manage.set_defaults(func=_plan_manage)

    plan_close = plan_sub.add_parser("close")
    _add_common_plan_args(plan_close)
    plan_close.add_argument("--underlying", required=True)
    plan_close.add_argument("--collateral-token")
    plan_close.add_argument("--whitelisted", action="store_true")
    _add_authorization_args(plan_close)
    plan_close.set_defaults(func=_plan_close)

    plan_redeem = plan_sub.add_parser("redeem")
    _add_common_plan_args(plan_redeem)
    plan_redeem.add_argument("--underlying", required=True)
    plan_redeem.add_argument("--amount", required=True, type=_decimal)
    plan_redeem.set_defaults(func=_plan_redeem)

    plan_savings = plan_sub.add_parser("savings")
    _add_common_plan_args(plan_savings)
    plan_savings.add_argument("--amount", required=True, type=_decimal)
    _add_authorization_args(plan_savings)
    plan_savings.set_defaults(func=_plan_savings)

    plan_bridge = plan_sub.add_parser("bridge")
    _add_common_plan_args(plan_bridge)
    plan_bridge.add_argument("--source", required=True)
    plan_bridge.add_argument("--destination", required=True)
    plan_bridge.add_argument("--amount", required=True, type=_decimal)
    plan_bridge.add_argument("--fee-wei", required=True, type=int)
    plan_bridge.add_argument("--r-allowance", type=_decimal, default=Decimal("0"))
    plan_bridge.set_defaults(func=_plan_bridge)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    try:
        return args.func(args)
    except (
        ValueError,
        AdapterError,
        FeeCalculationError,
        FeeInputError,
        MissingAuthorizationError,
        PlanValidationError,
        SimulationError,
        UnsupportedNetworkError,
    ) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2


def _fee(args: argparse.Namespace) -> int:
    fee_state = FeeState(
        base_rate=args.base_rate,
        last_update_timestamp=args.last_update,
        spread=args.spread,
    )
    fee = compute_redemption_fee(
        args.amount,
        args.price,
        args.total_debt,
        fee_state,
        args.timestamp,
    )
    print(json.dumps({"fee_percentage": _format_decimal(fee)}, indent=2))
    return 0


def _plan_manage(args: argparse.Namespace) -> int:
    options = _plan_options(
        args,
        is_delegate_whitelisted=args.whitelisted,
        collateral_token_allowance=args.collateral_allowance,
        r_token_allowance=args.r_allowance,
        is_contract_owner=args.contract_owner,
        approval_type=ApprovalType(args.approval_type),
    )
    change = PositionChange(
        underlying_collateral_token=args.underlying,
        collateral_token=args.collateral_token,
        collateral_change=args.collateral_change,
        debt_change=args.debt_change,
        options=options,
    )
    return _print_preview(args, change)


def _plan_close(args: argparse.Namespace) -> int:
    options = _plan_options(
        args,
        is_delegate_whitelisted=args.whitelisted,
        r_token_allowance=args.r_allowance,
        is_contract_owner=args.contract_owner,
        approval_type=ApprovalType(args.approval_type),
    )
    change = PositionChange.close(args.underlying, args.collateral_token, options)
    return _print_preview(args, change)


def _plan_redeem(args: argparse.Namespace) -> int:
    request = RedemptionRequest(
        underlying_collateral_token=args.underlying,
        debt_amount=args.amount,
        options=_plan_options(args),
    )
    return _print_preview(args, request)


def _plan_savings(args: argparse.Namespace) -> int:
    options = _plan_options(
        args,
        r_token_allowance=args.r_allowance,
        is_contract_owner=args.contract_owner,
        approval_type=ApprovalType(args.approval_type),
    )
    return _print_preview(args, SavingsRequest(amount=args.amount, options=options))


def _plan_bridge(args: argparse.Namespace) -> int:
    options = _plan_options(args, r_token_allowance=args.r_allowance, bridge_fee_wei=args.fee_wei)
    request = BridgeRequest(
        source_network=args.source,
        destination_network=args.destination,
        amount=args.amount,
        options=options,
    )
    return _print_preview(args, request)


def _print_preview(args: argparse.Namespace, request) -> int:
    config = load_network_config(args.network)
    preview = asyncio.run(
        preview_plan(
            config,
            args.account,
            request,
            gas_by_method=_parse_gas(args.gas),
            block_timestamp=args.timestamp,
        )
    )
    print(json.dumps(preview.to_dict(), indent=2))
    return 0


def _add_common_plan_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--network", default="mainnet")
    parser.add_argument("--account", default=DEFAULT_ACCOUNT)
    parser.add_argument("--gas-multiplier", type=_decimal, default=Decimal("1"))
    parser.add_argument("--max-fee", type=_decimal)
    parser.add_argument("--tag")
    parser.add_argument("--timestamp", type=int, default=0)
    parser.add_argument("--gas", action="append", default=[])


def _add_authorization_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--r-allowance", type=_decimal, default=Decimal("0"))
    parser.add_argument("--contract-owner", action="store_true")
    parser.add_argument(
        "--approval-type",
        choices=[approval.value for approval in ApprovalType],
        default=ApprovalType.PERMIT.value,
    )


def _plan_options(args: argparse.Namespace, **overrides) -> PlanOptions:
    return PlanOptions(
        gas_limit_multiplier=args.gas_multiplier,
        max_fee_percentage=args.max_fee,
        frontend_tag=args.tag,
        **overrides,
    )


def _parse_gas(values: Iterable[str]) -> Dict[str, int]:
    gas: Dict[str, int] = {}
    for raw in values:
        if "=" not in raw:
            raise ValueError("Gas must be formatted as METHOD=GAS.")
        method, amount = raw.split("=", 1)
        if not method:
            raise ValueError("Gas method name is required.")
        gas[method] = int(amount)
    return gas


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Invalid decimal value: {value}") from None


def _format_decimal(value: Decimal) -> str:
    return format(value.normalize(), "f")


if __name__ == "__main__":
    raise SystemExit(main())
