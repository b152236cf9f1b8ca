"""Contract calls emitted by plan steps."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from execution_adapter.ethereum.adapter import to_raw_amount
from execution_adapter.ethereum.models import TransactionCall
from protocol_config.models import (
    BridgeNetworkConfig,
    CollateralRoute,
    ManagerKind,
    NetworkConfig,
    TokenConfig,
)
from wallet_core.models import PermitSignature, ZERO_ADDRESS

FEE_PRECISION = 18
# Client.EVM_EXTRA_ARGS_V1_TAG
CCIP_EXTRA_ARGS_V1_TAG = "97a657c9"


@dataclass(frozen=True)
class BridgeMessage:
    receiver: str
    data: str
    token_amounts: Tuple[Tuple[str, int], ...]
    fee_token: str
    extra_args: str


def whitelist_call(config: NetworkConfig, delegate: str) -> TransactionCall:
    return TransactionCall(
        to_address=config.position_manager,
        method="whitelistDelegate",
        args=(delegate, True),
    )


def approve_call(token: TokenConfig, spender: str, amount: Decimal) -> TransactionCall:
    return TransactionCall(
        to_address=token.address,
        method="approve",
        args=(spender, to_raw_amount(amount, token.decimals)),
    )


def manage_call(
    config: NetworkConfig,
    route: CollateralRoute,
    owner: str,
    collateral_change: Decimal,
    debt_change: Decimal,
    max_fee_percentage: Decimal,
    collateral_permit_signature: PermitSignature,
    r_permit_signature: PermitSignature,
) -> TransactionCall:
    collateral_token = config.token(route.token)
    debt_token = config.token(config.debt_token)
    amounts = (
        to_raw_amount(collateral_change.copy_abs(), collateral_token.decimals),
        collateral_change > 0,
        to_raw_amount(debt_change.copy_abs(), debt_token.decimals),
        debt_change > 0,
        to_raw_amount(max_fee_percentage, FEE_PRECISION),
    )

    if route.manager_kind in (ManagerKind.BASE, ManagerKind.INTEREST_RATE):
        return TransactionCall(
            to_address=route.position_manager,
            method="managePosition",
            args=(collateral_token.address, owner) + amounts + (collateral_permit_signature,),
        )
    if route.manager_kind == ManagerKind.STETH:
        return TransactionCall(
            to_address=route.position_manager,
            method="managePositionStETH",
            args=amounts + (r_permit_signature,),
        )
    return TransactionCall(
        to_address=route.position_manager,
        method="managePosition",
        args=amounts + (r_permit_signature,),
    )


def redeem_call(
    config: NetworkConfig,
    underlying: str,
    debt_amount: Decimal,
    max_fee_percentage: Decimal,
) -> TransactionCall:
    debt_token = config.token(config.debt_token)
    return TransactionCall(
        to_address=config.underlying(underlying).native_route.position_manager,
        method="redeemCollateral",
        args=(
            config.token_address(underlying),
            to_raw_amount(debt_amount, debt_token.decimals),
            to_raw_amount(max_fee_percentage, FEE_PRECISION),
        ),
    )


def savings_deposit_call(
    config: NetworkConfig,
    owner: str,
    amount: Decimal,
    permit_signature: Optional[PermitSignature] = None,
) -> TransactionCall:
    raw_amount = to_raw_amount(amount, config.token(config.debt_token).decimals)
    if permit_signature is None:
        return TransactionCall(
            to_address=config.r_savings_module,
            method="deposit",
            args=(raw_amount, owner),
        )
    return TransactionCall(
        to_address=config.r_savings_module,
        method="depositWithPermit",
        args=(raw_amount, owner, permit_signature),
    )


def savings_withdraw_call(config: NetworkConfig, owner: str, amount: Decimal) -> TransactionCall:
    return TransactionCall(
        to_address=config.r_savings_module,
        method="withdraw",
        args=(to_raw_amount(amount, config.token(config.debt_token).decimals), owner, owner),
    )


def bridge_message(source: BridgeNetworkConfig, receiver: str, raw_amount: int) -> BridgeMessage:
    """Token-only CCIP message; fees are paid in the native token."""

    return BridgeMessage(
        receiver="0x" + _abi_word(receiver),
        data="0x",
        token_amounts=((source.token_address, raw_amount),),
        fee_token=ZERO_ADDRESS,
        extra_args="0x" + CCIP_EXTRA_ARGS_V1_TAG + _abi_word("0") + _abi_word("0"),
    )


def bridge_fee_call(
    source: BridgeNetworkConfig,
    destination: BridgeNetworkConfig,
    message: BridgeMessage,
) -> TransactionCall:
    return TransactionCall(
        to_address=source.router_address,
        method="getFee",
        args=(destination.chain_selector, message),
    )


def bridge_call(
    source: BridgeNetworkConfig,
    destination: BridgeNetworkConfig,
    message: BridgeMessage,
    fee_wei: int,
) -> TransactionCall:
    return TransactionCall(
        to_address=source.router_address,
        method="ccipSend",
        args=(destination.chain_selector, message),
        value_wei=fee_wei,
    )


def _abi_word(value: str) -> str:
    data = value[2:] if value.startswith("0x") else value
    return data.lower().rjust(64, "0")
