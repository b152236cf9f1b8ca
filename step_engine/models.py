"""Domain models for the transaction step planning engine."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from execution_adapter.ethereum.adapter import MAX_UINT256, from_raw_amount
from execution_adapter.ethereum.models import TransactionHandle
from wallet_core.models import PermitSignature

# Repaying the maximum representable debt closes the position
DEBT_CHANGE_TO_CLOSE = from_raw_amount(MAX_UINT256, 18).copy_negate()


class StepKind(Enum):
    WHITELIST = "whitelist"
    PERMIT = "permit"
    APPROVE = "approve"
    MANAGE = "manage"
    REDEEM = "redeem"
    BRIDGE = "bridge"
    SAVINGS = "savings"


class ApprovalType(Enum):
    PERMIT = "permit"
    APPROVE = "approve"


class PlannerState(Enum):
    VALIDATING = "VALIDATING"
    CHECKING_WHITELIST = "CHECKING_WHITELIST"
    COLLECTING_COLLATERAL_AUTH = "COLLECTING_COLLATERAL_AUTH"
    COLLECTING_DEBT_AUTH = "COLLECTING_DEBT_AUTH"
    READY_FOR_TERMINAL = "READY_FOR_TERMINAL"
    DONE = "DONE"


StepOutcome = Union[TransactionHandle, PermitSignature]


@dataclass(frozen=True)
class PlanOptions:
    """Caller-supplied cache; every value that is set suppresses a read or a step."""

    is_delegate_whitelisted: Optional[bool] = None
    is_contract_owner: Optional[bool] = None
    collateral_token_allowance: Optional[Decimal] = None
    r_token_allowance: Optional[Decimal] = None
    collateral_permit_signature: Optional[PermitSignature] = None
    r_permit_signature: Optional[PermitSignature] = None
    approval_type: ApprovalType = ApprovalType.PERMIT
    gas_limit_multiplier: Decimal = Decimal("1")
    bridge_fee_wei: Optional[int] = None
    max_fee_percentage: Optional[Decimal] = None
    frontend_tag: Optional[str] = None


@dataclass(frozen=True)
class PositionChange:
    underlying_collateral_token: str
    collateral_token: str
    collateral_change: Decimal
    debt_change: Decimal
    options: PlanOptions = field(default_factory=PlanOptions)

    @classmethod
    def close(
        cls,
        underlying_collateral_token: str,
        collateral_token: Optional[str] = None,
        options: Optional[PlanOptions] = None,
    ) -> "PositionChange":
        """Withdraw all collateral as ``collateral_token`` and repay all debt."""

        return cls(
            underlying_collateral_token=underlying_collateral_token,
            collateral_token=collateral_token or underlying_collateral_token,
            collateral_change=Decimal("0"),
            debt_change=DEBT_CHANGE_TO_CLOSE,
            options=options or PlanOptions(),
        )

    @property
    def is_close(self) -> bool:
        return self.collateral_change == 0 and self.debt_change == DEBT_CHANGE_TO_CLOSE


@dataclass(frozen=True)
class RedemptionRequest:
    underlying_collateral_token: str
    debt_amount: Decimal
    options: PlanOptions = field(default_factory=PlanOptions)


@dataclass(frozen=True)
class BridgeRequest:
    source_network: str
    destination_network: str
    amount: Decimal
    options: PlanOptions = field(default_factory=PlanOptions)


@dataclass(frozen=True)
class SavingsRequest:
    """Deposit ``amount`` of R into savings when positive, withdraw when negative."""

    amount: Decimal
    options: PlanOptions = field(default_factory=PlanOptions)


PlanRequest = Union[PositionChange, RedemptionRequest, BridgeRequest, SavingsRequest]


@dataclass(frozen=True)
class StepType:
    kind: StepKind
    token: Optional[str] = None


@dataclass(frozen=True)
class Step:
    type: StepType
    step_number: int
    total_steps: int
    gas_estimate: Decimal
    action: Callable[[], Awaitable[StepOutcome]]
