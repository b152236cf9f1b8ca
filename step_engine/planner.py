"""Resumable step planner for position changes, redemptions, savings and bridging.

A plan run is an explicit state machine. Each call to ``advance`` moves it to
the next step that actually has to be performed and returns that step; the
outcome of the step's action (a transaction handle or a permit signature) is
handed back on the following ``advance`` call.
"""

from dataclasses import dataclass
from decimal import Decimal
from functools import partial
from typing import Callable, Optional, Tuple
import logging
import time

from execution_adapter.ethereum.adapter import (
    ChainClient,
    build_transaction_with_gas_limit,
    from_raw_amount,
    to_raw_amount,
)
from execution_adapter.ethereum.models import TransactionCall, TransactionHandle
from protocol_config.models import (
    BridgeNetworkConfig,
    CollateralRoute,
    NetworkConfig,
    UnderlyingCollateralConfig,
    UnsupportedNetworkError,
)
from wallet_core.models import EMPTY_PERMIT_SIGNATURE, PermitSignature
from wallet_core.signer import PermitSigner

from . import actions
from .models import (
    ApprovalType,
    BridgeRequest,
    PlannerState,
    PlanOptions,
    PlanRequest,
    PositionChange,
    RedemptionRequest,
    SavingsRequest,
    Step,
    StepKind,
    StepOutcome,
    StepType,
)
from .oracle import AuthorizationOracle, RedemptionFeeSource

logger = logging.getLogger(__name__)

PERMIT_DEADLINE_SHIFT = 30 * 60
ONE = Decimal("1")
ZERO = Decimal("0")


class PlanValidationError(ValueError):
    """Raised when a plan request is rejected before any step is produced."""


class UnsupportedRequestError(ValueError):
    """Raised when the planner cannot handle the provided request."""


class MissingAuthorizationError(RuntimeError):
    """Raised when an action needs a permit signature that was never collected."""


@dataclass
class _Authorization:
    token: str
    amount: Decimal
    spender: str
    use_permit: bool
    step_needed: bool
    token_address: str = ""
    signature: Optional[PermitSignature] = None

    @property
    def missing_signature(self) -> bool:
        return self.use_permit and self.signature is None


class StepPlanner:
    """Plans the minimal ordered steps needed to execute a request for one account."""

    def __init__(
        self,
        config: NetworkConfig,
        account: str,
        oracle: AuthorizationOracle,
        signer: PermitSigner,
        chain: ChainClient,
        fee_source: Optional[RedemptionFeeSource] = None,
        time_provider: Optional[Callable[[], int]] = None,
    ) -> None:
        self._config = config
        self._account = account
        self._oracle = oracle
        self._signer = signer
        self._chain = chain
        self._fee_source = fee_source
        self._time_provider = time_provider or _unix_time

    def plan(self, request: PlanRequest) -> "PlanRun":
        """Validate ``request`` and return a run positioned before its first step."""

        if isinstance(request, PositionChange):
            return ManagePlanRun(self, request)
        if isinstance(request, RedemptionRequest):
            return RedeemPlanRun(self, request)
        if isinstance(request, BridgeRequest):
            return BridgePlanRun(self, request)
        if isinstance(request, SavingsRequest):
            return SavingsPlanRun(self, request)
        raise UnsupportedRequestError("Unsupported plan request.")


class PlanRun:
    """One planning run. Not safe for concurrent resumption."""

    def __init__(self, planner: StepPlanner, options: PlanOptions) -> None:
        self._planner = planner
        self._options = options
        self._state = PlannerState.VALIDATING
        self._whitelist_needed = False
        self._delegate = ""
        self._collateral_auth: Optional[_Authorization] = None
        self._debt_auth: Optional[_Authorization] = None
        self._awaiting: Optional[_Authorization] = None
        self._is_contract_owner = options.is_contract_owner
        self._total_steps = 0
        self._step_counter = 0
        _validate_options(options)

    @property
    def state(self) -> PlannerState:
        return self._state

    @property
    def total_steps(self) -> Optional[int]:
        if self._state == PlannerState.VALIDATING:
            return None
        return self._total_steps

    async def advance(self, outcome: Optional[StepOutcome] = None) -> Optional[Step]:
        """Resume with the previous step's outcome and return the next step, or ``None``."""

        if self._state == PlannerState.DONE:
            return None

        if self._awaiting is not None:
            if isinstance(outcome, PermitSignature):
                self._awaiting.signature = outcome
            self._awaiting = None

        if self._state == PlannerState.VALIDATING:
            await self._resolve()
            self._total_steps = 1 + sum(
                (
                    self._whitelist_needed,
                    _step_needed(self._collateral_auth),
                    _step_needed(self._debt_auth),
                )
            )
            logger.debug(
                "%s resolved: whitelist=%s collateral=%s debt=%s total=%d",
                type(self).__name__,
                self._whitelist_needed,
                self._collateral_auth,
                self._debt_auth,
                self._total_steps,
            )
            self._state = PlannerState.CHECKING_WHITELIST

        if self._state == PlannerState.CHECKING_WHITELIST:
            self._state = PlannerState.COLLECTING_COLLATERAL_AUTH
            if self._whitelist_needed:
                return await self._whitelist_step()

        if self._state == PlannerState.COLLECTING_COLLATERAL_AUTH:
            self._state = PlannerState.COLLECTING_DEBT_AUTH
            if _step_needed(self._collateral_auth):
                return await self._authorization_step(self._collateral_auth)

        if self._state == PlannerState.COLLECTING_DEBT_AUTH:
            self._state = PlannerState.READY_FOR_TERMINAL
            if _step_needed(self._debt_auth):
                return await self._authorization_step(self._debt_auth)

        step = await self._terminal_step()
        self._state = PlannerState.DONE
        return step

    async def execute(
        self, on_step: Optional[Callable[[Step], None]] = None
    ) -> Optional[TransactionHandle]:
        """Drive the run to completion, invoking every action in order."""

        result: Optional[StepOutcome] = None
        step = await self.advance()
        while step is not None:
            if on_step is not None:
                on_step(step)
            result = await step.action()
            step = await self.advance(result)
        return result if isinstance(result, TransactionHandle) else None

    async def _resolve(self) -> None:
        raise NotImplementedError

    async def _terminal_step(self) -> Step:
        raise NotImplementedError

    async def _permit_allowed(self) -> bool:
        """Permits need an owner that can sign; contract owners fall back to approve."""

        if self._options.approval_type != ApprovalType.PERMIT:
            return False
        if self._is_contract_owner is None:
            self._is_contract_owner = await self._planner._oracle.is_contract_account(
                self._planner._account
            )
        return not self._is_contract_owner

    def _next_step_number(self) -> int:
        self._step_counter += 1
        return self._step_counter

    async def _whitelist_step(self) -> Step:
        built = await build_transaction_with_gas_limit(
            self._planner._chain,
            actions.whitelist_call(self._planner._config, self._delegate),
        )
        return Step(
            type=StepType(kind=StepKind.WHITELIST),
            step_number=self._next_step_number(),
            total_steps=self._total_steps,
            gas_estimate=built.gas_estimate,
            action=built.send,
        )

    async def _authorization_step(self, auth: _Authorization) -> Step:
        if auth.use_permit:
            self._awaiting = auth
            deadline = self._planner._time_provider() + PERMIT_DEADLINE_SHIFT
            return Step(
                type=StepType(kind=StepKind.PERMIT, token=auth.token),
                step_number=self._next_step_number(),
                total_steps=self._total_steps,
                gas_estimate=ZERO,
                action=partial(
                    self._planner._signer.sign_permit,
                    auth.token,
                    self._planner._account,
                    auth.amount,
                    auth.spender,
                    deadline,
                ),
            )

        call = _approve_call(self._planner._config, auth)
        built = await build_transaction_with_gas_limit(self._planner._chain, call)
        return Step(
            type=StepType(kind=StepKind.APPROVE, token=auth.token),
            step_number=self._next_step_number(),
            total_steps=self._total_steps,
            gas_estimate=built.gas_estimate,
            action=built.send,
        )

    async def _build_terminal(self, kind: StepKind, call: TransactionCall) -> Step:
        missing = [
            auth.token
            for auth in (self._collateral_auth, self._debt_auth)
            if auth is not None and auth.missing_signature
        ]
        if missing:
            message = f"{missing[0]} permit signature is required"

            async def fail() -> TransactionHandle:
                raise MissingAuthorizationError(message)

            return Step(
                type=StepType(kind=kind),
                step_number=self._next_step_number(),
                total_steps=self._total_steps,
                gas_estimate=ZERO,
                action=fail,
            )

        built = await build_transaction_with_gas_limit(
            self._planner._chain,
            call,
            self._options.gas_limit_multiplier,
            self._options.frontend_tag,
        )
        return Step(
            type=StepType(kind=kind),
            step_number=self._next_step_number(),
            total_steps=self._total_steps,
            gas_estimate=built.gas_estimate,
            action=built.send,
        )


class ManagePlanRun(PlanRun):
    def __init__(self, planner: StepPlanner, change: PositionChange) -> None:
        super().__init__(planner, change.options)
        self._change = change
        self._underlying = _underlying_config(
            planner._config, change.underlying_collateral_token
        )
        self._route = _validate_position_change(self._underlying, change)

    async def _resolve(self) -> None:
        config = self._planner._config
        oracle = self._planner._oracle
        account = self._planner._account
        options = self._options
        change = self._change
        route = self._route

        uses_delegate = route.token != self._underlying.ticker
        vault = self._underlying.interest_rate_vault

        collateral_required = change.collateral_change > ZERO
        debt_required = change.debt_change < ZERO and (uses_delegate or vault)

        is_whitelisted = options.is_delegate_whitelisted
        if uses_delegate and is_whitelisted is None:
            is_whitelisted = await oracle.is_delegate_whitelisted(account, route.position_manager)
        self._whitelist_needed = uses_delegate and not is_whitelisted
        self._delegate = route.position_manager

        if collateral_required:
            allowance = options.collateral_token_allowance
            if allowance is None:
                allowance = await oracle.get_allowance(
                    route.token, account, route.position_manager
                )
            self._collateral_auth = _authorization(
                token=route.token,
                amount=change.collateral_change,
                spender=route.position_manager,
                allowance=allowance,
                use_permit=(
                    change.collateral_change > allowance
                    and config.token(route.token).supports_permit
                    and await self._permit_allowed()
                ),
                cached_signature=options.collateral_permit_signature,
            )

        if debt_required:
            allowance = options.r_token_allowance
            if allowance is None:
                allowance = await oracle.get_allowance(
                    config.debt_token, account, route.position_manager
                )
            self._debt_auth = _authorization(
                token=config.debt_token,
                amount=change.debt_change.copy_abs(),
                spender=route.position_manager,
                allowance=allowance,
                # Interest rate vaults do not accept debt token permits
                use_permit=(
                    change.debt_change.copy_abs() > allowance
                    and not vault
                    and config.token(config.debt_token).supports_permit
                    and await self._permit_allowed()
                ),
                cached_signature=options.r_permit_signature,
            )

    async def _terminal_step(self) -> Step:
        call = actions.manage_call(
            self._planner._config,
            self._route,
            self._planner._account,
            self._change.collateral_change,
            self._change.debt_change,
            _max_fee_or_default(self._options.max_fee_percentage),
            _signature_or_empty(self._collateral_auth),
            _signature_or_empty(self._debt_auth),
        )
        return await self._build_terminal(StepKind.MANAGE, call)


class RedeemPlanRun(PlanRun):
    def __init__(self, planner: StepPlanner, request: RedemptionRequest) -> None:
        super().__init__(planner, request.options)
        self._request = request
        _underlying_config(planner._config, request.underlying_collateral_token)
        if request.debt_amount <= ZERO:
            raise PlanValidationError("Redemption amount must be positive.")
        self._max_fee_percentage = request.options.max_fee_percentage

    async def _resolve(self) -> None:
        if self._max_fee_percentage is not None:
            return
        fee_source = self._planner._fee_source
        if fee_source is None:
            self._max_fee_percentage = ONE
            return
        self._max_fee_percentage = await fee_source.quote_redemption_fee(
            self._request.underlying_collateral_token,
            self._request.debt_amount,
        )

    async def _terminal_step(self) -> Step:
        call = actions.redeem_call(
            self._planner._config,
            self._request.underlying_collateral_token,
            self._request.debt_amount,
            self._max_fee_percentage,
        )
        return await self._build_terminal(StepKind.REDEEM, call)


class BridgePlanRun(PlanRun):
    def __init__(self, planner: StepPlanner, request: BridgeRequest) -> None:
        super().__init__(planner, request.options)
        self._request = request
        self._source, self._destination = _validate_bridge_request(planner._config, request)
        debt_token = planner._config.token(planner._config.debt_token)
        self._message = actions.bridge_message(
            self._source,
            planner._account,
            to_raw_amount(request.amount, debt_token.decimals),
        )
        self._fee_wei = 0

    async def _resolve(self) -> None:
        chain = self._planner._chain
        fee_wei = self._options.bridge_fee_wei
        if fee_wei is None:
            fee_call = actions.bridge_fee_call(self._source, self._destination, self._message)
            fee_wei = await chain.read(fee_call)
        self._fee_wei = int(fee_wei)

        allowance = self._options.r_token_allowance
        if allowance is None:
            raw = await chain.read(
                TransactionCall(
                    to_address=self._source.token_address,
                    method="allowance",
                    args=(self._planner._account, self._source.router_address),
                )
            )
            debt_token = self._planner._config.token(self._planner._config.debt_token)
            allowance = from_raw_amount(raw, debt_token.decimals)

        self._debt_auth = _authorization(
            token=self._planner._config.debt_token,
            amount=self._request.amount,
            spender=self._source.router_address,
            allowance=allowance,
            use_permit=False,
            cached_signature=None,
        )
        self._debt_auth.token_address = self._source.token_address

    async def _terminal_step(self) -> Step:
        call = actions.bridge_call(self._source, self._destination, self._message, self._fee_wei)
        return await self._build_terminal(StepKind.BRIDGE, call)


class SavingsPlanRun(PlanRun):
    """Deposits R into the savings module, or withdraws from it for a negative amount."""

    def __init__(self, planner: StepPlanner, request: SavingsRequest) -> None:
        super().__init__(planner, request.options)
        self._request = request
        self._module = planner._config.r_savings_module
        if request.amount == ZERO:
            raise PlanValidationError("Savings amount cannot be zero.")
        if not self._module:
            raise PlanValidationError(f"R savings are not deployed on {planner._config.name}.")

    async def _resolve(self) -> None:
        amount = self._request.amount
        if amount < ZERO:
            return

        config = self._planner._config
        allowance = self._options.r_token_allowance
        if allowance is None:
            allowance = await self._planner._oracle.get_allowance(
                config.debt_token, self._planner._account, self._module
            )
        self._debt_auth = _authorization(
            token=config.debt_token,
            amount=amount,
            spender=self._module,
            allowance=allowance,
            use_permit=(
                amount > allowance
                and config.token(config.debt_token).supports_permit
                and await self._permit_allowed()
            ),
            cached_signature=self._options.r_permit_signature,
        )

    async def _terminal_step(self) -> Step:
        config = self._planner._config
        account = self._planner._account
        amount = self._request.amount
        if amount < ZERO:
            call = actions.savings_withdraw_call(config, account, amount.copy_abs())
        elif self._debt_auth is not None and self._debt_auth.use_permit:
            call = actions.savings_deposit_call(
                config, account, amount, _signature_or_empty(self._debt_auth)
            )
        else:
            call = actions.savings_deposit_call(config, account, amount)
        return await self._build_terminal(StepKind.SAVINGS, call)


def _authorization(
    token: str,
    amount: Decimal,
    spender: str,
    allowance: Decimal,
    use_permit: bool,
    cached_signature: Optional[PermitSignature],
) -> _Authorization:
    if amount <= allowance:
        return _Authorization(
            token=token,
            amount=amount,
            spender=spender,
            use_permit=False,
            step_needed=False,
            signature=EMPTY_PERMIT_SIGNATURE,
        )
    if use_permit and cached_signature is not None:
        return _Authorization(
            token=token,
            amount=amount,
            spender=spender,
            use_permit=True,
            step_needed=False,
            signature=cached_signature,
        )
    return _Authorization(
        token=token,
        amount=amount,
        spender=spender,
        use_permit=use_permit,
        step_needed=True,
    )


def _max_fee_or_default(max_fee_percentage: Optional[Decimal]) -> Decimal:
    return ONE if max_fee_percentage is None else max_fee_percentage


def _step_needed(auth: Optional[_Authorization]) -> bool:
    return auth is not None and auth.step_needed


def _signature_or_empty(auth: Optional[_Authorization]) -> PermitSignature:
    if auth is None or not auth.use_permit or auth.signature is None:
        return EMPTY_PERMIT_SIGNATURE
    return auth.signature


def _approve_call(config: NetworkConfig, auth: _Authorization) -> TransactionCall:
    token = config.token(auth.token)
    if auth.token_address:
        return TransactionCall(
            to_address=auth.token_address,
            method="approve",
            args=(auth.spender, to_raw_amount(auth.amount, token.decimals)),
        )
    return actions.approve_call(token, auth.spender, auth.amount)


def _underlying_config(config: NetworkConfig, ticker: str) -> UnderlyingCollateralConfig:
    try:
        return config.underlying(ticker)
    except UnsupportedNetworkError as exc:
        raise PlanValidationError(str(exc)) from exc


def _validate_options(options: PlanOptions) -> None:
    if options.gas_limit_multiplier <= ZERO:
        raise PlanValidationError("Gas limit multiplier must be positive.")
    if options.max_fee_percentage is not None and not ZERO <= options.max_fee_percentage <= ONE:
        raise PlanValidationError("Max fee percentage must be between 0 and 1.")


def _validate_position_change(
    underlying: UnderlyingCollateralConfig, change: PositionChange
) -> CollateralRoute:
    if change.collateral_change == ZERO and change.debt_change == ZERO:
        raise PlanValidationError("Collateral and debt change cannot be both zero.")

    route = underlying.route_for(change.collateral_token)
    if route is None:
        raise PlanValidationError(
            f"Underlying collateral token {underlying.ticker} does not support "
            f"collateral token {change.collateral_token}."
        )

    # Without a collateral movement the delegate is skipped and the primary manager is used.
    # Closing keeps the delegate so the collateral is returned as the requested token.
    if change.collateral_change == ZERO and not change.is_close:
        return underlying.native_route
    return route


def _validate_bridge_request(
    config: NetworkConfig, request: BridgeRequest
) -> Tuple[BridgeNetworkConfig, BridgeNetworkConfig]:
    if request.amount <= ZERO:
        raise PlanValidationError("Bridge amount must be positive.")
    if request.source_network == request.destination_network:
        raise PlanValidationError("Source and destination networks must differ.")
    try:
        source = config.bridge_network(request.source_network)
        destination = config.bridge_network(request.destination_network)
    except UnsupportedNetworkError as exc:
        raise PlanValidationError(str(exc)) from exc
    if not config.can_bridge(source.name, destination.name):
        raise PlanValidationError(
            f"Bridging from {source.name} to {destination.name} is not supported."
        )
    if not source.router_address or not source.token_address or not destination.chain_selector:
        raise PlanValidationError(
            f"Bridge lane {source.name} to {destination.name} is not deployed."
        )
    return source, destination


def _unix_time() -> int:
    return int(time.time())
