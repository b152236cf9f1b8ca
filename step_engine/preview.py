"""Dry-run previews of plans; every action is executed against an in-memory chain."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Mapping, Optional, Tuple

from execution_adapter.ethereum.models import DryRunResult
from execution_adapter.ethereum.oracle import ChainAuthorizationOracle
from execution_adapter.ethereum.simulator import DryRunChain
from protocol_config.models import NetworkConfig
from wallet_core.signer import DryRunPermitSigner

from .models import PlanRequest, Step
from .planner import StepPlanner


@dataclass(frozen=True)
class StepPreview:
    kind: str
    token: Optional[str]
    step_number: int
    total_steps: int
    gas_estimate: Decimal


@dataclass(frozen=True)
class PlanPreview:
    steps: Tuple[StepPreview, ...]
    dry_run: DryRunResult

    def to_dict(self) -> dict:
        return {
            "steps": [
                {
                    "type": step.kind,
                    "token": step.token,
                    "step_number": step.step_number,
                    "total_steps": step.total_steps,
                    "gas_estimate": str(step.gas_estimate),
                }
                for step in self.steps
            ],
            "dry_run": {
                "success": self.dry_run.success,
                "total_gas_limit": self.dry_run.total_gas_limit,
                "transactions": [
                    {
                        "tx_hash": result.tx_hash,
                        "method": result.method,
                        "to_address": result.to_address,
                        "gas_limit": result.gas_limit,
                        "value_wei": result.value_wei,
                    }
                    for result in self.dry_run.tx_results
                ],
                "notes": list(self.dry_run.notes),
            },
        }


async def preview_plan(
    config: NetworkConfig,
    account: str,
    request: PlanRequest,
    gas_by_method: Optional[Mapping[str, int]] = None,
    block_timestamp: int = 0,
) -> PlanPreview:
    """Plan ``request`` and run it to completion without touching a real chain.

    Any read the request's options leave open fails with ``SimulationError``, so callers
    supply whitelist status and allowances up front.
    """

    chain = DryRunChain(gas_by_method=gas_by_method, block_timestamp=block_timestamp)
    planner = StepPlanner(
        config,
        account,
        ChainAuthorizationOracle(config, chain),
        DryRunPermitSigner(config),
        chain,
        time_provider=lambda: block_timestamp,
    )
    steps: List[Step] = []
    await planner.plan(request).execute(on_step=steps.append)
    return PlanPreview(
        steps=tuple(
            StepPreview(
                kind=step.type.kind.value,
                token=step.type.token,
                step_number=step.step_number,
                total_steps=step.total_steps,
                gas_estimate=step.gas_estimate,
            )
            for step in steps
        ),
        dry_run=chain.summary(),
    )
