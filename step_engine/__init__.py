from .actions import BridgeMessage
from .models import (
    DEBT_CHANGE_TO_CLOSE,
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
from .planner import (
    PERMIT_DEADLINE_SHIFT,
    MissingAuthorizationError,
    PlanRun,
    PlanValidationError,
    StepPlanner,
    UnsupportedRequestError,
)
from .preview import PlanPreview, StepPreview, preview_plan

__all__ = [
    "ApprovalType",
    "AuthorizationOracle",
    "BridgeMessage",
    "BridgeRequest",
    "DEBT_CHANGE_TO_CLOSE",
    "MissingAuthorizationError",
    "PERMIT_DEADLINE_SHIFT",
    "PlanOptions",
    "PlanPreview",
    "PlanRequest",
    "PlanRun",
    "PlanValidationError",
    "PlannerState",
    "PositionChange",
    "RedemptionFeeSource",
    "RedemptionRequest",
    "SavingsRequest",
    "Step",
    "StepKind",
    "StepOutcome",
    "StepPlanner",
    "StepPreview",
    "StepType",
    "UnsupportedRequestError",
    "preview_plan",
]
