# plans.py
# Declarative deployment plans, one per deployment target.
#
# Order is significant: a step may only reference tags deployed above it.
# Adding a step to the end of an existing plan is safe for networks that are
# already deployed; reordering or renaming tags is not, because tags are the
# keys of address.json and progress.json.

from typing import Any

from pydantic import ValidationError

from contract_deployer.errors import PlanError
from contract_deployer.models import AddressRef, DeploymentPlan, Step, StepKind


def ref(tag: str) -> AddressRef:
    """Argument placeholder for the address recorded under `tag`."""
    return AddressRef(ref=tag)


def _step(tag: str, **fields: Any) -> Step:
    try:
        return Step(tag=tag, **fields)
    except ValidationError as exc:
        raise PlanError(f"Invalid step '{tag}': {exc}") from exc


def deploy(tag: str, *args: Any, contract: str | None = None, description: str = "") -> Step:
    """Deploy step. The contract name defaults to the tag."""
    return _step(tag, kind=StepKind.DEPLOY, contract=contract or tag, args=args, description=description)


def wire(tag: str, target: str, method: str, *args: Any, description: str = "") -> Step:
    """Post-deploy call of `method` on the contract deployed under `target`."""
    return _step(
        tag, kind=StepKind.WIRE, target=target, method=method, args=args, description=description
    )


def build_plan(name: str, *steps: Step) -> DeploymentPlan:
    try:
        return DeploymentPlan(name=name, steps=steps)
    except ValidationError as exc:
        raise PlanError(f"Plan '{name}' is invalid: {exc}") from exc


FE_LEARNING = build_plan(
    "fe-learning",
    deploy("AdminControl", description="Access control root"),
    deploy("TrainerManagement", ref("AdminControl")),
    deploy("FEBlockchainLearning", ref("TrainerManagement"), ref("AdminControl")),
)

REWARD_TOKEN = build_plan(
    "reward-token",
    deploy("RewardToken"),
    deploy("TokenBridge", ref("RewardToken")),
    wire("RewardToken.setMinter", "RewardToken", "setMinter", ref("TokenBridge"),
         description="Bridge may mint bridged-in tokens"),
    wire("RewardToken.setBurner", "RewardToken", "setBurner", ref("TokenBridge"),
         description="Bridge may burn bridged-out tokens"),
)

PLANS: dict[str, DeploymentPlan] = {plan.name: plan for plan in (FE_LEARNING, REWARD_TOKEN)}

DEFAULT_PLAN = FE_LEARNING.name


def get_plan(name: str) -> DeploymentPlan:
    plan = PLANS.get(name)
    if plan is None:
        known = ", ".join(sorted(PLANS))
        raise PlanError(f"Unknown plan '{name}'. Known plans: {known}.")
    return plan
