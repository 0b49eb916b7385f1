# models.py
# Data contracts for the deployment orchestrator.
# No I/O lives here; only schema, validation and small table helpers.

from enum import Enum
from typing import Any, Iterator, Mapping

from eth_utils import to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import TypeAliasType


class StepKind(str, Enum):
    DEPLOY = "deploy"
    WIRE = "wire"


class AddressRef(BaseModel):
    """Placeholder argument, replaced by the address recorded for `ref`."""

    model_config = ConfigDict(frozen=True)

    ref: str = Field(..., min_length=1, description="Tag of an earlier deploy step.")


# Nested tuples carry array parameters such as address[]; lists are accepted
# and frozen into tuples.
Arg = TypeAliasType("Arg", "AddressRef | bool | int | str | tuple[Arg, ...]")


def _refs(arg: Any) -> Iterator[str]:
    if isinstance(arg, AddressRef):
        yield arg.ref
    elif isinstance(arg, tuple):
        for item in arg:
            yield from _refs(item)


def _resolve(arg: Any, addresses: Mapping[str, str]) -> Any:
    if isinstance(arg, AddressRef):
        return addresses[arg.ref]
    if isinstance(arg, tuple):
        return [_resolve(item, addresses) for item in arg]
    return arg


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


class Step(BaseModel):
    """A single deploy or wiring action in a deployment plan."""

    model_config = ConfigDict(frozen=True)

    tag: str = Field(..., min_length=1, description="Unique key in address/progress tables.")
    kind: StepKind
    contract: str | None = Field(
        default=None,
        description="Artifact name. Optional for wire steps (defaults to the target's contract).",
    )
    args: tuple[Arg, ...] = Field(default=(), description="Constructor or method arguments.")
    target: str | None = Field(default=None, description="Wire only: tag of the contract being called.")
    method: str | None = Field(default=None, description="Wire only: state-changing method name.")
    description: str = ""

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "Step":
        if self.kind is StepKind.DEPLOY:
            if not self.contract:
                raise ValueError(f"Deploy step '{self.tag}' needs a contract name.")
            if self.target or self.method:
                raise ValueError(f"Deploy step '{self.tag}' cannot set target or method.")
        elif not (self.target and self.method):
            raise ValueError(f"Wire step '{self.tag}' needs both target and method.")
        return self

    @property
    def dependencies(self) -> tuple[str, ...]:
        """Tags whose addresses this step needs, in first-use order."""
        deps = [self.target] if self.target else []
        deps.extend(_refs(self.args))
        return tuple(dict.fromkeys(deps))

    def resolve_args(self, addresses: Mapping[str, str]) -> list[Any]:
        return _resolve(self.args, addresses)


class DeploymentPlan(BaseModel):
    """
    Ordered, immutable list of steps for one deployment target.

    Declaration order is execution order. Every dependency must name a deploy
    step declared earlier; nothing is reordered at run time.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    steps: tuple[Step, ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _check_order(self) -> "DeploymentPlan":
        deployed: set[str] = set()
        seen: set[str] = set()
        for step in self.steps:
            if step.tag in seen:
                raise ValueError(f"Duplicate step tag '{step.tag}'.")
            for dep in step.dependencies:
                if dep not in deployed:
                    raise ValueError(
                        f"Step '{step.tag}' depends on '{dep}', "
                        "which is not a deploy step declared before it."
                    )
            seen.add(step.tag)
            if step.kind is StepKind.DEPLOY:
                deployed.add(step.tag)
        return self

    @property
    def tags(self) -> list[str]:
        return [step.tag for step in self.steps]

    def contract_for(self, step: Step) -> str:
        """Artifact whose ABI is used for `step`."""
        if step.contract:
            return step.contract
        for candidate in self.steps:
            if candidate.tag == step.target:
                return candidate.contract
        raise ValueError(f"Step '{step.tag}' targets unknown tag '{step.target}'.")


# ---------------------------------------------------------------------------
# Checkpoint
# ---------------------------------------------------------------------------


class Checkpoint(BaseModel):
    """In-memory view of address.json and progress.json for one network."""

    addresses: dict[str, str] = Field(default_factory=dict)
    progress: dict[str, bool] = Field(default_factory=dict)

    @field_validator("addresses")
    @classmethod
    def _checksum_addresses(cls, value: dict[str, str]) -> dict[str, str]:
        return {tag: to_checksum_address(address) for tag, address in value.items()}

    def is_complete(self, tag: str) -> bool:
        return self.progress.get(tag) is True

    def record_address(self, tag: str, address: str) -> str:
        checksummed = to_checksum_address(address)
        self.addresses[tag] = checksummed
        return checksummed

    def mark_complete(self, tag: str) -> None:
        self.progress[tag] = True


# ---------------------------------------------------------------------------
# Verification and reporting
# ---------------------------------------------------------------------------


class VerificationStatus(str, Enum):
    VERIFIED = "verified"
    ALREADY_VERIFIED = "already_verified"
    FAILED = "failed"


class VerificationOutcome(BaseModel):
    """Result of a block-explorer verification attempt. Never fatal."""

    model_config = ConfigDict(frozen=True)

    status: VerificationStatus
    reason: str = ""

    @classmethod
    def verified(cls) -> "VerificationOutcome":
        return cls(status=VerificationStatus.VERIFIED)

    @classmethod
    def already_verified(cls) -> "VerificationOutcome":
        return cls(status=VerificationStatus.ALREADY_VERIFIED)

    @classmethod
    def failed(cls, reason: str) -> "VerificationOutcome":
        return cls(status=VerificationStatus.FAILED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is not VerificationStatus.FAILED


class RunReport(BaseModel):
    """Summary returned by Orchestrator.run()."""

    network: str
    plan: str
    checkpoint: Checkpoint
    executed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    verification: dict[str, VerificationOutcome] = Field(default_factory=dict)
