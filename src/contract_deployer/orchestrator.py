# orchestrator.py
# Resumable deployment sequencer.
#
# The Orchestrator owns all control flow and both checkpoint tables for the
# duration of a run. Adapters are passive: the network client submits and
# waits, the verifier reports, the store persists.
#
# Control flow per step:
#   completed? → skip
#   resolve dependency addresses → deploy (or reuse recorded address) / wire
#   → persist → mark complete → persist → verify (deploy only, never fatal)
#
# A failing step body propagates immediately. Nothing after it runs, and the
# step stays incomplete so the next invocation retries it.
#
# All terminal output is delegated to display.py.

import time
from dataclasses import dataclass, field
from typing import Any, Callable

from contract_deployer import display
from contract_deployer.checkpoint import FileCheckpointStore
from contract_deployer.errors import DeploymentError, UnresolvedDependency
from contract_deployer.models import (
    Checkpoint,
    DeploymentPlan,
    RunReport,
    Step,
    StepKind,
    VerificationOutcome,
)
from contract_deployer.network import NetworkClient
from contract_deployer.verify import VerificationClient


@dataclass(frozen=True)
class RunContext:
    """Everything that varies per network, passed in instead of read from globals."""

    network_name: str
    store: FileCheckpointStore
    network: NetworkClient
    verifier: VerificationClient | None = None
    explorer_url: str | None = None
    verify_delay: float = 30.0
    sleep: Callable[[float], None] = field(default=time.sleep)


class Orchestrator:
    """
    Executes a DeploymentPlan against one network, resuming from its checkpoint.

    Example:
        orchestrator = Orchestrator(get_plan("fe-learning"), context)
        report = orchestrator.run()
    """

    def __init__(self, plan: DeploymentPlan, context: RunContext) -> None:
        self._plan = plan
        self._context = context

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self) -> RunReport:
        """
        Run every incomplete step in plan order.

        Raises the first DeploymentError encountered. Checkpoint files always
        reflect every step that finished before the failure.
        """
        ctx = self._context
        with ctx.store.lock():
            checkpoint = ctx.store.load()
            signers = ctx.network.get_signers()
            if not signers:
                raise DeploymentError(f"No signer available on network '{ctx.network_name}'.")
            signer = signers[0]

            display.banner(ctx.network_name, self._plan.name, signer, ctx.explorer_url)
            display.checkpoint_loaded(checkpoint, str(ctx.store.root))

            report = RunReport(network=ctx.network_name, plan=self._plan.name, checkpoint=checkpoint)
            total = len(self._plan.steps)
            display.execution_start(total)

            for index, step in enumerate(self._plan.steps):
                if checkpoint.is_complete(step.tag):
                    display.step_skipping(index, total, step.tag)
                    report.skipped.append(step.tag)
                    continue

                display.step_running(index, total, step)
                try:
                    self._run_step(step, checkpoint, signer, report)
                except DeploymentError as exc:
                    display.step_failed(step.tag, exc)
                    raise
                report.executed.append(step.tag)

        display.run_summary(self._plan, report, ctx.explorer_url)
        display.run_complete(ctx.network_name)
        return report

    # ------------------------------------------------------------------
    # Single step
    # ------------------------------------------------------------------

    def _run_step(self, step: Step, checkpoint: Checkpoint, signer: str, report: RunReport) -> None:
        resolved = self._resolve_dependencies(step, checkpoint)
        args = step.resolve_args(resolved)

        if step.kind is StepKind.DEPLOY:
            address = self._deploy(step, args, checkpoint, signer)
        else:
            self._wire(step, args, resolved, signer)
            address = None

        checkpoint.mark_complete(step.tag)
        self._context.store.save(checkpoint)
        display.step_completed(step.tag)

        if address is not None:
            report.verification[step.tag] = self._verify(step, address, args)

    def _resolve_dependencies(self, step: Step, checkpoint: Checkpoint) -> dict[str, str]:
        missing = [dep for dep in step.dependencies if dep not in checkpoint.addresses]
        if missing:
            raise UnresolvedDependency(step.tag, missing)
        return {dep: checkpoint.addresses[dep] for dep in step.dependencies}

    def _deploy(self, step: Step, args: list[Any], checkpoint: Checkpoint, signer: str) -> str:
        existing = checkpoint.addresses.get(step.tag)
        if existing:
            # Recorded by an earlier run that stopped before marking progress.
            display.address_reused(step.tag, existing, self._context.explorer_url)
            return existing

        address = self._context.network.deploy(step.contract, args, signer)
        address = checkpoint.record_address(step.tag, address)
        self._context.store.save(checkpoint)
        display.contract_deployed(step.tag, address, self._context.explorer_url)
        return address

    def _wire(self, step: Step, args: list[Any], resolved: dict[str, str], signer: str) -> None:
        target_address = resolved[step.target]
        self._context.network.call(
            target_address,
            self._plan.contract_for(step),
            step.method,
            args,
            signer,
        )
        display.wiring_applied(step, target_address)

    def _verify(self, step: Step, address: str, args: list[Any]) -> VerificationOutcome:
        verifier = self._context.verifier
        if verifier is None:
            display.verification_skipped(step.tag)
            return VerificationOutcome.failed("No explorer configured for this network.")

        if self._context.verify_delay > 0:
            display.verification_waiting(self._context.verify_delay)
            self._context.sleep(self._context.verify_delay)

        try:
            outcome = verifier.verify(address, step.contract, args)
        except Exception as exc:  # verification must never abort a deployment
            outcome = VerificationOutcome.failed(str(exc) or type(exc).__name__)
        display.verification_result(step.tag, outcome)
        return outcome
