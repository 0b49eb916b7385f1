# display.py
# All terminal output for the deployment orchestrator.
#
# This module owns presentation entirely. orchestrator.py and verify.py never
# format strings for the terminal; they call named functions here.
#
# Colour language:
#   cyan: scaffolding / step routing
#   blue: chain transactions
#   yellow: explorer verification
#   green: success / confirmed
#   red: failures, halts

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from contract_deployer.errors import PersistenceFailed
from contract_deployer.models import (
    Checkpoint,
    DeploymentPlan,
    RunReport,
    Step,
    StepKind,
    VerificationOutcome,
    VerificationStatus,
)

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def recovery_hint(error: Exception) -> str:
    """What the operator should do before the next run."""
    if isinstance(error, PersistenceFailed):
        return (
            "The on-chain effect of this step may already exist without a durable record. "
            "Inspect the chain before re-running."
        )
    return "The step is not marked complete and will be retried on the next run."


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _address_link(address: str, explorer_url: str | None) -> str:
    if not explorer_url:
        return address
    return f"{explorer_url.rstrip('/')}/address/{address}"


# ---------------------------------------------------------------------------
# Run entry
# ---------------------------------------------------------------------------


def banner(network: str, plan: str, signer: str, explorer_url: str | None) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Contract Deployer[/bold cyan]\n"
            "[dim]Resumable deployment with per-step checkpoints[/dim]\n\n"
            f"[dim]Network  :[/dim] [white]{network}[/white]\n"
            f"[dim]Plan     :[/dim] [white]{plan}[/white]\n"
            f"[dim]Signer   :[/dim] [white]{signer}[/white]\n"
            f"[dim]Explorer :[/dim] [white]{explorer_url or 'none'}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def checkpoint_loaded(checkpoint: Checkpoint, location: str) -> None:
    console.print()
    console.print(_label("PREPARING", "cyan"), f"[cyan] Checkpoint loaded from[/cyan] [white]{location}[/white]")
    if not checkpoint.addresses:
        console.print("[dim]  No recorded addresses.[/dim]")
        return
    for tag, address in checkpoint.addresses.items():
        console.print(f"  [dim]{tag:<24}[/dim] [white]{address}[/white]")


def execution_start(total: int) -> None:
    console.print()
    console.print(Rule(f"[cyan]DEPLOYING {total} step(s)[/cyan]", style="cyan"))


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


def step_skipping(index: int, total: int, tag: str) -> None:
    console.print(f"[dim]  [{index + 1}/{total}] Skipping '{tag}'.[/dim]")


def step_running(index: int, total: int, step: Step) -> None:
    console.print()
    detail = f"  [dim]{step.description}[/dim]" if step.description else ""
    console.print(f"[bold cyan]  [{index + 1}/{total}] Running: {step.tag}[/bold cyan]{detail}")


def address_reused(tag: str, address: str, explorer_url: str | None) -> None:
    console.print(
        f"  [yellow]↳ Address already recorded for '{tag}', not redeploying:[/yellow] "
        f"[white]{_address_link(address, explorer_url)}[/white]"
    )


def contract_deployed(tag: str, address: str, explorer_url: str | None) -> None:
    console.print(
        f"  [bold blue]✓ {tag} address at:[/bold blue] "
        f"[white]{_address_link(address, explorer_url)}[/white]"
    )


def wiring_applied(step: Step, target_address: str) -> None:
    console.print(
        f"  [bold blue]✓ {step.target}.{step.method}[/bold blue] "
        f"[dim]mined on {target_address}[/dim]"
    )


def step_completed(tag: str) -> None:
    console.print(f"  [green]✓ '{tag}' recorded as complete.[/green]")


def step_failed(tag: str, error: Exception) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]Step '{tag}' failed.[/bold red]\n\n[white]{escape(str(error))}[/white]\n\n"
            f"[dim]{recovery_hint(error)}[/dim]",
            title=_label("STEP FAILED ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


def verification_waiting(delay: float) -> None:
    console.print(f"  [yellow]↳ Waiting {delay:g}s for the explorer to index the contract…[/yellow]")


def verification_retry(attempt: int, max_attempts: int, reason: str) -> None:
    console.print(f"  [dim yellow]↻ Explorer call {attempt}/{max_attempts} failed: {escape(reason)}[/dim yellow]")


def verification_skipped(tag: str) -> None:
    console.print(f"  [dim]↳ No explorer configured; '{tag}' not verified.[/dim]")


def verification_result(tag: str, outcome: VerificationOutcome) -> None:
    if outcome.ok:
        label = "verified" if outcome.status is VerificationStatus.VERIFIED else "already verified"
        console.print(f"  [bold green]✓ {tag} {label} on explorer[/bold green]")
    else:
        console.print(f"  [yellow]⚠ Verification of '{tag}' failed (continuing):[/yellow] [dim]{escape(outcome.reason)}[/dim]")


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def run_summary(plan: DeploymentPlan, report: RunReport, explorer_url: str | None) -> None:
    console.print()
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="dim",
        show_header=True,
        header_style="bold dim",
        padding=(0, 1),
    )
    table.add_column("Tag", style="bold white")
    table.add_column("Kind", width=7)
    table.add_column("This run", justify="center", width=9)
    table.add_column("Address / Call", style="dim white")

    for step in plan.steps:
        if step.tag in report.executed:
            status = "[bold green]ran[/bold green]"
        elif step.tag in report.skipped:
            status = "[dim]skipped[/dim]"
        else:
            status = "[red]not run[/red]"
        if step.kind is StepKind.DEPLOY:
            detail = _address_link(report.checkpoint.addresses.get(step.tag, ""), explorer_url)
        else:
            detail = f"{step.target}.{step.method}"
        table.add_row(step.tag, step.kind.value, status, detail)

    console.print(
        Panel(
            table,
            title="[dim]DEPLOYMENT SUMMARY[/dim]",
            subtitle=f"[dim]{report.network} / {report.plan}[/dim]",
            border_style="dim",
            padding=(0, 1),
        )
    )


def run_complete(network: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[white]All steps complete on [bold]{network}[/bold].[/white]",
            title=_label("DONE", "green"),
            border_style="green",
            padding=(0, 2),
        )
    )
    console.print()


def halt(error: Exception) -> None:
    if isinstance(error, PersistenceFailed):
        advice = recovery_hint(error)
    else:
        advice = "Checkpoint files were left in place; re-run to resume."
    console.print()
    console.print(
        Panel(
            f"[bold white]{escape(str(error))}[/bold white]\n\n"
            f"[dim]{advice}[/dim]",
            title=_label("HALT", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
