"""
Console report generator for Gatehouse.

Renders decisions in the terminal using Rich: a header panel with the
outcome, followed by the reason and evidence that produced it.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gatehouse.schema import (
    AuthorizationDecision,
    PreAgentGatesResult,
    ProvenanceValidationResult,
)

# Status icons
ICON_PASS = "[green]✓[/green]"
ICON_FAIL = "[red]✗[/red]"
ICON_SKIPPED = "[dim]○[/dim]"


def _header(title: str, outcome: str, ok: bool) -> Panel:
    style = "green" if ok else "red"
    text = Text()
    text.append(f" {title} ", style="bold")
    text.append("│ ", style="dim")
    text.append(outcome, style=f"bold {style}")
    return Panel(text, expand=False)


def _details_table() -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value", overflow="fold")
    return table


def print_decision(decision: AuthorizationDecision, console: Console | None = None) -> None:
    """Print a trust authorization decision."""
    if console is None:
        console = Console()

    console.print(
        _header(
            "Trust Authorization",
            "ALLOWED" if decision.allowed else "DENIED",
            decision.allowed,
        )
    )

    table = _details_table()
    table.add_row("Actor", decision.actor)
    table.add_row("Trust Level", decision.trust_level)
    table.add_row("Adapter", decision.adapter)
    table.add_row("Reason", decision.reason)
    table.add_row("Evidence", decision.evidence)
    table.add_row("Timestamp", decision.timestamp.strftime("%Y-%m-%d %H:%M:%S"))
    console.print(table)


def print_gates(
    result: PreAgentGatesResult,
    console: Console | None = None,
    expected: list[str] | None = None,
) -> None:
    """
    Print pre-agent gate records as a table.

    Args:
        result: Outcome of the gate pipeline
        console: Rich Console instance (creates one if not provided)
        expected: Gate names in pipeline order; gates with no record are
            shown as skipped
    """
    if console is None:
        console = Console()

    console.print(
        _header("Pre-Agent Gates", "PASSED" if result.passed else "BLOCKED", result.passed)
    )
    console.print()

    table = Table(show_header=True, header_style="bold", expand=True)
    table.add_column("Status", width=6, justify="center")
    table.add_column("Gate", style="cyan", width=20)
    table.add_column("Reason", overflow="fold")
    table.add_column("Evidence", style="dim", overflow="fold")

    recorded = {record.gate.value for record in result.gates}
    for record in result.gates:
        icon = ICON_PASS if record.ok else ICON_FAIL
        table.add_row(icon, record.gate.value, record.reason, record.evidence)

    for name in expected or []:
        if name not in recorded:
            table.add_row(ICON_SKIPPED, name, "[dim]not run[/dim]", "")

    console.print(table)


def print_provenance(result: ProvenanceValidationResult, console: Console | None = None) -> None:
    """Print a provenance validation result."""
    if console is None:
        console = Console()

    console.print(_header("Provenance Metadata", result.result.value, result.ok))

    table = _details_table()
    table.add_row("Gate", result.gate.value)
    table.add_row("Reason", result.reason)
    table.add_row("Evidence", result.evidence)
    if result.provenance:
        table.add_row("Source Command", result.provenance.source_command)
        table.add_row("Commit SHA", result.provenance.commit_sha)
        table.add_row("Run ID", result.provenance.run_id)
        table.add_row("Policy Version", result.provenance.policy_version)
    console.print(table)
