"""
CLI entry point for Gatehouse.

This module provides the Typer-based command-line interface for Gatehouse.
CI workflows call these commands as steps; a non-zero exit blocks the job.

Commands:
    authorize       Decide whether an actor may invoke an adapter
    gates           Run the pre-agent gates for a command
    skill-gate      Check a skill digest against the trusted-skill allowlist
    provenance      Validate provenance metadata for an agent run
    parse-command   Parse an issue comment into a command
    init            Write the default contract documents
    doctor          Check that every contract document loads

Exit codes:
    0   Allowed / PASS
    1   Denied / FAIL / blocked
    2   Configuration or contract error

Architecture Note:
    The CLI is intentionally thin - it resolves inputs (options with CI
    environment-variable fallbacks) and delegates to the library for every
    decision.
"""

import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Annotated, Any, NoReturn, Optional

import typer
from rich.console import Console

from gatehouse import __version__
from gatehouse.commands import parse_issue_command
from gatehouse.config import GatehouseConfig, load_config
from gatehouse.contracts import ContractDocument, FileContractStore, write_default_contracts
from gatehouse.errors import ContractError, GatehouseError, SkillGateError
from gatehouse.gates import GatePipeline, validate_skill_gate
from gatehouse.policy import TrustAuthorizer
from gatehouse.provenance import ProvenanceValidator
from gatehouse.report import (
    format_decision_summary,
    format_gates_summary,
    format_provenance_summary,
    print_decision,
    print_gates,
    print_provenance,
    to_json,
    write_json,
)
from gatehouse.schema import GateName

EXIT_OK = 0
EXIT_BLOCKED = 1
EXIT_ERROR = 2

DEFAULT_CONFIG_FILE = "gatehouse.yaml"

PIPELINE_GATES = [
    GateName.SKILL_PACKAGE_SCAN.value,
    GateName.LOCKFILE_PROVENANCE.value,
    GateName.POLICY_EVAL.value,
]

# Initialize Typer app with metadata
app = typer.Typer(
    name="gatehouse",
    help="Fail-closed authorization and pre-execution gates for CI agents.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()


# Shared option types
RootOption = Annotated[
    Path,
    typer.Option(
        "--root",
        help="Repository root the contract directory is resolved against.",
        file_okay=False,
        resolve_path=True,
    ),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help=f"Path to a Gatehouse YAML config. Defaults to {DEFAULT_CONFIG_FILE} under --root if present.",
        exists=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output the result in JSON format."),
]
JsonOutOption = Annotated[
    Optional[Path],
    typer.Option("--json-out", help="Also write the JSON result to this file."),
]
SummaryOutOption = Annotated[
    Optional[Path],
    typer.Option(
        "--summary-out",
        help="Append a Markdown summary to this file (e.g. the job summary).",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]gatehouse[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log decisions and contract loads."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging and full error tracebacks."),
    ] = False,
) -> None:
    """
    Gatehouse - Fail-closed gates for CI agents.

    Every decision is made from the JSON contracts in the repository and is
    reported with the reason and the documents it was based on.
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# =============================================================================
# Helpers
# =============================================================================


def _resolve_config(root: Path, config_path: Path | None) -> GatehouseConfig:
    """Load the explicit config, the one under root, or the defaults."""
    if config_path is not None:
        return load_config(config_path)
    candidate = root / DEFAULT_CONFIG_FILE
    if candidate.is_file():
        return load_config(candidate)
    return GatehouseConfig()


def _open_store(root: Path, config_path: Path | None, json_output: bool) -> FileContractStore:
    """Build the file-backed store, exiting with EXIT_ERROR on bad config."""
    try:
        config = _resolve_config(root, config_path)
    except GatehouseError as e:
        _fail_with_error(e, json_output)
    return FileContractStore(root, config)


def _fail_with_error(error: Exception, json_output: bool) -> NoReturn:
    """Report an error and exit with EXIT_ERROR."""
    debug = logging.getLogger().isEnabledFor(logging.DEBUG)
    if json_output:
        if isinstance(error, GatehouseError):
            _output_json_error(error.to_dict(), debug)
        else:
            _output_json_error(
                {"error_type": error.__class__.__name__, "message": str(error)}, debug
            )
    else:
        console.print(f"[red]Error: {error}[/red]")
        if debug:
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
    raise typer.Exit(code=EXIT_ERROR)


def _output_json_error(payload: dict[str, Any], include_traceback: bool = False) -> None:
    """Output an error in JSON format."""
    output = {"error": True, **payload}
    if include_traceback:
        output["traceback"] = traceback.format_exc()
    print(json.dumps(output, indent=2))


def _append_summary(path: Path, markdown: str) -> None:
    """Append a Markdown block to a summary file."""
    with path.open("a", encoding="utf-8") as f:
        f.write(markdown + "\n\n")


def _emit(
    result: Any,
    json_output: bool,
    json_out: Path | None,
    summary_out: Path | None,
    markdown: str,
    render: Any,
) -> None:
    """Write a result to every requested destination."""
    if json_out is not None:
        write_json(result, json_out)
    if summary_out is not None:
        _append_summary(summary_out, markdown)
    if json_output:
        print(to_json(result))
    else:
        render()


# =============================================================================
# Decision commands
# =============================================================================


@app.command()
def authorize(
    actor: Annotated[
        str,
        typer.Option("--actor", "-a", envvar="GITHUB_ACTOR", help="Actor requesting the adapter."),
    ],
    trust_level: Annotated[
        str,
        typer.Option(
            "--trust-level",
            "-t",
            envvar="GATEHOUSE_TRUST_LEVEL",
            help="Trust level id presented by the actor.",
        ),
    ],
    adapter: Annotated[
        str,
        typer.Option("--adapter", "-d", envvar="GATEHOUSE_ADAPTER", help="Adapter name requested."),
    ],
    root: RootOption = Path("."),
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
    json_out: JsonOutOption = None,
    summary_out: SummaryOutOption = None,
) -> None:
    """
    Decide whether an actor may invoke an adapter.

    Exits 0 when allowed and 1 when denied. A missing or malformed
    trust-levels or adapter-contracts document exits 2.

    Example:
        $ gatehouse authorize --actor octocat --trust-level trusted --adapter repo-write
    """
    store = _open_store(root, config_path, json_output)

    try:
        decision = TrustAuthorizer(store).authorize(actor, trust_level, adapter)
    except GatehouseError as e:
        _fail_with_error(e, json_output)

    _emit(
        decision,
        json_output,
        json_out,
        summary_out,
        format_decision_summary(decision),
        lambda: print_decision(decision, console),
    )
    raise typer.Exit(code=EXIT_OK if decision.allowed else EXIT_BLOCKED)


@app.command()
def gates(
    command: Annotated[
        str,
        typer.Option(
            "--command", envvar="GATEHOUSE_COMMAND", help="Agent command being requested."
        ),
    ],
    root: RootOption = Path("."),
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
    json_out: JsonOutOption = None,
    summary_out: SummaryOutOption = None,
) -> None:
    """
    Run the pre-agent gates for a command.

    Gates run in order and stop at the first failure. Exits 0 when every
    gate passes and 1 otherwise.

    Example:
        $ gatehouse gates --command explain --summary-out "$GITHUB_STEP_SUMMARY"
    """
    store = _open_store(root, config_path, json_output)
    result = GatePipeline(store).run(command)

    _emit(
        result,
        json_output,
        json_out,
        summary_out,
        format_gates_summary(result),
        lambda: print_gates(result, console, expected=PIPELINE_GATES),
    )
    raise typer.Exit(code=EXIT_OK if result.passed else EXIT_BLOCKED)


@app.command("skill-gate")
def skill_gate(
    digest: Annotated[
        str,
        typer.Option("--digest", envvar="SKILL_DIGEST", help="Skill digest (sha256:<hex>)."),
    ],
    root: RootOption = Path("."),
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Check a skill digest against the trusted-skill allowlist.

    Exits 0 when the skill may run, 1 when the gate blocks it and 2 when a
    contract document cannot be read.

    Example:
        $ gatehouse skill-gate --digest sha256:0f3c...
    """
    store = _open_store(root, config_path, json_output)

    try:
        validate_skill_gate(digest, store)
    except SkillGateError as e:
        if json_output:
            print(json.dumps({"passed": False, "digest": digest, **e.to_dict()}, indent=2))
        else:
            console.print(f"[red]✗ {e.message}[/red]")
            if e.suggestion:
                console.print(f"[dim]{e.suggestion}[/dim]")
        raise typer.Exit(code=EXIT_BLOCKED)
    except ContractError as e:
        _fail_with_error(e, json_output)

    if json_output:
        print(json.dumps({"passed": True, "digest": digest}, indent=2))
    else:
        console.print(f"[green]✓[/green] Trusted skill gate passed for [cyan]{digest}[/cyan]")
    raise typer.Exit(code=EXIT_OK)


@app.command()
def provenance(
    record_path: Annotated[
        Optional[Path],
        typer.Argument(
            help="JSON file with the provenance record. Omit to build it from options.",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    source_command: Annotated[
        Optional[str],
        typer.Option(
            "--source-command", envvar="GATEHOUSE_COMMAND", help="Command that triggered the run."
        ),
    ] = None,
    commit_sha: Annotated[
        Optional[str],
        typer.Option("--commit-sha", envvar="GITHUB_SHA", help="40-character commit SHA."),
    ] = None,
    run_id: Annotated[
        Optional[str],
        typer.Option("--run-id", envvar="GITHUB_RUN_ID", help="CI run id."),
    ] = None,
    policy_version: Annotated[
        Optional[str],
        typer.Option(
            "--policy-version",
            help="Command policy version the run was authorized under. "
            "Defaults to policyVersion from the command policy.",
        ),
    ] = None,
    root: RootOption = Path("."),
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
    json_out: JsonOutOption = None,
    summary_out: SummaryOutOption = None,
) -> None:
    """
    Validate provenance metadata for an agent run.

    The record comes from a JSON file or from the individual options.
    --policy-version falls back to the command policy. Other options that
    are not given are left out of the record, so validation reports them
    as missing. Exits 0 on PASS and 1 on FAIL.

    Example:
        $ gatehouse provenance --source-command explain --run-id 42
    """
    store = _open_store(root, config_path, json_output)

    if record_path is not None:
        try:
            record = json.loads(record_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            _fail_with_error(e, json_output)
    else:
        if policy_version is None:
            try:
                policy_version = store.read_command_policy().policy_version
            except ContractError as e:
                _fail_with_error(e, json_output)
        options = {
            "source_command": source_command,
            "commit_sha": commit_sha,
            "run_id": run_id,
            "policy_version": policy_version,
        }
        record = {name: value for name, value in options.items() if value is not None}

    result = ProvenanceValidator(store).validate(record)

    _emit(
        result,
        json_output,
        json_out,
        summary_out,
        format_provenance_summary(result),
        lambda: print_provenance(result, console),
    )
    raise typer.Exit(code=EXIT_OK if result.ok else EXIT_BLOCKED)


@app.command("parse-command")
def parse_command(
    body: Annotated[
        Optional[str],
        typer.Argument(help="Issue comment body. Reads stdin when omitted."),
    ] = None,
    root: RootOption = Path("."),
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Parse an issue comment into an agent command.

    The command must be one of the command policy's allowedCommands. Exits
    0 for a valid command and 1 otherwise.

    Example:
        $ gatehouse parse-command "/gatehouse explain src/app.py"
    """
    store = _open_store(root, config_path, json_output)

    if body is None:
        body = sys.stdin.read()

    try:
        policy = store.read_command_policy()
    except ContractError as e:
        _fail_with_error(e, json_output)

    parsed = parse_issue_command(body, policy.allowed_commands, prefix=store.config.command_prefix)

    if json_output:
        print(parsed.model_dump_json(indent=2))
    elif parsed.valid:
        console.print(f"[green]✓[/green] command: [cyan]{parsed.command}[/cyan]")
        if parsed.target:
            console.print(f"  [dim]target:[/dim] {parsed.target}")
    else:
        console.print(f"[red]✗ {parsed.reason}[/red]")

    raise typer.Exit(code=EXIT_OK if parsed.valid else EXIT_BLOCKED)


# =============================================================================
# Setup commands
# =============================================================================


@app.command()
def init(
    root: RootOption = Path("."),
    config_path: ConfigOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing contract documents."),
    ] = False,
) -> None:
    """
    Write the default contract documents into the repository.

    Refuses to overwrite existing documents unless --force is given.

    Example:
        $ gatehouse init --root .
    """
    try:
        config = _resolve_config(root, config_path)
    except GatehouseError as e:
        _fail_with_error(e, False)

    try:
        written = write_default_contracts(root, config, force=force)
    except FileExistsError as e:
        console.print(f"[red]{e}[/red]")
        console.print("[dim]Use --force to overwrite.[/dim]")
        raise typer.Exit(code=EXIT_BLOCKED)

    for path in written:
        console.print(f"[green]✓[/green] Wrote {path}")
    raise typer.Exit(code=EXIT_OK)


@app.command()
def doctor(
    root: RootOption = Path("."),
    config_path: ConfigOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Check that every contract document loads.

    Each document is read through the contract store exactly as the
    decision commands read it, so a failure here is a failure there.

    Example:
        $ gatehouse doctor
    """
    store = _open_store(root, config_path, json_output)

    readers = {
        ContractDocument.TRUST_LEVELS: store.read_trust_levels,
        ContractDocument.ADAPTER_CONTRACTS: store.read_adapter_contracts,
        ContractDocument.COMMAND_POLICY: store.read_command_policy,
        ContractDocument.SKILL_ALLOWLIST: store.read_skill_allowlist,
        ContractDocument.TRUSTED_COMMAND_GATE: store.read_trusted_command_gate,
        ContractDocument.PROVENANCE_SCHEMA: store.read_provenance_schema,
    }

    checks = []
    all_ok = True
    for document, read in readers.items():
        try:
            read()
            ok, message = True, "OK"
        except ContractError as e:
            ok, message = False, e.message
            all_ok = False
        checks.append({
            "name": document.file_name(store.config),
            "ok": ok,
            "value": store.location(document),
            "message": message,
        })

    if json_output:
        output = {
            "ok": all_ok,
            "version": __version__,
            "checks": checks,
        }
        print(json.dumps(output, indent=2))
    else:
        console.print(f"[bold]Gatehouse Doctor[/bold] v{__version__}")
        console.print()

        for check in checks:
            icon = "[green]✓[/green]" if check["ok"] else "[red]✗[/red]"
            if check["ok"]:
                console.print(f"{icon} {check['name']}: [dim]{check['value']}[/dim] - {check['message']}")
            else:
                console.print(f"{icon} {check['name']}: [red]{check['message']}[/red]")

        console.print()
        if all_ok:
            console.print("[green]All contract documents load.[/green]")
        else:
            console.print("[yellow]Some contract documents failed to load.[/yellow]")

    raise typer.Exit(code=EXIT_OK if all_ok else EXIT_BLOCKED)


if __name__ == "__main__":
    app()
