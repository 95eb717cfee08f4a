"""
Markdown summaries for Gatehouse decisions.

These are the blocks CI posts to job summaries and pull-request comments.
Every summary repeats the reason and evidence so a reviewer never has to
re-run anything to see why a job was blocked.
"""

from gatehouse.schema import (
    AuthorizationDecision,
    PreAgentGatesResult,
    ProvenanceValidationResult,
)

MARK_PASS = "✅"
MARK_FAIL = "❌"


def format_decision_summary(decision: AuthorizationDecision) -> str:
    """Format a trust authorization decision as Markdown."""
    mark = MARK_PASS if decision.allowed else MARK_FAIL
    lines = [
        "## Trust Authorization Decision",
        "",
        f"{mark} **Result:** {'ALLOWED' if decision.allowed else 'DENIED'}",
        f"- Actor: `{decision.actor}`",
        f"- Trust Level: `{decision.trust_level}`",
        f"- Adapter: `{decision.adapter}`",
        f"- Reason: {decision.reason}",
        f"- Evidence: {decision.evidence}",
        f"- Timestamp: {decision.timestamp.isoformat()}",
    ]
    return "\n".join(lines)


def format_gates_summary(result: PreAgentGatesResult) -> str:
    """Format pre-agent gate records as Markdown."""
    lines = ["## Pre-Agent Gates Summary", ""]
    for record in result.gates:
        mark = MARK_PASS if record.ok else MARK_FAIL
        lines.append(f"{mark} **{record.gate.value}**: {record.result.value}")
        lines.append(f"   Reason: {record.reason}")
        lines.append(f"   Evidence: {record.evidence}")
        lines.append("")
    lines.append(
        "All gates passed." if result.passed else "Gate check failed. Agent execution blocked."
    )
    return "\n".join(lines)


def format_provenance_summary(result: ProvenanceValidationResult) -> str:
    """Format a provenance validation result as Markdown."""
    mark = MARK_PASS if result.ok else MARK_FAIL
    lines = [
        "## Provenance Metadata Validation",
        "",
        f"{mark} **Result:** {result.result.value}",
        f"- Gate: `{result.gate.value}`",
        f"- Reason: {result.reason}",
        f"- Evidence: {result.evidence}",
        f"- Timestamp: {result.timestamp.isoformat()}",
    ]

    if result.provenance:
        lines.extend([
            "",
            "### Provenance Fields",
            f"- Source Command: `{result.provenance.source_command}`",
            f"- Commit SHA: `{result.provenance.commit_sha}`",
            f"- Run ID: `{result.provenance.run_id}`",
            f"- Policy Version: `{result.provenance.policy_version}`",
        ])

    return "\n".join(lines)
