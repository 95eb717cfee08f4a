"""
Reporting module for Gatehouse.

Renders authorization decisions, gate records and provenance results for
people and for machines.

Output formats:
    - Markdown: Job summaries and pull-request comments
    - JSON: Archived audit artifacts
    - Console: Rich terminal output

Example:
    from gatehouse.report import format_gates_summary, to_json

    result = run_gates(store, "explain")
    print(format_gates_summary(result))
    print(to_json(result))
"""

from gatehouse.report.console import print_decision, print_gates, print_provenance
from gatehouse.report.json import build_result_dict, to_json, write_json
from gatehouse.report.markdown import (
    format_decision_summary,
    format_gates_summary,
    format_provenance_summary,
)

__all__ = [
    "build_result_dict",
    "format_decision_summary",
    "format_gates_summary",
    "format_provenance_summary",
    "print_decision",
    "print_gates",
    "print_provenance",
    "to_json",
    "write_json",
]
