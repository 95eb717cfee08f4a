"""
JSON output for Gatehouse decisions.

Decisions are archived by CI as artifacts, so the JSON shape is part of the
contract: authorization decisions keep the camelCase keys of the contract
documents (trustLevel), gate and provenance records use their field names,
and timestamps are ISO 8601.
"""

import json
from pathlib import Path
from typing import Any

from gatehouse.schema import (
    AuthorizationDecision,
    PreAgentGatesResult,
    ProvenanceValidationResult,
)

Result = AuthorizationDecision | PreAgentGatesResult | ProvenanceValidationResult


def build_result_dict(result: Result) -> dict[str, Any]:
    """Convert a decision or record to its archived JSON shape."""
    return result.to_dict()


def to_json(result: Result, indent: int = 2) -> str:
    """
    Serialize a decision or record to JSON.

    Args:
        result: Any Gatehouse decision value
        indent: JSON indentation level (default: 2)

    Returns:
        JSON string
    """
    return json.dumps(build_result_dict(result), indent=indent)


def write_json(result: Result, path: Path | str) -> Path:
    """Write a decision or record as a JSON artifact, returning the path."""
    path = Path(path)
    path.write_text(to_json(result) + "\n", encoding="utf-8")
    return path
