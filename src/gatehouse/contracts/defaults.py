"""
Default contract documents.

These are the starting contracts `gatehouse init` writes into a repository:
three trust tiers, a privileged `repo-write` adapter and a read-only
`policy-sim` adapter, an enforcing command policy, an empty fail-closed skill
allowlist and the provenance metadata schema. They are deliberately strict;
teams loosen them through reviewed changes.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any

from gatehouse.config import GatehouseConfig
from gatehouse.contracts.store import ContractDocument

logger = logging.getLogger(__name__)


COMMIT_SHA_PATTERN = "^[a-f0-9]{40}$"
RUN_ID_PATTERN = "^[0-9]+$"
POLICY_VERSION_PATTERN = "^v[0-9]+\\.[0-9]+\\.[0-9]+$"

DEFAULT_COMMANDS = ["explain", "refactor", "test", "diagram"]


_DEFAULTS: dict[ContractDocument, dict[str, Any]] = {
    ContractDocument.TRUST_LEVELS: {
        "schemaVersion": "1.0",
        "trustVersion": "v1.0.0",
        "levels": [
            {
                "id": "untrusted",
                "description": "Fork pull requests and unknown actors.",
                "allowsSecrets": False,
                "allowsPrivilegedMutation": False,
            },
            {
                "id": "semi-trusted",
                "description": "Internal pull requests with moderate capabilities.",
                "allowsSecrets": False,
                "allowsPrivilegedMutation": False,
            },
            {
                "id": "trusted",
                "description": "Maintainer-approved environments.",
                "allowsSecrets": True,
                "allowsPrivilegedMutation": True,
            },
        ],
    },
    ContractDocument.ADAPTER_CONTRACTS: {
        "schemaVersion": "1.0",
        "contractsVersion": "v1.0.0",
        "adapters": [
            {
                "name": "repo-write",
                "capability": "Creates branches and pull requests through policy-gated workflows.",
                "trustLevels": ["trusted"],
                "constraints": [
                    "No direct writes to protected branches.",
                    "All mutations must flow through pull-request automation.",
                ],
            },
            {
                "name": "policy-sim",
                "capability": "Runs deterministic policy simulation for validation artifacts.",
                "trustLevels": ["untrusted", "semi-trusted", "trusted"],
                "constraints": [
                    "Read-only execution in untrusted contexts.",
                    "No secret material in simulation inputs or outputs.",
                ],
            },
        ],
    },
    ContractDocument.COMMAND_POLICY: {
        "schemaVersion": "1.0",
        "policyVersion": "v1.0.0",
        "enforcementMode": "enforce",
        "allowedActions": ["plan", "validate", "open-pr"],
        "allowedCommands": DEFAULT_COMMANDS,
        "constraints": [
            "No direct protected-branch mutation outside pull-request flow.",
            "Privileged adapters require trusted trigger context.",
            "Secrets are unavailable to untrusted fork pull-request jobs.",
        ],
    },
    ContractDocument.SKILL_ALLOWLIST: {
        "schemaVersion": "1.0",
        "allowlistVersion": "v1.0.0",
        "keyType": "sha256",
        "byDigest": {},
        "revokedDigests": [],
    },
    ContractDocument.TRUSTED_COMMAND_GATE: {
        "schemaVersion": "1.0",
        "gateVersion": "v1.0.0",
        "enforcementMode": "fail_closed",
        "allowRuntimeFetch": False,
        "trustedWorkflows": ["gatehouse-command.yml"],
        "requiredMetadata": ["skillDigest", "approvalRecord", "scanArtifact", "policyArtifact"],
    },
    ContractDocument.PROVENANCE_SCHEMA: {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "title": "Gatehouse Provenance Metadata",
        "type": "object",
        "additionalProperties": False,
        "required": ["source_command", "commit_sha", "run_id", "policy_version"],
        "properties": {
            "source_command": {"type": "string", "minLength": 1},
            "commit_sha": {"type": "string", "pattern": COMMIT_SHA_PATTERN},
            "run_id": {"type": "string", "pattern": RUN_ID_PATTERN},
            "policy_version": {"type": "string", "pattern": POLICY_VERSION_PATTERN},
        },
    },
}


def default_documents() -> dict[ContractDocument, dict[str, Any]]:
    """Return a fresh copy of the default contract documents."""
    return copy.deepcopy(_DEFAULTS)


def write_default_contracts(
    root: Path | str,
    config: GatehouseConfig | None = None,
    force: bool = False,
) -> list[Path]:
    """
    Write the default contract documents under a repository root.

    Args:
        root: Repository root
        config: Where the documents go (defaults to GatehouseConfig())
        force: Overwrite documents that already exist

    Returns:
        Paths that were written, in document order

    Raises:
        FileExistsError: If a document exists and force is False
    """
    config = config or GatehouseConfig()
    runtime_dir = Path(root) / config.runtime_dir

    targets = [
        (runtime_dir / document.file_name(config), content)
        for document, content in default_documents().items()
    ]

    # Check everything first so a refusal leaves the tree untouched
    if not force:
        existing = [path for path, _ in targets if path.exists()]
        if existing:
            raise FileExistsError(
                f"Contract documents already exist: {', '.join(str(p) for p in existing)}"
            )

    runtime_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for path, content in targets:
        path.write_text(json.dumps(content, indent=2) + "\n", encoding="utf-8")
        logger.info("Wrote contract %s", path)
        written.append(path)

    return written
