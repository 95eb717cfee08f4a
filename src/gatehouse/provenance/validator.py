"""
Provenance metadata validation for Gatehouse.

A provenance record ties an executed action to the command, commit, CI run
and policy version that authorized it. Validation is fail-closed: the record
must be complete, must match the provenance JSON Schema, and must name the
policy version that is actually in force.

Steps:
    1. Required fields present, string-typed and non-empty (first failure wins)
    2. JSON Schema validation (formats, no additional properties)
    3. policy_version equals the command policy's policyVersion
"""

import logging
from collections.abc import Mapping
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for

from gatehouse.contracts.store import ContractDocument, ContractStore
from gatehouse.errors import ContractError
from gatehouse.schema import ProvenanceMetadata, ProvenanceValidationResult

logger = logging.getLogger(__name__)


REQUIRED_PROVENANCE_FIELDS = ("source_command", "commit_sha", "run_id", "policy_version")

INPUT_EVIDENCE = "provenance input"


class ProvenanceValidator:
    """
    Validates provenance records against the contract store.

    Usage:
        result = ProvenanceValidator(store).validate({
            "source_command": "explain",
            "commit_sha": "a" * 40,
            "run_id": "123456789",
            "policy_version": "v1.0.0",
        })
        if result.ok:
            attach(result.provenance)

    Attributes:
        store: Source of the provenance schema and command policy
    """

    def __init__(self, store: ContractStore) -> None:
        self.store = store

    def validate(self, record: Mapping[str, Any]) -> ProvenanceValidationResult:
        """
        Validate a claimed provenance record.

        Args:
            record: The provenance record as decoded JSON

        Returns:
            ProvenanceValidationResult; PASS carries the normalized metadata
        """
        schema_path = self.store.location(ContractDocument.PROVENANCE_SCHEMA)
        policy_path = self.store.location(ContractDocument.COMMAND_POLICY)
        policy_file = ContractDocument.COMMAND_POLICY.file_name(self.store.config)

        # Step 1: required fields
        if not isinstance(record, Mapping):
            return self._fail("provenance record must be a JSON object", INPUT_EVIDENCE)

        for name in REQUIRED_PROVENANCE_FIELDS:
            value = record.get(name)
            if not isinstance(value, str):
                return self._fail(f"missing or invalid provenance field: {name}", INPUT_EVIDENCE)
            if not value:
                return self._fail(f'provenance field "{name}" is empty', INPUT_EVIDENCE)

        # Step 2: JSON Schema
        try:
            schema = self.store.read_provenance_schema()
        except ContractError as e:
            return self._fail(f"failed to read provenance schema: {e.message}", schema_path)

        schema_errors = _schema_errors(schema, record)
        if schema_errors is None:
            return self._fail("provenance schema is not a valid JSON Schema", schema_path)
        if schema_errors:
            return self._fail(
                f"provenance schema validation failed: {'; '.join(schema_errors)}",
                schema_path,
            )

        # Step 3: cross-check against the active policy
        try:
            policy = self.store.read_command_policy()
        except ContractError as e:
            return self._fail(
                f"failed to read {policy_file} for policy version cross-check: {e.message}",
                policy_path,
            )

        claimed = record["policy_version"]
        if policy.policy_version is None:
            return self._fail(
                f'command-policy declares no policyVersion; cannot confirm provenance '
                f'policy_version "{claimed}"',
                policy_path,
            )

        if policy.policy_version != claimed:
            return self._fail(
                f'provenance policy_version "{claimed}" does not match command-policy '
                f'policyVersion "{policy.policy_version}"',
                f"{policy_path}, {INPUT_EVIDENCE}",
            )

        provenance = ProvenanceMetadata(
            source_command=record["source_command"],
            commit_sha=record["commit_sha"],
            run_id=record["run_id"],
            policy_version=claimed,
        )

        logger.info("Provenance validated for run %s", provenance.run_id)
        return ProvenanceValidationResult.passed(
            f'provenance metadata valid: command="{provenance.source_command}", '
            f'sha="{provenance.short_sha}", run="{provenance.run_id}", '
            f'policy="{provenance.policy_version}"',
            f"{schema_path}, {policy_path}",
            provenance,
        )

    def _fail(self, reason: str, evidence: str) -> ProvenanceValidationResult:
        logger.warning("Provenance validation failed: %s", reason)
        return ProvenanceValidationResult.failed(reason, evidence)


def _schema_errors(schema: dict[str, Any], record: Mapping[str, Any]) -> list[str] | None:
    """
    Validate a record against a JSON Schema.

    Returns:
        A list of "field: message" errors (empty when valid), or None when
        the schema itself is invalid
    """
    validator_class = validator_for(schema, default=Draft7Validator)
    try:
        validator_class.check_schema(schema)
    except SchemaError as e:
        logger.error("Invalid provenance schema: %s", e.message)
        return None

    validator = validator_class(schema)
    messages = []
    for error in validator.iter_errors(dict(record)):
        path = ".".join(str(p) for p in error.path) if error.path else "root"
        messages.append(f"{path}: {error.message}")
    return sorted(messages)


def validate_provenance(
    record: Mapping[str, Any],
    store: ContractStore,
) -> ProvenanceValidationResult:
    """Validate a provenance record against a contract store."""
    return ProvenanceValidator(store).validate(record)
