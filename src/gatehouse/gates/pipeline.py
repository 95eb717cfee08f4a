"""
Pre-agent gate pipeline for Gatehouse.

Three gates run in a fixed order before an agent command is allowed to
start. The pipeline stops at the first FAIL; later gates are not run and do
not appear in the result.

    1. skill-package-scan: trusted-command gate is fail_closed and the skill
       allowlist has an object byDigest and an array revokedDigests
    2. lockfile-provenance: every allowlist entry is an object declaring
       source, approvalRecord and evidence
    3. policy-eval: command policy enforcing, command allowlisted, trust
       levels defined

Gates never raise for contract problems. A document that cannot be read is
recorded as a FAIL with the error as the reason.
"""

import logging
from collections.abc import Callable

from gatehouse.contracts.store import ContractDocument, ContractStore
from gatehouse.errors import ContractError
from gatehouse.schema import GateName, GateRecord, PreAgentGatesResult

logger = logging.getLogger(__name__)


REQUIRED_PROVENANCE_KEYS = ["source", "approvalRecord", "evidence"]


class GatePipeline:
    """
    Runs the pre-agent gates against a contract store.

    Usage:
        result = GatePipeline(store).run("explain")
        if not result.passed:
            # block the agent; result.gates[-1].reason says why

    Attributes:
        store: Source of the contract documents
    """

    def __init__(self, store: ContractStore) -> None:
        self.store = store

    def run(self, command: str) -> PreAgentGatesResult:
        """
        Run all gates in order, stopping at the first failure.

        Args:
            command: The agent command being requested (e.g. "explain")

        Returns:
            PreAgentGatesResult with one record per gate that ran
        """
        steps: list[Callable[[], GateRecord]] = [
            self.skill_package_scan,
            self.lockfile_provenance,
            lambda: self.policy_eval(command),
        ]

        gates: list[GateRecord] = []
        for step in steps:
            record = step()
            gates.append(record)
            if not record.ok:
                logger.warning("Gate %s failed: %s", record.gate.value, record.reason)
                return PreAgentGatesResult(passed=False, gates=gates)
            logger.debug("Gate %s passed", record.gate.value)

        logger.info("All pre-agent gates passed for command %s", command)
        return PreAgentGatesResult(passed=True, gates=gates)

    # =========================================================================
    # Gate 1: Skill/Package Scan
    # =========================================================================

    def skill_package_scan(self) -> GateRecord:
        """Check the trusted-command gate mode and allowlist structure."""
        gate = GateName.SKILL_PACKAGE_SCAN
        gate_path = self.store.location(ContractDocument.TRUSTED_COMMAND_GATE)
        allowlist_path = self.store.location(ContractDocument.SKILL_ALLOWLIST)

        try:
            gate_contract = self.store.read_trusted_command_gate()
            if not gate_contract.is_fail_closed:
                return GateRecord.failed(
                    gate,
                    "trusted-command-gate enforcementMode is not fail_closed "
                    f'(found "{gate_contract.enforcement_mode}")',
                    gate_path,
                )

            # Reading checks for an object byDigest and an array revokedDigests
            self.store.read_skill_allowlist()
        except ContractError as e:
            return GateRecord.failed(
                gate,
                f"skill-package-scan error: {e.message}",
                e.location or gate_path,
            )

        return GateRecord.passed(
            gate,
            "skill-package-scan passed: gate is fail_closed and allowlist is valid",
            f"{gate_path}, {allowlist_path}",
        )

    # =========================================================================
    # Gate 2: Lockfile/Provenance
    # =========================================================================

    def lockfile_provenance(self) -> GateRecord:
        """Check that every allowlist entry carries provenance metadata."""
        gate = GateName.LOCKFILE_PROVENANCE
        allowlist_path = self.store.location(ContractDocument.SKILL_ALLOWLIST)

        try:
            allowlist = self.store.read_skill_allowlist()
        except ContractError as e:
            return GateRecord.failed(
                gate, f"lockfile-provenance error: {e.message}", allowlist_path
            )

        for digest, entry in allowlist.entries():
            if entry is None:
                return GateRecord.failed(
                    gate,
                    f"allowlist entry {digest} is not a valid object",
                    allowlist_path,
                )
            missing = entry.missing_keys(REQUIRED_PROVENANCE_KEYS)
            if missing:
                return GateRecord.failed(
                    gate,
                    f"allowlist entry {digest} missing provenance field: {missing[0]}",
                    allowlist_path,
                )

        return GateRecord.passed(
            gate,
            "lockfile-provenance passed: all allowlist entries have required provenance",
            allowlist_path,
        )

    # =========================================================================
    # Gate 3: Policy Evaluation
    # =========================================================================

    def policy_eval(self, command: str) -> GateRecord:
        """Check the command policy and trust levels for the requested command."""
        gate = GateName.POLICY_EVAL
        policy_path = self.store.location(ContractDocument.COMMAND_POLICY)
        levels_path = self.store.location(ContractDocument.TRUST_LEVELS)

        try:
            policy = self.store.read_command_policy()
            if not policy.is_enforcing:
                return GateRecord.failed(
                    gate,
                    f'command-policy enforcementMode is "{policy.enforcement_mode}", '
                    'expected "enforce"',
                    policy_path,
                )

            if command not in policy.allowed_commands:
                return GateRecord.failed(
                    gate,
                    f'command "{command}" is not in allowedCommands',
                    policy_path,
                )

            levels = self.store.read_trust_levels()
            if not levels:
                return GateRecord.failed(
                    gate, "trust-levels has no defined levels", levels_path
                )
        except ContractError as e:
            return GateRecord.failed(
                gate,
                f"policy-eval error: {e.message}",
                e.location or policy_path,
            )

        return GateRecord.passed(
            gate,
            f'policy-eval passed: command "{command}" is allowed and trust levels are valid',
            f"{policy_path}, {levels_path}",
        )


def run_gates(store: ContractStore, command: str) -> PreAgentGatesResult:
    """Run the pre-agent gates for a command against a contract store."""
    return GatePipeline(store).run(command)
