"""
Schema definitions for Gatehouse.

This module defines all the Pydantic models used throughout Gatehouse:
- Contract documents: TrustLevelTable, AdapterContractTable, CommandPolicy,
  SkillAllowlist, TrustedCommandGate
- Decisions: AuthorizationDecision, GateRecord, PreAgentGatesResult,
  ProvenanceValidationResult

Design Decisions:
    - Contract documents are parsed once at the ContractStore boundary; the
      decision code only ever sees these typed values
    - JSON keys stay camelCase (the contract format); Python attributes are
      snake_case through field aliases
    - Contract models ignore unknown keys (schemaVersion, description, ...)
      because structural validation of the documents happens elsewhere
    - Trust booleans are strict: "true" or 1 is not a permission grant
    - Every model is frozen; decisions are immutable values
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool


# =============================================================================
# Enums
# =============================================================================


class CommandEnforcementMode(str, Enum):
    """
    Enforcement modes of the command policy.

    Only ENFORCE makes the policy active. Any other value (including values
    not listed here) is treated as inert and produces a denial.
    """

    ENFORCE = "enforce"
    WARN = "warn"
    AUDIT = "audit"


class GateEnforcementMode(str, Enum):
    """Enforcement modes of the trusted-command gate."""

    FAIL_CLOSED = "fail_closed"
    PERMISSIVE = "permissive"


class SkillStatus(str, Enum):
    """Review status of a skill allowlist entry."""

    APPROVED_TRUSTED = "approved_trusted"
    PENDING_REVIEW = "pending_review"


class GateName(str, Enum):
    """Names of the gates that produce audit records."""

    SKILL_PACKAGE_SCAN = "skill-package-scan"
    LOCKFILE_PROVENANCE = "lockfile-provenance"
    POLICY_EVAL = "policy-eval"
    PROVENANCE_METADATA = "provenance-metadata"


class GateResult(str, Enum):
    """Outcome of a single gate."""

    PASS = "PASS"
    FAIL = "FAIL"


# =============================================================================
# Contract Models
# =============================================================================

_CONTRACT_CONFIG = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class TrustLevel(BaseModel):
    """
    A named trust tier.

    Attributes:
        id: Trust level identifier (e.g. "untrusted", "trusted")
        description: Human-readable description
        allows_secrets: Whether jobs at this level may see secrets
        allows_privileged_mutation: Whether jobs at this level may mutate the repo
    """

    model_config = _CONTRACT_CONFIG

    id: str = Field(..., min_length=1, description="Trust level identifier")
    description: str = Field(default="", description="Human-readable description")
    allows_secrets: StrictBool = Field(
        default=False,
        alias="allowsSecrets",
        description="Whether secrets are available at this level",
    )
    allows_privileged_mutation: StrictBool = Field(
        default=False,
        alias="allowsPrivilegedMutation",
        description="Whether privileged repository mutation is allowed at this level",
    )


class TrustLevelTable(BaseModel):
    """The trust-levels contract document."""

    model_config = _CONTRACT_CONFIG

    schema_version: str | None = Field(default=None, alias="schemaVersion")
    trust_version: str | None = Field(default=None, alias="trustVersion")
    levels: list[TrustLevel] = Field(..., description="Defined trust levels")


class AdapterContract(BaseModel):
    """
    A capability an agent can invoke, gated by trust level.

    Attributes:
        name: Adapter identifier (e.g. "repo-write")
        capability: Description of what the adapter can do
        trust_levels: Trust level ids permitted to use the adapter
        constraints: Free-form constraints attached to the adapter
    """

    model_config = _CONTRACT_CONFIG

    name: str = Field(..., min_length=1, description="Adapter identifier")
    capability: str = Field(default="", description="What the adapter can do")
    trust_levels: list[str] = Field(
        default_factory=list,
        alias="trustLevels",
        description="Trust level ids permitted to use this adapter",
    )
    constraints: list[str] = Field(default_factory=list)


class AdapterContractTable(BaseModel):
    """The adapter-contracts contract document."""

    model_config = _CONTRACT_CONFIG

    schema_version: str | None = Field(default=None, alias="schemaVersion")
    contracts_version: str | None = Field(default=None, alias="contractsVersion")
    adapters: list[AdapterContract] = Field(..., description="Defined adapters")


class CommandPolicy(BaseModel):
    """
    The command-policy contract document.

    Missing list fields default to empty and a missing enforcementMode to
    None. Both always produce a denial downstream.
    """

    model_config = _CONTRACT_CONFIG

    schema_version: str | None = Field(default=None, alias="schemaVersion")
    policy_version: str | None = Field(default=None, alias="policyVersion")
    enforcement_mode: str | None = Field(default=None, alias="enforcementMode")
    allowed_actions: list[str] = Field(default_factory=list, alias="allowedActions")
    allowed_commands: list[str] = Field(default_factory=list, alias="allowedCommands")
    constraints: list[str] = Field(default_factory=list)

    @property
    def is_enforcing(self) -> bool:
        """True when the policy is in active enforcement mode."""
        return self.enforcement_mode == CommandEnforcementMode.ENFORCE.value


class SkillAllowlistEntry(BaseModel):
    """
    One reviewed skill artifact, keyed by content digest in the allowlist.

    Provenance keys are optional at parse time so the gates can report
    exactly which one is missing. Presence is tracked per key, so an
    explicit null still counts as declared. Values are not type-checked:
    only the status string and key presence take part in a decision.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    skill_name: Any = Field(default=None, alias="skillName")
    status: Any = Field(default=None, description="Review status")
    source: Any = Field(default=None, description="Where the artifact came from")
    approval_record: Any = Field(default=None, alias="approvalRecord")
    evidence: Any = Field(default=None, description="Scan and policy artifacts")

    def declared_keys(self) -> set[str]:
        """Return the JSON keys present on the entry as written."""
        fields = type(self).model_fields
        # model_fields_set also holds extra keys; those have no alias
        keys = {fields[name].alias or name for name in self.model_fields_set if name in fields}
        if self.model_extra:
            keys.update(self.model_extra)
        return keys

    def missing_keys(self, required: list[str]) -> list[str]:
        """Return the required JSON keys absent from the entry, in order."""
        declared = self.declared_keys()
        return [key for key in required if key not in declared]

    @property
    def is_approved(self) -> bool:
        """True when the entry has been approved for trusted execution."""
        return self.status == SkillStatus.APPROVED_TRUSTED.value


class SkillAllowlist(BaseModel):
    """
    The trusted-skills-allowlist contract document.

    Only the containers are checked when the document is read: byDigest
    must be an object and revokedDigests an array. Entries stay raw until a
    gate asks for one, so a bad entry fails the check that looks at it and
    never masks an unrelated digest.
    """

    model_config = _CONTRACT_CONFIG

    schema_version: str | None = Field(default=None, alias="schemaVersion")
    allowlist_version: str | None = Field(default=None, alias="allowlistVersion")
    key_type: str | None = Field(default=None, alias="keyType")
    by_digest: dict[str, Any] = Field(..., alias="byDigest")
    revoked_digests: list[Any] = Field(..., alias="revokedDigests")

    def is_revoked(self, digest: str) -> bool:
        """Check whether a digest is on the revocation list."""
        return digest in self.revoked_digests

    def entry_for(self, digest: str) -> SkillAllowlistEntry | None:
        """Look up the allowlist entry for a digest; None unless it is an object."""
        return _parse_entry(self.by_digest.get(digest))

    def entries(self) -> list[tuple[str, SkillAllowlistEntry | None]]:
        """All entries in document order; non-object entries map to None."""
        return [(digest, _parse_entry(raw)) for digest, raw in self.by_digest.items()]


def _parse_entry(raw: Any) -> SkillAllowlistEntry | None:
    if not isinstance(raw, dict):
        return None
    return SkillAllowlistEntry.model_validate(raw)


class TrustedCommandGate(BaseModel):
    """The trusted-command-gate contract document."""

    model_config = _CONTRACT_CONFIG

    schema_version: str | None = Field(default=None, alias="schemaVersion")
    gate_version: str | None = Field(default=None, alias="gateVersion")
    enforcement_mode: str | None = Field(default=None, alias="enforcementMode")
    allow_runtime_fetch: bool = Field(default=False, alias="allowRuntimeFetch")
    trusted_workflows: list[str] = Field(default_factory=list, alias="trustedWorkflows")
    required_metadata: list[str] = Field(default_factory=list, alias="requiredMetadata")

    @property
    def is_fail_closed(self) -> bool:
        """True when the gate blocks anything not explicitly approved."""
        return self.enforcement_mode == GateEnforcementMode.FAIL_CLOSED.value


# =============================================================================
# Decision Models
# =============================================================================


class AuthorizationDecision(BaseModel):
    """
    Result of authorizing an actor to invoke an adapter.

    Every field is populated on every path, including early denials, so
    the decision can be archived as-is for audit.

    Attributes:
        allowed: Whether the invocation is permitted
        actor: Who asked (e.g. the GitHub login)
        trust_level: The trust level id the actor presented
        adapter: The adapter name requested
        reason: Human-readable explanation of the decision
        evidence: Contract document(s) consulted for the decision
        timestamp: When the decision was made (UTC)
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    allowed: bool = Field(..., description="Whether the invocation is permitted")
    actor: str = Field(..., description="Who requested the adapter")
    trust_level: str = Field(..., alias="trustLevel", description="Presented trust level id")
    adapter: str = Field(..., description="Requested adapter name")
    reason: str = Field(..., min_length=1, description="Why this decision was made")
    evidence: str = Field(..., min_length=1, description="Documents consulted")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the decision was made",
    )

    @classmethod
    def allow(
        cls, actor: str, trust_level: str, adapter: str, reason: str, evidence: str
    ) -> "AuthorizationDecision":
        """Create an ALLOW decision."""
        return cls(
            allowed=True,
            actor=actor,
            trust_level=trust_level,
            adapter=adapter,
            reason=reason,
            evidence=evidence,
        )

    @classmethod
    def deny(
        cls, actor: str, trust_level: str, adapter: str, reason: str, evidence: str
    ) -> "AuthorizationDecision":
        """Create a DENY decision."""
        return cls(
            allowed=False,
            actor=actor,
            trust_level=trust_level,
            adapter=adapter,
            reason=reason,
            evidence=evidence,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape archived by CI."""
        return self.model_dump(mode="json", by_alias=True)


class GateRecord(BaseModel):
    """
    Audit record for one gate of the pre-agent pipeline.

    Attributes:
        gate: Which gate produced the record
        result: PASS or FAIL
        reason: Human-readable explanation
        evidence: Contract document(s) consulted
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    gate: GateName
    result: GateResult
    reason: str = Field(..., min_length=1)
    evidence: str = Field(..., min_length=1)

    @classmethod
    def passed(cls, gate: GateName, reason: str, evidence: str) -> "GateRecord":
        """Create a PASS record."""
        return cls(gate=gate, result=GateResult.PASS, reason=reason, evidence=evidence)

    @classmethod
    def failed(cls, gate: GateName, reason: str, evidence: str) -> "GateRecord":
        """Create a FAIL record."""
        return cls(gate=gate, result=GateResult.FAIL, reason=reason, evidence=evidence)

    @property
    def ok(self) -> bool:
        return self.result == GateResult.PASS


class PreAgentGatesResult(BaseModel):
    """
    Outcome of the pre-agent gate pipeline.

    `gates` always starts at the first gate and stops at the first FAIL.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    passed: bool
    gates: list[GateRecord] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ProvenanceMetadata(BaseModel):
    """
    Metadata tying an executed action to what authorized it.

    Attributes:
        source_command: The agent command that ran (e.g. "explain")
        commit_sha: 40-hex commit the run executed against
        run_id: Numeric CI run id
        policy_version: Command policy version in force (vMAJOR.MINOR.PATCH)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_command: str = Field(..., min_length=1)
    commit_sha: str = Field(..., min_length=1)
    run_id: str = Field(..., min_length=1)
    policy_version: str = Field(..., min_length=1)

    @property
    def short_sha(self) -> str:
        return self.commit_sha[:7]


class ProvenanceValidationResult(BaseModel):
    """
    Result of validating a provenance record.

    `provenance` is the normalized record on PASS and None on FAIL.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    gate: GateName = GateName.PROVENANCE_METADATA
    result: GateResult
    reason: str = Field(..., min_length=1)
    evidence: str = Field(..., min_length=1)
    provenance: ProvenanceMetadata | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def passed(
        cls, reason: str, evidence: str, provenance: ProvenanceMetadata
    ) -> "ProvenanceValidationResult":
        """Create a PASS result carrying the normalized record."""
        return cls(
            result=GateResult.PASS,
            reason=reason,
            evidence=evidence,
            provenance=provenance,
        )

    @classmethod
    def failed(cls, reason: str, evidence: str) -> "ProvenanceValidationResult":
        """Create a FAIL result."""
        return cls(result=GateResult.FAIL, reason=reason, evidence=evidence)

    @property
    def ok(self) -> bool:
        return self.result == GateResult.PASS

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
