"""
Exception hierarchy for Gatehouse.

All Gatehouse exceptions inherit from GatehouseError, allowing callers to
catch every Gatehouse-specific failure with a single except clause.

Exception Categories:
    - ContractError: A contract document is missing, unparsable or malformed
    - SkillGateError: A skill digest failed a startup precondition
    - ConfigError: The Gatehouse configuration file is invalid

Policy violations (unauthorized trust level, disallowed command, version
mismatch) are NOT exceptions. They come back as decision values the caller
branches on. Exceptions are reserved for configuration problems and for the
skill gate, which is a hard startup precondition.

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors carry context (document, digest, field where applicable)
    - All errors provide actionable suggestions where possible
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Contract errors: 1xxx
ERROR_CONTRACT_NOT_FOUND = 1001
ERROR_CONTRACT_PARSE = 1002
ERROR_CONTRACT_FORMAT = 1003

# Skill gate errors: 2xxx
ERROR_SKILL_GATE_MODE = 2001
ERROR_SKILL_REVOKED = 2002
ERROR_SKILL_NOT_ALLOWLISTED = 2003
ERROR_SKILL_NOT_APPROVED = 2004
ERROR_SKILL_METADATA_MISSING = 2005

# Configuration errors: 3xxx
ERROR_CONFIG_INVALID = 3001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class GatehouseError(Exception):
    """
    Base exception for all Gatehouse errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Contract Errors
# =============================================================================


@dataclass
class ContractError(GatehouseError):
    """
    Base class for contract document failures.

    Raised by a ContractStore when a document cannot be turned into typed
    contract data. Decision functions either let these propagate (fail-closed
    by exception) or convert them into a denial reason.

    Attributes:
        document: File name of the contract document (e.g. "command-policy.json")
        location: Evidence location of the document (path relative to repo root)
    """

    document: str = ""
    location: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context.update({
            "document": self.document,
            "location": self.location,
        })


@dataclass
class ContractNotFoundError(ContractError):
    """Raised when a contract document does not exist."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.document} not found at {self.location}"
        if self.code == 0:
            self.code = ERROR_CONTRACT_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Run `gatehouse init` or restore the contract file"
        super().__post_init__()


@dataclass
class ContractParseError(ContractError):
    """Raised when a contract document is not valid JSON."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.document} is not valid JSON: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONTRACT_PARSE
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class ContractFormatError(ContractError):
    """
    Raised when a contract document has the wrong shape.

    Attributes:
        errors: One "field.path: problem" string per validation failure
    """

    errors: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.document} is malformed: {'; '.join(self.errors)}"
        if self.code == 0:
            self.code = ERROR_CONTRACT_FORMAT
        super().__post_init__()
        self.context["errors"] = self.errors


# =============================================================================
# Skill Gate Errors
# =============================================================================


@dataclass
class SkillGateError(GatehouseError):
    """
    Base class for trusted-skill gate failures.

    The skill gate is a startup precondition: any failure means the skill
    must not run at all. Every subclass message starts with the same
    "Fail-closed gate blocked startup" prefix so logs are easy to grep.

    Attributes:
        digest: The skill content digest being checked
    """

    digest: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["digest"] = self.digest


@dataclass
class SkillGateModeError(SkillGateError):
    """Raised when the trusted-command gate is not in fail_closed mode."""

    enforcement_mode: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Fail-closed gate blocked startup: enforcementMode must be fail_closed"
        if self.code == 0:
            self.code = ERROR_SKILL_GATE_MODE
        if not self.suggestion:
            self.suggestion = 'Set "enforcementMode": "fail_closed" in trusted-command-gate.json'
        super().__post_init__()
        self.context["enforcement_mode"] = self.enforcement_mode


@dataclass
class SkillRevokedError(SkillGateError):
    """Raised when the digest is on the revocation list."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Fail-closed gate blocked startup: {self.digest} is revoked"
        if self.code == 0:
            self.code = ERROR_SKILL_REVOKED
        super().__post_init__()


@dataclass
class SkillNotAllowlistedError(SkillGateError):
    """Raised when the digest has no allowlist entry."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"Fail-closed gate blocked startup: {self.digest} is not in the trusted allowlist"
            )
        if self.code == 0:
            self.code = ERROR_SKILL_NOT_ALLOWLISTED
        if not self.suggestion:
            self.suggestion = "Submit the skill for review and add its digest to byDigest"
        super().__post_init__()


@dataclass
class SkillNotApprovedError(SkillGateError):
    """Raised when the allowlist entry status is not approved_trusted."""

    status: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Fail-closed gate blocked startup: {self.digest} is not approved_trusted"
        if self.code == 0:
            self.code = ERROR_SKILL_NOT_APPROVED
        super().__post_init__()
        self.context["status"] = self.status


@dataclass
class SkillMetadataMissingError(SkillGateError):
    """Raised when an approved entry lacks approval or evidence metadata."""

    missing_key: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"Fail-closed gate blocked startup: {self.digest} "
                f"missing required metadata `{self.missing_key}`"
            )
        if self.code == 0:
            self.code = ERROR_SKILL_METADATA_MISSING
        super().__post_init__()
        self.context["missing_key"] = self.missing_key


# =============================================================================
# Configuration Errors
# =============================================================================


@dataclass
class ConfigError(GatehouseError):
    """Raised when the Gatehouse configuration file cannot be loaded."""

    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration: {self.path}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context["path"] = self.path
