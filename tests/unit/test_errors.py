"""
Unit tests for error hierarchy.

Tests cover:
- Base GatehouseError behavior
- Contract errors with document context
- Skill gate errors and their shared prefix
- Configuration errors
- Error serialization
"""

import pytest

from gatehouse.errors import (
    ERROR_CONFIG_INVALID,
    ERROR_CONTRACT_FORMAT,
    ERROR_CONTRACT_NOT_FOUND,
    ERROR_CONTRACT_PARSE,
    ERROR_SKILL_GATE_MODE,
    ERROR_SKILL_METADATA_MISSING,
    ERROR_SKILL_NOT_ALLOWLISTED,
    ERROR_SKILL_NOT_APPROVED,
    ConfigError,
    ContractError,
    ContractFormatError,
    ContractNotFoundError,
    ContractParseError,
    GatehouseError,
    SkillGateError,
    SkillGateModeError,
    SkillMetadataMissingError,
    SkillNotAllowlistedError,
    SkillNotApprovedError,
    SkillRevokedError,
)


class TestGatehouseError:
    """Tests for base GatehouseError."""

    def test_basic_error(self) -> None:
        """Create a basic error with message."""
        err = GatehouseError(message="Something went wrong", code=9999)
        assert err.message == "Something went wrong"
        assert err.code == 9999
        assert err.suggestion is None
        assert err.context == {}

    def test_str_format(self) -> None:
        """String format includes code and message."""
        err = GatehouseError(message="Test error", code=1234)
        assert str(err) == "[E1234] Test error"

    def test_str_with_suggestion(self) -> None:
        err = GatehouseError(message="Failed", code=1, suggestion="Try again")
        assert "Suggestion: Try again" in str(err)

    def test_repr_format(self) -> None:
        """Repr includes class name and details."""
        err = GatehouseError(message="Test", code=1)
        assert "GatehouseError" in repr(err)
        assert "message='Test'" in repr(err)

    def test_to_dict(self) -> None:
        """Convert error to dictionary."""
        err = GatehouseError(message="Test", code=1, suggestion="Fix", context={"foo": "bar"})
        d = err.to_dict()
        assert d == {
            "error_type": "GatehouseError",
            "message": "Test",
            "code": 1,
            "suggestion": "Fix",
            "context": {"foo": "bar"},
        }

    def test_is_exception(self) -> None:
        with pytest.raises(GatehouseError):
            raise GatehouseError(message="Test", code=1)


class TestContractErrors:
    """Tests for contract document errors."""

    def test_not_found(self) -> None:
        err = ContractNotFoundError(document="trust-levels.json", location="rt/trust-levels.json")
        assert err.code == ERROR_CONTRACT_NOT_FOUND
        assert err.message == "trust-levels.json not found at rt/trust-levels.json"
        assert "gatehouse init" in err.suggestion
        assert err.context == {"document": "trust-levels.json", "location": "rt/trust-levels.json"}

    def test_parse(self) -> None:
        err = ContractParseError(
            document="command-policy.json",
            location="rt/command-policy.json",
            underlying_error="Expecting value: line 1 column 1 (char 0)",
        )
        assert err.code == ERROR_CONTRACT_PARSE
        assert "is not valid JSON" in str(err)
        assert err.context["underlying_error"].startswith("Expecting value")

    def test_format(self) -> None:
        err = ContractFormatError(
            document="trusted-skills-allowlist.json",
            errors=["revokedDigests: Input should be a valid list", "byDigest: Field required"],
        )
        assert err.code == ERROR_CONTRACT_FORMAT
        assert err.message == (
            "trusted-skills-allowlist.json is malformed: "
            "revokedDigests: Input should be a valid list; byDigest: Field required"
        )
        assert len(err.context["errors"]) == 2

    def test_hierarchy(self) -> None:
        assert issubclass(ContractNotFoundError, ContractError)
        assert issubclass(ContractError, GatehouseError)

    def test_explicit_message_kept(self) -> None:
        err = ContractNotFoundError(message="custom", document="x.json")
        assert err.message == "custom"


class TestSkillGateErrors:
    """Tests for skill gate errors."""

    @pytest.mark.parametrize(
        "err,code",
        [
            (SkillGateModeError(digest="sha256:1", enforcement_mode="permissive"), ERROR_SKILL_GATE_MODE),
            (SkillNotAllowlistedError(digest="sha256:1"), ERROR_SKILL_NOT_ALLOWLISTED),
            (SkillNotApprovedError(digest="sha256:1", status="pending_review"), ERROR_SKILL_NOT_APPROVED),
            (SkillMetadataMissingError(digest="sha256:1", missing_key="evidence"), ERROR_SKILL_METADATA_MISSING),
        ],
    )
    def test_codes_and_prefix(self, err: SkillGateError, code: int) -> None:
        assert err.code == code
        assert err.message.startswith("Fail-closed gate blocked startup: ")
        assert err.context["digest"] == "sha256:1"

    def test_revoked(self) -> None:
        err = SkillRevokedError(digest="sha256:1")
        assert "sha256:1 is revoked" in str(err)
        assert isinstance(err, SkillGateError)

    def test_not_approved_context(self) -> None:
        err = SkillNotApprovedError(digest="sha256:1", status="pending_review")
        assert err.context["status"] == "pending_review"

    def test_missing_metadata_names_key(self) -> None:
        err = SkillMetadataMissingError(digest="sha256:1", missing_key="approvalRecord")
        assert "`approvalRecord`" in err.message


class TestConfigError:
    def test_defaults(self) -> None:
        err = ConfigError(path="gatehouse.yaml")
        assert err.code == ERROR_CONFIG_INVALID
        assert err.message == "Invalid configuration: gatehouse.yaml"
        assert err.to_dict()["context"] == {"path": "gatehouse.yaml"}
