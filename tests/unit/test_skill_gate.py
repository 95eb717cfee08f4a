"""
Unit tests for the trusted skill gate.

Tests cover:
- Approved digests pass silently
- Each precondition raises its own error type, in order
- Revocation wins over approval
"""

import pytest

from gatehouse.contracts import ContractDocument
from gatehouse.errors import (
    ERROR_SKILL_REVOKED,
    ContractFormatError,
    ContractNotFoundError,
    SkillGateError,
    SkillGateModeError,
    SkillMetadataMissingError,
    SkillNotAllowlistedError,
    SkillNotApprovedError,
    SkillRevokedError,
)
from gatehouse.gates import validate_skill_gate


def _allowlist(by_digest, revoked=None):
    return {"byDigest": by_digest, "revokedDigests": revoked or []}


class TestSkillGatePass:
    """Digests that satisfy every precondition."""

    def test_approved_digest_passes(self, store, approved_digest) -> None:
        """No exception and no return value."""
        assert validate_skill_gate(approved_digest, store) is None

    def test_extra_keys_allowed(self, make_store, entry_factory) -> None:
        """Unknown entry keys do not affect the decision."""
        entry = entry_factory(reviewNotes="looked fine", expiresAt="2027-01-01")
        store = make_store({ContractDocument.SKILL_ALLOWLIST: _allowlist({"sha256:1": entry})})
        validate_skill_gate("sha256:1", store)


class TestSkillGateFailures:
    """Each failed precondition raises."""

    def test_non_fail_closed_gate(self, documents, make_store, approved_digest) -> None:
        """The gate mode is checked first."""
        gate = dict(documents[ContractDocument.TRUSTED_COMMAND_GATE], enforcementMode="permissive")
        store = make_store({ContractDocument.TRUSTED_COMMAND_GATE: gate})
        with pytest.raises(SkillGateModeError) as exc_info:
            validate_skill_gate(approved_digest, store)
        assert "enforcementMode must be fail_closed" in exc_info.value.message
        assert exc_info.value.context["enforcement_mode"] == "permissive"

    def test_revoked_digest(self, make_store, entry_factory) -> None:
        """A revoked digest is rejected with a revocation reason."""
        store = make_store({
            ContractDocument.SKILL_ALLOWLIST: _allowlist({}, revoked=["sha256:bad"]),
        })
        with pytest.raises(SkillRevokedError) as exc_info:
            validate_skill_gate("sha256:bad", store)
        assert exc_info.value.code == ERROR_SKILL_REVOKED
        assert exc_info.value.message == "Fail-closed gate blocked startup: sha256:bad is revoked"

    def test_unknown_digest(self, store, unknown_digest) -> None:
        """A digest with no entry is rejected."""
        with pytest.raises(SkillNotAllowlistedError) as exc_info:
            validate_skill_gate(unknown_digest, store)
        assert unknown_digest in exc_info.value.message
        assert exc_info.value.context["digest"] == unknown_digest

    @pytest.mark.parametrize("status", ["pending_review", "APPROVED_TRUSTED", None])
    def test_not_approved(self, make_store, entry_factory, status) -> None:
        """Anything but approved_trusted is rejected."""
        entry = entry_factory(status=status)
        store = make_store({ContractDocument.SKILL_ALLOWLIST: _allowlist({"sha256:1": entry})})
        with pytest.raises(SkillNotApprovedError) as exc_info:
            validate_skill_gate("sha256:1", store)
        assert "is not approved_trusted" in exc_info.value.message

    @pytest.mark.parametrize("key", ["approvalRecord", "evidence"])
    def test_missing_metadata(self, make_store, entry_factory, key: str) -> None:
        """An approved entry without approval metadata is rejected."""
        entry = entry_factory()
        del entry[key]
        store = make_store({ContractDocument.SKILL_ALLOWLIST: _allowlist({"sha256:1": entry})})
        with pytest.raises(SkillMetadataMissingError) as exc_info:
            validate_skill_gate("sha256:1", store)
        assert exc_info.value.missing_key == key
        assert f"`{key}`" in exc_info.value.message

    def test_source_not_required_here(self, make_store, entry_factory) -> None:
        """Only approvalRecord and evidence are startup requirements."""
        entry = entry_factory()
        del entry["source"]
        store = make_store({ContractDocument.SKILL_ALLOWLIST: _allowlist({"sha256:1": entry})})
        validate_skill_gate("sha256:1", store)

    def test_all_errors_share_prefix(self, store, unknown_digest) -> None:
        """Gate errors are SkillGateErrors with the startup prefix."""
        with pytest.raises(SkillGateError) as exc_info:
            validate_skill_gate(unknown_digest, store)
        assert exc_info.value.message.startswith("Fail-closed gate blocked startup: ")


class TestRevocationPrecedence:
    """Revocation always wins over approval."""

    def test_approved_and_revoked(self, make_store, entry_factory) -> None:
        """An approved, fully documented entry is still rejected when revoked."""
        allowlist = _allowlist({"sha256:1": entry_factory()}, revoked=["sha256:1"])
        store = make_store({ContractDocument.SKILL_ALLOWLIST: allowlist})
        with pytest.raises(SkillRevokedError):
            validate_skill_gate("sha256:1", store)

    def test_revocation_checked_before_status(self, make_store, entry_factory) -> None:
        """A revoked pending entry reports revocation."""
        allowlist = _allowlist(
            {"sha256:1": entry_factory(status="pending_review")}, revoked=["sha256:1"]
        )
        store = make_store({ContractDocument.SKILL_ALLOWLIST: allowlist})
        with pytest.raises(SkillRevokedError):
            validate_skill_gate("sha256:1", store)


class TestSkillGateContractErrors:
    """Unreadable contracts propagate; a bad requested entry is not allowlisted."""

    def test_missing_gate_document(self, make_store, approved_digest) -> None:
        store = make_store(missing=[ContractDocument.TRUSTED_COMMAND_GATE])
        with pytest.raises(ContractNotFoundError):
            validate_skill_gate(approved_digest, store)

    def test_revoked_digests_not_array(self, make_store, approved_digest) -> None:
        store = make_store({
            ContractDocument.SKILL_ALLOWLIST: {"byDigest": {}, "revokedDigests": approved_digest},
        })
        with pytest.raises(ContractFormatError) as exc_info:
            validate_skill_gate(approved_digest, store)
        assert "revokedDigests" in exc_info.value.message

    @pytest.mark.parametrize("raw", ["approved_trusted", ["approvalRecord"], None])
    def test_entry_not_object(self, make_store, approved_digest, raw) -> None:
        """An entry that is not an object counts as no entry."""
        store = make_store({
            ContractDocument.SKILL_ALLOWLIST: _allowlist({approved_digest: raw}),
        })
        with pytest.raises(SkillNotAllowlistedError):
            validate_skill_gate(approved_digest, store)


class TestUnrelatedEntries:
    """Only the requested digest's entry is inspected."""

    @pytest.mark.parametrize(
        "other",
        ["not an object", {"skillName": 7}, {"status": 3}],
    )
    def test_revocation_not_masked(self, make_store, entry_factory, other) -> None:
        digest = "sha256:1"
        store = make_store({
            ContractDocument.SKILL_ALLOWLIST: _allowlist(
                {digest: entry_factory(), "sha256:2": other}, revoked=[digest]
            ),
        })
        with pytest.raises(SkillRevokedError):
            validate_skill_gate(digest, store)

    def test_approved_digest_passes(self, make_store, entry_factory) -> None:
        store = make_store({
            ContractDocument.SKILL_ALLOWLIST: _allowlist(
                {"sha256:1": entry_factory(), "sha256:2": {"skillName": 7}},
                revoked=["sha256:3", 42],
            ),
        })
        validate_skill_gate("sha256:1", store)

    def test_wrong_typed_status_not_approved(self, make_store, entry_factory) -> None:
        store = make_store({
            ContractDocument.SKILL_ALLOWLIST: _allowlist({"sha256:1": entry_factory(status=3)}),
        })
        with pytest.raises(SkillNotApprovedError) as exc_info:
            validate_skill_gate("sha256:1", store)
        assert exc_info.value.context["status"] == "3"
