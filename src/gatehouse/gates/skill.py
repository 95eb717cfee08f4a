"""
Trusted skill gate for Gatehouse.

Checked before any skill-provided code runs. Unlike the other decision
functions this one raises: a skill that fails here has no recoverable
continuation, so the gate behaves like an assertion at startup.

Preconditions, in order:
    1. trusted-command gate enforcementMode is fail_closed
    2. digest is not revoked (revocation always wins over approval)
    3. digest has an allowlist entry, and the entry is an object
    4. entry status is approved_trusted
    5. entry declares approvalRecord and evidence
"""

import logging

from gatehouse.contracts.store import ContractStore
from gatehouse.errors import (
    SkillGateModeError,
    SkillMetadataMissingError,
    SkillNotAllowlistedError,
    SkillNotApprovedError,
    SkillRevokedError,
)

logger = logging.getLogger(__name__)


REQUIRED_APPROVAL_KEYS = ["approvalRecord", "evidence"]


def validate_skill_gate(digest: str, store: ContractStore) -> None:
    """
    Validate a skill digest against the trusted-skill allowlist.

    Args:
        digest: Content digest of the skill artifact ("sha256:<hex>")
        store: Source of the contract documents

    Raises:
        SkillGateModeError: Gate is not fail_closed
        SkillRevokedError: Digest is revoked
        SkillNotAllowlistedError: Digest has no allowlist entry or it is not an object
        SkillNotApprovedError: Entry is not approved_trusted
        SkillMetadataMissingError: Entry lacks approvalRecord or evidence
        ContractError: A contract document is missing or malformed
            (including a non-array revokedDigests or non-object byDigest;
            other entries are never inspected)
    """
    gate = store.read_trusted_command_gate()
    if not gate.is_fail_closed:
        raise SkillGateModeError(digest=digest, enforcement_mode=gate.enforcement_mode)

    allowlist = store.read_skill_allowlist()

    if allowlist.is_revoked(digest):
        raise SkillRevokedError(digest=digest)

    entry = allowlist.entry_for(digest)
    if entry is None:
        raise SkillNotAllowlistedError(digest=digest)

    if not entry.is_approved:
        raise SkillNotApprovedError(digest=digest, status=str(entry.status))

    missing = entry.missing_keys(REQUIRED_APPROVAL_KEYS)
    if missing:
        raise SkillMetadataMissingError(digest=digest, missing_key=missing[0])

    logger.info("Trusted skill gate passed for digest %s", digest)
