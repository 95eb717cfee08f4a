"""
Pytest configuration and fixtures for Gatehouse tests.

This module provides shared fixtures used across unit, integration,
and security tests.
"""

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator

import pytest

from gatehouse.contracts import (
    ContractDocument,
    InMemoryContractStore,
    default_documents,
    write_default_contracts,
)

APPROVED_DIGEST = "sha256:" + "a" * 64
PENDING_DIGEST = "sha256:" + "b" * 64
UNKNOWN_DIGEST = "sha256:" + "c" * 64

VALID_PROVENANCE = {
    "source_command": "explain",
    "commit_sha": "a" * 40,
    "run_id": "123456789",
    "policy_version": "v1.0.0",
}


def approved_entry(**overrides: Any) -> dict[str, Any]:
    """Build an allowlist entry that passes every gate."""
    entry = {
        "skillName": "repo-explainer",
        "status": "approved_trusted",
        "source": "https://github.com/example/skills",
        "approvalRecord": {"approvedBy": "maintainer", "ticket": "SEC-101"},
        "evidence": {"scanArtifact": "scan.json", "policyArtifact": "policy.json"},
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def documents() -> dict[ContractDocument, Any]:
    """Return a complete, passing set of contract documents with one approved skill."""
    docs = default_documents()
    docs[ContractDocument.SKILL_ALLOWLIST]["byDigest"] = {
        APPROVED_DIGEST: approved_entry(),
    }
    return docs


@pytest.fixture
def store(documents: dict[ContractDocument, Any]) -> InMemoryContractStore:
    """In-memory store over the passing documents."""
    return InMemoryContractStore(documents)


@pytest.fixture
def make_store(
    documents: dict[ContractDocument, Any],
) -> Callable[..., InMemoryContractStore]:
    """
    Factory for stores with some documents replaced or removed.

    Usage:
        make_store({ContractDocument.COMMAND_POLICY: {...}})
        make_store(missing=[ContractDocument.TRUST_LEVELS])
    """

    def _make(
        overrides: dict[ContractDocument, Any] | None = None,
        missing: list[ContractDocument] | None = None,
    ) -> InMemoryContractStore:
        docs = dict(documents)
        docs.update(overrides or {})
        for document in missing or []:
            docs.pop(document, None)
        return InMemoryContractStore(docs)

    return _make


@pytest.fixture
def contract_root(temp_dir: Path) -> Path:
    """A repository root with the default contracts written to disk."""
    write_default_contracts(temp_dir)
    return temp_dir


@pytest.fixture
def approved_digest() -> str:
    """Digest of the approved skill in the `documents` fixture."""
    return APPROVED_DIGEST


@pytest.fixture
def unknown_digest() -> str:
    """A digest with no allowlist entry."""
    return UNKNOWN_DIGEST


@pytest.fixture
def entry_factory() -> Callable[..., dict[str, Any]]:
    """Factory for allowlist entries; keyword arguments override keys."""
    return approved_entry


@pytest.fixture
def valid_provenance() -> dict[str, str]:
    """A provenance record matching the default command policy."""
    return dict(VALID_PROVENANCE)
