"""
Contract store module for Gatehouse.

Contracts are the declarative JSON documents every decision is made from:
trust levels, adapter contracts, the command policy, the trusted-skill
allowlist, the trusted-command gate and the provenance schema.

Key concepts:
    - ContractStore: Typed, read-only, uncached access to the documents
    - FileContractStore: Documents from the repository working tree
    - InMemoryContractStore: Documents supplied directly (tests, embedding)
"""

from gatehouse.contracts.defaults import default_documents, write_default_contracts
from gatehouse.contracts.store import (
    ContractDocument,
    ContractStore,
    FileContractStore,
    InMemoryContractStore,
)

__all__ = [
    "ContractDocument",
    "ContractStore",
    "FileContractStore",
    "InMemoryContractStore",
    "default_documents",
    "write_default_contracts",
]
