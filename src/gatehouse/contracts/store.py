"""
Contract stores for Gatehouse.

A ContractStore hands out the declarative contract documents as typed
models. It is the only place where raw JSON is touched: every read is
validated once here, and the decision code works on the resulting models.

Stores never cache. Each read goes back to the source, so every decision
sees the contracts as they are at that moment and there is nothing to
invalidate between calls.

Failures raise the ContractError family:
    - ContractNotFoundError: the document does not exist
    - ContractParseError: the document is not valid JSON
    - ContractFormatError: the document does not have the expected shape
"""

import json
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from gatehouse.config import GatehouseConfig
from gatehouse.errors import (
    ContractFormatError,
    ContractNotFoundError,
    ContractParseError,
)
from gatehouse.schema import (
    AdapterContract,
    AdapterContractTable,
    CommandPolicy,
    SkillAllowlist,
    TrustedCommandGate,
    TrustLevel,
    TrustLevelTable,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ContractDocument(str, Enum):
    """The contract documents a store can serve."""

    TRUST_LEVELS = "trust_levels"
    ADAPTER_CONTRACTS = "adapter_contracts"
    COMMAND_POLICY = "command_policy"
    SKILL_ALLOWLIST = "skill_allowlist"
    TRUSTED_COMMAND_GATE = "trusted_command_gate"
    PROVENANCE_SCHEMA = "provenance_schema"

    def file_name(self, config: GatehouseConfig) -> str:
        """Return the configured file name for this document."""
        return getattr(config, f"{self.value}_file")


class ContractStore(ABC):
    """
    Read-only source of contract documents.

    Subclasses supply raw JSON through `load_document` and an evidence
    location through `location`. Typed parsing is shared here so every
    store enforces the same shape rules.

    Attributes:
        config: Where the documents live and what they are called
    """

    def __init__(self, config: GatehouseConfig | None = None) -> None:
        self.config = config or GatehouseConfig()

    @abstractmethod
    def load_document(self, document: ContractDocument) -> Any:
        """
        Return the raw decoded JSON of a document.

        Raises:
            ContractNotFoundError: If the document does not exist
            ContractParseError: If the document is not valid JSON
        """

    def location(self, document: ContractDocument) -> str:
        """Return the evidence location of a document (repo-relative path)."""
        return f"{self.config.runtime_dir.rstrip('/')}/{document.file_name(self.config)}"

    # =========================================================================
    # Typed Reads
    # =========================================================================

    def read_trust_levels(self) -> list[TrustLevel]:
        """Read the trust-level table."""
        return self._read_model(ContractDocument.TRUST_LEVELS, TrustLevelTable).levels

    def read_adapter_contracts(self) -> list[AdapterContract]:
        """Read the adapter-contract table."""
        return self._read_model(ContractDocument.ADAPTER_CONTRACTS, AdapterContractTable).adapters

    def read_command_policy(self) -> CommandPolicy:
        """Read the global command policy."""
        return self._read_model(ContractDocument.COMMAND_POLICY, CommandPolicy)

    def read_skill_allowlist(self) -> SkillAllowlist:
        """Read the trusted-skills allowlist and its revocation list."""
        return self._read_model(ContractDocument.SKILL_ALLOWLIST, SkillAllowlist)

    def read_trusted_command_gate(self) -> TrustedCommandGate:
        """Read the trusted-command-gate settings."""
        return self._read_model(ContractDocument.TRUSTED_COMMAND_GATE, TrustedCommandGate)

    def read_provenance_schema(self) -> dict[str, Any]:
        """
        Read the provenance JSON Schema.

        The schema is returned as a plain dict for the JSON Schema engine;
        only its top-level type is checked here.
        """
        document = ContractDocument.PROVENANCE_SCHEMA
        raw = self.load_document(document)
        if not isinstance(raw, dict):
            raise ContractFormatError(
                document=document.file_name(self.config),
                location=self.location(document),
                errors=[f"root: expected a JSON object, got {type(raw).__name__}"],
            )
        return raw

    def _read_model(self, document: ContractDocument, model: type[ModelT]) -> ModelT:
        raw = self.load_document(document)
        try:
            parsed = model.model_validate(raw)
        except ValidationError as e:
            raise ContractFormatError(
                document=document.file_name(self.config),
                location=self.location(document),
                errors=_format_validation_errors(e),
            ) from e

        logger.debug("Loaded contract %s from %s", document.value, self.location(document))
        return parsed


class FileContractStore(ContractStore):
    """
    Contract store backed by JSON files under a repository root.

    Files are read fresh on every call.

    Usage:
        store = FileContractStore(Path.cwd())
        policy = store.read_command_policy()

    Attributes:
        root: Repository root the runtime directory is resolved against
    """

    def __init__(self, root: Path | str = ".", config: GatehouseConfig | None = None) -> None:
        super().__init__(config)
        self.root = Path(root)

    def path_for(self, document: ContractDocument) -> Path:
        """Return the absolute-or-root-relative path of a document."""
        return self.root / self.config.runtime_dir / document.file_name(self.config)

    def load_document(self, document: ContractDocument) -> Any:
        path = self.path_for(document)
        name = document.file_name(self.config)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ContractNotFoundError(document=name, location=self.location(document)) from e
        except OSError as e:
            raise ContractNotFoundError(
                message=f"{name} could not be read: {e}",
                document=name,
                location=self.location(document),
            ) from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ContractParseError(
                document=name,
                location=self.location(document),
                underlying_error=str(e),
            ) from e


class InMemoryContractStore(ContractStore):
    """
    Contract store serving already-decoded documents.

    Useful for tests and for embedding Gatehouse where the contracts come
    from somewhere other than the working tree. A document that is absent
    from the mapping behaves like a missing file.

    Usage:
        store = InMemoryContractStore({
            ContractDocument.COMMAND_POLICY: {"enforcementMode": "enforce", ...},
        })
    """

    def __init__(
        self,
        documents: dict[ContractDocument, Any] | None = None,
        config: GatehouseConfig | None = None,
    ) -> None:
        super().__init__(config)
        self._documents = dict(documents or {})

    def load_document(self, document: ContractDocument) -> Any:
        if document not in self._documents:
            raise ContractNotFoundError(
                document=document.file_name(self.config),
                location=self.location(document),
            )
        return self._documents[document]


def _format_validation_errors(error: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into "field.path: message" strings."""
    messages = []
    for item in error.errors():
        path = ".".join(str(part) for part in item["loc"]) or "root"
        messages.append(f"{path}: {item['msg']}")
    return messages
