"""
Provenance module for Gatehouse.

Validates the metadata that ties an executed agent action to the command,
commit, run and policy version that authorized it.
"""

from gatehouse.provenance.validator import (
    REQUIRED_PROVENANCE_FIELDS,
    ProvenanceValidator,
    validate_provenance,
)

__all__ = [
    "REQUIRED_PROVENANCE_FIELDS",
    "ProvenanceValidator",
    "validate_provenance",
]
