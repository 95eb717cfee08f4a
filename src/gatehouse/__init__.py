"""
Gatehouse - Fail-closed authorization and pre-execution gates for CI agents.

Gatehouse decides, from declarative JSON contracts kept in the repository,
whether an automated agent may run. It provides:
- Trust authorization (actor trust level vs. adapter contract)
- Pre-agent gates (skill scan, lockfile provenance, policy evaluation)
- A trusted-skill startup gate
- Provenance metadata validation

Every missing, malformed or ambiguous input is a denial.

Example usage:
    $ gatehouse authorize --actor octocat --trust-level trusted --adapter repo-write
    $ gatehouse gates --command explain
    $ gatehouse provenance record.json
"""

__version__ = "0.1.0"
__author__ = "Gatehouse Contributors"

from gatehouse.contracts import (
    ContractDocument,
    ContractStore,
    FileContractStore,
    InMemoryContractStore,
)
from gatehouse.gates import run_gates, validate_skill_gate
from gatehouse.policy import authorize
from gatehouse.provenance import validate_provenance

__all__ = [
    "__version__",
    "__author__",
    "ContractDocument",
    "ContractStore",
    "FileContractStore",
    "InMemoryContractStore",
    "authorize",
    "run_gates",
    "validate_skill_gate",
    "validate_provenance",
]
