"""
Gates module for Gatehouse.

Gates are preconditions checked before an agent is allowed to run.

Key concepts:
    - GatePipeline: Ordered pre-agent gates returning audit records
      (skill-package-scan, lockfile-provenance, policy-eval)
    - validate_skill_gate: Startup precondition for a single skill digest;
      raises on any failure instead of returning a record
"""

from gatehouse.gates.pipeline import GatePipeline, run_gates
from gatehouse.gates.skill import validate_skill_gate

__all__ = [
    "GatePipeline",
    "run_gates",
    "validate_skill_gate",
]
