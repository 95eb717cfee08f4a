"""
Policy module for Gatehouse.

This module implements trust authorization: deciding whether an actor at a
given trust level may invoke an adapter.

Key concepts:
    - Fail-closed: Missing, malformed or ambiguous contracts deny
    - AuthorizationDecision: Allowed flag plus reason and evidence
    - TrustAuthorizer: Evaluates one request against the contract store

The authorizer is a security boundary. It must be:
    - Fail-closed: Any indeterminate state results in denial
    - Predictable: Same inputs always produce the same decision
    - Auditable: Every decision names the documents it was based on
"""

from gatehouse.policy.trust import TrustAuthorizer, authorize

__all__ = [
    "TrustAuthorizer",
    "authorize",
]
