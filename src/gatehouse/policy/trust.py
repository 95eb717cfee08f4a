"""
Trust authorization for Gatehouse.

The TrustAuthorizer decides whether an actor, presenting a trust level, may
invoke an adapter. It is the security boundary for adapter invocations.

Design Principles:
    - Fail-closed: any indeterminate state results in denial
    - Predictable: same contracts and inputs always produce the same decision
    - Auditable: every decision carries a reason and the documents consulted

How it works:
    1. Command policy must be enforcing with non-empty constraints
    2. Trust level must exist in the trust-level table
    3. Adapter must exist in the adapter-contract table
    4. Trust level must be listed on the adapter
    5. Privileged-mutation escalation check
    6. Secrets escalation check
    7. Allow

Security Note:
    Steps 5 and 6 treat an adapter as privilege- (or secret-) gated only
    when EVERY trust level listed on the adapter carries the capability.
    An adapter open to a mixed set of levels is not gated by these steps;
    membership (step 4) is what restricts it. Changing this to a per-level
    check alters which adapters are reachable and needs review.
"""

import logging

from gatehouse.contracts.store import ContractDocument, ContractStore
from gatehouse.errors import ContractError
from gatehouse.schema import AdapterContract, AuthorizationDecision, TrustLevel

logger = logging.getLogger(__name__)


class TrustAuthorizer:
    """
    Authorization decision engine for adapter invocations.

    The authorizer holds no state besides the store. Contracts are re-read
    for every decision, so one instance can be shared freely.

    Usage:
        authorizer = TrustAuthorizer(store)
        decision = authorizer.authorize("octocat", "trusted", "repo-write")
        if decision.allowed:
            # proceed with the adapter
        else:
            # stop; decision.reason says why

    Attributes:
        store: Source of the contract documents
    """

    def __init__(self, store: ContractStore) -> None:
        self.store = store

    def authorize(
        self,
        actor: str,
        trust_level_id: str,
        adapter_name: str,
    ) -> AuthorizationDecision:
        """
        Decide whether an actor may invoke an adapter.

        Args:
            actor: Who is asking (e.g. the CI actor login)
            trust_level_id: The trust level the actor presents
            adapter_name: The adapter being requested

        Returns:
            A fully populated AuthorizationDecision

        Raises:
            ContractError: If the trust-level or adapter-contract documents
                cannot be read. Only the command policy read is converted
                into a denial.
        """
        policy_path = self.store.location(ContractDocument.COMMAND_POLICY)
        levels_path = self.store.location(ContractDocument.TRUST_LEVELS)
        adapters_path = self.store.location(ContractDocument.ADAPTER_CONTRACTS)
        both_paths = f"{levels_path}, {adapters_path}"

        def deny(reason: str, evidence: str) -> AuthorizationDecision:
            logger.warning(
                "Denied %s (%s) for adapter %s: %s", actor, trust_level_id, adapter_name, reason
            )
            return AuthorizationDecision.deny(
                actor, trust_level_id, adapter_name, reason, evidence
            )

        # Step 1: command policy must be in active enforcement
        policy_error = self.check_command_policy()
        if policy_error:
            return deny(policy_error, policy_path)

        # Step 2: trust level must be defined
        levels = self.store.read_trust_levels()
        trust_level = _find_level(levels, trust_level_id)
        if trust_level is None:
            return deny(
                f'trust level "{trust_level_id}" not found in '
                f"{ContractDocument.TRUST_LEVELS.file_name(self.store.config)} "
                "(fail-closed denial)",
                levels_path,
            )

        # Step 3: adapter must be defined
        adapter = self.resolve_adapter_contract(adapter_name)
        if adapter is None:
            return deny(
                f'adapter "{adapter_name}" not found in '
                f"{ContractDocument.ADAPTER_CONTRACTS.file_name(self.store.config)} "
                "(fail-closed denial)",
                adapters_path,
            )

        # Step 4: trust level must be listed on the adapter
        if trust_level_id not in adapter.trust_levels:
            required = ", ".join(adapter.trust_levels) or "none"
            return deny(
                f'actor "{actor}" with trust level "{trust_level_id}" is not authorized '
                f'for adapter "{adapter_name}" (requires: {required})',
                both_paths,
            )

        # Step 5: privileged mutation, gated only when every listed level has it
        if self._all_levels_grant(levels, adapter, "allows_privileged_mutation"):
            if not trust_level.allows_privileged_mutation:
                return deny(
                    f'adapter "{adapter_name}" requires privileged mutation but trust level '
                    f'"{trust_level_id}" does not permit it; no privileged execution '
                    "from untrusted contexts",
                    both_paths,
                )

        # Step 6: secrets, same all-of rule
        if self._all_levels_grant(levels, adapter, "allows_secrets"):
            if not trust_level.allows_secrets:
                return deny(
                    f'adapter "{adapter_name}" requires secret access but trust level '
                    f'"{trust_level_id}" does not allow secrets; no privileged execution '
                    "from untrusted contexts",
                    both_paths,
                )

        logger.info("Authorized %s (%s) for adapter %s", actor, trust_level_id, adapter_name)
        return AuthorizationDecision.allow(
            actor,
            trust_level_id,
            adapter_name,
            f'actor "{actor}" with trust level "{trust_level_id}" is authorized '
            f'for adapter "{adapter_name}"',
            both_paths,
        )

    def check_command_policy(self) -> str | None:
        """
        Check that the command policy is actively enforcing.

        A read failure is converted into a reason rather than raised, so a
        missing or broken policy denies instead of crashing the caller.

        Returns:
            None if the policy is active, otherwise the denial reason
        """
        policy_file = ContractDocument.COMMAND_POLICY.file_name(self.store.config)
        try:
            policy = self.store.read_command_policy()
        except ContractError as e:
            logger.warning("Command policy unavailable: %s", e.message)
            return f"{policy_file} could not be read: {e.message} (fail-closed denial)"

        if not policy.is_enforcing:
            return (
                f'command-policy enforcementMode is "{policy.enforcement_mode}", '
                'expected "enforce" (fail-closed denial)'
            )

        if not policy.constraints:
            return f"{policy_file} constraints are missing or empty (fail-closed denial)"

        return None

    def resolve_trust_level(self, level_id: str) -> TrustLevel | None:
        """Look up a trust level by id. Returns None if it is not defined."""
        return _find_level(self.store.read_trust_levels(), level_id)

    def resolve_adapter_contract(self, adapter_name: str) -> AdapterContract | None:
        """Look up an adapter contract by name. Returns None if it is not defined."""
        for adapter in self.store.read_adapter_contracts():
            if adapter.name == adapter_name:
                return adapter
        return None

    def _all_levels_grant(
        self,
        levels: list[TrustLevel],
        adapter: AdapterContract,
        capability: str,
    ) -> bool:
        """
        Check whether every trust level listed on the adapter grants a capability.

        Levels listed on the adapter but missing from the table count as
        not granting it.
        """
        for level_id in adapter.trust_levels:
            level = _find_level(levels, level_id)
            if level is None or not getattr(level, capability):
                return False
        return True


def _find_level(levels: list[TrustLevel], level_id: str) -> TrustLevel | None:
    # First match wins; id uniqueness is checked by the contract linters
    for level in levels:
        if level.id == level_id:
            return level
    return None


def authorize(
    store: ContractStore,
    actor: str,
    trust_level_id: str,
    adapter_name: str,
) -> AuthorizationDecision:
    """Authorize an actor for an adapter against a contract store."""
    return TrustAuthorizer(store).authorize(actor, trust_level_id, adapter_name)
