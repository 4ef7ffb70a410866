"""Permission decoration for entity listings.

Defines:
- EntityId / name_segments: hierarchical identifiers and their segments
- PolicyChainResolver: most-specific-first policy chains with wildcards
- ChainDigest: grouping keys for resolved chains
- PermissionBatcher: batched queries against the permission backend
- DecorationOrchestrator / decorate(): the listing walk itself
"""

from .backends import (
    PermissionBackend,
    PolicyStore,
    RedisPolicyStore,
    StaticPolicyStore,
)
from .batcher import PermissionBatcher, PermissionRow
from .digest import ChainDigest, chain_key
from .naming import EntityId, name_segments, operation_signatures
from .orchestrator import CAN_INVOKE, OP_BY_STRING, DecorationOrchestrator, decorate
from .policy import (
    PolicyChainResolver,
    compare_specificity,
    may_share_policy,
    most_specific,
    policy_candidates,
    resolve_policy,
    resolved_chain,
)

__all__ = [
    "CAN_INVOKE",
    "OP_BY_STRING",
    "ChainDigest",
    "DecorationOrchestrator",
    "EntityId",
    "PermissionBackend",
    "PermissionBatcher",
    "PermissionRow",
    "PolicyChainResolver",
    "PolicyStore",
    "RedisPolicyStore",
    "StaticPolicyStore",
    "chain_key",
    "compare_specificity",
    "decorate",
    "may_share_policy",
    "most_specific",
    "name_segments",
    "operation_signatures",
    "policy_candidates",
    "resolve_policy",
    "resolved_chain",
]
