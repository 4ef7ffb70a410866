from .config import LogLevel, RbacConfig, load_config_from_env
from .decoration import (
    CAN_INVOKE,
    OP_BY_STRING,
    ChainDigest,
    DecorationOrchestrator,
    EntityId,
    PermissionBackend,
    PermissionBatcher,
    PermissionRow,
    PolicyChainResolver,
    PolicyStore,
    RedisPolicyStore,
    StaticPolicyStore,
    chain_key,
    compare_specificity,
    decorate,
    may_share_policy,
    most_specific,
    name_segments,
    operation_signatures,
    policy_candidates,
    resolve_policy,
    resolved_chain,
)
from .exceptions import (
    BackendUnavailable,
    ConfigurationError,
    DigestUnavailable,
    MalformedIdentifier,
    MalformedListing,
    RbacError,
)
from .logging import RbacFormatter, safe_preview, setup_logging

__all__ = [
    'CAN_INVOKE',
    'OP_BY_STRING',
    'BackendUnavailable',
    'ChainDigest',
    'ConfigurationError',
    'DecorationOrchestrator',
    'DigestUnavailable',
    'EntityId',
    'LogLevel',
    'MalformedIdentifier',
    'MalformedListing',
    'PermissionBackend',
    'PermissionBatcher',
    'PermissionRow',
    'PolicyChainResolver',
    'PolicyStore',
    'RbacConfig',
    'RbacError',
    'RbacFormatter',
    'RedisPolicyStore',
    'StaticPolicyStore',
    'chain_key',
    'compare_specificity',
    'decorate',
    'load_config_from_env',
    'may_share_policy',
    'most_specific',
    'name_segments',
    'operation_signatures',
    'policy_candidates',
    'resolve_policy',
    'resolved_chain',
    'safe_preview',
    'setup_logging',
]
