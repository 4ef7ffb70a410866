"""Decorates an entity listing with ``canInvoke`` permission flags.

Every entity and every operation signature in the listing is marked with
whether the current principal may invoke it. Entities that share a
structural description and resolve to the same policy chain get the same
answers from the permission backend, so they share one decorated
description and only the first of them is queried.

Listing shape::

    {
        "domains": {"org.foo": {"type=Bar,name=X": {...} | "<cache key>"}},
        "cache": {"<cache key>": {"op": {...}, "attr": {...}, ...}},
    }

Decoration is best-effort: on any failure the input listing is returned
as-is and the failure is logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..config import RbacConfig
from ..exceptions import BackendUnavailable, MalformedListing, RbacError
from ..logging import safe_preview
from .backends import PermissionBackend, PolicyStore
from .batcher import PermissionBatcher
from .digest import ChainDigest
from .naming import EntityId, operation_signatures
from .policy import PolicyChainResolver

logger = logging.getLogger(__name__)

CAN_INVOKE = "canInvoke"
OP_BY_STRING = "opByString"


def _decorated_copy(description: Mapping[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Shallow-copy a description and give it fresh per-signature entries."""
    signatures = operation_signatures(description.get("op"))
    decorated = dict(description)
    decorated[CAN_INVOKE] = False
    decorated[OP_BY_STRING] = {signature: {CAN_INVOKE: False} for signature in signatures}
    return decorated, signatures


@dataclass
class _Run:
    """Working state of one decoration call, discarded afterwards."""

    resolver: PolicyChainResolver
    digest: ChainDigest
    source_cache: Mapping[str, Any]
    verify_chains: bool
    domains: dict[str, dict[str, Any]] = field(default_factory=dict)
    cache: dict[str, dict[str, Any]] = field(default_factory=dict)
    group_chains: dict[str, tuple[str, ...]] = field(default_factory=dict)
    chain_groups: dict[tuple[str, tuple[str, ...]], str] = field(default_factory=dict)
    targets: dict[EntityId, dict[str, Any]] = field(default_factory=dict)
    entity_query: dict[EntityId, list[str]] = field(default_factory=dict)
    operation_query: dict[EntityId, list[str]] = field(default_factory=dict)
    shared: int = 0

    def schedule(self, entity: EntityId, description: Mapping[str, Any]) -> dict[str, Any]:
        """Create the decorated copy ``entity`` answers for and queue its queries."""
        decorated, signatures = _decorated_copy(description)
        self.targets[entity] = decorated
        self.entity_query[entity] = []
        if signatures:
            self.operation_query[entity] = signatures
        return decorated

    def shared_description(self, key: str) -> Mapping[str, Any]:
        try:
            description = self.source_cache[key]
        except KeyError:
            raise MalformedListing(f"Shared description {key!r} missing from cache", cache_key=key) from None
        if not isinstance(description, Mapping):
            raise MalformedListing(f"Shared description {key!r} is not a mapping", cache_key=key)
        return description

    def add(self, domain: str, name: str, value: Any) -> Any:
        """Return what the output listing holds for ``domain:name``."""
        entity = EntityId.parse(f"{domain}:{name}")

        if isinstance(value, Mapping):
            # Private description: nothing to share
            return self.schedule(entity, value)

        key = str(value)
        chain = self.resolver.resolved_chain(entity)
        group = self.group_for(key, chain)
        if group is not None:
            self.shared += 1
            return group

        group = base = f"{key}:{self.digest.key(chain)}"
        if self.verify_chains:
            n = 0
            while group in self.group_chains:
                n += 1
                group = f"{base}:{n}"
            if n:
                logger.warning(
                    "Policy chain digest collision for %s (group %s); using group %s",
                    entity,
                    base,
                    group,
                    extra={"chain": chain, "group_chain": self.group_chains[base]},
                )
            self.chain_groups[(key, chain)] = group

        self.group_chains[group] = chain
        self.cache[group] = self.schedule(entity, self.shared_description(key))
        return group

    def group_for(self, key: str, chain: tuple[str, ...]) -> str | None:
        """Return the existing group ``key`` entities with ``chain`` share, if any."""
        if self.verify_chains:
            return self.chain_groups.get((key, chain))
        group = f"{key}:{self.digest.key(chain)}"
        return group if group in self.group_chains else None


class DecorationOrchestrator:
    """Walks a listing, groups policy-equivalent entities, and writes back flags.

    Args:
        policy_store: Source of existing policy ids.
        permission_backend: Batched permission-check service.
        config: Policy syntax and digest settings (defaults to ``RbacConfig()``).
    """

    def __init__(
        self,
        policy_store: Optional[PolicyStore],
        permission_backend: Optional[PermissionBackend],
        config: Optional[RbacConfig] = None,
    ) -> None:
        self._policy_store = policy_store
        self._batcher = PermissionBatcher(permission_backend)
        self._config = config or RbacConfig()

    @property
    def config(self) -> RbacConfig:
        return self._config

    def decorate(self, listing: Mapping[str, Any]) -> Mapping[str, Any]:
        """Return a decorated copy of ``listing``, or ``listing`` itself on failure.

        The input is never modified.
        """
        try:
            return self._decorate(listing)
        except RbacError as e:
            logger.error(
                "Permission decoration skipped: [%s] %s",
                e.code,
                e.message,
                extra={"error_code": e.code, "error_details": e.details},
            )
        except Exception as e:
            logger.exception("Permission decoration skipped, unexpected error: %s", e)
        return listing

    def _policy_ids(self) -> set[str]:
        if self._policy_store is None:
            raise BackendUnavailable("No policy store configured")
        pattern = f"{self._config.policy_prefix}*"
        try:
            return set(self._policy_store.list_policy_ids(pattern))
        except RbacError:
            raise
        except Exception as e:
            raise BackendUnavailable(f"Policy store query failed: {e}", pattern=pattern) from e

    def _decorate(self, listing: Mapping[str, Any]) -> Mapping[str, Any]:
        policy_ids = self._policy_ids()
        if not policy_ids:
            logger.debug("No %s* policies defined; listing left undecorated", self._config.policy_prefix)
            return listing

        run = _Run(
            resolver=PolicyChainResolver(
                policy_ids,
                prefix=self._config.policy_prefix,
                wildcard=self._config.wildcard,
            ),
            digest=ChainDigest(self._config.digest_algorithm),
            source_cache=listing.get("cache") or {},
            verify_chains=self._config.verify_shared_chains,
        )

        for domain, entities in (listing.get("domains") or {}).items():
            if not isinstance(entities, Mapping):
                raise MalformedListing(
                    f"Domain {domain!r} does not map names to descriptions",
                    domain=domain,
                    value=safe_preview(entities, limit=80),
                )
            run.domains[domain] = {name: run.add(domain, name, value) for name, value in entities.items()}

        entity_results = self._batcher.check_entities(run.entity_query)
        operation_results = self._batcher.check_operations(run.operation_query)

        for entity, allowed in entity_results.items():
            run.targets[entity][CAN_INVOKE] = allowed
        for (entity, signature), allowed in operation_results.items():
            run.targets[entity][OP_BY_STRING][signature][CAN_INVOKE] = allowed

        logger.debug(
            "Decorated %d descriptions (%d shared groups, %d entities reusing a group)",
            len(run.targets),
            len(run.cache),
            run.shared,
            extra={
                "entity_queries": len(run.entity_query),
                "operation_queries": len(run.operation_query),
            },
        )

        decorated = dict(listing)
        decorated["domains"] = run.domains
        decorated["cache"] = run.cache
        return decorated


def decorate(
    listing: Mapping[str, Any],
    policy_store: Optional[PolicyStore],
    permission_backend: Optional[PermissionBackend],
    config: Optional[RbacConfig] = None,
) -> Mapping[str, Any]:
    """Decorate ``listing`` once; see :meth:`DecorationOrchestrator.decorate`."""
    return DecorationOrchestrator(policy_store, permission_backend, config).decorate(listing)


__all__ = [
    "CAN_INVOKE",
    "OP_BY_STRING",
    "DecorationOrchestrator",
    "decorate",
]
