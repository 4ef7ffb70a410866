"""External collaborators of the decoration layer.

Provides:
- ``PolicyStore``: enumerates the policy identifiers that exist.
- ``PermissionBackend``: answers batched "can invoke" queries.
- ``StaticPolicyStore``: in-memory policy store.
- ``RedisPolicyStore``: policy ids kept as keys in the shared Redis.

Redis layout: one key per policy id, ``{namespace}:{policy_id}``. The key's
value is owned by whoever evaluates permissions; only its existence matters
here.
"""

from __future__ import annotations

import fnmatch
import logging
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..config import DEFAULT_POLICY_NAMESPACE, RbacConfig, load_config_from_env
from ..exceptions import BackendUnavailable

logger = logging.getLogger(__name__)


@runtime_checkable
class PolicyStore(Protocol):
    def list_policy_ids(self, pattern: str) -> Iterable[str]:
        """Return existing policy ids matching a glob ``pattern`` (e.g. ``acl*``)."""
        ...


@runtime_checkable
class PermissionBackend(Protocol):
    def can_invoke(self, query: Mapping[str, Sequence[str]]) -> Iterable[Any]:
        """Evaluate a batch of permission checks.

        ``query`` maps an entity identifier to operation signatures; an
        empty list asks about the entity as a whole. Each returned row is a
        mapping (or :class:`PermissionRow`) with ``ObjectName``, optional
        ``Method`` and optional ``CanInvoke``.
        """
        ...


class StaticPolicyStore:
    """Policy store over a fixed collection of policy ids."""

    def __init__(self, policy_ids: Iterable[str] = ()) -> None:
        self._policy_ids = frozenset(policy_ids)

    def list_policy_ids(self, pattern: str) -> set[str]:
        return {pid for pid in self._policy_ids if fnmatch.fnmatchcase(pid, pattern)}

    def __repr__(self) -> str:
        return f"StaticPolicyStore(policies={len(self._policy_ids)})"


class RedisPolicyStore:
    """Policy store backed by keys in Redis.

    Args:
        redis_url: Redis URL (defaults to REDIS_URL via :func:`load_config_from_env`)
        namespace: Key namespace (defaults to the configured ``policy_namespace``)
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        namespace: Optional[str] = None,
        config: Optional[RbacConfig] = None,
    ) -> None:
        if config is None and (redis_url is None or namespace is None):
            config = load_config_from_env()
        self.redis_url = redis_url or (config.redis_url if config else None)
        self.namespace = namespace or (config.policy_namespace if config else DEFAULT_POLICY_NAMESPACE)

    def list_policy_ids(self, pattern: str) -> set[str]:
        try:
            import redis as redis_sync
        except ImportError as e:
            raise BackendUnavailable("redis is not installed: policy store unavailable") from e

        if not self.redis_url:
            raise BackendUnavailable("REDIS_URL not set: policy store unavailable")

        prefix = f"{self.namespace}:"
        r = redis_sync.from_url(self.redis_url, decode_responses=True)
        try:
            keys = r.scan_iter(match=f"{prefix}{pattern}")
            policy_ids = {key[len(prefix):] for key in keys}
        except Exception as e:
            raise BackendUnavailable(f"Policy store query failed: {e}", pattern=pattern) from e
        finally:
            r.close()

        logger.debug("Listed %d policy ids matching %s", len(policy_ids), pattern)
        return policy_ids

    def __repr__(self) -> str:
        return f"RedisPolicyStore(namespace={self.namespace!r})"


__all__ = [
    "PermissionBackend",
    "PolicyStore",
    "RedisPolicyStore",
    "StaticPolicyStore",
]
