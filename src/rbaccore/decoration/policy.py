"""Policy chain resolution with wildcard-aware specificity ranking.

Provides:
- ``compare_specificity()`` / ``most_specific()``: ranking of policy ids
  split into components; a concrete component outranks the wildcard.
- ``policy_candidates()``: most-specific-first policy ids for segments.
- ``PolicyChainResolver``: resolves candidates against existing policies.
- ``resolve_policy()``, ``resolved_chain()``, ``may_share_policy()``:
  one-shot helpers over a plain collection of policy ids.

Example: with policies ``{"acl", "acl.org.foo"}`` the entity
``org.foo:type=Bar,name=X`` has candidates::

    acl.org.foo.Bar.X, acl.org.foo.Bar, acl.org.foo, acl

and resolves to the chain ``("", "", "acl.org.foo", "acl")``.
"""

from __future__ import annotations

from collections import defaultdict
from functools import cmp_to_key
from typing import Iterable, Sequence

from ..config import DEFAULT_POLICY_PREFIX, DEFAULT_WILDCARD
from .naming import EntityId, name_segments

SEPARATOR = "."


# ── Wildcard ranking ────────────────────────────────────


def compare_specificity(
    a: Sequence[str],
    b: Sequence[str],
    wildcard: str = DEFAULT_WILDCARD,
) -> int:
    """Order two component arrays, most specific first.

    Scans left to right; the first differing position decides. A concrete
    value sorts before the wildcard, two concrete values sort by string
    order. Returns a negative number when ``a`` is more specific.
    """
    if len(a) != len(b):
        # Never compared in practice: only same-length ids can match
        return len(a) - len(b)
    for x, y in zip(a, b):
        if x == y:
            continue
        if x == wildcard:
            return 1
        if y == wildcard:
            return -1
        return -1 if x < y else 1
    return 0


def most_specific(
    matches: Iterable[Sequence[str]],
    wildcard: str = DEFAULT_WILDCARD,
) -> Sequence[str] | None:
    """Pick the top-ranked component array, or None if there are none."""
    ranked = sorted(matches, key=cmp_to_key(lambda a, b: compare_specificity(a, b, wildcard)))
    return ranked[0] if ranked else None


# ── Candidate chains ────────────────────────────────────


def policy_candidates(segments: Sequence[str], prefix: str = DEFAULT_POLICY_PREFIX) -> list[str]:
    """Build policy ids for ``segments`` from most specific down to ``prefix``.

    ``n`` segments give ``n + 1`` candidates; the last one is always the
    bare prefix (the global default policy).
    """
    return [SEPARATOR.join([prefix, *segments[:i]]) for i in range(len(segments), 0, -1)] + [prefix]


class PolicyChainResolver:
    """Resolves policy candidates against the set of existing policy ids.

    Existing ids are split once and indexed by component count, since ids
    of different lengths never match each other.

    Args:
        policy_ids: Policy identifiers that currently exist.
        prefix: Root of every policy id.
        wildcard: Component matching any concrete value.
    """

    __slots__ = ("prefix", "wildcard", "_by_length")

    def __init__(
        self,
        policy_ids: Iterable[str],
        *,
        prefix: str = DEFAULT_POLICY_PREFIX,
        wildcard: str = DEFAULT_WILDCARD,
    ) -> None:
        self.prefix = prefix
        self.wildcard = wildcard
        self._by_length: dict[int, list[tuple[str, ...]]] = defaultdict(list)
        for policy_id in set(policy_ids):
            components = tuple(policy_id.split(SEPARATOR))
            self._by_length[len(components)].append(components)

    def candidates(self, segments: Sequence[str]) -> list[str]:
        return policy_candidates(segments, self.prefix)

    def _matches(self, policy: Sequence[str], candidate: Sequence[str]) -> bool:
        return all(p == self.wildcard or p == c for p, c in zip(policy, candidate))

    def resolve(self, candidate: str) -> str:
        """Return the best existing policy id for ``candidate``, or ``""``.

        A policy matches when every component equals the candidate's or is
        the wildcard; among matches the most specific one wins.
        """
        components = candidate.split(SEPARATOR)
        matches = [p for p in self._by_length.get(len(components), ()) if self._matches(p, components)]
        best = most_specific(matches, self.wildcard)
        return SEPARATOR.join(best) if best is not None else ""

    def resolved_chain(self, entity: EntityId) -> tuple[str, ...]:
        """Resolve every candidate of ``entity``, most specific first."""
        return tuple(self.resolve(candidate) for candidate in self.candidates(name_segments(entity)))

    def __repr__(self) -> str:
        count = sum(len(ids) for ids in self._by_length.values())
        return f"PolicyChainResolver(prefix={self.prefix!r}, wildcard={self.wildcard!r}, policies={count})"


# ── One-shot helpers ────────────────────────────────────


def resolve_policy(
    policy_ids: Iterable[str],
    candidate: str,
    *,
    wildcard: str = DEFAULT_WILDCARD,
) -> str:
    """Resolve a single candidate against ``policy_ids``."""
    return PolicyChainResolver(policy_ids, wildcard=wildcard).resolve(candidate)


def resolved_chain(
    policy_ids: Iterable[str],
    entity: EntityId,
    *,
    prefix: str = DEFAULT_POLICY_PREFIX,
    wildcard: str = DEFAULT_WILDCARD,
) -> tuple[str, ...]:
    """Resolve the full candidate chain of ``entity`` against ``policy_ids``."""
    return PolicyChainResolver(policy_ids, prefix=prefix, wildcard=wildcard).resolved_chain(entity)


def may_share_policy(
    policy_ids: Iterable[str],
    a: EntityId | None,
    b: EntityId | None,
    *,
    prefix: str = DEFAULT_POLICY_PREFIX,
    wildcard: str = DEFAULT_WILDCARD,
) -> bool:
    """Check whether two entities are governed by the same policy chain.

    Entities with equal resolved chains get identical answers from the
    permission backend, so they can share one decorated description.
    """
    if a is None or b is None:
        return False
    resolver = PolicyChainResolver(policy_ids, prefix=prefix, wildcard=wildcard)
    return resolver.resolved_chain(a) == resolver.resolved_chain(b)


__all__ = [
    "PolicyChainResolver",
    "compare_specificity",
    "may_share_policy",
    "most_specific",
    "policy_candidates",
    "resolve_policy",
    "resolved_chain",
]
