"""Fixed-size grouping keys for resolved policy chains."""

from __future__ import annotations

import hashlib
from typing import Sequence

from ..config import DEFAULT_DIGEST_ALGORITHM
from ..exceptions import DigestUnavailable


class ChainDigest:
    """Folds a resolved chain into a hex digest used as a grouping key.

    Non-empty chain elements are fed to the hash in chain order. The key is
    not a security boundary; it only needs to be deterministic.
    """

    __slots__ = ("algorithm",)

    def __init__(self, algorithm: str = DEFAULT_DIGEST_ALGORITHM) -> None:
        self.algorithm = algorithm
        self._new()  # fail fast on an unknown algorithm

    def _new(self):
        try:
            return hashlib.new(self.algorithm, usedforsecurity=False)
        except (ValueError, TypeError) as e:
            raise DigestUnavailable(
                f"Hash algorithm {self.algorithm!r} is not available: {e}",
                algorithm=self.algorithm,
            ) from e

    def key(self, chain: Sequence[str]) -> str:
        md = self._new()
        for policy_id in chain:
            if policy_id:
                md.update(policy_id.encode("utf-8"))
        # Variable-length digests (shake_*) need an explicit size
        if self.algorithm.startswith("shake_"):
            return md.hexdigest(16)
        return md.hexdigest()

    def __repr__(self) -> str:
        return f"ChainDigest(algorithm={self.algorithm!r})"


def chain_key(chain: Sequence[str], algorithm: str = DEFAULT_DIGEST_ALGORITHM) -> str:
    """Compute the grouping key of a resolved chain."""
    return ChainDigest(algorithm).key(chain)


__all__ = [
    "ChainDigest",
    "chain_key",
]
