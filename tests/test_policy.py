"""Tests for policy candidates, wildcard ranking and chain resolution."""

from __future__ import annotations

import pytest

from rbaccore import (
    EntityId,
    PolicyChainResolver,
    compare_specificity,
    may_share_policy,
    most_specific,
    name_segments,
    policy_candidates,
    resolve_policy,
    resolved_chain,
)


class TestPolicyCandidates:
    """Tests for policy_candidates."""

    def test_example_chain(self) -> None:
        """Candidates run from most specific down to the prefix."""
        segments = name_segments(EntityId.parse("org.foo:type=Bar,name=X"))
        assert policy_candidates(segments) == [
            "acl.org.foo.Bar.X",
            "acl.org.foo.Bar",
            "acl.org.foo",
            "acl",
        ]

    @pytest.mark.parametrize("count", [1, 2, 3, 6])
    def test_length_and_decreasing_specificity(self, count: int) -> None:
        """n segments give n + 1 candidates, each shorter than the last."""
        segments = [f"s{i}" for i in range(count)]
        chain = policy_candidates(segments)
        assert len(chain) == count + 1
        assert chain[-1] == "acl"
        lengths = [len(c.split(".")) for c in chain]
        assert lengths == sorted(lengths, reverse=True)
        assert len(set(lengths)) == len(lengths)

    def test_custom_prefix(self) -> None:
        """A custom prefix roots every candidate."""
        assert policy_candidates(["d", "T"], prefix="jmx.acl") == ["jmx.acl.d.T", "jmx.acl.d", "jmx.acl"]


class TestCompareSpecificity:
    """Tests for compare_specificity and most_specific."""

    def test_concrete_before_wildcard(self) -> None:
        """A concrete component sorts before the wildcard."""
        assert compare_specificity(["acl", "foo"], ["acl", "_"]) < 0
        assert compare_specificity(["acl", "_"], ["acl", "foo"]) > 0

    def test_leftmost_difference_decides(self) -> None:
        """A concrete first segment beats a concrete later segment."""
        assert compare_specificity(["acl", "foo", "_"], ["acl", "_", "bar"]) < 0

    def test_equal_arrays(self) -> None:
        """Equal arrays compare equal."""
        assert compare_specificity(["acl", "_"], ["acl", "_"]) == 0

    def test_custom_wildcard(self) -> None:
        """The wildcard marker is configurable."""
        assert compare_specificity(["acl", "foo"], ["acl", "*"], wildcard="*") < 0

    def test_most_specific(self) -> None:
        """most_specific picks the top-ranked array."""
        matches = [("acl", "_", "_"), ("acl", "foo", "_"), ("acl", "_", "bar")]
        assert most_specific(matches) == ("acl", "foo", "_")

    def test_most_specific_empty(self) -> None:
        """most_specific of nothing is None."""
        assert most_specific([]) is None


class TestResolvePolicy:
    """Tests for PolicyChainResolver.resolve."""

    def test_concrete_outranks_wildcard(self) -> None:
        """A concrete policy beats a wildcard one."""
        assert resolve_policy({"acl.foo.bar", "acl.foo._"}, "acl.foo.bar") == "acl.foo.bar"

    def test_wildcard_matches_any_value(self) -> None:
        """A wildcard matches any concrete value."""
        assert resolve_policy({"acl.foo._"}, "acl.foo.baz") == "acl.foo._"

    def test_leftmost_concrete_wins(self) -> None:
        """The leftmost concrete component decides."""
        assert resolve_policy({"acl._.bar", "acl.foo._"}, "acl.foo.bar") == "acl.foo._"

    def test_different_component_counts_never_match(self) -> None:
        """Ids of a different length never match."""
        assert resolve_policy({"acl.foo", "acl.foo.bar.baz"}, "acl.foo.bar") == ""

    def test_no_match(self) -> None:
        """No match resolves to an empty string."""
        assert resolve_policy({"acl.other"}, "acl.foo") == ""

    def test_independent_of_input_order(self) -> None:
        """The result does not depend on policy order."""
        ids = ["acl.foo._", "acl._.bar", "acl.foo.bar", "acl._._"]
        expected = resolve_policy(ids, "acl.foo.bar")
        assert resolve_policy(list(reversed(ids)), "acl.foo.bar") == expected
        assert resolve_policy(sorted(ids), "acl.foo.bar") == expected
        assert expected == "acl.foo.bar"


class TestResolvedChain:
    """Tests for resolved chains and policy equivalence."""

    def test_example_scenario(self) -> None:
        """The documented example chain resolves as expected."""
        entity = EntityId.parse("org.foo:type=Bar,name=X")
        assert resolved_chain({"acl", "acl.org.foo"}, entity) == ("", "", "acl.org.foo", "acl")

    def test_wildcard_in_chain(self) -> None:
        """Wildcard policies appear in the resolved chain."""
        entity = EntityId.parse("org.foo:type=Bar,name=X")
        chain = resolved_chain({"acl", "acl.org.foo.Bar._"}, entity)
        assert chain == ("acl.org.foo.Bar._", "", "", "acl")

    def test_resolver_reuses_index(self) -> None:
        """One resolver serves many entities."""
        resolver = PolicyChainResolver(["acl", "acl.org.foo"])
        a = resolver.resolved_chain(EntityId.parse("org.foo:type=A"))
        b = resolver.resolved_chain(EntityId.parse("org.foo:type=B"))
        assert a == b == ("", "acl.org.foo", "acl")

    def test_custom_prefix_and_wildcard(self) -> None:
        """Prefix and wildcard are configurable."""
        resolver = PolicyChainResolver({"jmx.acl", "jmx.acl.d.*"}, prefix="jmx.acl", wildcard="*")
        assert resolver.resolved_chain(EntityId.parse("d:type=T")) == ("jmx.acl.d.*", "", "jmx.acl")

    def test_may_share_reflexive(self) -> None:
        """An entity may share with itself."""
        entity = EntityId.parse("org.foo:type=Bar,name=X")
        assert may_share_policy({"acl"}, entity, entity) is True

    def test_may_share_symmetric(self) -> None:
        """Sharing is symmetric."""
        policies = {"acl", "acl.org.foo.Bar"}
        a = EntityId.parse("org.foo:type=Bar,name=X")
        b = EntityId.parse("org.foo:type=Bar,name=Y")
        c = EntityId.parse("org.foo:type=Baz,name=X")
        assert may_share_policy(policies, a, b) is True
        assert may_share_policy(policies, b, a) is True
        assert may_share_policy(policies, a, c) is False
        assert may_share_policy(policies, c, a) is False

    def test_may_share_chain_lengths_differ(self) -> None:
        """Chains of different length never share."""
        a = EntityId.parse("d:type=T")
        b = EntityId.parse("d:type=T,name=N")
        assert may_share_policy({"acl"}, a, b) is False

    def test_may_share_none(self) -> None:
        """A missing entity never shares."""
        entity = EntityId.parse("d:type=T")
        assert may_share_policy({"acl"}, entity, None) is False
        assert may_share_policy({"acl"}, None, entity) is False
