"""Hierarchical entity identifiers and their naming segments.

Provides:
- ``EntityId``: parsed ``domain:key=value,...`` identifier (immutable).
- ``name_segments()``: ordered segments used to build policy candidates.
- ``operation_signatures()``: ``name(type,...)`` strings for a description.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..exceptions import MalformedIdentifier

TYPE_PROPERTY = "type"

_PATTERN_CHARS = frozenset("*?")
# Not allowed in keys or unquoted values
_RESERVED_CHARS = _PATTERN_CHARS | frozenset('=:"')


def _split_properties(text: str, name: str) -> list[str]:
    """Split a property list on commas that are not inside a quoted value."""
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    escaped = False
    for ch in text:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if in_quotes and ch == "\\":
            current.append(ch)
            escaped = True
            continue
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    if in_quotes:
        raise MalformedIdentifier(f"Unterminated quoted value in {name!r}", identifier=name)
    parts.append("".join(current))
    return parts


@dataclass(frozen=True)
class EntityId:
    """Entity identifier: a domain plus ordered, uniquely keyed properties.

    Values are kept verbatim (quoted values keep their quotes), so
    ``str(entity_id)`` reproduces the identifier exactly as it was parsed.
    """

    domain: str
    properties: tuple[tuple[str, str], ...]

    @classmethod
    def parse(cls, name: str) -> EntityId:
        """Parse ``domain:key=value[,key=value...]``.

        Raises:
            MalformedIdentifier: if the identifier has no domain separator,
                no properties, a malformed or duplicate property, an empty
                value, or reserved characters (`*?=:"`) outside quotes.
        """
        if not isinstance(name, str) or ":" not in name:
            raise MalformedIdentifier(f"Missing domain separator in {name!r}", identifier=name)

        domain, _, property_list = name.partition(":")
        if _PATTERN_CHARS & set(domain):
            raise MalformedIdentifier(f"Pattern characters in domain of {name!r}", identifier=name)
        if not property_list:
            raise MalformedIdentifier(f"Empty property list in {name!r}", identifier=name)

        properties: list[tuple[str, str]] = []
        seen: set[str] = set()
        for pair in _split_properties(property_list, name):
            key, sep, value = pair.partition("=")
            if not sep or not key or not value or _RESERVED_CHARS & set(key):
                raise MalformedIdentifier(f"Malformed property {pair!r} in {name!r}", identifier=name)
            if key in seen:
                raise MalformedIdentifier(f"Duplicate property {key!r} in {name!r}", identifier=name)
            if value.startswith('"'):
                if len(value) < 2 or not value.endswith('"'):
                    raise MalformedIdentifier(f"Malformed quoted value for {key!r} in {name!r}", identifier=name)
            elif _RESERVED_CHARS & set(value):
                raise MalformedIdentifier(f"Reserved characters in property {key!r} of {name!r}", identifier=name)
            seen.add(key)
            properties.append((key, value))

        return cls(domain=domain, properties=tuple(properties))

    @property
    def key_property_list(self) -> str:
        return ",".join(f"{key}={value}" for key, value in self.properties)

    def get(self, key: str) -> str | None:
        for k, v in self.properties:
            if k == key:
                return v
        return None

    def __str__(self) -> str:
        return f"{self.domain}:{self.key_property_list}"


def name_segments(entity: EntityId) -> list[str]:
    """Split an entity identifier into the segments policies are keyed on.

    Segment 0 is the domain, segment 1 the ``type`` property (when present),
    then the remaining property values in their original order::

        name_segments(EntityId.parse("org.foo:name=X,type=Bar"))
        # ['org.foo', 'Bar', 'X']
    """
    segments = [entity.domain]
    for key, value in entity.properties:
        if key == TYPE_PROPERTY:
            segments.insert(1, value)
        else:
            segments.append(value)
    return segments


def operation_signatures(operations: Mapping[str, Any] | None) -> list[str]:
    """Flatten a description's ``op`` mapping into invocation signatures.

    Each operation maps to one operation dict or a list of overloads; each
    overload yields ``name(type1,type2,...)``, or ``name()`` without args.
    """
    signatures: list[str] = []
    for name, operation in (operations or {}).items():
        overloads = operation if isinstance(operation, list) else [operation]
        for overload in overloads:
            args = (overload or {}).get("args") or []
            signatures.append(f"{name}({','.join(str(arg.get('type')) for arg in args)})")
    return signatures


__all__ = [
    "TYPE_PROPERTY",
    "EntityId",
    "name_segments",
    "operation_signatures",
]
