"""Value-type descriptors for block header parameters.

A descriptor is what a schema table says about a parameter key: either a
single symbolic type (``dir``), a set of alternatives (``(yes no)``), or the
wildcard ``:any`` that admits anything and therefore suggests nothing.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple, TypeAlias

WILDCARD_SYMBOL = ":any"


class _StrEnum(str, Enum):
    """String-valued enum that behaves like str at runtime."""

    def __str__(self) -> str:
        return str(self.value)


class BlockKind(_StrEnum):
    """Kind of block a header line introduces."""

    TYPED = "typed"  # #+begin_src <language>
    DYNAMIC = "dynamic"  # #+begin: <writer>


class DescriptorKind(_StrEnum):
    """Tag of a TypeDescriptor."""

    ATOMIC = "atomic"
    ENUMERATION = "enumeration"
    WILDCARD = "wildcard"


class TypeDescriptor(NamedTuple):
    """Tagged value type of a parameter key."""

    kind: DescriptorKind
    name: str = ""  # Symbol name for atomic descriptors
    alternatives: tuple[TypeDescriptor, ...] = ()  # Enumeration members


SchemaTable: TypeAlias = dict[str, TypeDescriptor]

ANY = TypeDescriptor(kind=DescriptorKind.WILDCARD)


def atomic(name: str) -> TypeDescriptor:
    """Build an atomic descriptor, mapping ``:any`` to the wildcard."""
    if name == WILDCARD_SYMBOL:
        return ANY
    return TypeDescriptor(kind=DescriptorKind.ATOMIC, name=name)


def enumeration(*alternatives: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(kind=DescriptorKind.ENUMERATION, alternatives=alternatives)


def parse_type_descriptor(value: object) -> TypeDescriptor:
    """
    Convert raw schema data into a TypeDescriptor.

    Accepts the shapes found in YAML knowledge files and Emacs Lisp header
    argument tables:

    - ``":any"`` or ``None`` -> wildcard
    - any other string or scalar -> atomic
    - a list (possibly nested, e.g. Org's exclusive groups
      ``[[file, list], [raw, html]]``) -> enumeration

    Args:
        value: Raw value from a loaded table.

    Returns:
        The parsed descriptor. Unknown shapes degrade to the wildcard.
    """
    if value is None:
        return ANY
    if isinstance(value, bool):
        return atomic("yes" if value else "no")
    if isinstance(value, (str, int, float)):
        return atomic(str(value))
    if isinstance(value, (list, tuple)):
        return enumeration(*(parse_type_descriptor(item) for item in value))
    return ANY


def expand(descriptor: TypeDescriptor) -> list[str]:
    """
    Expand a descriptor into concrete completion strings.

    Args:
        descriptor: The descriptor to expand.

    Returns:
        Literal values in first-appearance order. The wildcard, and any
        enumeration made only of wildcards, expands to an empty list.
    """
    if descriptor.kind == DescriptorKind.WILDCARD:
        return []
    if descriptor.kind == DescriptorKind.ATOMIC:
        return [descriptor.name] if descriptor.name else []

    values: list[str] = []
    for alternative in descriptor.alternatives:
        for value in expand(alternative):
            if value not in values:
                values.append(value)
    return values


def render_type(descriptor: TypeDescriptor) -> str:
    """Human-readable rendering used in documentation."""
    if descriptor.kind == DescriptorKind.WILDCARD:
        return "any value"
    if descriptor.kind == DescriptorKind.ATOMIC:
        return descriptor.name

    parts = [
        render_type(alternative)
        for alternative in descriptor.alternatives
        if alternative.kind != DescriptorKind.WILDCARD
    ]
    if len(parts) < len(descriptor.alternatives):
        parts.append("any value")
    if not parts:
        return "any value"

    # Nested enumerations are Org's mutually exclusive groups
    nested = any(
        alternative.kind == DescriptorKind.ENUMERATION
        for alternative in descriptor.alternatives
    )
    return ("; " if nested else " | ").join(parts)
