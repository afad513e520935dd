"""Type definitions for Org block header completion."""

from __future__ import annotations

from enum import Enum

from typing import NamedTuple

from orglsp.org.types import BlockKind


class _StrEnum(str, Enum):
    """String-valued enum that behaves like str at runtime."""

    def __str__(self) -> str:
        return str(self.value)


class Phase(_StrEnum):
    """What kind of token the cursor is completing."""

    BLOCK_TYPE = "block_type"
    PARAMETER_KEY = "parameter_key"
    PARAMETER_VALUE = "parameter_value"


class Provenance(_StrEnum):
    """Which extraction tier produced a candidate."""

    NATIVE = "native"
    SOURCE = "source"
    DOC = "doc"
    COMMON = "common"
    BLOCK_TYPE = "blockType"


class TokenSpan(NamedTuple):
    """A token with its position in the line."""

    text: str
    start: int  # Start offset in line
    end: int  # End offset in line (exclusive)


class BlockDescriptor(NamedTuple):
    """Block kind and name read from a header line."""

    kind: BlockKind
    name: str  # Empty when only the opening marker is typed


class ClassificationResult(NamedTuple):
    """Completion context for a cursor on a header line."""

    phase: Phase
    block: BlockDescriptor
    name_span: TokenSpan  # Block name token (empty span after the marker)
    key: str | None = None  # Parameter key, value phase only
    prefix: str = ""  # Text of the current token before the cursor


__all__ = [
    "BlockDescriptor",
    "BlockKind",
    "ClassificationResult",
    "Phase",
    "Provenance",
    "TokenSpan",
]
