"""Naming conventions linking Org blocks to their handlers and schemas.

Org looks handlers and header argument tables up by name: the block name is
appended to a fixed prefix. These constants enumerate those prefixes per
block kind.
"""

from __future__ import annotations

from orglsp.org.types import BlockKind

HANDLER_PREFIXES: dict[BlockKind, str] = {
    BlockKind.TYPED: "org-babel-execute:",
    BlockKind.DYNAMIC: "org-dblock-write:",
}
"""Handler function name = prefix + block name."""

SCHEMA_PREFIXES: dict[BlockKind, str] = {
    BlockKind.TYPED: "org-babel-header-args",
    BlockKind.DYNAMIC: "org-dblock-header-args",
}
"""Native header argument table name = prefix + ':' + block name."""

COMMON_SCHEMA_TABLE = "org-babel-common-header-args-w-values"
"""Table of header arguments shared by every source block."""

TYPED_PACKAGE_PREFIX = "ob-"
"""Conventional package (library) name prefix for source block languages."""

LAMBDA_LIST_KEYWORDS: frozenset[str] = frozenset(
    {
        "&optional",
        "&rest",
        "&key",
        "&aux",
        "&allow-other-keys",
        "&body",
    }
)
"""Markers inside an argument list that are not parameters themselves."""

PARAMETER_MARKER = ":"
"""Every parameter key starts with this character."""


def handler_name(kind: BlockKind, block_name: str) -> str:
    """Return the conventional handler function name for a block."""
    return HANDLER_PREFIXES[kind] + block_name


def native_schema_table(kind: BlockKind, block_name: str) -> str:
    """Return the conventional native schema table name for a block."""
    return f"{SCHEMA_PREFIXES[kind]}:{block_name}"


def default_package(kind: BlockKind, block_name: str) -> str | None:
    """Guess the package providing a block when the registry does not know."""
    if kind == BlockKind.TYPED and block_name:
        return TYPED_PACKAGE_PREFIX + block_name
    return None
