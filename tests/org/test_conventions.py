"""Tests for handler and schema naming conventions."""

from __future__ import annotations

from orglsp.org.conventions import default_package, handler_name, native_schema_table
from orglsp.org.types import BlockKind


def test_handler_names() -> None:
    """Handler name is the kind's prefix plus the block name."""
    assert handler_name(BlockKind.TYPED, "sql") == "org-babel-execute:sql"
    assert handler_name(BlockKind.DYNAMIC, "clocktable") == "org-dblock-write:clocktable"


def test_native_schema_tables() -> None:
    """Schema table name is the kind's prefix, a colon and the block name."""
    assert native_schema_table(BlockKind.TYPED, "sql") == "org-babel-header-args:sql"
    assert native_schema_table(BlockKind.DYNAMIC, "clocktable") == (
        "org-dblock-header-args:clocktable"
    )


def test_default_package() -> None:
    """Only source blocks have a conventional package name."""
    assert default_package(BlockKind.TYPED, "sql") == "ob-sql"
    assert default_package(BlockKind.DYNAMIC, "clocktable") is None
    assert default_package(BlockKind.TYPED, "") is None
