"""Queryable registry of block handlers, schema tables and package commentary.

The registry is populated once when the server starts (from Emacs Lisp
sources and YAML knowledge files) and then only read. Every lookup degrades to
``None`` or an empty table when the registry does not know the name.
"""

from __future__ import annotations

import bisect
from typing import NamedTuple

from orglsp.org.types import SchemaTable, TypeDescriptor

__all__ = [
    "HandlerInfo",
    "HandlerRegistry",
]


class HandlerInfo(NamedTuple):
    """What the registry knows about one handler function."""

    name: str
    definition: str | None = None  # Raw source text of the definition
    documentation: str | None = None  # Docstring
    package: str | None = None  # Library that defines the handler


class HandlerRegistry:
    """Handler metadata keyed by handler function name."""

    def __init__(self) -> None:
        self._handlers: dict[str, HandlerInfo] = {}
        self._sorted_names: list[str] = []
        self._schemas: dict[str, SchemaTable] = {}
        self._commentary: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def register_handler(self, info: HandlerInfo) -> None:
        """
        Add or update a handler.

        Fields left as None on ``info`` keep the value of an earlier
        registration, so a YAML file can add documentation to a handler whose
        source came from an Emacs Lisp file.
        """
        previous = self._handlers.get(info.name)
        if previous is None:
            bisect.insort(self._sorted_names, info.name)
        else:
            info = HandlerInfo(
                name=info.name,
                definition=info.definition or previous.definition,
                documentation=info.documentation or previous.documentation,
                package=info.package or previous.package,
            )
        self._handlers[info.name] = info

    def register_schema(self, table: str, entries: SchemaTable) -> None:
        """Add entries to a schema table; later entries replace earlier ones."""
        self._schemas.setdefault(table, {}).update(entries)

    def register_commentary(self, package: str, text: str) -> None:
        self._commentary[package] = text

    def merge(self, other: HandlerRegistry) -> None:
        """Register everything ``other`` knows on top of this registry."""
        for name in other._sorted_names:
            self.register_handler(other._handlers[name])
        for table, entries in other._schemas.items():
            self.register_schema(table, entries)
        for package, text in other._commentary.items():
            self.register_commentary(package, text)

    def list_handlers(self, prefix: str) -> list[str]:
        """Return handler names starting with ``prefix``, sorted."""
        start = bisect.bisect_left(self._sorted_names, prefix)
        names: list[str] = []
        for name in self._sorted_names[start:]:
            if not name.startswith(prefix):
                break
            names.append(name)
        return names

    def resolve_definition(self, name: str) -> str | None:
        info = self._handlers.get(name)
        return info.definition if info is not None else None

    def resolve_documentation(self, name: str) -> str | None:
        info = self._handlers.get(name)
        return info.documentation if info is not None else None

    def package_of(self, name: str) -> str | None:
        info = self._handlers.get(name)
        return info.package if info is not None else None

    def load_commentary(self, package: str) -> str | None:
        return self._commentary.get(package)

    def schema(self, table: str) -> SchemaTable:
        """Return a copy of a schema table, empty when unknown."""
        return dict(self._schemas.get(table, {}))

    def lookup_type(self, table: str, key: str) -> TypeDescriptor | None:
        return self._schemas.get(table, {}).get(key)
