"""Build a HandlerRegistry from Emacs Lisp libraries and YAML knowledge files.

Emacs Lisp libraries contribute handler definitions, their docstrings,
header argument tables and package commentary. YAML knowledge files can add
or override any of these, which is how the bundled common header arguments
are shipped and how handlers without available source are described.

YAML knowledge file layout::

    handlers:
      org-babel-execute:sql:
        package: ob-sql
        definition: "(defun org-babel-execute:sql (body params) ...)"
        documentation: "Execute a block of Sql code with Babel."
    schemas:
      org-babel-header-args:sql:
        ":engine": ":any"
        ":dbhost": ":any"
    common:
      ":dir": dir
    commentary:
      ob-sql: "Org-Babel support for evaluating sql source code."
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from pathlib import Path

import yaml

from orglsp.logging import get_logger
from orglsp.org.conventions import (
    COMMON_SCHEMA_TABLE,
    HANDLER_PREFIXES,
    PARAMETER_MARKER,
    SCHEMA_PREFIXES,
)
from orglsp.org.elisp import (
    DottedPair,
    ElispReadError,
    extract_commentary,
    iter_top_level_forms,
    match_definition,
    read_form,
)
from orglsp.org.registry import HandlerInfo, HandlerRegistry
from orglsp.org.types import ANY, SchemaTable, parse_type_descriptor

__all__ = [
    "DEFAULT_KNOWLEDGE_FILE",
    "KnowledgeLoadError",
    "load_elisp_directory",
    "load_elisp_file",
    "load_elisp_text",
    "load_knowledge_file",
    "load_registry",
    "schema_from_alist",
]

DEFAULT_KNOWLEDGE_FILE = Path(__file__).parent / "data" / "common_header_args.yaml"

_DEFINITION_HEADS = frozenset(
    {"defun", "defun*", "cl-defun", "defsubst", "defalias", "fset"}
)
_VARIABLE_HEADS = frozenset({"defconst", "defvar", "defcustom"})

_logger = get_logger("org.loader")


class KnowledgeLoadError(Exception):
    """Raised when a knowledge source cannot be read."""


def _schema_key(key: object) -> str:
    text = str(key)
    return text if text.startswith(PARAMETER_MARKER) else PARAMETER_MARKER + text


def _is_schema_table(name: str) -> bool:
    if name == COMMON_SCHEMA_TABLE:
        return True
    return any(name.startswith(prefix + ":") for prefix in SCHEMA_PREFIXES.values())


def _is_handler(name: str) -> bool:
    return any(name.startswith(prefix) for prefix in HANDLER_PREFIXES.values())


def _unquote(value: object) -> object:
    while isinstance(value, list) and len(value) == 2 and value[0] in ("quote", "backquote"):
        value = value[1]
    return value


def schema_from_alist(value: object) -> SchemaTable:
    """
    Convert a header argument alist into a schema table.

    Entries may be ``(key . type)`` pairs, ``(key alternatives...)`` lists,
    or bare symbols (any value). Keys get the parameter marker prepended when
    missing.

    Args:
        value: Datum returned by ``read_form`` (quotes already removed).

    Returns:
        Schema table in alist order; empty when ``value`` is not a list.
    """
    entries: SchemaTable = {}
    if not isinstance(value, list):
        return entries

    for entry in value:
        if isinstance(entry, DottedPair):
            entries[_schema_key(entry.car)] = parse_type_descriptor(entry.cdr)
        elif isinstance(entry, list) and entry and isinstance(entry[0], str):
            rest = entry[1:]
            entries[_schema_key(entry[0])] = (
                parse_type_descriptor(rest) if rest else ANY
            )
        elif isinstance(entry, str):
            entries[_schema_key(entry)] = ANY

    return entries


def _form_head(form: str) -> tuple[str, str] | None:
    parts = form[1:].split(None, 2)
    if len(parts) < 2:
        return None
    return parts[0], parts[1].lstrip("'").rstrip(")")


def load_elisp_text(text: str, package: str | None = None) -> HandlerRegistry:
    """
    Register handlers, schema tables and commentary found in library text.

    Args:
        text: Emacs Lisp source.
        package: Library name owning the definitions (usually the file stem).

    Returns:
        A registry holding only what this text defines.
    """
    registry = HandlerRegistry()

    for form in iter_top_level_forms(text):
        head = _form_head(form)
        if head is None:
            continue
        macro, name = head

        if macro in _DEFINITION_HEADS and _is_handler(name):
            definition = match_definition(form)
            if definition is None:
                _logger.debug("Unrecognized definition shape for %s", name)
                continue
            registry.register_handler(
                HandlerInfo(
                    name=name,
                    definition=form,
                    documentation=definition.docstring,
                    package=package,
                )
            )
        elif macro in _VARIABLE_HEADS and _is_schema_table(name):
            try:
                datum = read_form(form)
            except ElispReadError as e:
                _logger.debug("Skipping unreadable table %s: %s", name, e)
                continue
            if isinstance(datum, list) and len(datum) > 2:
                registry.register_schema(name, schema_from_alist(_unquote(datum[2])))

    if package is not None:
        commentary = extract_commentary(text)
        if commentary is not None:
            registry.register_commentary(package, commentary)

    return registry


def load_elisp_file(path: Path) -> HandlerRegistry:
    """Load one ``.el`` library; its package name is the file stem."""
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise KnowledgeLoadError(f"Cannot read {path}: {e}") from e
    return load_elisp_text(text, package=path.stem)


def load_elisp_directory(path: Path) -> HandlerRegistry:
    """Load every ``.el`` library directly inside a directory."""
    if not path.is_dir():
        raise KnowledgeLoadError(f"Not a directory: {path}")

    registry = HandlerRegistry()
    for file_path in sorted(path.glob("*.el")):
        registry.merge(load_elisp_file(file_path))
    return registry


def _mapping(data: Mapping[str, object], section: str, path: Path) -> Mapping[str, object]:
    value = data.get(section) or {}
    if not isinstance(value, Mapping):
        raise KnowledgeLoadError(f"{path}: '{section}' must be a mapping")
    return value


def _schema_entries(table: Mapping[str, object]) -> SchemaTable:
    return {_schema_key(key): parse_type_descriptor(value) for key, value in table.items()}


def load_knowledge_file(path: Path) -> HandlerRegistry:
    """
    Load a YAML knowledge file.

    Raises:
        KnowledgeLoadError: If the file cannot be read or has the wrong shape.
    """
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise KnowledgeLoadError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise KnowledgeLoadError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise KnowledgeLoadError(f"{path}: top level must be a mapping")

    registry = HandlerRegistry()

    for name, info in _mapping(data, "handlers", path).items():
        if not isinstance(info, Mapping):
            info = {}
        registry.register_handler(
            HandlerInfo(
                name=str(name),
                definition=info.get("definition"),
                documentation=info.get("documentation"),
                package=info.get("package"),
            )
        )

    for table, entries in _mapping(data, "schemas", path).items():
        if isinstance(entries, Mapping):
            registry.register_schema(str(table), _schema_entries(entries))

    common = _mapping(data, "common", path)
    if common:
        registry.register_schema(COMMON_SCHEMA_TABLE, _schema_entries(common))

    for package, text in _mapping(data, "commentary", path).items():
        if isinstance(text, str):
            registry.register_commentary(str(package), text)

    return registry


def load_registry(
    load_paths: Iterable[Path] = (),
    knowledge_files: Iterable[Path] = (),
    *,
    include_defaults: bool = True,
) -> HandlerRegistry:
    """
    Build the registry the server completes from.

    Sources are merged in order, later ones overriding earlier ones: the
    bundled common header arguments, then Emacs Lisp load paths (directories
    or single files), then YAML knowledge files.

    Raises:
        KnowledgeLoadError: If any source cannot be read.
    """
    _logger.debug("Starting handler registry build")
    start_time = time.time()

    registry = HandlerRegistry()
    if include_defaults:
        registry.merge(load_knowledge_file(DEFAULT_KNOWLEDGE_FILE))

    for path in load_paths:
        if path.is_dir():
            registry.merge(load_elisp_directory(path))
        else:
            registry.merge(load_elisp_file(path))

    for path in knowledge_files:
        registry.merge(load_knowledge_file(path))

    duration_ms = (time.time() - start_time) * 1000
    _logger.info(
        "Loaded %d handlers in %.2fms", len(registry), duration_ms
    )
    return registry
