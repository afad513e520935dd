"""Extraction tiers that discover parameter keys for a block.

Three strategies, in decreasing order of trust:

- schema: a structured key -> type table (native per handler, or common)
- source: textual scan of the handler definition for parameter accesses
- doc: textual scan of the handler documentation for key mentions

The source and doc tiers are heuristics over plain text, not parsers. The
source scan only sees an access when the whole call is contiguous after
whitespace flattening: an access split by unrelated parentheses is missed,
and an access inside a comment is still reported.
"""

from __future__ import annotations

import re

from orglsp.logging import get_logger
from orglsp.lsp.candidates import Candidate
from orglsp.lsp.documentation import build_doc
from orglsp.lsp.error_handling import guard_extraction
from orglsp.lsp.types import BlockDescriptor, BlockKind, Phase, Provenance
from orglsp.org.conventions import LAMBDA_LIST_KEYWORDS
from orglsp.org.elisp import flatten_whitespace, match_definition
from orglsp.org.registry import HandlerRegistry
from orglsp.org.types import SchemaTable

_logger = get_logger("lsp.extractors")

_KEY_CHARS = r"[A-Za-z0-9:_-]+"

# Quotation glyphs allowed around a documented key, besides whitespace
_DOC_QUOTES = "\"'`‘’“”"
_DOC_KEY_RE = re.compile(
    rf"(?<![^\s{_DOC_QUOTES}])(?P<key>:[a-z]+)(?![^\s{_DOC_QUOTES}])"
)


def parameter_binding(definition: str, block_kind: BlockKind) -> str | None:
    """
    Find the name the handler binds its parameters object to.

    Dynamic block writers take the parameters as their last declared
    argument. Source block handlers take ``(body params)``, sometimes with a
    trailing optional argument, so the last required argument is used: the
    second-to-last declared one in `(body params &optional processed)`,
    otherwise the last one.

    Args:
        definition: Raw handler source text.
        block_kind: Kind of block the handler serves.

    Returns:
        The binding name, or None when the header shape is not recognized or
        the argument list is too short.
    """
    parsed = match_definition(flatten_whitespace(definition))
    if parsed is None:
        return None

    tokens = parsed.parameters
    if block_kind == BlockKind.TYPED and "&optional" in tokens:
        tokens = tokens[: tokens.index("&optional")]

    parameters = [token for token in tokens if token not in LAMBDA_LIST_KEYWORDS]
    if not parameters:
        return None
    return parameters[-1]


def _access_pattern(binding: str) -> re.Pattern[str]:
    name = re.escape(binding)
    return re.compile(
        rf"\(plist-get {name} (?P<plist>{_KEY_CHARS})\)"
        rf"|\(alist-get (?P<alist>{_KEY_CHARS}) {name}\)"
        rf"|\(assq (?P<assq>{_KEY_CHARS}) {name}\)"
    )


def scan_parameter_accesses(definition: str, binding: str) -> list[str]:
    """
    Collect keys read from ``binding`` through plist-get, alist-get or assq.

    Args:
        definition: Raw handler source text.
        binding: Name of the parameters object.

    Returns:
        Keys in order of first appearance, without duplicates.
    """
    flattened = flatten_whitespace(definition).replace("( ", "(").replace(" )", ")")

    keys: list[str] = []
    for match in _access_pattern(binding).finditer(flattened):
        key = match.group("plist") or match.group("alist") or match.group("assq")
        if key not in keys:
            keys.append(key)
    return keys


@guard_extraction(logger=_logger, default_factory=list)
def extract_from_source(
    registry: HandlerRegistry, handler_name: str, block_kind: BlockKind
) -> list[str]:
    """Mine a handler's source text for parameter keys."""
    definition = registry.resolve_definition(handler_name)
    if not definition:
        return []

    binding = parameter_binding(definition, block_kind)
    if binding is None:
        _logger.debug("No parameter binding recognized in %s", handler_name)
        return []

    return scan_parameter_accesses(definition, binding)


def scan_documented_keys(text: str) -> list[str]:
    """
    Collect ``:lowercase`` tokens set off by whitespace or quotation marks.

    Only lowercase letters may follow the marker; prose contains many
    incidental colon-prefixed strings and precision matters more than recall.
    """
    keys: list[str] = []
    for match in _DOC_KEY_RE.finditer(text):
        key = match.group("key")
        if key not in keys:
            keys.append(key)
    return keys


@guard_extraction(logger=_logger, default_factory=list)
def extract_from_doc(registry: HandlerRegistry, handler_name: str) -> list[str]:
    """Mine a handler's documentation for parameter keys."""
    documentation = registry.resolve_documentation(handler_name)
    if not documentation:
        return []
    return scan_documented_keys(documentation)


def extract_from_schema(
    registry: HandlerRegistry,
    block: BlockDescriptor,
    entries: SchemaTable,
    provenance: Provenance,
) -> list[Candidate]:
    """
    Turn a schema table into parameter key candidates.

    Args:
        registry: Knowledge base used later by the documentation thunks.
        block: Block the keys belong to.
        entries: Key -> type descriptor table, in display order.
        provenance: NATIVE or COMMON.

    Returns:
        One candidate per entry.
    """
    return [
        Candidate(
            text=key,
            provenance=provenance,
            annotation=f"{block.name} parameter ({provenance})",
            documentation=build_doc(
                registry, block, Phase.PARAMETER_KEY, descriptor, key=key
            ),
            value_type=descriptor,
        )
        for key, descriptor in entries.items()
    ]
