"""Completion logic for Org block header lines.

Routes a classified cursor context to the right resolver:

- block type: handler names registered for the block kind
- parameter key: native schema, else source heuristic, else doc heuristic,
  plus the common schema for source blocks
- parameter value: expansion of the key's schema type
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

from orglsp.logging import get_logger
from orglsp.lsp.candidates import Candidate, CompletionResult, dedupe_candidates
from orglsp.lsp.documentation import build_doc
from orglsp.lsp.error_handling import guard_extraction
from orglsp.lsp.extractors import (
    extract_from_doc,
    extract_from_schema,
    extract_from_source,
)
from orglsp.lsp.parser import classify, token_bounds
from orglsp.lsp.types import (
    BlockDescriptor,
    BlockKind,
    ClassificationResult,
    Phase,
    Provenance,
)
from orglsp.org.conventions import (
    COMMON_SCHEMA_TABLE,
    HANDLER_PREFIXES,
    handler_name,
    native_schema_table,
)
from orglsp.org.registry import HandlerRegistry
from orglsp.org.types import TypeDescriptor, expand

__all__ = [
    "Candidate",
    "CompletionFunction",
    "CompletionResult",
    "get_completions",
    "lookup_value_type",
    "resolve_block_types",
    "resolve_parameters",
    "resolve_values",
    "setup_completion",
]

CompletionFunction: TypeAlias = Callable[
    [HandlerRegistry, str, int], "CompletionResult | None"
]

_BLOCK_TYPE_ANNOTATIONS = {
    BlockKind.TYPED: "src block",
    BlockKind.DYNAMIC: "dynamic block",
}

_logger = get_logger("lsp.completions")


def resolve_block_types(
    registry: HandlerRegistry, kind: BlockKind, prefix: str = ""
) -> list[Candidate]:
    """
    Complete block names from the handlers registered for a block kind.

    Args:
        registry: Handler registry.
        kind: Block kind being typed.
        prefix: Part of the block name typed so far.

    Returns:
        One candidate per handler whose name starts with the prefix.
    """
    handler_prefix = HANDLER_PREFIXES[kind]
    items: list[Candidate] = []

    for name in registry.list_handlers(handler_prefix + prefix):
        block_name = name[len(handler_prefix) :]
        if not block_name:
            continue
        items.append(
            Candidate(
                text=block_name,
                provenance=Provenance.BLOCK_TYPE,
                annotation=_BLOCK_TYPE_ANNOTATIONS[kind],
                documentation=build_doc(
                    registry,
                    BlockDescriptor(kind=kind, name=block_name),
                    Phase.BLOCK_TYPE,
                ),
            )
        )

    return items


def _heuristic_candidates(
    registry: HandlerRegistry,
    block: BlockDescriptor,
    keys: list[str],
    provenance: Provenance,
) -> list[Candidate]:
    return [
        Candidate(
            text=key,
            provenance=provenance,
            annotation=f"{block.name} parameter ({provenance})",
            documentation=build_doc(registry, block, Phase.PARAMETER_KEY, key=key),
        )
        for key in keys
    ]


@guard_extraction(logger=_logger, default_factory=list)
def _schema_tier(
    registry: HandlerRegistry,
    block: BlockDescriptor,
    table: str,
    provenance: Provenance,
) -> list[Candidate]:
    return extract_from_schema(registry, block, registry.schema(table), provenance)


def resolve_parameters(
    registry: HandlerRegistry, block: BlockDescriptor
) -> list[Candidate]:
    """
    Complete parameter keys for a block.

    The native schema, source heuristic and doc heuristic are tried in that
    order and the first tier with results wins. Source blocks additionally
    always get the common schema appended. Duplicate keys keep the candidate
    from the earliest tier.

    Args:
        registry: Handler registry.
        block: Block whose header is being edited.

    Returns:
        Deduplicated parameter key candidates.
    """
    handler = handler_name(block.kind, block.name)

    items = _schema_tier(
        registry, block, native_schema_table(block.kind, block.name), Provenance.NATIVE
    )
    _logger.debug("Native schema tier for %s: %d keys", handler, len(items))

    if not items:
        keys = extract_from_source(registry, handler, block.kind)
        items = _heuristic_candidates(registry, block, keys, Provenance.SOURCE)
        _logger.debug("Source tier for %s: %d keys", handler, len(items))

    if not items:
        keys = extract_from_doc(registry, handler)
        items = _heuristic_candidates(registry, block, keys, Provenance.DOC)
        _logger.debug("Doc tier for %s: %d keys", handler, len(items))

    if block.kind == BlockKind.TYPED:
        items = items + _schema_tier(
            registry, block, COMMON_SCHEMA_TABLE, Provenance.COMMON
        )

    return dedupe_candidates(items)


def lookup_value_type(
    registry: HandlerRegistry, block: BlockDescriptor, key: str
) -> tuple[TypeDescriptor, Provenance] | None:
    """Find the key's descriptor in the schema that would have offered the key."""
    descriptor = registry.lookup_type(native_schema_table(block.kind, block.name), key)
    if descriptor is not None:
        return descriptor, Provenance.NATIVE

    if block.kind == BlockKind.TYPED:
        descriptor = registry.lookup_type(COMMON_SCHEMA_TABLE, key)
        if descriptor is not None:
            return descriptor, Provenance.COMMON

    return None


def resolve_values(
    registry: HandlerRegistry, block: BlockDescriptor, key: str
) -> list[Candidate]:
    """
    Complete values for a parameter key.

    Only keys known to a schema have values; keys found by the heuristics
    yield nothing.

    Args:
        registry: Handler registry.
        block: Block whose header is being edited.
        key: Parameter key preceding the cursor, e.g. ``:results``.

    Returns:
        Value candidates in schema order.
    """
    found = lookup_value_type(registry, block, key)
    if found is None:
        return []
    descriptor, provenance = found

    documentation = build_doc(
        registry, block, Phase.PARAMETER_VALUE, descriptor, key=key
    )
    return dedupe_candidates(
        [
            Candidate(
                text=value,
                provenance=provenance,
                annotation=f"{key} value ({provenance})",
                documentation=documentation,
            )
            for value in expand(descriptor)
        ]
    )


def _replace_bounds(
    ctx: ClassificationResult, line_text: str, cursor: int
) -> tuple[int, int]:
    if ctx.phase == Phase.BLOCK_TYPE:
        if not ctx.block.name:
            return cursor, cursor
        return ctx.name_span.start, ctx.name_span.end
    return token_bounds(line_text, cursor)


@guard_extraction(logger=_logger, default_factory=lambda: None)
def get_completions(
    registry: HandlerRegistry, line_text: str, cursor_offset: int
) -> CompletionResult | None:
    """
    Complete the header line token at the cursor.

    This is the engine entry point registered in each document's completion
    dispatch list.

    Args:
        registry: Handler registry.
        line_text: The current line.
        cursor_offset: Cursor offset within the line.

    Returns:
        CompletionResult, or None when the line is not a block header line.
    """
    ctx = classify(line_text, cursor_offset)
    if ctx is None:
        return None

    _logger.debug(
        "Header context: phase=%s, block=%s, key=%s", ctx.phase, ctx.block, ctx.key
    )

    if ctx.phase == Phase.BLOCK_TYPE:
        candidates = resolve_block_types(registry, ctx.block.kind, ctx.prefix)
    elif ctx.phase == Phase.PARAMETER_VALUE and ctx.key is not None:
        candidates = resolve_values(registry, ctx.block, ctx.key)
    else:
        candidates = resolve_parameters(registry, ctx.block)

    cursor = max(0, min(cursor_offset, len(line_text)))
    start, end = _replace_bounds(ctx, line_text, cursor)

    return CompletionResult(
        replace_start=start,
        replace_end=end,
        candidates=candidates,
        phase=ctx.phase,
    )


def setup_completion(dispatch: list[CompletionFunction]) -> None:
    """
    Attach the header completion entry point to a document's dispatch list.

    Calling it again for the same list does nothing.
    """
    if get_completions not in dispatch:
        dispatch.append(get_completions)
