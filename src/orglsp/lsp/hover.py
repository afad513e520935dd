"""Hover documentation for Org block header lines."""

from __future__ import annotations

from orglsp.lsp.completions import lookup_value_type
from orglsp.lsp.documentation import compose_doc
from orglsp.lsp.parser import parameter_key_at, parse_header
from orglsp.lsp.types import Phase
from orglsp.org.registry import HandlerRegistry


def get_hover_documentation(
    registry: HandlerRegistry, line_text: str, offset: int
) -> str | None:
    """
    Get documentation for the header token at the cursor.

    Hovering the block name shows the block's handler documentation; hovering
    a parameter key also shows the key's schema type when one is known.

    Args:
        registry: Handler registry.
        line_text: The current line.
        offset: Cursor offset within the line.

    Returns:
        Markdown text, or None when the cursor is not on a block name or key.
    """
    parsed = parse_header(line_text)
    if parsed is None:
        return None
    block, name_span = parsed
    if not block.name:
        return None

    if name_span.start <= offset <= name_span.end:
        return compose_doc(registry, block, Phase.BLOCK_TYPE)

    key_token = parameter_key_at(line_text, offset)
    if key_token is None:
        return None

    found = lookup_value_type(registry, block, key_token.text)
    descriptor = found[0] if found is not None else None
    return compose_doc(
        registry, block, Phase.PARAMETER_KEY, descriptor, key=key_token.text
    )
