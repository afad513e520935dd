"""Adapter module for converting between internal types and LSP protocol types."""

from __future__ import annotations

from lsprotocol import types
from pygls.workspace import TextDocument

from orglsp.lsp.candidates import Candidate
from orglsp.lsp.types import Phase

__all__ = [
    "candidate_reference",
    "completion_kind_to_lsp",
    "line_at_position",
    "to_lsp_completion_item",
    "to_lsp_range",
]

_PHASE_TO_LSP: dict[Phase, types.CompletionItemKind] = {
    Phase.BLOCK_TYPE: types.CompletionItemKind.Module,
    Phase.PARAMETER_KEY: types.CompletionItemKind.Property,
    Phase.PARAMETER_VALUE: types.CompletionItemKind.EnumMember,
}


def line_at_position(
    document: TextDocument, position: types.Position
) -> tuple[str, int]:
    """
    Get the line under an LSP position and the cursor offset within it.

    Args:
        document: The text document
        position: LSP position with 0-based line and client-unit character

    Returns:
        (line text without line ending, offset clamped to the line). A
        position past the last line yields an empty line.
    """
    lines = document.lines
    if position.line >= len(lines):
        return "", 0

    line_text = lines[position.line].rstrip("\r\n")
    server_position = document.position_codec.position_from_client_units(
        lines, position
    )
    return line_text, max(0, min(server_position.character, len(line_text)))


def to_lsp_range(
    document: TextDocument, line: int, start: int, end: int
) -> types.Range:
    """Convert a [start, end) span of one line to an LSP Range in client units."""
    lines = document.lines
    codec = document.position_codec
    return types.Range(
        start=codec.position_to_client_units(
            lines, types.Position(line=line, character=start)
        ),
        end=codec.position_to_client_units(
            lines, types.Position(line=line, character=end)
        ),
    )


def completion_kind_to_lsp(phase: Phase | None) -> types.CompletionItemKind:
    """
    Map the completion phase to an LSP CompletionItemKind.

    Args:
        phase: Phase the candidates were produced for

    Returns:
        LSP CompletionItemKind enum value
    """
    if phase is None:
        return types.CompletionItemKind.Text
    return _PHASE_TO_LSP.get(phase, types.CompletionItemKind.Text)


def to_lsp_completion_item(
    candidate: Candidate,
    *,
    index: int,
    uri: str,
    phase: Phase | None = None,
    replace_range: types.Range | None = None,
) -> types.CompletionItem:
    """
    Convert an internal Candidate to an LSP CompletionItem.

    Documentation is left unset; clients ask for it through
    completionItem/resolve, using the reference stored in ``data``.

    Args:
        candidate: Internal candidate
        index: Position of the candidate in its result list
        uri: Document the completion was requested for
        phase: Completion phase, for the item kind
        replace_range: Span of the token the candidate replaces (optional)

    Returns:
        LSP-compatible CompletionItem
    """
    completion_item = types.CompletionItem(
        label=candidate.text,
        detail=candidate.annotation,
        kind=completion_kind_to_lsp(phase),
        sort_text=f"{index:05d}",
        filter_text=candidate.text,
        data={"uri": uri, "index": index},
    )

    if replace_range is not None:
        completion_item.text_edit = types.TextEdit(
            range=replace_range,
            new_text=candidate.text,
        )

    return completion_item


def candidate_reference(item: types.CompletionItem) -> tuple[str, int] | None:
    """Read back the (uri, index) stored on an item by to_lsp_completion_item."""
    data = item.data
    if not isinstance(data, dict):
        return None
    uri = data.get("uri")
    index = data.get("index")
    if not isinstance(uri, str) or not isinstance(index, int) or isinstance(index, bool):
        return None
    return uri, index
