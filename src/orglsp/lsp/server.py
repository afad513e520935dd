"""Org block header LSP server using pygls 2.0.

Provides completion, lazily resolved completion documentation and hover for
Org-mode block header lines.
"""

from __future__ import annotations

import logging

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from orglsp.logging import get_logger
from orglsp.lsp.adapter import (
    candidate_reference as _candidate_reference,
    line_at_position as _line_at_position,
    to_lsp_completion_item as _to_lsp_completion_item,
    to_lsp_range as _to_lsp_range,
)
from orglsp.lsp.candidates import Candidate, CompletionResult
from orglsp.lsp.completions import CompletionFunction, setup_completion
from orglsp.lsp.error_handling import wrap_handler
from orglsp.lsp.hover import get_hover_documentation
from orglsp.org.registry_provider import RegistryProvider

COMPLETION_TRIGGER_CHARACTERS = [" ", ":", '"']


def create_server(
    *,
    get_registry: RegistryProvider,
    logger: logging.Logger | None = None,
) -> LanguageServer:
    """
    Create and configure the LSP server.

    Args:
        get_registry: Provider function for the handler registry.
        logger: Optional logger instance. If None, uses default orglsp.lsp logger.

    Returns:
        Configured LanguageServer instance.
    """
    if logger is None:
        logger = get_logger("lsp")

    server = LanguageServer("orglsp", "v0.1.0")

    # Completion functions consulted for each open document
    dispatch_lists: dict[str, list[CompletionFunction]] = {}
    # Candidates of the latest completion request per document, for resolve
    latest_candidates: dict[str, list[Candidate]] = {}

    def _dispatch_for(uri: str) -> list[CompletionFunction]:
        dispatch = dispatch_lists.setdefault(uri, [])
        setup_completion(dispatch)
        return dispatch

    def _empty_completion_list() -> types.CompletionList:
        return types.CompletionList(is_incomplete=False, items=[])

    @server.feature(
        types.TEXT_DOCUMENT_COMPLETION,
        types.CompletionOptions(
            trigger_characters=COMPLETION_TRIGGER_CHARACTERS,
            resolve_provider=True,
        ),
    )
    @wrap_handler(
        logger=logger,
        feature_name="textDocument/completion",
        default_factory=_empty_completion_list,
    )
    def completion(params: types.CompletionParams) -> types.CompletionList:
        """
        Handle textDocument/completion requests.

        Runs the document's completion functions in order; the first one
        recognizing the line wins.
        """
        logger.debug("Completion request at %s", params.position)

        uri = params.text_document.uri
        document = server.workspace.get_text_document(uri)
        line_text, offset = _line_at_position(document, params.position)

        registry = get_registry()
        result: CompletionResult | None = None
        for complete in _dispatch_for(uri):
            result = complete(registry, line_text, offset)
            if result is not None:
                break

        if result is None:
            latest_candidates.pop(uri, None)
            return _empty_completion_list()

        latest_candidates[uri] = result.candidates

        replace_range = _to_lsp_range(
            document, params.position.line, result.replace_start, result.replace_end
        )
        lsp_items = [
            _to_lsp_completion_item(
                candidate,
                index=index,
                uri=uri,
                phase=result.phase,
                replace_range=replace_range,
            )
            for index, candidate in enumerate(result.candidates)
        ]

        logger.debug("Returning %d completion items", len(lsp_items))
        return types.CompletionList(is_incomplete=False, items=lsp_items)

    @wrap_handler(
        logger=logger,
        feature_name="completionItem/resolve",
        default_factory=lambda: None,
    )
    def _resolve_documentation(item: types.CompletionItem) -> str | None:
        reference = _candidate_reference(item)
        if reference is None:
            return None
        uri, index = reference

        candidates = latest_candidates.get(uri)
        if candidates is None or not 0 <= index < len(candidates):
            return None

        candidate = candidates[index]
        if candidate.text != item.label:
            logger.debug("Stale resolve request for %s", item.label)
            return None
        return candidate.documentation()

    @server.feature(types.COMPLETION_ITEM_RESOLVE)
    def completion_item_resolve(item: types.CompletionItem) -> types.CompletionItem:
        """Attach the lazily built documentation to a completion item."""
        documentation = _resolve_documentation(item)
        if documentation:
            item.documentation = types.MarkupContent(
                kind=types.MarkupKind.Markdown,
                value=documentation,
            )
        return item

    def _default_hover() -> types.Hover | None:
        return None

    @server.feature(types.TEXT_DOCUMENT_HOVER)
    @wrap_handler(
        logger=logger,
        feature_name="textDocument/hover",
        default_factory=_default_hover,
    )
    def hover(params: types.HoverParams) -> types.Hover | None:  # type: ignore[misc]
        """Handle textDocument/hover requests on block header lines."""
        logger.debug("Hover request at %s", params.position)

        document = server.workspace.get_text_document(params.text_document.uri)
        line_text, offset = _line_at_position(document, params.position)

        documentation = get_hover_documentation(get_registry(), line_text, offset)
        if documentation is None:
            return None

        return types.Hover(
            contents=types.MarkupContent(
                kind=types.MarkupKind.Markdown,
                value=documentation,
            ),
        )

    @server.feature(types.TEXT_DOCUMENT_DID_OPEN)
    @wrap_handler(
        logger=logger,
        feature_name="textDocument/didOpen",
        default_factory=lambda: None,
    )
    def did_open(params: types.DidOpenTextDocumentParams) -> None:
        """Register header completion for the opened document."""
        uri = params.text_document.uri
        logger.debug("Document opened: %s", uri)
        _dispatch_for(uri)

    @server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
    @wrap_handler(
        logger=logger,
        feature_name="textDocument/didClose",
        default_factory=lambda: None,
    )
    def did_close(params: types.DidCloseTextDocumentParams) -> None:
        """Forget per-document completion state."""
        uri = params.text_document.uri
        logger.debug("Document closed: %s", uri)
        dispatch_lists.pop(uri, None)
        latest_candidates.pop(uri, None)

    return server
