"""Header line parser for Org block completion.

Recognizes block header lines such as::

    #+begin_src sql :dir "/tmp" :results output
    #+BEGIN: clocktable :scope file

and decides, for a cursor offset inside the line, whether the user is typing
the block name, a parameter key, or a parameter value.
"""

from __future__ import annotations

import re

from orglsp.lsp.types import (
    BlockDescriptor,
    BlockKind,
    ClassificationResult,
    Phase,
    TokenSpan,
)

# Opening marker, kind discriminator, then nothing or whitespace
_HEADER_RE = re.compile(
    r"^(?P<indent>[ \t]*)#\+begin(?P<discriminator>_src|:)(?P<rest>(?:[ \t].*)?)$",
    re.IGNORECASE,
)

# "<key> <quote?><partial value>" immediately before the cursor. The partial
# value may not start with the key marker, otherwise a new key is being typed.
_VALUE_CONTEXT_RE = re.compile(
    r"""(?:^|[ \t])(?P<key>:[^\s"]+)[ \t]+"?(?P<prefix>[^\s":][^\s"]*)?$"""
)

_KEY_PREFIX_RE = re.compile(r"(?:^|[ \t])(?P<prefix>:[^\s\"]*)$")

_DISCRIMINATORS = {
    "_src": BlockKind.TYPED,
    ":": BlockKind.DYNAMIC,
}

# Extra characters Emacs counts as part of a file name at point
_FILENAME_PUNCTUATION = frozenset("-@~/_.${}#%,:")


def parse_header(line_text: str) -> tuple[BlockDescriptor, TokenSpan] | None:
    """
    Parse a header line into its block descriptor and name token.

    Args:
        line_text: Text of a single line (no trailing newline required).

    Returns:
        Tuple of (BlockDescriptor, name TokenSpan), or None when the line is
        not a block header. The name span is empty when no name was typed.
    """
    match = _HEADER_RE.match(line_text.rstrip("\r\n"))
    if match is None:
        return None
    return _parse_match(match)


def _parse_match(match: re.Match[str]) -> tuple[BlockDescriptor, TokenSpan]:
    kind = _DISCRIMINATORS[match.group("discriminator").lower()]
    rest_start = match.start("rest")
    rest = match.group("rest")

    stripped = rest.lstrip(" \t")
    name_start = rest_start + (len(rest) - len(stripped))
    name = stripped.split(None, 1)[0] if stripped else ""

    return (
        BlockDescriptor(kind=kind, name=name),
        TokenSpan(text=name, start=name_start, end=name_start + len(name)),
    )


def classify(line_text: str, cursor_offset: int) -> ClassificationResult | None:
    """
    Classify the completion context at a cursor offset in a line.

    Args:
        line_text: The current line.
        cursor_offset: Cursor offset within the line (clamped to the line).

    Returns:
        ClassificationResult, or None when the line is not a header line or
        the cursor sits inside or right against the opening marker.
    """
    match = _HEADER_RE.match(line_text.rstrip("\r\n"))
    if match is None:
        return None
    block, name_span = _parse_match(match)

    cursor = max(0, min(cursor_offset, len(line_text)))

    # A name inserted here would fuse with the marker
    if cursor <= match.start("rest"):
        return None

    if not block.name:
        return ClassificationResult(
            phase=Phase.BLOCK_TYPE,
            block=block,
            name_span=name_span,
        )

    if cursor < name_span.start:
        return None

    if cursor <= name_span.end:
        return ClassificationResult(
            phase=Phase.BLOCK_TYPE,
            block=block,
            name_span=name_span,
            prefix=name_span.text[: cursor - name_span.start],
        )

    before_cursor = line_text[name_span.end : cursor]

    value_match = _VALUE_CONTEXT_RE.search(before_cursor)
    if value_match is not None:
        return ClassificationResult(
            phase=Phase.PARAMETER_VALUE,
            block=block,
            name_span=name_span,
            key=value_match.group("key"),
            prefix=value_match.group("prefix") or "",
        )

    key_match = _KEY_PREFIX_RE.search(before_cursor)
    return ClassificationResult(
        phase=Phase.PARAMETER_KEY,
        block=block,
        name_span=name_span,
        prefix=key_match.group("prefix") if key_match else "",
    )


def _is_filename_char(char: str) -> bool:
    return char.isalnum() or char in _FILENAME_PUNCTUATION


def token_bounds(line_text: str, offset: int) -> tuple[int, int]:
    """
    Find the file-name-like token around an offset.

    Args:
        line_text: The current line.
        offset: Cursor offset within the line.

    Returns:
        (start, end) of the token; both equal the clamped offset when the
        cursor is not touching such a token.
    """
    offset = max(0, min(offset, len(line_text)))

    start = offset
    while start > 0 and _is_filename_char(line_text[start - 1]):
        start -= 1

    end = offset
    while end < len(line_text) and _is_filename_char(line_text[end]):
        end += 1

    return start, end


def parameter_key_at(line_text: str, offset: int) -> TokenSpan | None:
    """
    Return the parameter key token under the cursor, if any.

    Used by hover: a key is a whitespace-delimited token after the block name
    that starts with the key marker.
    """
    parsed = parse_header(line_text)
    if parsed is None:
        return None
    _block, name_span = parsed

    for match in re.finditer(r"\S+", line_text):
        if match.start() < name_span.end:
            continue
        if match.start() <= offset <= match.end() and match.group().startswith(":"):
            return TokenSpan(text=match.group(), start=match.start(), end=match.end())
    return None
