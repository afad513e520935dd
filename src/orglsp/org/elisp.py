"""Light-weight Emacs Lisp text scanning.

This is deliberately not a Lisp implementation. It knows enough to split a
file into top-level forms, recognize function definition headers, read the
quoted data of header argument tables, and pull the commentary section out of
a library file.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from enum import Enum
from typing import NamedTuple

__all__ = [
    "Definition",
    "DefinitionShape",
    "DottedPair",
    "ElispReadError",
    "extract_commentary",
    "flatten_whitespace",
    "iter_top_level_forms",
    "match_definition",
    "read_form",
]


class ElispReadError(ValueError):
    """Raised when a form cannot be read as data."""


class DefinitionShape(str, Enum):
    """Accepted function definition headers."""

    DEFUN = "defun"  # (defun NAME (ARGS) ...)
    KEYWORD_DEFUN = "keyword_defun"  # (defun* NAME (ARGS) ...), cl-defun
    LAMBDA = "lambda"  # (lambda (ARGS) ...), possibly under defalias


class Definition(NamedTuple):
    """A recognized function definition header."""

    shape: DefinitionShape
    name: str | None  # None for a bare lambda
    parameters: tuple[str, ...]  # Declared argument list tokens, in order
    docstring: str | None


class DottedPair(NamedTuple):
    """A cons cell whose cdr is not a list."""

    car: object
    cdr: object


_DEFUN_RE = re.compile(
    r"^\(\s*(?P<macro>defun\*|cl-defun|defun|defsubst)\s+(?P<name>[^\s()]+)"
    r"\s*\((?P<args>[^()]*)\)"
)
_DEFALIAS_LAMBDA_RE = re.compile(
    r"^\(\s*(?:defalias|fset)\s+'(?P<name>[^\s()]+)\s+(?:#')?"
    r"\(\s*lambda\s*\((?P<args>[^()]*)\)"
)
_LAMBDA_RE = re.compile(r"^(?:#')?\(\s*lambda\s*\((?P<args>[^()]*)\)")
_DOCSTRING_RE = re.compile(r'\s*"(?P<doc>(?:[^"\\]|\\.)*)"', re.DOTALL)

_COMMENTARY_START_RE = re.compile(r"^;;;+\s*Commentary:?\s*$", re.IGNORECASE)
_COMMENTARY_END_RE = re.compile(r"^;;;+\s*(?:Code|Change\s*Log|History):?\s*$", re.IGNORECASE)
_COMMENT_PREFIX_RE = re.compile(r"^\s*;+ ?")

_ESCAPES = {"n": "\n", "t": "\t", "\n": ""}

_DELIMITERS = frozenset("()[]\"';`,")


def flatten_whitespace(text: str) -> str:
    """Join all whitespace runs into single spaces."""
    return " ".join(text.split())


def _unescape(text: str) -> str:
    return re.sub(
        r"\\(.)",
        lambda match: _ESCAPES.get(match.group(1), match.group(1)),
        text,
        flags=re.DOTALL,
    )


def _skip_string(text: str, i: int) -> int:
    """Return the index just past the string starting at ``text[i] == '"'``."""
    i += 1
    n = len(text)
    while i < n:
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == '"':
            return i + 1
        i += 1
    return n


def _skip_comment(text: str, i: int) -> int:
    end = text.find("\n", i)
    return len(text) if end == -1 else end + 1


def _starts_char_literal(text: str, i: int) -> bool:
    """``?x`` is a character literal unless the ``?`` ends a symbol."""
    return i == 0 or text[i - 1] in " \t\r\n()[]'`,"


def iter_top_level_forms(text: str) -> Iterator[str]:
    """
    Yield the text of each top-level parenthesized form.

    Strings, ``;`` comments, ``?x`` character literals and backslash escapes
    are skipped so that parentheses inside them do not count. An unbalanced
    trailing form is dropped.

    Args:
        text: Emacs Lisp source text.

    Yields:
        Source text of each top-level list, from its ``(`` to its ``)``.
    """
    depth = 0
    start = 0
    i = 0
    n = len(text)

    while i < n:
        char = text[i]
        if char == ";":
            i = _skip_comment(text, i)
            continue
        if char == '"':
            i = _skip_string(text, i)
            continue
        if char == "\\":
            i += 2
            continue
        if char == "?" and _starts_char_literal(text, i):
            i += 3 if i + 1 < n and text[i + 1] == "\\" else 2
            continue

        if char == "(":
            if depth == 0:
                start = i
            depth += 1
        elif char == ")" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start : i + 1]
        i += 1


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    i = 0
    n = len(text)

    while i < n:
        char = text[i]
        if char.isspace():
            i += 1
        elif char == ";":
            i = _skip_comment(text, i)
        elif char in "()[]'`":
            tokens.append(char)
            i += 1
        elif char == ",":
            if i + 1 < n and text[i + 1] == "@":
                tokens.append(",@")
                i += 2
            else:
                tokens.append(",")
                i += 1
        elif char == "#" and i + 1 < n and text[i + 1] == "'":
            tokens.append("#'")
            i += 2
        elif char == '"':
            end = _skip_string(text, i)
            tokens.append(text[i:end])
            i = end
        elif char == "?" and _starts_char_literal(text, i):
            width = 3 if i + 1 < n and text[i + 1] == "\\" else 2
            tokens.append(text[i : i + width])
            i += width
        else:
            start = i
            while i < n and not text[i].isspace() and text[i] not in _DELIMITERS:
                i += 2 if text[i] == "\\" else 1
            tokens.append(text[start:i])

    return tokens


_QUOTE_NAMES = {
    "'": "quote",
    "`": "backquote",
    ",": "unquote",
    ",@": "unquote-splicing",
    "#'": "function",
}


def _read(tokens: list[str], pos: int) -> tuple[object, int]:
    if pos >= len(tokens):
        raise ElispReadError("unexpected end of form")

    token = tokens[pos]

    if token in _QUOTE_NAMES:
        value, pos = _read(tokens, pos + 1)
        return [_QUOTE_NAMES[token], value], pos

    if token == "[":
        items: list[object] = []
        pos += 1
        while pos < len(tokens) and tokens[pos] != "]":
            item, pos = _read(tokens, pos)
            items.append(item)
        if pos >= len(tokens):
            raise ElispReadError("unterminated vector")
        return items, pos + 1

    if token == "(":
        items = []
        pos += 1
        while pos < len(tokens) and tokens[pos] != ")":
            if tokens[pos] == ".":
                cdr, pos = _read(tokens, pos + 1)
                if pos >= len(tokens) or tokens[pos] != ")":
                    raise ElispReadError("malformed dotted list")
                if isinstance(cdr, list):
                    return items + cdr, pos + 1
                if len(items) != 1:
                    raise ElispReadError("improper list is not a pair")
                return DottedPair(items[0], cdr), pos + 1
            item, pos = _read(tokens, pos)
            items.append(item)
        if pos >= len(tokens):
            raise ElispReadError("unterminated list")
        return items, pos + 1

    if token in (")", "]"):
        raise ElispReadError(f"unexpected {token!r}")

    if token.startswith('"'):
        return _unescape(token[1:-1]), pos + 1

    return token, pos + 1


def read_form(text: str) -> object:
    """
    Read one Lisp datum from text.

    Symbols, numbers and strings become ``str``; lists and vectors become
    ``list``; ``(a . b)`` with a non-list ``b`` becomes a DottedPair; quote
    prefixes become ``["quote", datum]`` and similar.

    Raises:
        ElispReadError: If the text is not a single well-formed datum.
    """
    tokens = _tokenize(text)
    value, pos = _read(tokens, 0)
    if pos != len(tokens):
        raise ElispReadError("trailing text after datum")
    return value


def _docstring_after(text: str, pos: int) -> str | None:
    match = _DOCSTRING_RE.match(text, pos)
    if match is None:
        return None
    return _unescape(match.group("doc"))


def match_definition(text: str) -> Definition | None:
    """
    Recognize a function definition header.

    Args:
        text: Source text starting with the definition form.

    Returns:
        Definition, or None when the text matches none of the accepted shapes.
    """
    text = text.lstrip()

    match = _DEFUN_RE.match(text)
    if match is not None:
        shape = (
            DefinitionShape.KEYWORD_DEFUN
            if match.group("macro") in ("defun*", "cl-defun")
            else DefinitionShape.DEFUN
        )
        return Definition(
            shape=shape,
            name=match.group("name"),
            parameters=tuple(match.group("args").split()),
            docstring=_docstring_after(text, match.end()),
        )

    match = _DEFALIAS_LAMBDA_RE.match(text)
    if match is None:
        match = _LAMBDA_RE.match(text)
    if match is not None:
        return Definition(
            shape=DefinitionShape.LAMBDA,
            name=match.groupdict().get("name"),
            parameters=tuple(match.group("args").split()),
            docstring=_docstring_after(text, match.end()),
        )

    return None


def extract_commentary(text: str) -> str | None:
    """
    Return the ``;;; Commentary:`` section of a library, comment markers removed.

    Args:
        text: Library source text.

    Returns:
        The commentary, or None when the file has no non-empty section.
    """
    lines: list[str] = []
    inside = False

    for line in text.splitlines():
        if not inside:
            inside = bool(_COMMENTARY_START_RE.match(line))
            continue
        if _COMMENTARY_END_RE.match(line):
            break
        lines.append(_COMMENT_PREFIX_RE.sub("", line, count=1).rstrip())

    commentary = "\n".join(lines).strip()
    return commentary or None
