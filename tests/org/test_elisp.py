"""Tests for Emacs Lisp text scanning."""

from __future__ import annotations

import pytest

from orglsp.org.elisp import (
    DefinitionShape,
    DottedPair,
    ElispReadError,
    extract_commentary,
    flatten_whitespace,
    iter_top_level_forms,
    match_definition,
    read_form,
)

LIBRARY = '''\
;;; ob-demo.el --- Babel functions for demo -*- lexical-binding: t; -*-

;;; Commentary:

;; Org-Babel support for evaluating demo code.
;;
;; Requires the demo interpreter.

;;; Code:

(require 'ob)

(defvar org-babel-header-args:demo
  '((flags . :any)
    (mode . ((fast slow))))
  "Demo header arguments.")

(defun org-babel-execute:demo (body params)
  "Execute BODY. Paren in string: ) and char ?\\( are ignored."
  (let ((flags (cdr (assq :flags params))))
    ;; unbalanced ( in a comment
    (demo-run body flags)))

(provide 'ob-demo)
;;; ob-demo.el ends here
'''


class TestIterTopLevelForms:
    """Tests for iter_top_level_forms function."""

    def test_splits_library(self) -> None:
        """Each top-level form is yielded once."""
        forms = list(iter_top_level_forms(LIBRARY))
        assert [form.split(None, 1)[0] for form in forms] == [
            "(require",
            "(defvar",
            "(defun",
            "(provide",
        ]

    def test_parens_in_strings_comments_and_chars(self) -> None:
        """Parentheses inside strings, comments and char literals are skipped."""
        forms = list(iter_top_level_forms(LIBRARY))
        assert forms[2].endswith("(demo-run body flags)))")

    def test_unbalanced_trailing_form_dropped(self) -> None:
        """An unterminated final form is not yielded."""
        assert list(iter_top_level_forms("(a) (b (c)")) == ["(a)"]

    def test_empty_text(self) -> None:
        """No forms in empty text."""
        assert list(iter_top_level_forms("")) == []


class TestReadForm:
    """Tests for read_form function."""

    def test_symbols_and_strings(self) -> None:
        """Atoms become strings, escapes resolved."""
        assert read_form('(a "b\\"c" :d)') == ["a", 'b"c', ":d"]

    def test_dotted_pair(self) -> None:
        """(a . b) becomes a DottedPair."""
        assert read_form("(flags . :any)") == DottedPair("flags", ":any")

    def test_dotted_list_tail(self) -> None:
        """(a . (b c)) is the list (a b c)."""
        assert read_form("(mode . ((fast slow)))") == ["mode", ["fast", "slow"]]

    def test_quote(self) -> None:
        """Quote prefixes become (quote x)."""
        assert read_form("'(a)") == ["quote", ["a"]]

    def test_vector(self) -> None:
        """Vectors read as lists."""
        assert read_form("[a b]") == ["a", "b"]

    @pytest.mark.parametrize("text", ["(a", ")", "(a . b c)", "(a) b", ""])
    def test_malformed(self, text: str) -> None:
        """Malformed data raises ElispReadError."""
        with pytest.raises(ElispReadError):
            read_form(text)


class TestMatchDefinition:
    """Tests for match_definition function."""

    def test_defun(self) -> None:
        """A defun header with its docstring."""
        form = list(iter_top_level_forms(LIBRARY))[2]
        definition = match_definition(form)
        assert definition is not None
        assert definition.shape == DefinitionShape.DEFUN
        assert definition.name == "org-babel-execute:demo"
        assert definition.parameters == ("body", "params")
        assert definition.docstring is not None
        assert definition.docstring.startswith("Execute BODY.")

    def test_cl_defun(self) -> None:
        """cl-defun is a keyword defun."""
        definition = match_definition("(cl-defun org-dblock-write:x (params) nil)")
        assert definition is not None
        assert definition.shape == DefinitionShape.KEYWORD_DEFUN

    def test_defalias_lambda(self) -> None:
        """defalias of a lambda keeps the alias name."""
        definition = match_definition(
            "(defalias 'org-babel-execute:x #'(lambda (body params) \"Doc.\" nil))"
        )
        assert definition is not None
        assert definition.shape == DefinitionShape.LAMBDA
        assert definition.name == "org-babel-execute:x"
        assert definition.docstring == "Doc."

    def test_bare_lambda(self) -> None:
        """A bare lambda has no name."""
        definition = match_definition("(lambda (params) nil)")
        assert definition is not None
        assert definition.name is None
        assert definition.parameters == ("params",)

    def test_no_docstring(self) -> None:
        """Definitions without docstrings report None."""
        definition = match_definition("(defun f (a) (g a))")
        assert definition is not None
        assert definition.docstring is None

    def test_not_a_definition(self) -> None:
        """Other forms are not definitions."""
        assert match_definition("(defvar x 1)") is None


class TestExtractCommentary:
    """Tests for extract_commentary function."""

    def test_library_commentary(self) -> None:
        """Comment markers are removed and the section ends at Code."""
        assert extract_commentary(LIBRARY) == (
            "Org-Babel support for evaluating demo code.\n"
            "\n"
            "Requires the demo interpreter."
        )

    def test_missing_section(self) -> None:
        """No Commentary header -> None."""
        assert extract_commentary("(defun f () nil)") is None


def test_flatten_whitespace() -> None:
    """Whitespace runs collapse to single spaces."""
    assert flatten_whitespace("(a\n\t  b   c)\n") == "(a b c)"
