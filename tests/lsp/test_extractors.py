"""Tests for the parameter key extraction tiers."""

from __future__ import annotations

import logging

import pytest

from orglsp.lsp.extractors import (
    extract_from_doc,
    extract_from_schema,
    extract_from_source,
    parameter_binding,
    scan_documented_keys,
    scan_parameter_accesses,
)
from orglsp.lsp.types import BlockDescriptor, BlockKind, Provenance
from orglsp.org.registry import HandlerInfo, HandlerRegistry
from orglsp.org.types import ANY, atomic
from tests.helpers.registries import CLOCKTABLE_DEFINITION, SQL_DEFINITION, org_registry


class TestParameterBinding:
    """Tests for parameter_binding function."""

    def test_source_handler(self) -> None:
        """(body params) binds params."""
        assert parameter_binding(SQL_DEFINITION, BlockKind.TYPED) == "params"

    def test_dynamic_handler(self) -> None:
        """(params) binds params for dynamic blocks."""
        assert parameter_binding(CLOCKTABLE_DEFINITION, BlockKind.DYNAMIC) == "params"

    def test_trailing_optional_argument(self) -> None:
        """(body params &optional processed) still binds params."""
        definition = (
            "(defun org-babel-execute:latex (body params &optional processed)\n"
            '  "Doc."\n'
            "  (plist-get params :file))"
        )
        assert parameter_binding(definition, BlockKind.TYPED) == "params"

    def test_renamed_binding(self) -> None:
        """The binding name is whatever the handler declares."""
        definition = "(defun org-babel-execute:foo (src args) (assq :bar args))"
        assert parameter_binding(definition, BlockKind.TYPED) == "args"

    def test_dynamic_uses_last_declared(self) -> None:
        """Dynamic writers use the last declared argument, keywords removed."""
        definition = "(defun org-dblock-write:foo (&optional params) nil)"
        assert parameter_binding(definition, BlockKind.DYNAMIC) == "params"

    def test_keyword_defun(self) -> None:
        """cl-defun headers are recognized."""
        definition = "(cl-defun org-babel-execute:foo (body params) nil)"
        assert parameter_binding(definition, BlockKind.TYPED) == "params"

    def test_lambda(self) -> None:
        """A lambda definition is recognized."""
        definition = "(defalias 'org-babel-execute:foo (lambda (body params) nil))"
        assert parameter_binding(definition, BlockKind.TYPED) == "params"

    def test_empty_argument_list(self) -> None:
        """No arguments -> no binding."""
        assert parameter_binding("(defun org-dblock-write:foo () nil)", BlockKind.DYNAMIC) is None

    def test_unrecognized_shape(self) -> None:
        """Text that is not a definition -> no binding."""
        assert parameter_binding("(setq x 1)", BlockKind.TYPED) is None


class TestScanParameterAccesses:
    """Tests for scan_parameter_accesses function."""

    def test_all_access_forms(self) -> None:
        """plist-get, alist-get and assq are found in source order."""
        assert scan_parameter_accesses(SQL_DEFINITION, "params") == [
            ":result-params",
            ":dbhost",
            ":dbuser",
            ":engine",
        ]

    def test_only_the_binding_is_scanned(self) -> None:
        """Accesses on other objects are ignored."""
        definition = "(defun f (body params) (plist-get other :x) (plist-get params :y))"
        assert scan_parameter_accesses(definition, "params") == [":y"]

    def test_duplicates_removed(self) -> None:
        """Each key is reported once."""
        definition = "(defun f (params) (plist-get params :a) (plist-get params :a))"
        assert scan_parameter_accesses(definition, "params") == [":a"]

    def test_whitespace_inside_call(self) -> None:
        """Newlines and padding inside the call are tolerated."""
        definition = "(defun f (params)\n  ( plist-get\n    params\n    :scope ))"
        assert scan_parameter_accesses(definition, "params") == [":scope"]

    def test_split_access_is_missed(self) -> None:
        """An access wrapped around other parentheses is not found."""
        definition = "(defun f (params) (plist-get (identity params) :x))"
        assert scan_parameter_accesses(definition, "params") == []

    def test_access_in_comment_is_reported(self) -> None:
        """Comments are not stripped before scanning."""
        definition = "(defun f (params)\n  ;; (plist-get params :old)\n  nil)"
        assert scan_parameter_accesses(definition, "params") == [":old"]


class TestExtractFromSource:
    """Tests for extract_from_source function."""

    def test_source_block(self) -> None:
        """Keys read by the sql handler."""
        keys = extract_from_source(org_registry(), "org-babel-execute:sql", BlockKind.TYPED)
        assert keys == [":result-params", ":dbhost", ":dbuser", ":engine"]

    def test_dynamic_block(self) -> None:
        """Keys read by the clocktable writer."""
        keys = extract_from_source(
            org_registry(), "org-dblock-write:clocktable", BlockKind.DYNAMIC
        )
        assert keys == [":scope", ":maxlevel"]

    def test_no_definition(self) -> None:
        """Handlers without source yield nothing."""
        assert extract_from_source(org_registry(), "org-babel-execute:shell", BlockKind.TYPED) == []

    def test_unknown_handler(self) -> None:
        """Unknown handlers yield nothing."""
        assert extract_from_source(org_registry(), "org-babel-execute:nope", BlockKind.TYPED) == []

    def test_failure_is_contained(self, caplog: pytest.LogCaptureFixture) -> None:
        """A raising registry yields an empty list and a log record."""

        class BrokenRegistry(HandlerRegistry):
            def resolve_definition(self, name: str) -> str | None:
                raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="orglsp.lsp.extractors"):
            keys = extract_from_source(BrokenRegistry(), "org-babel-execute:sql", BlockKind.TYPED)

        assert keys == []
        assert "Extraction step extract_from_source failed" in caplog.text


class TestScanDocumentedKeys:
    """Tests for scan_documented_keys function."""

    def test_backquoted_key(self) -> None:
        """Keys quoted Emacs-style are found."""
        assert scan_documented_keys("Use `:shebang' to pick the interpreter.") == [":shebang"]

    def test_space_delimited_key(self) -> None:
        """Keys set off by whitespace are found."""
        assert scan_documented_keys("Accepts :engine and :dbhost here") == [":engine", ":dbhost"]

    def test_curly_quotes(self) -> None:
        """Typographic quotes delimit keys too."""
        assert scan_documented_keys("Set ‘:cmd’ first.") == [":cmd"]

    def test_uppercase_is_ignored(self) -> None:
        """Only lowercase keys qualify."""
        assert scan_documented_keys("The :Results key") == []

    def test_embedded_colon_is_ignored(self) -> None:
        """Colons inside words or URLs are not keys."""
        assert scan_documented_keys("See http://example.org and foo:bar") == []

    def test_trailing_punctuation_rejects_key(self) -> None:
        """A key followed by punctuation other than quotes is skipped."""
        assert scan_documented_keys("Set :dir, then run.") == []

    def test_duplicates_removed(self) -> None:
        """Each key is reported once."""
        assert scan_documented_keys(":a :a :b") == [":a", ":b"]


class TestExtractFromDoc:
    """Tests for extract_from_doc function."""

    def test_documented_handler(self) -> None:
        """Shell handler documents :shebang."""
        assert extract_from_doc(org_registry(), "org-babel-execute:shell") == [":shebang"]

    def test_undocumented_handler(self) -> None:
        """No documentation -> no keys."""
        assert extract_from_doc(org_registry(), "org-babel-execute:python") == []


class TestExtractFromSchema:
    """Tests for extract_from_schema function."""

    def test_candidates_keep_table_order(self) -> None:
        """One candidate per entry, in table order, with its type."""
        block = BlockDescriptor(kind=BlockKind.TYPED, name="sql")
        entries = {":dir": atomic("dir"), ":session": ANY}

        candidates = extract_from_schema(org_registry(), block, entries, Provenance.COMMON)

        assert [c.text for c in candidates] == [":dir", ":session"]
        assert candidates[0].annotation == "sql parameter (common)"
        assert candidates[0].provenance == Provenance.COMMON
        assert candidates[0].value_type == atomic("dir")

    def test_documentation_is_callable(self) -> None:
        """Documentation is a thunk mentioning the handler."""
        block = BlockDescriptor(kind=BlockKind.TYPED, name="sql")
        candidates = extract_from_schema(
            org_registry(), block, {":dir": atomic("dir")}, Provenance.NATIVE
        )
        assert "org-babel-execute:sql" in candidates[0].documentation()

    def test_empty_table(self) -> None:
        """Empty table -> no candidates."""
        block = BlockDescriptor(kind=BlockKind.DYNAMIC, name="clocktable")
        assert extract_from_schema(HandlerRegistry(), block, {}, Provenance.NATIVE) == []


def test_registered_handler_info_is_used() -> None:
    """Source registered later replaces missing source."""
    registry = HandlerRegistry()
    registry.register_handler(HandlerInfo(name="org-dblock-write:foo", package="foo"))
    registry.register_handler(
        HandlerInfo(
            name="org-dblock-write:foo",
            definition="(defun org-dblock-write:foo (params) (plist-get params :bar))",
        )
    )
    assert extract_from_source(registry, "org-dblock-write:foo", BlockKind.DYNAMIC) == [":bar"]


class TestHeuristicScenarios:
    """Reference inputs for the two text heuristics."""

    def test_source_access_order(self) -> None:
        """plist-get then assq on params -> [':dbhost', ':dbuser']."""
        text = "(defun org-babel-execute:sql (body params) (plist-get params :dbhost) (assq :dbuser params))"
        assert scan_parameter_accesses(text, "params") == [":dbhost", ":dbuser"]

    def test_documented_keys_in_mixed_quotes(self) -> None:
        """Backquotes and curly quotes inside double quotes both delimit keys."""
        text = "Use `:tangle` or \"‘:eval’\" to control."
        assert scan_documented_keys(text) == [":tangle", ":eval"]
