"""Completion candidate types."""

from __future__ import annotations

from collections.abc import Callable
from typing import NamedTuple

from orglsp.lsp.types import Phase, Provenance
from orglsp.org.types import TypeDescriptor


class Candidate(NamedTuple):
    """A completion suggestion."""

    text: str  # Literal to insert
    provenance: Provenance  # Tier that produced it
    annotation: str  # Short inline tag, e.g. "sql parameter (common)"
    documentation: Callable[[], str]  # Deferred; runs only when called
    value_type: TypeDescriptor | None = None  # Parameter keys only


class CompletionResult(NamedTuple):
    """Candidates and the span of the line they replace."""

    replace_start: int
    replace_end: int  # Exclusive
    candidates: list[Candidate]
    phase: Phase | None = None


def dedupe_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """Drop candidates whose text was already seen; the first one wins."""
    seen: set[str] = set()
    unique: list[Candidate] = []
    for candidate in candidates:
        if candidate.text in seen:
            continue
        seen.add(candidate.text)
        unique.append(candidate)
    return unique
