"""LSP layer for Org block header completion."""

from orglsp.lsp.candidates import Candidate, CompletionResult
from orglsp.lsp.completions import get_completions, setup_completion
from orglsp.lsp.parser import classify
from orglsp.lsp.types import (
    BlockDescriptor,
    BlockKind,
    ClassificationResult,
    Phase,
    Provenance,
)

__all__ = [
    "BlockDescriptor",
    "BlockKind",
    "Candidate",
    "ClassificationResult",
    "CompletionResult",
    "Phase",
    "Provenance",
    "classify",
    "get_completions",
    "setup_completion",
]
