"""Deferred documentation for completion candidates.

Documentation may read package commentary and handler docstrings, so it is
built behind a zero-argument callable that the server invokes only when a
client asks to resolve a single candidate.
"""

from __future__ import annotations

from collections.abc import Callable

from orglsp.logging import get_logger
from orglsp.lsp.error_handling import guard_extraction
from orglsp.lsp.types import BlockDescriptor, Phase
from orglsp.org.conventions import default_package, handler_name
from orglsp.org.registry import HandlerRegistry
from orglsp.org.types import TypeDescriptor, render_type

SECTION_RULE = "\n\n---\n\n"

_logger = get_logger("lsp.documentation")


def _none() -> None:
    return None


def _type_section(
    phase: Phase, descriptor: TypeDescriptor, key: str | None
) -> str:
    rendered = render_type(descriptor)
    if key is None:
        return f"Type: {rendered}"
    if phase == Phase.PARAMETER_VALUE:
        return f"Values of `{key}`: {rendered}"
    return f"`{key}` accepts: {rendered}"


@guard_extraction(logger=_logger, default_factory=_none)
def _commentary_section(
    registry: HandlerRegistry, block: BlockDescriptor, handler: str
) -> str | None:
    package = registry.package_of(handler) or default_package(block.kind, block.name)
    if package is None:
        return None
    commentary = registry.load_commentary(package)
    if not commentary or not commentary.strip():
        return None
    return f"**{package}**\n\n{commentary.strip()}"


@guard_extraction(logger=_logger, default_factory=_none)
def _handler_documentation(registry: HandlerRegistry, handler: str) -> str | None:
    documentation = registry.resolve_documentation(handler)
    if not documentation or not documentation.strip():
        return None
    return documentation.strip()


def compose_doc(
    registry: HandlerRegistry,
    block: BlockDescriptor,
    phase: Phase,
    descriptor: TypeDescriptor | None = None,
    *,
    key: str | None = None,
) -> str:
    """
    Compose the documentation text for one candidate now.

    Sections, in order and separated by a horizontal rule: the rendered
    type (when a descriptor is given), the owning package's commentary, a
    line naming the handler function, and the handler's docstring. Sections
    that cannot be resolved are left out.
    """
    handler = handler_name(block.kind, block.name)
    sections: list[str] = []

    if descriptor is not None:
        sections.append(_type_section(phase, descriptor, key))

    commentary = _commentary_section(registry, block, handler)
    if commentary:
        sections.append(commentary)

    sections.append(f"Handler: `{handler}`")

    documentation = _handler_documentation(registry, handler)
    if documentation:
        sections.append(documentation)

    return SECTION_RULE.join(sections)


def build_doc(
    registry: HandlerRegistry,
    block: BlockDescriptor,
    phase: Phase,
    descriptor: TypeDescriptor | None = None,
    *,
    key: str | None = None,
) -> Callable[[], str]:
    """
    Return a thunk that composes the candidate documentation when called.

    Nothing is looked up until the thunk runs.
    """

    def documentation() -> str:
        return compose_doc(registry, block, phase, descriptor, key=key)

    return documentation
