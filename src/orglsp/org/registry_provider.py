from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Callable, TypeAlias

from orglsp.logging import get_logger
from orglsp.org.registry import HandlerRegistry

RegistryBuilder: TypeAlias = Callable[[], HandlerRegistry]
RegistryProvider: TypeAlias = Callable[[], HandlerRegistry]

__all__ = [
    "RegistryBuilder",
    "RegistryProvider",
    "default_registry_provider",
    "make_cached_registry_provider",
]


def make_cached_registry_provider(builder: RegistryBuilder) -> RegistryProvider:
    """Create a cached provider that calls builder once and caches result.

    Logs cache misses (first call) and cache hits (subsequent calls).
    Thread-safe: ensures builder is called exactly once even under concurrent access.
    """

    cache: HandlerRegistry | None = None
    _lock = threading.Lock()
    _logger = get_logger("org.registry_provider")

    def provider() -> HandlerRegistry:
        nonlocal cache
        if cache is None:
            with _lock:
                if cache is None:
                    _logger.debug("Registry cache miss - loading knowledge sources")
                    cache = builder()
                else:
                    _logger.debug("Registry cache hit - using loaded registry")
        else:
            _logger.debug("Registry cache hit - using loaded registry")
        return cache

    return provider


def default_registry_provider(
    load_paths: Iterable[Path] = (),
    knowledge_files: Iterable[Path] = (),
    *,
    include_defaults: bool = True,
) -> RegistryProvider:
    """Create the production provider loading the given knowledge sources."""
    from orglsp.org.loader import load_registry

    paths = tuple(load_paths)
    files = tuple(knowledge_files)

    def build() -> HandlerRegistry:
        return load_registry(paths, files, include_defaults=include_defaults)

    return make_cached_registry_provider(build)
