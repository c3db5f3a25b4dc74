"""Compiled template cache keyed by resolved identity."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from hbsview.template.core import Template
from hbsview.utils.paths import normalize_identity

logger = logging.getLogger(__name__)

SourceFetcher = Callable[[str], Awaitable[str]]
TemplateCompiler = Callable[[str, str], Template]


@dataclass(slots=True)
class CacheEntry:
    """One compiled file.

    Attributes:
        template_key: Normalized identity of the file
        template: The compiled file itself
        layout: Layout named by the file's own ``{{!< path }}`` directive,
            attached the first time it is resolved
    """

    template_key: str
    template: Template
    layout: Template | None = None


class TemplateCache:
    """Memoize compiled templates and layouts by resolved identity.

    Layouts are cached like any other file, under their own identity, so a
    layout shared by many pages is compiled once.

    With ``use_cache=False`` the cache is neither read nor written, which
    gives always-fresh content for development hot reload.

    Complexity: O(1) for lookups.

    Example:
            >>> cache = TemplateCache()
            >>> entry = await cache.get_or_compile("index.hbs", provider.get_template,
            ...                                    env.compile, use_cache=True)
            >>> entry is await cache.get_or_compile("./index.hbs", ..., use_cache=True)
            True

    """

    __slots__ = ("_entries", "_stats")

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._stats: dict[str, int] = {"hits": 0, "misses": 0}

    async def get_or_compile(
        self,
        identity: str,
        fetch: SourceFetcher,
        compile: TemplateCompiler,
        use_cache: bool,
    ) -> CacheEntry:
        """Return the entry for ``identity``, fetching and compiling on a miss.

        Raises:
            ProviderError: If ``fetch`` fails (nothing is cached)
            CompileError: If the source does not compile (nothing is cached)
        """
        key = normalize_identity(identity)
        if use_cache:
            entry = self._entries.get(key)
            if entry is not None:
                self._stats["hits"] += 1
                logger.debug("Template cache hit: %s", key)
                return entry

        self._stats["misses"] += 1
        source = await fetch(key)
        entry = CacheEntry(template_key=key, template=compile(key, source))
        if use_cache:
            # A concurrent render may have stored the same file meanwhile;
            # keep the first entry so callers share one Template.
            entry = self._entries.setdefault(key, entry)
            logger.debug("Template cached: %s", key)
        return entry

    def get(self, identity: str) -> CacheEntry | None:
        return self._entries.get(normalize_identity(identity))

    def clear(self) -> None:
        """Drop every entry (statistics are kept)."""
        self._entries.clear()

    def info(self) -> dict[str, int]:
        """Return ``{"hits", "misses", "size"}``."""
        return {**self._stats, "size": len(self._entries)}

    def __contains__(self, identity: object) -> bool:
        return isinstance(identity, str) and normalize_identity(identity) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
