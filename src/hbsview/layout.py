"""Layout resolution for a single render.

Priority (first match wins):
1. ``{{!< path }}`` directive in the template source
2. ``layout`` render option, when the key is present (a falsy value means
   "no layout" and also suppresses the default)
3. The Environment's default layout
4. No layout

A directive always wins, even over ``layout=False``.
"""

from __future__ import annotations

import logging
from typing import Any, Final

from hbsview.template.cache import CacheEntry, SourceFetcher, TemplateCache, TemplateCompiler
from hbsview.template.core import Template
from hbsview.utils.paths import normalize_identity, resolve_relative, with_extension

logger = logging.getLogger(__name__)


class _Unset:
    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


# Marks a render without a ``layout`` option (distinct from layout=None/False)
UNSET: Final = _Unset()


class LayoutResolver:
    """Pick and load the layout that wraps a compiled template.

    Layout files go through the shared TemplateCache, so the same layout
    reached through different relative spellings is compiled once.

    Attributes:
        extname: Extension applied to layout paths without one
    """

    __slots__ = ("_cache", "_compile", "_fetch", "extname")

    def __init__(
        self,
        cache: TemplateCache,
        fetch: SourceFetcher,
        compile: TemplateCompiler,
        extname: str,
    ):
        self._cache = cache
        self._fetch = fetch
        self._compile = compile
        self.extname = extname

    async def load(self, identity: str, use_cache: bool) -> Template:
        """Load a layout by identity, applying the default extension."""
        identity = normalize_identity(with_extension(identity, self.extname))
        entry = await self._cache.get_or_compile(identity, self._fetch, self._compile, use_cache)
        return entry.template

    async def resolve(
        self,
        entry: CacheEntry,
        layout_option: Any = UNSET,
        default_layout: Template | None = None,
        use_cache: bool = False,
    ) -> Template | None:
        """Return the layout for ``entry``'s template, or None.

        Args:
            entry: Cache entry of the template being rendered
            layout_option: Value of the ``layout`` render option, or UNSET
            default_layout: The Environment's default layout, if loaded
            use_cache: Whether layout files may come from / go to the cache

        Raises:
            ProviderError: If the chosen layout cannot be fetched
            CompileError: If the chosen layout does not compile
        """
        template = entry.template

        # 1. Layout declared in the template
        if template.layout_directive is not None:
            if use_cache and entry.layout is not None:
                return entry.layout
            identity = resolve_relative(template.name, template.layout_directive, self.extname)
            logger.debug("Layout %s from directive in %s", identity, template.name)
            layout = await self.load(identity, use_cache)
            if use_cache:
                entry.layout = layout
            return layout

        # 2. Layout passed with the render options
        if layout_option is not UNSET:
            if not layout_option:
                return None
            identity = resolve_relative(template.name, str(layout_option), self.extname)
            logger.debug("Layout %s from render options", identity)
            return await self.load(identity, use_cache)

        # 3. Default layout configured on the Environment
        return default_layout
