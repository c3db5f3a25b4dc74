"""Render pipeline — one render request from template name to final string.

Stages (each runs only if the previous one succeeded):

1. **LoadPartials**: fetch and register all partials (once per Environment
   while caching, on every render otherwise)
2. **LoadDefaultLayout**: load the configured default layout, if any
3. **ResolveAndCompile**: compiled template from the cache or the provider,
   then layout resolution
4. **RenderBody**: run the template; async helpers leave placeholder tokens
5. **SubstituteBody**: await the pending values and substitute them; without
   a layout this is the result
6. **RenderLayout**: run the layout with the body under the ``body`` key
7. **SubstituteLayout**: await and substitute the layout's own tokens

Provider, compile and render failures propagate to the caller; no partial
output is ever returned. Async helper failures degrade to ``""``.

"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from hbsview.environment.exceptions import TemplateNotFoundError
from hbsview.layout import UNSET
from hbsview.render_context import async_render_context
from hbsview.utils.constants import BODY_KEY
from hbsview.utils.paths import normalize_identity

if TYPE_CHECKING:
    from hbsview.environment.core import Environment
    from hbsview.template.core import Template

logger = logging.getLogger(__name__)


class RenderPipeline:
    """Orchestrates a render for an Environment.

    Holds the process-wide pieces of state that are not per-file: whether
    partials have been loaded and the compiled default layout. Everything
    scoped to one render lives on the RenderContext.

    Example:
            >>> pipeline = RenderPipeline(env)
            >>> await pipeline.run("index.hbs", {"title": "Home"}, use_cache=True)
            '<html><title>Home</title><h1>Front page</h1></html>'

    """

    __slots__ = ("_default_layout", "_env", "_partials_loaded")

    def __init__(self, env: Environment):
        self._env = env
        self._partials_loaded = False
        self._default_layout: Template | None = None

    @property
    def partials_loaded(self) -> bool:
        return self._partials_loaded

    def reset(self) -> None:
        """Forget loaded partials and the default layout."""
        self._partials_loaded = False
        self._default_layout = None

    async def load_partials(self, use_cache: bool) -> None:
        """Fetch partials from the provider and register them.

        A provider reporting TemplateNotFoundError (e.g. no partials
        directory) means there are no partials. A partial whose source is
        ``None`` is registered as empty.
        """
        if use_cache and self._partials_loaded:
            return

        env = self._env
        try:
            sources = await env.fetch_partials()
        except TemplateNotFoundError as e:
            logger.debug("No partials available: %s", e)
            sources = {}

        count = env.partials.load(sources)
        logger.debug("Registered %d partials", count)

        if use_cache:
            self._partials_loaded = True

    async def load_default_layout(self, use_cache: bool) -> Template | None:
        """Return the compiled default layout, loading it if needed."""
        env = self._env
        if not env.default_layout:
            return None
        if use_cache and self._default_layout is not None:
            return self._default_layout

        layout = await env.layouts.load(env.default_layout, use_cache)
        self._default_layout = layout
        return layout

    async def run(
        self,
        name: str,
        data: Mapping[str, Any],
        *,
        use_cache: bool,
        layout_option: Any = UNSET,
    ) -> str:
        """Render ``name`` with ``data`` and return the final string.

        Args:
            name: Template identity (provider key or path)
            data: Template data, including any render options
            use_cache: Use the template cache and load partials once
            layout_option: ``layout`` render option, or UNSET if absent

        Raises:
            ProviderError: If a template, layout or the partials cannot be fetched
            CompileError: If a template, layout or partial does not compile
            RenderError: If rendering the template or layout raises
        """
        env = self._env
        identity = normalize_identity(name)

        async with async_render_context(identity, on_async_error=env.on_async_error) as ctx:
            await self.load_partials(use_cache)
            default_layout = await self.load_default_layout(use_cache)

            entry = await env.template_cache.get_or_compile(
                identity, env.fetch_template, env.compile, use_cache
            )
            layout = await env.layouts.resolve(entry, layout_option, default_layout, use_cache)
            ctx.layout_name = layout.name if layout is not None else None

            helpers = env.helpers.snapshot()
            partials = env.partials.snapshot()
            waiter = ctx.waiter

            logger.debug("Rendering %s (layout=%s)", identity, ctx.layout_name)
            raw = entry.template.render(data, helpers=helpers, partials=partials)
            body = waiter.substitute(raw, await waiter.done())
            if layout is None:
                return body

            # Layouts declare a {{{body}}} slot into which the page is inserted
            layout_data = {**data, BODY_KEY: body}
            raw = layout.render(layout_data, helpers=helpers, partials=partials)
            return waiter.substitute(raw, await waiter.done())
