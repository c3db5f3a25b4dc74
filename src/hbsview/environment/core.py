"""hbsview Environment — configuration and public entry points.

The Environment is configured once per process. It owns the Source
Provider, the compiled template cache, the helper and partial registries and
the render pipeline.

Example:
    >>> env = Environment(
    ...     views="views/",
    ...     partials_path="views/partials",
    ...     default_layout="layouts/main",
    ... )
    >>> env.register_helper("upper", lambda this, s: s.upper())
    >>> html = await env.render("index.hbs", title="Home", cache=True)

"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hbsview.environment.exceptions import ConfigurationError, HbsError, ProviderError
from hbsview.environment.providers import FileProvider, SourceProvider, is_valid_provider
from hbsview.environment.registry import HelperRegistry, PartialRegistry
from hbsview.layout import UNSET, LayoutResolver
from hbsview.pipeline import RenderPipeline
from hbsview.template.cache import TemplateCache
from hbsview.template.core import Compiler, Template, compile_template
from hbsview.template.helpers import BUILTIN_HELPERS
from hbsview.utils.constants import CACHE_OPTION, DEFAULT_EXTNAME, LAYOUT_OPTION
from hbsview.waiter import AsyncErrorHook

logger = logging.getLogger(__name__)

RenderCallback = Callable[[Exception | None, str | None], None]
ViewEngine = Callable[[str, Mapping[str, Any], RenderCallback], "asyncio.Task[None]"]


@dataclass
class Environment:
    """Central configuration and rendering entry point.

    Attributes:
        provider: Source Provider; a FileProvider rooted at ``views`` when omitted
        views: Root directory for the default FileProvider
        extname: Extension applied to layout names without one
        default_layout: Identity of the layout used when no other applies
        partials_path: Partials directory for the default FileProvider
        partials_dir: Legacy alias for ``partials_path``
        cache: Default for the ``cache`` render option
        compiler: Handlebars compiler (default: ``pybars.Compiler()``)
        on_async_error: Called with an AsyncHelperError for each failed
            async helper; the render itself still succeeds

    Raises:
        ConfigurationError: If the provider does not implement both
            ``get_template`` and ``get_partials``
    """

    provider: SourceProvider | None = None
    views: str | Path = "."
    extname: str = DEFAULT_EXTNAME
    default_layout: str | None = None
    partials_path: str | Path | None = None
    partials_dir: str | Path | None = None
    cache: bool = False
    compiler: Compiler | None = None
    on_async_error: AsyncErrorHook | None = None

    _cache: TemplateCache = field(default_factory=TemplateCache, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.extname.startswith("."):
            self.extname = "." + self.extname
        # partials_dir is accepted for backwards compatibility
        if self.partials_path is None and self.partials_dir is not None:
            self.partials_path = self.partials_dir

        if self.provider is None:
            self.provider = FileProvider(self.views, partials_path=self.partials_path)
        if not is_valid_provider(self.provider):
            raise ConfigurationError("Invalid template provider interface.")

        if self.compiler is None:
            from pybars import Compiler as PybarsCompiler

            self.compiler = PybarsCompiler()

        self._helpers_registry = HelperRegistry(BUILTIN_HELPERS)
        self._partials_registry = PartialRegistry(self.compile)

        self._layouts = LayoutResolver(
            self._cache, self.fetch_template, self.compile, self.extname
        )
        self._pipeline = RenderPipeline(self)

    # -----------------------------------------------------------------
    # Registries
    # -----------------------------------------------------------------

    @property
    def helpers(self) -> HelperRegistry:
        """Helpers available to every template (``contentFor`` and ``block`` built in)."""
        return self._helpers_registry

    @property
    def partials(self) -> PartialRegistry:
        """Compiled partials by name (provider partials are loaded on first render)."""
        return self._partials_registry

    @property
    def layouts(self) -> LayoutResolver:
        return self._layouts

    @property
    def template_cache(self) -> TemplateCache:
        return self._cache

    def register_helper(self, name: str, fn: Callable[..., Any]) -> None:
        """Register a synchronous helper.

        Called pybars-style: ``fn(this, *args, **hash)``; block helpers get
        ``fn(this, options, *args, **hash)``.
        """
        self._helpers_registry.register(name, fn)

    def register_async_helper(self, name: str, fn: Callable[..., Awaitable[Any] | Any]) -> None:
        """Register a helper whose value is computed asynchronously.

        ``fn`` is typically a coroutine function taking the same arguments as
        a synchronous helper. Its result replaces a placeholder token once
        the render awaits it; if it raises, the output is ``""``.

        Example:
            >>> async def user_name(this, user_id):
            ...     return (await db.users.get(user_id)).name
            >>> env.register_async_helper("userName", user_name)
            >>> # {{userName 42}}
        """
        self._helpers_registry.register_async(name, fn)

    def register_partial(self, name: str, source: str | Template) -> Template:
        """Register a partial from source text or a compiled Template.

        Raises:
            CompileError: If ``source`` does not compile
        """
        return self._partials_registry.register(name, source)

    # -----------------------------------------------------------------
    # Source access
    # -----------------------------------------------------------------

    async def fetch_template(self, name: str) -> str:
        """Read template source from the provider.

        Failures that are not hbsview errors (a custom provider raising
        ``KeyError``, a client library error) are wrapped in ProviderError
        with the original exception as ``__cause__``.

        Raises:
            ProviderError: If the provider cannot deliver the source
        """
        assert self.provider is not None
        try:
            return await self.provider.get_template(name)
        except HbsError:
            raise
        except Exception as e:
            raise ProviderError(
                f"Provider failed to load template '{name}': {e!r}", template_name=name
            ) from e

    async def fetch_partials(self) -> dict[str, str | None]:
        """Read every partial from the provider, wrapping foreign failures.

        Raises:
            ProviderError: If the provider cannot deliver the partials
        """
        assert self.provider is not None
        try:
            return dict(await self.provider.get_partials())
        except HbsError:
            raise
        except Exception as e:
            raise ProviderError(f"Provider failed to load partials: {e!r}") from e

    # -----------------------------------------------------------------
    # Compilation and caching
    # -----------------------------------------------------------------

    def compile(self, name: str, source: str) -> Template:
        """Compile ``source`` under identity ``name``.

        Raises:
            CompileError: If the source is not valid Handlebars
        """
        assert self.compiler is not None
        return compile_template(self.compiler, name, source)

    def from_string(self, source: str, name: str = "<string>") -> Template:
        """Compile a template from a string (not cached)."""
        return self.compile(name, source)

    def clear_cache(self) -> None:
        """Drop compiled templates, the default layout and loaded partials."""
        self._cache.clear()
        self._pipeline.reset()

    def cache_info(self) -> dict[str, int]:
        """Return template cache statistics (hits, misses, size)."""
        return self._cache.info()

    # -----------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------

    async def render(
        self,
        name: str,
        context: Mapping[str, Any] | None = None,
        /,
        **options: Any,
    ) -> str:
        """Render template ``name`` and return the final string.

        Render options are read from the merged data: ``cache`` (defaults to
        ``Environment.cache``) and ``layout`` (a path, or a falsy value for
        "no layout"). Every key, options included, is passed to the
        template. ``body`` is reserved for layouts and is overwritten.

        Example:
            >>> await env.render("fruit.hbs", fruit="orange", layout="fruitLayout")

        Raises:
            ProviderError: If a template, layout or the partials cannot be fetched
            CompileError: If a template, layout or partial does not compile
            RenderError: If a compiled template raises while rendering
        """
        data: dict[str, Any] = {**(context or {}), **options}
        use_cache = bool(data.get(CACHE_OPTION, self.cache))
        layout_option = data[LAYOUT_OPTION] if LAYOUT_OPTION in data else UNSET
        return await self._pipeline.run(
            name, data, use_cache=use_cache, layout_option=layout_option
        )

    def view_engine(self) -> ViewEngine:
        """Return a callback-style render entry point.

        The returned ``engine(filename, options, callback)`` schedules the
        render on the running event loop and calls ``callback(error, html)``
        exactly once: ``(None, html)`` on success, ``(error, None)`` when the
        render fails. Errors are HbsError subclasses for every failure the
        pipeline knows about; anything else is passed through as raised.

        Example:
            >>> engine = env.view_engine()
            >>> engine("index.hbs", {"title": "Home"}, lambda err, html: print(err or html))
        """

        async def _render(
            filename: str, options: Mapping[str, Any], callback: RenderCallback
        ) -> None:
            try:
                result = await self.render(filename, options)
            except Exception as e:
                callback(e, None)
                return
            callback(None, result)

        def engine(
            filename: str, options: Mapping[str, Any], callback: RenderCallback
        ) -> asyncio.Task[None]:
            return asyncio.get_running_loop().create_task(_render(filename, options, callback))

        return engine
