"""hbsview — Handlebars view engine with layouts, blocks and async helpers.

Compiles named Handlebars templates (via pybars3), wraps them in layouts,
lets pages hand content to their layout through named blocks, and
substitutes values from helpers that finish asynchronously.

Quickstart:
    >>> from hbsview import DictProvider, Environment
    >>> env = Environment(
    ...     provider=DictProvider({
    ...         "index.hbs": "<h1>Front page</h1>",
    ...         "mainLayout.hbs": "<html><title>{{title}}</title>{{{body}}}</html>",
    ...     }),
    ...     default_layout="mainLayout",
    ... )
    >>> await env.render("index.hbs", title="redis example")
    '<html><title>redis example</title><h1>Front page</h1></html>'

File-based templates:
    >>> env = Environment(views="views/", partials_path="views/partials")
    >>> await env.render("pages/about.hbs", page=page, cache=True)

Architecture:
Source Provider → Template Cache → Layout Resolver → Render Pipeline

Pipeline stages:
1. **LoadPartials**: register partials (once while caching)
2. **LoadDefaultLayout**: compile the configured default layout
3. **ResolveAndCompile**: compiled template + its layout
4. **RenderBody** / **SubstituteBody**: render, then fill async placeholders
5. **RenderLayout** / **SubstituteLayout**: wrap the body, fill again

Layouts:
A template picks its layout with a directive comment ``{{!< ../layouts/main}}``,
the ``layout`` render option, or the Environment's ``default_layout``, in that
order. The directive wins even over ``layout=False``.

Blocks:
    ```
    {{!-- page.hbs --}}
    {{#contentFor "scripts"}}<script src="page.js"></script>{{/contentFor}}

    {{!-- layout.hbs --}}
    <body>{{{body}}}{{{block "scripts"}}}</body>
    ```

Async Helpers:
    >>> async def weather(this, city):
    ...     return await api.forecast(city)
    >>> env.register_async_helper("weather", weather)
    >>> # {{weather "Oslo"}} renders a placeholder, replaced before return

Concurrency:
Block buffers and pending async values belong to a per-render
RenderContext (a ContextVar), so concurrent renders on one event loop do
not interfere. The template cache, partials and default layout are shared.

"""

from hbsview.environment import (
    AsyncHelperError,
    ChoiceProvider,
    CompileError,
    ConfigurationError,
    DictProvider,
    ErrorCode,
    FileProvider,
    HbsError,
    ProviderError,
    RenderError,
    SourceProvider,
    TemplateNotFoundError,
    is_valid_provider,
)
from hbsview.environment.core import Environment
from hbsview.layout import UNSET, LayoutResolver
from hbsview.pipeline import RenderPipeline
from hbsview.render_context import (
    RenderContext,
    async_render_context,
    get_render_context,
    get_render_context_required,
)
from hbsview.template import BlockRegistry, CacheEntry, Template, TemplateCache
from hbsview.waiter import Waiter

__version__ = "0.1.0"

__all__ = [
    "UNSET",
    "AsyncHelperError",
    "BlockRegistry",
    "CacheEntry",
    "ChoiceProvider",
    "CompileError",
    "ConfigurationError",
    "DictProvider",
    "Environment",
    "ErrorCode",
    "FileProvider",
    "HbsError",
    "LayoutResolver",
    "MongoProvider",
    "ProviderError",
    "RedisProvider",
    "RenderContext",
    "RenderError",
    "RenderPipeline",
    "SourceProvider",
    "Template",
    "TemplateCache",
    "TemplateNotFoundError",
    "Waiter",
    "__version__",
    "async_render_context",
    "get_render_context",
    "get_render_context_required",
    "is_valid_provider",
]


# Store-backed providers are importable without their client libraries
# installed; the libraries are only needed once a provider is built.
_LAZY_STORES = frozenset({"MongoProvider", "RedisProvider"})


def __getattr__(name: str) -> object:
    """Module-level getattr for lazy store-provider imports."""
    if name in _LAZY_STORES:
        from hbsview.environment.stores import MongoProvider, RedisProvider

        globals().update(MongoProvider=MongoProvider, RedisProvider=RedisProvider)
        return globals()[name]
    raise AttributeError(f"module 'hbsview' has no attribute {name!r}")
