"""Built-in Handlebars helpers and the async-helper wrapper.

Helpers here follow the pybars calling convention: the current scope comes
first, block helpers receive an ``options`` mapping with ``fn`` / ``inverse``
next, then the positional and hash arguments from the template.

All of them act on the RenderContext of the render in progress.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import Any

from hbsview.render_context import get_render_context_required
from hbsview.template.core import join_output
from hbsview.utils.constants import BLOCK_HELPER, CONTENT_FOR_HELPER


def content_for(this: Any, options: Any, name: str) -> str:
    """Capture the block body into the named buffer.

    Example:
        ```
        {{#contentFor "pageStylesheets"}}
        <link rel="stylesheet" href="{{{URL "css/style.css"}}}" />
        {{/contentFor}}
        ```
    """
    fragment = join_output(options["fn"](this))
    get_render_context_required().blocks.content_for(name, fragment)
    return ""


def block(this: Any, name: str) -> str:
    """Emit (and drain) the named buffer, usually from a layout.

    Example:
        ```
        <head>{{{block "pageStylesheets"}}}</head>
        ```
    """
    return get_render_context_required().blocks.block(name)


BUILTIN_HELPERS: dict[str, Callable[..., Any]] = {
    CONTENT_FOR_HELPER: content_for,
    BLOCK_HELPER: block,
}


def async_helper(name: str, fn: Callable[..., Awaitable[Any] | Any]) -> Callable[..., str]:
    """Wrap ``fn`` so its value is routed through the render's waiter.

    The wrapper returns a placeholder token right away; the value of
    ``fn(this, *args, **kwargs)`` replaces it once the render awaits its
    pending batch.
    """

    @functools.wraps(fn)
    def wrapper(this: Any, *args: Any, **kwargs: Any) -> str:
        waiter = get_render_context_required().waiter
        return waiter.resolve(fn, this, *args, helper_name=name, **kwargs)

    return wrapper
