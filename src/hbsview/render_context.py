"""hbsview RenderContext — per-render state kept out of the template data.

Helpers registered on an Environment are plain functions called by the
Handlebars runtime; they receive the template data but nothing about the
render in progress. The block buffers and the pending async values of the
current render are therefore published through a ContextVar, set for the
duration of one ``Environment.render`` call.

Benefits:
    - Concurrent renders (separate asyncio tasks) never share block buffers
      or placeholder batches
    - Template data stays clean (no internal keys injected)
    - Helpers find their render without extra arguments

"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field

from hbsview.template.blocks import BlockRegistry
from hbsview.waiter import AsyncErrorHook, Waiter


@dataclass
class RenderContext:
    """Per-render state isolated from template data.

    Async Safety:
        Each asyncio task runs in its own copy of the context, so two renders
        awaiting I/O at the same time each see their own RenderContext.

    Attributes:
        template_name: Identity of the template being rendered
        layout_name: Identity of the layout wrapping it, once resolved
        blocks: Named buffers for block / contentFor
        waiter: Pending async helper values
    """

    template_name: str | None = None
    layout_name: str | None = None
    blocks: BlockRegistry = field(default_factory=BlockRegistry)
    waiter: Waiter = field(default_factory=Waiter)


# Module-level ContextVar
_render_context: ContextVar[RenderContext | None] = ContextVar(
    "hbsview_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


def get_render_context_required() -> RenderContext:
    """Get current render context, raise if not in render.

    Used by the built-in block helpers and async-helper wrappers.

    Raises:
        RuntimeError: If not in a render context
    """
    ctx = _render_context.get()
    if ctx is None:
        raise RuntimeError("Not in a render context")
    return ctx


@asynccontextmanager
async def async_render_context(
    template_name: str | None = None,
    on_async_error: AsyncErrorHook | None = None,
) -> AsyncIterator[RenderContext]:
    """Async context manager for render-scoped state.

    Creates a new RenderContext and sets it as the current context for the
    duration of the ``async with`` block, restoring the previous one on exit.
    Async helper computations still pending on exit (the render failed
    before awaiting them) are cancelled.

    Args:
        template_name: Template identity for error reports
        on_async_error: Hook receiving AsyncHelperError for failed helpers

    Yields:
        The new RenderContext
    """
    ctx = RenderContext(
        template_name=template_name,
        waiter=Waiter(on_error=on_async_error, template_name=template_name),
    )
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        ctx.waiter.cancel()
        _render_context.reset(token)
