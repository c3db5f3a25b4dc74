"""Deferred-value coordination for async helpers.

Handlebars templates render synchronously, so an async helper cannot hand
its value back in time. Instead it returns a placeholder token immediately
and the real value is computed as an asyncio task. After the synchronous
pass, the pipeline awaits the batch and substitutes every token.

Two-phase use within one render:
    ```python
    waiter = Waiter()
    raw = template(data)                  # helpers call waiter.resolve()
    body = waiter.substitute(raw, await waiter.done())
    raw_layout = layout({**data, "body": body})
    html = waiter.substitute(raw_layout, await waiter.done())
    ```

Failure Policy:
A computation that raises degrades to ``""`` for its token. The failure is
logged at WARNING and passed to the optional ``on_error`` hook; ``done()``
itself never raises for helper failures.

"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from hbsview.environment.exceptions import AsyncHelperError
from hbsview.utils.constants import PLACEHOLDER_PATTERN, PLACEHOLDER_PREFIX, PLACEHOLDER_SUFFIX

logger = logging.getLogger(__name__)

AsyncErrorHook = Callable[[AsyncHelperError], None]


def new_token() -> str:
    """Return a fresh placeholder token."""
    return f"{PLACEHOLDER_PREFIX}{uuid.uuid4().hex}{PLACEHOLDER_SUFFIX}"


def _render_cancelled() -> bool:
    # True only when the task awaiting the batch is itself being cancelled,
    # not when a helper's own coroutine raised CancelledError
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class Waiter:
    """Per-render batch of pending async helper values.

    Each ``resolve()`` call adds to the pending batch; each ``done()`` drains
    only what was added since the previous ``done()``. Values settled in an
    earlier batch stay available through ``resolved`` so a token captured by
    ``contentFor`` during the body pass is still replaced when the layout
    emits it.

    Attributes:
        resolved: Every token settled so far in this render
        template_name: Template being rendered (for error reports)

    """

    __slots__ = ("_names", "_on_error", "_pending", "resolved", "template_name")

    def __init__(
        self,
        on_error: AsyncErrorHook | None = None,
        template_name: str | None = None,
    ):
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._names: dict[str, str | None] = {}
        self._on_error = on_error
        self.resolved: dict[str, str] = {}
        self.template_name = template_name

    @property
    def pending(self) -> int:
        """Number of computations registered since the last ``done()``."""
        return len(self._pending)

    def resolve(
        self,
        fn: Callable[..., Awaitable[Any] | Any],
        *args: Any,
        helper_name: str | None = None,
        **kwargs: Any,
    ) -> str:
        """Start ``fn(*args, **kwargs)`` and return its placeholder token.

        ``fn`` may be a coroutine function or return any awaitable; a plain
        return value is accepted as already settled. Must be called while an
        event loop is running (i.e. during ``Environment.render``).
        """
        token = new_token()
        loop = asyncio.get_running_loop()
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:  # noqa: BLE001
            future: asyncio.Future[Any] = loop.create_future()
            future.set_exception(exc)
        else:
            if inspect.isawaitable(result):
                future = asyncio.ensure_future(result)
            else:
                future = loop.create_future()
                future.set_result(result)

        self._pending[token] = future
        self._names[token] = helper_name
        return token

    async def done(self) -> dict[str, str]:
        """Wait for the current batch and return ``{token: value}``.

        Failed computations map to ``""``. The batch is cleared, so the next
        ``done()`` only covers tokens created after this call.
        """
        if not self._pending:
            return {}

        batch, self._pending = self._pending, {}
        tokens = list(batch)
        results = await asyncio.gather(*batch.values(), return_exceptions=True)

        values: dict[str, str] = {}
        for token, result in zip(tokens, results, strict=True):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError) and _render_cancelled():
                    raise result
                self._report(token, result)
                values[token] = ""
            else:
                values[token] = "" if result is None else str(result)

        for token in tokens:
            self._names.pop(token, None)
        self.resolved.update(values)
        return values

    def cancel(self) -> int:
        """Cancel computations that were never awaited.

        Called when a render ends before ``done()`` drained its batch, e.g.
        a sync helper raised after an async helper had started. Failures of
        computations that already finished are retrieved and dropped.

        Returns:
            Number of computations cancelled
        """
        if not self._pending:
            return 0

        batch, self._pending = self._pending, {}
        cancelled = 0
        for token, future in batch.items():
            self._names.pop(token, None)
            if not future.done():
                future.cancel()
                cancelled += 1
            elif not future.cancelled():
                future.exception()
        if cancelled:
            logger.debug(
                "Cancelled %d pending async helpers for %s",
                cancelled,
                self.template_name or "<template>",
            )
        return cancelled

    def _report(self, token: str, exc: BaseException) -> None:
        helper_name = self._names.get(token)
        logger.warning(
            "Async helper %s failed while rendering %s: %s",
            helper_name or "<anonymous>",
            self.template_name or "<template>",
            exc,
            exc_info=exc,
        )
        if self._on_error is None:
            return
        error = AsyncHelperError(
            f"Async helper {helper_name or '<anonymous>'} failed: {exc}",
            token=token,
            helper_name=helper_name,
            template_name=self.template_name,
        )
        error.__cause__ = exc
        self._on_error(error)

    def substitute(self, text: str, values: dict[str, str] | None = None) -> str:
        """Replace placeholder tokens in ``text``.

        Tokens are looked up in ``values`` first, then among everything
        settled earlier in this render. Tokens still unknown are left in
        place.
        """
        if PLACEHOLDER_PREFIX not in text:
            return text

        def _replace(match: re.Match[str]) -> str:
            token = match.group(0)
            if values is not None and token in values:
                return values[token]
            return self.resolved.get(token, token)

        return PLACEHOLDER_PATTERN.sub(_replace, text)
