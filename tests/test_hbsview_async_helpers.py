"""Async helper tests for hbsview.

Async helpers return a placeholder during the synchronous Handlebars pass;
the pipeline awaits the values and substitutes them before returning.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from hbsview import AsyncHelperError, DictProvider, Environment, RenderError
from hbsview.utils.constants import PLACEHOLDER_PREFIX

# ─────────────────────────────────────────────────────────────────────────────
# Async helper implementations
# ─────────────────────────────────────────────────────────────────────────────


async def echo(this, value: str) -> str:
    """Return ``value`` after yielding to the loop."""
    await asyncio.sleep(0)
    return value


async def fail(this, value: str) -> str:
    await asyncio.sleep(0)
    raise LookupError(f"no value for {value}")


async def slow_upper(this, value: str, delay: float = 0.01) -> str:
    await asyncio.sleep(delay)
    return value.upper()


# ─────────────────────────────────────────────────────────────────────────────
# Substitution
# ─────────────────────────────────────────────────────────────────────────────


class TestAsyncSubstitution:
    @pytest.mark.asyncio
    async def test_value_substituted(self, make_env) -> None:
        env = make_env({"p.hbs": "<p>{{echo \"VALUE\"}}</p>"})
        env.register_async_helper("echo", echo)
        html = await env.render("p.hbs")
        assert html == "<p>VALUE</p>"
        assert PLACEHOLDER_PREFIX not in html

    @pytest.mark.asyncio
    async def test_value_from_data(self, make_env) -> None:
        env = make_env({"p.hbs": "{{echo name}}!"})
        env.register_async_helper("echo", echo)
        assert await env.render("p.hbs", name="Ada") == "Ada!"

    @pytest.mark.asyncio
    async def test_value_is_not_escaped_again(self, make_env) -> None:
        env = make_env({"p.hbs": "{{{echo \"<b>raw</b>\"}}}"})
        env.register_async_helper("echo", echo)
        assert await env.render("p.hbs") == "<b>raw</b>"

    @pytest.mark.asyncio
    async def test_many_helpers_in_one_template(self, make_env) -> None:
        env = make_env({"p.hbs": "{{up \"a\"}}-{{up \"b\"}}-{{up \"c\"}}"})
        env.register_async_helper("up", slow_upper)
        assert await env.render("p.hbs") == "A-B-C"

    @pytest.mark.asyncio
    async def test_sync_function_accepted(self, make_env) -> None:
        env = make_env({"p.hbs": "{{plain \"x\"}}"})
        env.register_async_helper("plain", lambda this, v: v * 3)
        assert await env.render("p.hbs") == "xxx"

    @pytest.mark.asyncio
    async def test_none_renders_empty(self, make_env) -> None:
        async def nothing(this, value):
            return None

        env = make_env({"p.hbs": "[{{nothing \"v\"}}]"})
        env.register_async_helper("nothing", nothing)
        assert await env.render("p.hbs") == "[]"

    @pytest.mark.asyncio
    async def test_helpers_in_body_and_layout(self, make_env) -> None:
        env = make_env({
            "p.hbs": "{{echo \"page\"}}",
            "l.hbs": "<{{echo \"layout\"}}>{{{body}}}</{{echo \"layout\"}}>",
        })
        env.register_async_helper("echo", echo)
        html = await env.render("p.hbs", layout="l")
        assert html == "<layout>page</layout>"

    @pytest.mark.asyncio
    async def test_value_captured_by_content_for(self, make_env) -> None:
        """A token captured in the body pass is still replaced in the layout."""
        env = make_env({
            "p.hbs": '{{#contentFor "side"}}<i>{{echo "late"}}</i>{{/contentFor}}main',
            "l.hbs": '{{{body}}}|{{{block "side"}}}',
        })
        env.register_async_helper("echo", echo)
        html = await env.render("p.hbs", layout="l")
        assert html == "main|<i>late</i>"
        assert PLACEHOLDER_PREFIX not in html


# ─────────────────────────────────────────────────────────────────────────────
# Failures
# ─────────────────────────────────────────────────────────────────────────────


class TestAsyncFailures:
    @pytest.mark.asyncio
    async def test_failure_renders_empty(self, make_env) -> None:
        env = make_env({"p.hbs": "[{{fail \"x\"}}]"})
        env.register_async_helper("fail", fail)
        assert await env.render("p.hbs") == "[]"

    @pytest.mark.asyncio
    async def test_failure_does_not_affect_other_values(self, make_env) -> None:
        env = make_env({"p.hbs": "{{echo \"a\"}}{{fail \"x\"}}{{echo \"b\"}}"})
        env.register_async_helper("echo", echo)
        env.register_async_helper("fail", fail)
        assert await env.render("p.hbs") == "ab"

    @pytest.mark.asyncio
    async def test_synchronous_raise_renders_empty(self, make_env) -> None:
        def broken(this, value):
            raise RuntimeError("before awaiting")

        env = make_env({"p.hbs": "[{{broken \"v\"}}]"})
        env.register_async_helper("broken", broken)
        assert await env.render("p.hbs") == "[]"

    @pytest.mark.asyncio
    async def test_failure_logged(self, make_env, caplog: pytest.LogCaptureFixture) -> None:
        env = make_env({"p.hbs": "{{fail \"x\"}}"})
        env.register_async_helper("fail", fail)
        with caplog.at_level(logging.WARNING, logger="hbsview.waiter"):
            await env.render("p.hbs")
        assert any("fail" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_failure_hook(self, make_env) -> None:
        errors: list[AsyncHelperError] = []
        env = make_env({"p.hbs": "{{fail \"x\"}}"}, on_async_error=errors.append)
        env.register_async_helper("fail", fail)
        assert await env.render("p.hbs") == ""
        assert len(errors) == 1
        assert errors[0].helper_name == "fail"
        assert errors[0].template_name == "p.hbs"
        assert isinstance(errors[0].__cause__, LookupError)

    @pytest.mark.asyncio
    async def test_helper_cancelling_itself_renders_empty(self, make_env) -> None:
        async def gives_up(this):
            raise asyncio.CancelledError

        errors: list[AsyncHelperError] = []
        env = make_env({"p.hbs": "[{{gives_up}}]"}, on_async_error=errors.append)
        env.register_async_helper("gives_up", gives_up)
        assert await env.render("p.hbs") == "[]"
        assert isinstance(errors[0].__cause__, asyncio.CancelledError)

    @pytest.mark.asyncio
    async def test_pending_helpers_cancelled_when_render_fails(self, make_env) -> None:
        finished: list[bool] = []

        async def slow(this):
            await asyncio.sleep(0.05)
            finished.append(True)
            return "slow"

        def boom(this):
            raise ValueError("boom")

        env = make_env({"p.hbs": "{{slow}}{{boom}}"})
        env.register_async_helper("slow", slow)
        env.register_helper("boom", boom)
        with pytest.raises(RenderError):
            await env.render("p.hbs")
        await asyncio.sleep(0.1)
        assert finished == []

    @pytest.mark.asyncio
    async def test_pending_helpers_cancelled_when_layout_fails(self, make_env) -> None:
        finished: list[bool] = []

        async def slow(this):
            await asyncio.sleep(0.05)
            finished.append(True)
            return "slow"

        def boom(this):
            raise ValueError("boom")

        env = make_env({"p.hbs": "page", "l.hbs": "{{slow}}{{{body}}}{{boom}}"})
        env.register_async_helper("slow", slow)
        env.register_helper("boom", boom)
        with pytest.raises(RenderError):
            await env.render("p.hbs", layout="l")
        await asyncio.sleep(0.1)
        assert finished == []


# ─────────────────────────────────────────────────────────────────────────────
# Concurrency
# ─────────────────────────────────────────────────────────────────────────────


class TestConcurrentRenders:
    @pytest.mark.asyncio
    async def test_interleaved_renders_keep_blocks_apart(self, make_env) -> None:
        env = make_env({
            "p.hbs": '{{#contentFor "who"}}{{up name delay}}{{/contentFor}}',
            "l.hbs": '[{{{block "who"}}}]',
        })
        env.register_async_helper("up", slow_upper)
        results = await asyncio.gather(
            env.render("p.hbs", name="first", delay=0.02, layout="l"),
            env.render("p.hbs", name="second", delay=0.0, layout="l"),
        )
        assert results == ["[FIRST]", "[SECOND]"]

    @pytest.mark.asyncio
    async def test_many_concurrent_renders(self, make_env) -> None:
        env = make_env({"p.hbs": "{{up name}}", "l.hbs": "<{{{body}}}>"}, default_layout="l")
        env.register_async_helper("up", slow_upper)
        names = [f"user{i}" for i in range(20)]
        results = await asyncio.gather(*(env.render("p.hbs", name=n, cache=True) for n in names))
        assert results == [f"<{n.upper()}>" for n in names]


class TestRenderContextRequired:
    def test_block_helper_outside_render(self) -> None:
        env = Environment(provider=DictProvider({}))
        template = env.from_string('{{{block "x"}}}')
        with pytest.raises(RenderError, match="Not in a render context"):
            template.render({}, helpers=env.helpers.snapshot())
