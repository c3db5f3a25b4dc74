"""Unit tests for Environment construction and the helper/partial registries."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from hbsview import (
    CompileError,
    ConfigurationError,
    DictProvider,
    Environment,
    FileProvider,
    Template,
)
from hbsview.environment.registry import HelperRegistry, PartialRegistry
from hbsview.template.helpers import BUILTIN_HELPERS


class _TemplatesOnly:
    async def get_template(self, name: str) -> str:
        return ""


class TestConstruction:
    def test_defaults(self) -> None:
        env = Environment()
        assert isinstance(env.provider, FileProvider)
        assert env.extname == ".hbs"
        assert env.default_layout is None
        assert env.cache is False

    @pytest.mark.parametrize("extname", ["html", ".html"])
    def test_extname_normalized(self, extname: str) -> None:
        env = Environment(provider=DictProvider({}), extname=extname)
        assert env.extname == ".html"
        assert env.layouts.extname == ".html"

    def test_partials_dir_alias(self, tmp_path: Path) -> None:
        env = Environment(views=tmp_path, partials_dir=tmp_path / "partials")
        assert env.partials_path == tmp_path / "partials"

    def test_partials_path_wins_over_alias(self, tmp_path: Path) -> None:
        env = Environment(views=tmp_path, partials_path="a", partials_dir="b")
        assert env.partials_path == "a"

    def test_incomplete_provider_rejected(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR), pytest.raises(ConfigurationError) as exc_info:
            Environment(provider=_TemplatesOnly())
        assert "Invalid template provider interface." in str(exc_info.value)
        assert "get_partials" in caplog.text

    def test_builtin_helpers_registered(self) -> None:
        env = Environment(provider=DictProvider({}))
        assert "contentFor" in env.helpers
        assert "block" in env.helpers


class TestRegistries:
    @pytest.fixture
    def env(self) -> Environment:
        return Environment(provider=DictProvider({}))

    def test_register_helper(self, env: Environment) -> None:
        def shout(this, s):
            return s.upper()

        env.register_helper("shout", shout)
        assert env.helpers["shout"] is shout

    def test_register_partial_from_source(self, env: Environment) -> None:
        env.register_partial("nav", "<nav/>")
        assert "nav" in env.partials

    def test_register_partial_from_template(self, env: Environment) -> None:
        template = env.from_string("<nav/>", name="nav")
        assert isinstance(template, Template)
        env.register_partial("nav", template)
        assert env.partials["nav"] is template
        assert env.partials.snapshot()["nav"] is template.render_func

    def test_snapshot_is_isolated(self, env: Environment) -> None:
        snapshot = env.helpers.snapshot()
        env.register_helper("late", lambda this: "")
        assert "late" not in snapshot
        assert "late" in env.helpers

    def test_clear_cache(self, env: Environment) -> None:
        env.clear_cache()
        assert env.cache_info()["size"] == 0


class TestHelperRegistry:
    def test_builtins(self) -> None:
        helpers = HelperRegistry(BUILTIN_HELPERS)
        assert set(helpers) == {"block", "contentFor"}
        assert not helpers.is_async("block")

    def test_async_registration_wraps(self) -> None:
        async def lookup(this, key):
            return key

        helpers = HelperRegistry()
        helpers.register_async("lookup", lookup)
        assert helpers.is_async("lookup")
        assert helpers["lookup"] is not lookup
        assert helpers["lookup"].__wrapped__ is lookup

    def test_sync_registration_replaces_async(self) -> None:
        helpers = HelperRegistry()
        helpers.register_async("x", lambda this: "a")
        helpers.register("x", str)
        assert not helpers.is_async("x")
        assert helpers["x"] is str

    def test_snapshot_survives_registration(self) -> None:
        helpers = HelperRegistry()
        before = helpers.snapshot()
        helpers.register("late", str)
        assert "late" not in before
        assert "late" in helpers.snapshot()


class TestPartialRegistry:
    @pytest.fixture
    def partials(self) -> PartialRegistry:
        return Environment(provider=DictProvider({})).partials

    def test_load_compiles_sources(self, partials: PartialRegistry) -> None:
        assert partials.load({"nav": "<nav/>", "empty": None}) == 2
        assert isinstance(partials["nav"], Template)
        assert partials["empty"].source == ""
        assert set(partials.snapshot()) == {"nav", "empty"}

    def test_failed_batch_registers_nothing(self, partials: PartialRegistry) -> None:
        with pytest.raises(CompileError) as exc_info:
            partials.load({"ok": "fine", "bad": "{{#each x}}{{/if}}"})
        assert exc_info.value.template_name == "bad"
        assert len(partials) == 0
        assert partials.snapshot() == {}

    def test_snapshot_tracks_replacement(self, partials: PartialRegistry) -> None:
        first = partials.register("nav", "one")
        before = partials.snapshot()
        second = partials.register("nav", "two")
        assert before["nav"] is first.render_func
        assert partials.snapshot()["nav"] is second.render_func
