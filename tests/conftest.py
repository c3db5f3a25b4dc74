"""Pytest configuration and fixtures for hbsview tests."""

from __future__ import annotations

import pytest

from hbsview import DictProvider, Environment

# Templates from the provider examples: a front page using the default
# layout and a page that hands a block to its layout.
TEMPLATES: dict[str, str] = {
    "index.hbs": "<h1>Front page</h1>",
    "mainLayout.hbs": "<html><title>{{title}}</title>{{{body}}}</html>",
    "fruitLayout.hbs": (
        "<html><head><title>{{title}}</title>{{> scripts}}</head>"
        "<body>{{{body}}}</body>{{{block \"fruit\"}}}</html>"
    ),
    "fruit.hbs": '{{#contentFor "fruit"}}<h2>{{fruit}}</h2>{{/contentFor}}',
}

PARTIALS: dict[str, str | None] = {
    "scripts": '<script src="jquery.js"></script>',
}


class CountingProvider:
    """DictProvider wrapper that counts provider calls."""

    def __init__(self, templates: dict[str, str], partials: dict[str, str | None] | None = None):
        self._inner = DictProvider(templates, partials)
        self.template_fetches: list[str] = []
        self.partial_fetches = 0

    async def get_template(self, name: str) -> str:
        self.template_fetches.append(name)
        return await self._inner.get_template(name)

    async def get_partials(self) -> dict[str, str | None]:
        self.partial_fetches += 1
        return await self._inner.get_partials()

    def fetch_count(self, name: str) -> int:
        return self.template_fetches.count(name)


@pytest.fixture
def provider() -> CountingProvider:
    """Counting provider seeded with the example templates."""
    return CountingProvider(dict(TEMPLATES), dict(PARTIALS))


@pytest.fixture
def env(provider: CountingProvider) -> Environment:
    """Environment with ``mainLayout`` as default layout."""
    return Environment(provider=provider, default_layout="mainLayout")


@pytest.fixture
def make_env():
    """Factory for an Environment over ad-hoc templates."""

    def _make(
        templates: dict[str, str],
        partials: dict[str, str | None] | None = None,
        **kwargs,
    ) -> Environment:
        return Environment(provider=CountingProvider(templates, partials), **kwargs)

    return _make
