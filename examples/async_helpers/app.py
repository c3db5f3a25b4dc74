"""Async helpers -- values computed concurrently while a page renders.

Helpers registered with ``register_async_helper`` return a placeholder
right away; the real values are awaited together once the template has
rendered and substituted into the output. A helper that fails renders as
an empty string and is reported to ``on_async_error``.

Run:
    python app.py
"""

import asyncio

from hbsview import AsyncHelperError, DictProvider, Environment

# -- Simulated async data sources ----------------------------------------

USERS = {"1": "Ada", "2": "Grace"}


async def user_name(this, user_id: str) -> str:
    """Simulate a database lookup."""
    await asyncio.sleep(0.01)
    return USERS[user_id]


async def weather(this) -> str:
    """Simulate a remote API that is down."""
    raise ConnectionError("weather service unavailable")


# -- Environment setup -----------------------------------------------------

TEMPLATES = {
    "layout.hbs": "<html><header>{{userName viewer}}</header>{{{body}}}</html>",
    "page.hbs": (
        "<ul>{{#each authors}}<li>{{userName id}}</li>{{/each}}</ul>"
        "<aside>{{weather}}</aside>"
    ),
}

errors: list[AsyncHelperError] = []

env = Environment(
    provider=DictProvider(TEMPLATES),
    default_layout="layout",
    on_async_error=errors.append,
)
env.register_async_helper("userName", user_name)
env.register_async_helper("weather", weather)

# Run at import time for test access
output = asyncio.run(env.render("page.hbs", viewer="2", authors=[{"id": "1"}, {"id": "2"}]))


def main() -> None:
    print(output)
    for error in errors:
        print(error.format_compact())


if __name__ == "__main__":
    main()
