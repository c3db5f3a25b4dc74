"""Callback-style view engine -- plugging hbsview into a web framework.

``Environment.view_engine()`` returns ``engine(filename, options, callback)``
which schedules the render and calls ``callback(error, html)`` once. This is
the shape frameworks with pluggable view engines expect.

Run:
    python app.py
"""

import asyncio

from hbsview import DictProvider, Environment

env = Environment(
    provider=DictProvider(
        {
            "main.hbs": "<html><title>{{title}}</title>{{{body}}}</html>",
            "home.hbs": "<h1>{{greeting}}</h1>",
        }
    ),
    default_layout="main",
)
engine = env.view_engine()

responses: list[tuple[str, object]] = []


def respond(error, html) -> None:
    if error is not None:
        responses.append(("500", error))
    else:
        responses.append(("200", html))


async def serve() -> None:
    await engine("home.hbs", {"title": "Home", "greeting": "Hello"}, respond)
    await engine("missing.hbs", {}, respond)


# Run at import time for test access
asyncio.run(serve())


def main() -> None:
    for status, body in responses:
        print(status, body)


if __name__ == "__main__":
    main()
