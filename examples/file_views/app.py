"""File-based views -- the most common real-world pattern.

Loads templates, layouts and partials from a views directory with the
default FileProvider. Demonstrates the default layout, a layout declared
with ``{{!< path }}`` and blocks handed from a page to its layout.

Run:
    python app.py
"""

import asyncio
from pathlib import Path

from hbsview import Environment

views_dir = Path(__file__).parent / "views"
env = Environment(
    views=views_dir,
    partials_path=views_dir / "partials",
    default_layout="layouts/main",
    cache=True,
)


async def render_all() -> dict[str, str]:
    return {
        "index": await env.render("index.hbs", title="Home"),
        "about": await env.render(
            "pages/about.hbs",
            title="About",
            fruit="orange",
            description="Rendered with hbsview.",
        ),
        "styled": await env.render("pages/styled.hbs", title="Styled"),
        "bare": await env.render("index.hbs", title="Bare", layout=False),
    }


# Run at import time for test access
outputs = asyncio.run(render_all())


def main() -> None:
    for name, html in outputs.items():
        print(f"=== {name} ===")
        print(html)


if __name__ == "__main__":
    main()
