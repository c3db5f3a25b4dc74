"""Named content buffers for the block / contentFor mechanism."""

from __future__ import annotations


class BlockRegistry:
    """Named buffers a page fills and its layout drains.

    A leaf template captures fragments with ``{{#contentFor "name"}}`` while
    the body renders; the layout reads them back with ``{{{block "name"}}}``.
    Each RenderContext owns one registry, so concurrent renders never read
    each other's fragments.

    Reading a block drains it: a second ``block(name)`` without a new
    ``content_for(name, ...)`` in between returns ``""``.

    Example:
            >>> blocks = BlockRegistry()
            >>> blocks.content_for("styles", '<link href="a.css">')
            >>> blocks.content_for("styles", '<link href="b.css">')
            >>> blocks.block("styles")
            '<link href="a.css">\\n<link href="b.css">'
            >>> blocks.block("styles")
            ''

    """

    __slots__ = ("_buffers",)

    def __init__(self) -> None:
        self._buffers: dict[str, list[str]] = {}

    def content_for(self, name: str, fragment: str) -> None:
        """Append ``fragment`` to the named buffer, creating it if absent."""
        self._buffers.setdefault(name, []).append(fragment)

    def block(self, name: str) -> str:
        """Join the named buffer with newlines, clear it, and return the text."""
        value = "\n".join(self._buffers.get(name, ()))
        self._buffers[name] = []
        return value

    def __contains__(self, name: object) -> bool:
        return bool(self._buffers.get(name))  # type: ignore[arg-type]

    def names(self) -> list[str]:
        """Names of blocks holding undrained content."""
        return sorted(name for name, frags in self._buffers.items() if frags)
