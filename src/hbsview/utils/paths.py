"""Template identity helpers.

Identities are provider keys: filesystem paths for `FileProvider`, plain keys
for the in-memory and key-value providers. They are handled as POSIX-style
paths so the same rules apply to every provider.
"""

from __future__ import annotations

import posixpath


def normalize_identity(name: str) -> str:
    """Collapse ``.``/``..`` segments and duplicate separators.

    Example:
        >>> normalize_identity("views/layouts/../main.hbs")
        'views/main.hbs'
    """
    name = name.replace("\\", "/")
    normalized = posixpath.normpath(name)
    return "" if normalized == "." else normalized


def with_extension(name: str, extname: str) -> str:
    """Append ``extname`` when ``name`` has no extension of its own."""
    if posixpath.splitext(name)[1]:
        return name
    return name + extname


def resolve_relative(referrer: str, name: str, extname: str) -> str:
    """Resolve ``name`` against the directory of ``referrer``.

    Args:
        referrer: Identity of the template that references ``name``
        name: Relative (or absolute) layout path from a directive or option
        extname: Extension applied when ``name`` has none

    Returns:
        Normalized identity of the referenced file

    Example:
        >>> resolve_relative("pages/index.hbs", "../layouts/default", ".hbs")
        'layouts/default.hbs'
    """
    base = posixpath.dirname(referrer.replace("\\", "/"))
    return normalize_identity(posixpath.join(base, with_extension(name, extname)))
