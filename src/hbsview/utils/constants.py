"""Shared constants for hbsview.

Kept in one module so the pipeline, the layout resolver and the waiter agree
on the reserved names and token formats.
"""

from __future__ import annotations

import re

# Default template file extension, applied to layout names without one
DEFAULT_EXTNAME: str = ".hbs"

# Layout directive: {{!< path }}
# A Handlebars comment, so the compiler ignores it.
LAYOUT_PATTERN: re.Pattern[str] = re.compile(r"\{\{!<\s+([A-Za-z0-9._\-/]+)\s*\}\}")

# Data key that carries the rendered page into its layout
BODY_KEY: str = "body"

# Render option keys understood by the pipeline (everything else is data)
CACHE_OPTION: str = "cache"
LAYOUT_OPTION: str = "layout"

# Placeholder tokens emitted by async helpers. Word characters only, so HTML
# escaping leaves them untouched.
PLACEHOLDER_PREFIX: str = "__hbsview_deferred_"
PLACEHOLDER_SUFFIX: str = "__"
PLACEHOLDER_PATTERN: re.Pattern[str] = re.compile(
    re.escape(PLACEHOLDER_PREFIX) + r"[0-9a-f]{32}" + re.escape(PLACEHOLDER_SUFFIX)
)

# Names of the built-in block helpers
BLOCK_HELPER: str = "block"
CONTENT_FOR_HELPER: str = "contentFor"
