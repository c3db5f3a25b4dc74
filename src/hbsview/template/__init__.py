"""hbsview Template package — compiled templates, their cache and block buffers.

The built-in helpers live in ``hbsview.template.helpers`` and are imported
directly; they depend on the render context, which depends on this package.

"""

from hbsview.template.blocks import BlockRegistry
from hbsview.template.cache import CacheEntry, TemplateCache
from hbsview.template.core import Template, compile_template, find_layout_directive

__all__ = [
    "BlockRegistry",
    "CacheEntry",
    "Template",
    "TemplateCache",
    "compile_template",
    "find_layout_directive",
]
