"""Helper and partial registries for the hbsview Environment.

Both registries are copy-on-write: a registration builds a new table and
swaps it in. A render takes one ``snapshot()`` before running the template
and keeps a consistent view even if another task registers entries while it
awaits its async helpers.

Helpers are stored as the callables pybars invokes; async helpers are
wrapped on registration so they hand back placeholder tokens. Partials are
stored as compiled Templates; the pybars-facing table of render functions is
rebuilt only when a partial changes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any, Generic, TypeVar

from hbsview.template.cache import TemplateCompiler
from hbsview.template.core import Template
from hbsview.template.helpers import async_helper

V = TypeVar("V")

HelperFunc = Callable[..., Any]


class _CopyOnWrite(Generic[V]):
    """Read-only mapping view whose writes replace the whole table."""

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[str, V] = {}

    def _replace(self, changes: Mapping[str, V]) -> None:
        new = self._entries.copy()
        new.update(changes)
        self._entries = new

    def __getitem__(self, name: str) -> V:
        return self._entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, name: str, default: V | None = None) -> V | None:
        return self._entries.get(name, default)


class HelperRegistry(_CopyOnWrite[HelperFunc]):
    """Helpers available to every template.

    Example:
        >>> helpers = HelperRegistry(BUILTIN_HELPERS)
        >>> helpers.register("upper", lambda this, s: s.upper())
        >>> helpers.register_async("userName", fetch_user_name)
        >>> helpers.is_async("userName")
        True
    """

    __slots__ = ("_async_names",)

    def __init__(self, builtins: Mapping[str, HelperFunc] | None = None):
        super().__init__()
        self._async_names: frozenset[str] = frozenset()
        if builtins:
            self._replace(builtins)

    def register(self, name: str, fn: HelperFunc) -> None:
        """Register a synchronous helper, replacing any helper of that name."""
        self._replace({name: fn})
        self._async_names = self._async_names - {name}

    def register_async(self, name: str, fn: HelperFunc) -> None:
        """Register ``fn`` behind a placeholder-returning wrapper."""
        self._replace({name: async_helper(name, fn)})
        self._async_names = self._async_names | {name}

    def is_async(self, name: str) -> bool:
        return name in self._async_names

    def snapshot(self) -> dict[str, HelperFunc]:
        """Current table, safe to hand to a compiled template as is."""
        return self._entries


class PartialRegistry(_CopyOnWrite[Template]):
    """Compiled partials by name.

    Sources are compiled with the Environment's compiler. A ``None`` source
    registers an empty partial.
    """

    __slots__ = ("_compile", "_render_funcs")

    def __init__(self, compile: TemplateCompiler):
        super().__init__()
        self._compile = compile
        self._render_funcs: dict[str, HelperFunc] = {}

    def _replace(self, changes: Mapping[str, Template]) -> None:
        super()._replace(changes)
        self._render_funcs = {name: t.render_func for name, t in self._entries.items()}

    def register(self, name: str, source: str | Template | None) -> Template:
        """Register one partial from source text or a compiled Template.

        Raises:
            CompileError: If ``source`` does not compile
        """
        template = source if isinstance(source, Template) else self._compile(name, source or "")
        self._replace({name: template})
        return template

    def load(self, sources: Mapping[str, str | None]) -> int:
        """Compile and register a batch of partials from a provider.

        Every source is compiled before anything is registered, so a batch
        with a malformed partial leaves the registry unchanged.

        Returns:
            Number of partials registered

        Raises:
            CompileError: If any source does not compile
        """
        compiled = {name: self._compile(name, source or "") for name, source in sources.items()}
        if compiled:
            self._replace(compiled)
        return len(compiled)

    def snapshot(self) -> dict[str, HelperFunc]:
        """Render functions by name, in the form pybars expects for ``partials``."""
        return self._render_funcs
