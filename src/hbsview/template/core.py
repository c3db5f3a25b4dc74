"""hbsview Template — a compiled Handlebars template ready for rendering.

The Template class wraps the render function produced by the pybars
compiler together with what the pipeline needs to know about its source:
the identity it was loaded under and the layout directive it declares.

Architecture:
    ```
    Template
    ├── _name: str                      # Resolved identity (cache key)
    ├── _source: str                    # Raw source (scanned once)
    ├── _render_func: callable          # pybars render(context, helpers, partials)
    └── _layout_directive: str | None   # Path from {{!< path }}, if any
    ```

Layout Directive:
A layout can be declared inside the template as a Handlebars comment, so
the compiler itself ignores it:
    ```
    {{!< foo}}                      # foo.hbs in same directory as template
    {{!< ../layouts/default}}       # default.hbs in parent layout directory
    {{!< ../layouts/default.html}}  # default.html in parent layout directory
    ```

"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from hbsview.environment.exceptions import CompileError, HbsError, RenderError
from hbsview.utils.constants import LAYOUT_PATTERN


class Compiler(Protocol):
    """Anything that turns Handlebars source into a render function.

    ``pybars.Compiler`` is the default; an override must return a callable
    accepting ``(context, helpers=..., partials=...)``.
    """

    def compile(self, source: str) -> Callable[..., Any]: ...


def find_layout_directive(source: str) -> str | None:
    """Return the path named by the first ``{{!< path }}`` in ``source``.

    Example:
        >>> find_layout_directive("{{!< ../layouts/main }}<p>hi</p>")
        '../layouts/main'
        >>> find_layout_directive("<p>hi</p>") is None
        True
    """
    match = LAYOUT_PATTERN.search(source)
    return match.group(1) if match else None


def join_output(result: Any) -> str:
    """Flatten pybars output (a list subclass of string fragments) to a str."""
    if isinstance(result, str):
        return result
    return "".join(result)


class Template:
    """Compiled template ready for rendering.

    Templates are immutable after construction; rendering only creates local
    state, so one cached Template serves any number of renders.

    Attributes:
        name: Resolved identity the template was loaded under
        source: Raw template source
        layout_directive: Relative layout path declared in the source

    Example:
            >>> from pybars import Compiler
            >>> t = compile_template(Compiler(), "hello.hbs", "Hello, {{name}}!")
            >>> t.render({"name": "World"})
            'Hello, World!'

    """

    __slots__ = ("_layout_directive", "_name", "_render_func", "_source")

    def __init__(self, name: str, source: str, render_func: Callable[..., Any]):
        self._name = name
        self._source = source
        self._render_func = render_func
        self._layout_directive = find_layout_directive(source)

    @property
    def name(self) -> str:
        return self._name

    @property
    def source(self) -> str:
        return self._source

    @property
    def layout_directive(self) -> str | None:
        return self._layout_directive

    @property
    def render_func(self) -> Callable[..., Any]:
        """The raw compiled function, as registered for partials."""
        return self._render_func

    def render(
        self,
        data: Mapping[str, Any],
        *,
        helpers: Mapping[str, Callable[..., Any]] | None = None,
        partials: Mapping[str, Callable[..., Any]] | None = None,
    ) -> str:
        """Render the template synchronously.

        Async helpers invoked during the call leave placeholder tokens in the
        output; the pipeline substitutes them afterwards.

        Raises:
            RenderError: If the compiled template (or a sync helper) raises
        """
        try:
            result = self._render_func(data, helpers=helpers, partials=partials)
        except HbsError:
            raise
        except Exception as e:
            raise RenderError(
                f"Error rendering template '{self._name}': {e}", template_name=self._name
            ) from e
        return join_output(result)

    def __call__(self, data: Mapping[str, Any], **kwargs: Any) -> str:
        return self.render(data, **kwargs)

    def __repr__(self) -> str:
        return f"<Template {self._name!r}>"


def compile_template(compiler: Compiler, name: str, source: str) -> Template:
    """Compile ``source`` into a Template.

    Raises:
        CompileError: If the compiler rejects the source
    """
    try:
        render_func = compiler.compile(source)
    except Exception as e:
        raise CompileError(
            f"Could not compile template '{name}': {e}", template_name=name
        ) from e
    return Template(name, source, render_func)
