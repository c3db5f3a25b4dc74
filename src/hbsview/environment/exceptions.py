"""Exceptions for the hbsview rendering pipeline.

Exception Hierarchy:
HbsError (base)
├── ProviderError             # Source lookup or storage failure
│   └── TemplateNotFoundError # Provider has no such template
├── CompileError              # Malformed template or layout source
├── RenderError               # Compiled template raised while rendering
├── ConfigurationError        # Invalid setup (e.g. incomplete provider)
└── AsyncHelperError          # Deferred helper failed (logged, never raised)

Propagation:
ProviderError, CompileError and RenderError abort the current render and
reach the caller unchanged. ConfigurationError is raised while the
Environment is being built, before any render can start. AsyncHelperError is
only handed to the ``on_async_error`` hook and the ``hbsview.waiter`` logger;
the render still succeeds with an empty string in place of the value.

Example:
    ```
    H-PRV-002: Template 'pages/missing.hbs' not found in: views
      Template: pages/missing.hbs
    ```

"""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    """Searchable error codes for hbsview errors.

    Format: H-{CATEGORY}-{NUMBER}
    Categories: PRV (provider), CMP (compile), RUN (runtime), CFG (configuration)
    """

    # Provider errors (H-PRV-xxx)
    PROVIDER_FAILURE = "H-PRV-001"
    TEMPLATE_NOT_FOUND = "H-PRV-002"

    # Compile errors (H-CMP-xxx)
    SYNTAX_ERROR = "H-CMP-001"

    # Runtime errors (H-RUN-xxx)
    RENDER_FAILURE = "H-RUN-001"
    ASYNC_HELPER_FAILURE = "H-RUN-002"

    # Configuration errors (H-CFG-xxx)
    INVALID_CONFIGURATION = "H-CFG-001"

    @property
    def category(self) -> str:
        """Error category (e.g., 'provider', 'compile', 'runtime')."""
        prefix = self.value.split("-")[1]
        return {
            "PRV": "provider",
            "CMP": "compile",
            "RUN": "runtime",
            "CFG": "configuration",
        }.get(prefix, "unknown")


class HbsError(Exception):
    """Base exception for all hbsview errors.

    Enables broad exception handling around a render:

        >>> try:
        ...     html = await env.render("index.hbs", title="Home")
        ... except HbsError as e:
        ...     log.error("render failed: %s", e.format_compact())

    Attributes:
        code: ErrorCode for searchable error identification.
        template_name: Identity of the template involved, when known.
    """

    code: ErrorCode | None = None

    def __init__(self, message: str, *, template_name: str | None = None):
        self.message = message
        self.template_name = template_name
        super().__init__(message)

    def format_compact(self) -> str:
        """Format the error as a short diagnostic block.

        Format::

            H-CMP-001: Could not compile template: ...
              Template: pages/index.hbs
        """
        header = self.message
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        parts = [header]
        if self.template_name:
            parts.append(f"  Template: {self.template_name}")
        return "\n".join(parts)


class ProviderError(HbsError):
    """A Source Provider could not deliver template or partial source.

    Raised for storage and transport failures (unreadable file, Redis or
    MongoDB errors). Provider implementations chain the client library's
    exception with ``raise ... from exc``.
    """

    code: ErrorCode | None = ErrorCode.PROVIDER_FAILURE


class TemplateNotFoundError(ProviderError):
    """The provider has no template under the requested name.

    Distinguishable from a transport failure: when raised while loading
    partials it means "no partials" and the render carries on. For
    templates and layouts it aborts the render like any ProviderError.

    Example:
            >>> await DictProvider({}).get_template("nonexistent.hbs")
        TemplateNotFoundError: Template 'nonexistent.hbs' not found
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class CompileError(HbsError):
    """Template or layout source could not be compiled.

    Wraps the compiler's own exception (available as ``__cause__``).
    A source that fails to compile is never cached.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR


class RenderError(HbsError):
    """A compiled template raised while rendering.

    Typical causes are a missing partial or a synchronous helper that
    raised. The original exception is available as ``__cause__``.
    """

    code: ErrorCode | None = ErrorCode.RENDER_FAILURE


class ConfigurationError(HbsError):
    """The Environment was configured with invalid options.

    Raised eagerly by ``Environment.__post_init__``, never mid-render.
    """

    code: ErrorCode | None = ErrorCode.INVALID_CONFIGURATION


class AsyncHelperError(HbsError):
    """An async helper's computation failed.

    Never raised to render callers. The waiter builds one per failure and
    passes it to the ``on_async_error`` hook so applications can observe
    failures that otherwise degrade to empty output.

    Attributes:
        token: Placeholder token the failed value was bound to.
        helper_name: Registered name of the helper, when known.
    """

    code: ErrorCode | None = ErrorCode.ASYNC_HELPER_FAILURE

    def __init__(
        self,
        message: str,
        *,
        token: str,
        helper_name: str | None = None,
        template_name: str | None = None,
    ):
        self.token = token
        self.helper_name = helper_name
        super().__init__(message, template_name=template_name)
