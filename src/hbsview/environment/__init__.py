"""hbsview environment — configuration, source providers and errors.

``Environment`` is resolved lazily: it pulls in the template, registry and pipeline
modules, which themselves import the exceptions defined here.
"""

from hbsview.environment.exceptions import (
    AsyncHelperError,
    CompileError,
    ConfigurationError,
    ErrorCode,
    HbsError,
    ProviderError,
    RenderError,
    TemplateNotFoundError,
)
from hbsview.environment.providers import (
    ChoiceProvider,
    DictProvider,
    FileProvider,
    SourceProvider,
    is_valid_provider,
)

__all__ = [
    "AsyncHelperError",
    "ChoiceProvider",
    "CompileError",
    "ConfigurationError",
    "DictProvider",
    "Environment",
    "ErrorCode",
    "FileProvider",
    "HbsError",
    "ProviderError",
    "RenderError",
    "SourceProvider",
    "TemplateNotFoundError",
    "is_valid_provider",
]


def __getattr__(name: str) -> object:
    if name == "Environment":
        from hbsview.environment.core import Environment

        globals()["Environment"] = Environment
        return Environment
    raise AttributeError(f"module 'hbsview.environment' has no attribute {name!r}")
