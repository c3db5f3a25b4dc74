"""Source providers for hbsview.

Providers supply raw template text to the Environment. They implement two
coroutines: ``get_template(name)`` returning the source of one template, and
``get_partials()`` returning a mapping of partial name to source.

Built-in Providers:
- `FileProvider`: Load from the filesystem (default)
- `DictProvider`: Load from in-memory dictionaries (testing/embedded)
- `ChoiceProvider`: Try multiple providers in order (theme fallback)

Key-value and document stores live in `hbsview.environment.stores`
(`RedisProvider`, `MongoProvider`).

Custom Providers:
Implement the SourceProvider protocol:
    ```python
    class DatabaseProvider:
        async def get_template(self, name: str) -> str:
            row = await db.fetchrow("SELECT source FROM templates WHERE name = $1", name)
            if row is None:
                raise TemplateNotFoundError(f"Template '{name}' not found")
            return row["source"]

        async def get_partials(self) -> dict[str, str]:
            rows = await db.fetch("SELECT name, source FROM templates WHERE partial")
            return {r["name"]: r["source"] for r in rows}
    ```

Contract:
- Raise `TemplateNotFoundError` when a template does not exist.
- Raise `ProviderError` for storage or transport failures.
- ``get_partials()`` must be idempotent; it is called once per process when
  caching is on and once per render otherwise.

"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from hbsview.environment.exceptions import ProviderError, TemplateNotFoundError

logger = logging.getLogger(__name__)

REQUIRED_CAPABILITIES: tuple[str, ...] = ("get_partials", "get_template")


@runtime_checkable
class SourceProvider(Protocol):
    """Capability interface every template source must satisfy."""

    async def get_template(self, name: str) -> str: ...

    async def get_partials(self) -> dict[str, str | None]: ...


def is_valid_provider(provider: object) -> bool:
    """Check that ``provider`` meets the SourceProvider interface.

    The check is structural: both capabilities must be present and callable.
    Problems are logged so the ConfigurationError raised by the Environment
    can stay short.

    Args:
        provider: Candidate provider

    Returns:
        True if valid, else False
    """
    if provider is None:
        logger.error("Template provider is None")
        return False

    for capability in REQUIRED_CAPABILITIES:
        if not callable(getattr(provider, capability, None)):
            logger.error(
                "Template provider %s is missing capability %r",
                type(provider).__name__,
                capability,
            )
            return False

    return True


class FileProvider:
    """Load templates and partials from the filesystem.

    Template names are resolved against ``root``; absolute names are used
    as-is. Partials are the regular files directly inside ``partials_path``,
    keyed by file stem (``partials/header.hbs`` -> ``header``).

    Attributes:
        _root: Base directory for template names
        _partials_path: Directory holding partials (optional)
        _encoding: File encoding (default: utf-8)

    Example:
            >>> provider = FileProvider("views/", partials_path="views/partials")
            >>> await provider.get_template("index.hbs")
            '<h1>{{title}}</h1>'
            >>> await provider.get_partials()
            {'header': '<header>...</header>'}

    Raises:
        TemplateNotFoundError: If the template file (or partials directory)
            does not exist
        ProviderError: If the file exists but cannot be read

    """

    __slots__ = ("_encoding", "_partials_path", "_root")

    def __init__(
        self,
        root: str | Path = ".",
        partials_path: str | Path | None = None,
        encoding: str = "utf-8",
    ):
        self._root = Path(root)
        self._partials_path = Path(partials_path) if partials_path is not None else None
        self._encoding = encoding

    @property
    def root(self) -> Path:
        return self._root

    def _read_template(self, name: str) -> str:
        path = self._root / name
        if not path.is_file():
            raise TemplateNotFoundError(
                f"Template '{name}' not found in: {self._root}", template_name=name
            )
        try:
            return path.read_text(self._encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise ProviderError(
                f"Could not read template '{name}': {exc}", template_name=name
            ) from exc

    def _read_partials(self) -> dict[str, str | None]:
        if self._partials_path is None:
            return {}
        if not self._partials_path.is_dir():
            raise TemplateNotFoundError(
                f"Partials directory '{self._partials_path}' not found"
            )

        partials: dict[str, str | None] = {}
        try:
            for path in sorted(self._partials_path.iterdir()):
                if not path.is_file():
                    continue
                partials[path.stem] = path.read_text(self._encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise ProviderError(
                f"Could not read partials from '{self._partials_path}': {exc}"
            ) from exc
        return partials

    async def get_template(self, name: str) -> str:
        """Load template source from the filesystem."""
        return await asyncio.to_thread(self._read_template, name)

    async def get_partials(self) -> dict[str, str | None]:
        """Load every partial found in ``partials_path``."""
        return await asyncio.to_thread(self._read_partials)


class DictProvider:
    """Load templates and partials from in-memory dictionaries.

    Maps template names to source strings. Useful for testing, embedded
    templates, or templates generated at runtime.

    Example:
            >>> provider = DictProvider(
            ...     {"index.hbs": "<h1>{{title}}</h1>"},
            ...     partials={"footer": "<footer></footer>"},
            ... )
            >>> env = Environment(provider=provider)
            >>> await env.render("index.hbs", title="Hi")
            '<h1>Hi</h1>'

    Raises:
        TemplateNotFoundError: If template name not in mapping

    """

    __slots__ = ("_partials", "_templates")

    def __init__(
        self,
        templates: dict[str, str],
        partials: dict[str, str | None] | None = None,
    ):
        self._templates = templates
        self._partials = partials if partials is not None else {}

    async def get_template(self, name: str) -> str:
        if name not in self._templates:
            from difflib import get_close_matches

            available = sorted(self._templates.keys())
            msg = f"Template '{name}' not found"
            matches = get_close_matches(name, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg, template_name=name)
        return self._templates[name]

    async def get_partials(self) -> dict[str, str | None]:
        return dict(self._partials)


class ChoiceProvider:
    """Try multiple providers in order, returning the first match.

    Useful for theme fallback patterns where a custom theme overrides a
    subset of templates and the default theme provides the rest.

    Partials from all providers are merged; earlier providers win on name
    clashes. A provider without partials (TemplateNotFoundError) is skipped.

    Example:
            >>> custom = DictProvider({"nav.hbs": "<nav>Custom</nav>"})
            >>> default = DictProvider({
            ...     "nav.hbs": "<nav>Default</nav>",
            ...     "footer.hbs": "<footer>Default</footer>",
            ... })
            >>> provider = ChoiceProvider([custom, default])
            >>> await provider.get_template("footer.hbs")
            '<footer>Default</footer>'

    Raises:
        TemplateNotFoundError: If no provider has the template
    """

    __slots__ = ("_providers",)

    def __init__(self, providers: list[SourceProvider]):
        self._providers = providers

    async def get_template(self, name: str) -> str:
        """Try each provider in order, return first match."""
        for provider in self._providers:
            try:
                return await provider.get_template(name)
            except TemplateNotFoundError:
                continue
        raise TemplateNotFoundError(
            f"Template '{name}' not found in any of {len(self._providers)} providers",
            template_name=name,
        )

    async def get_partials(self) -> dict[str, str | None]:
        merged: dict[str, str | None] = {}
        for provider in reversed(self._providers):
            try:
                merged.update(await provider.get_partials())
            except TemplateNotFoundError:
                continue
        return merged
