"""Key-value and document-store providers.

These providers pull template source out of external stores. Their client
libraries are optional extras and are imported lazily, so importing hbsview
does not require either of them:

    pip install "hbsview[redis]"   # RedisProvider  (redis.asyncio)
    pip install "hbsview[mongo]"   # MongoProvider  (motor)

Both satisfy the SourceProvider protocol and can be combined with the
built-in providers through `ChoiceProvider`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from hbsview.environment.exceptions import (
    ConfigurationError,
    ProviderError,
    TemplateNotFoundError,
)

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorCollection
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)


def _text(value: bytes | str | None) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisProvider:
    """Load templates and partials from Redis.

    Templates are stored under ``template_prefix + name`` and partials under
    ``partial_prefix + partial_name``. The Handlebars markup ``{{> scripts}}``
    therefore reads the key ``hbsp:scripts`` with the default prefixes.

    Example:
            >>> from redis.asyncio import Redis
            >>> client = Redis()
            >>> await client.set("hbst:index", "<h1>Front page</h1>")
            >>> env = Environment(provider=RedisProvider(client), default_layout="mainLayout")

    Args:
        redis: ``redis.asyncio.Redis`` client. A localhost client is created
            when omitted.
        partial_prefix: Key prefix for partials (default ``"hbsp:"``)
        template_prefix: Key prefix for templates (default ``"hbst:"``)

    Raises:
        TemplateNotFoundError: If the template key does not exist
        ProviderError: If a Redis command fails
    """

    __slots__ = ("_partial_prefix", "_redis", "_template_prefix")

    def __init__(
        self,
        redis: Redis | None = None,
        *,
        partial_prefix: str = "hbsp:",
        template_prefix: str = "hbst:",
    ):
        if redis is None:
            try:
                from redis.asyncio import Redis
            except ImportError as e:
                raise ConfigurationError(
                    "redis is required for RedisProvider; install with hbsview[redis]"
                ) from e
            redis = Redis()
        self._redis = redis
        self._partial_prefix = partial_prefix
        self._template_prefix = template_prefix

    async def get_template(self, name: str) -> str:
        """Read the template stored at ``template_prefix + name``."""
        from redis.exceptions import RedisError

        key = self._template_prefix + name
        try:
            value = await self._redis.get(key)
        except RedisError as e:
            raise ProviderError(
                f"Redis get failed for key {key}: {e}", template_name=name
            ) from e
        if value is None:
            raise TemplateNotFoundError(
                f"Template '{name}' not found at Redis key '{key}'", template_name=name
            )
        return _text(value) or ""

    async def get_partials(self) -> dict[str, str | None]:
        """Read every key matching ``partial_prefix*``."""
        from redis.exceptions import RedisError

        prefix_len = len(self._partial_prefix)
        try:
            keys = [_text(k) async for k in self._redis.scan_iter(match=self._partial_prefix + "*")]
            if not keys:
                return {}
            values = await self._redis.mget(keys)
        except RedisError as e:
            raise ProviderError(f"Redis partial lookup failed: {e}") from e

        partials: dict[str, str | None] = {}
        for key, value in zip(keys, values, strict=True):
            partials[key[prefix_len:]] = _text(value)
        logger.debug("Loaded %d partials from Redis", len(partials))
        return partials


class MongoProvider:
    """Load templates and partials from a MongoDB collection.

    Documents have the shape ``{"name": str, "is_partial": bool, "text": str}``
    with a unique index on ``name``. Template names requested by the
    Environment may carry a ``view_path`` prefix which is stripped before the
    lookup.

    Example:
            >>> provider = MongoProvider(url="mongodb://localhost:27017", view_path="views")
            >>> await provider.get_template("views/index")   # looks up name "index"

    Args:
        collection: Motor collection to read from. Built from ``url``,
            ``database`` and ``collection_name`` when omitted.
        url: MongoDB connection string
        database: Database name
        collection_name: Collection name
        view_path: Prefix stripped from requested template names

    Raises:
        TemplateNotFoundError: If no document has the requested name
        ProviderError: If a MongoDB operation fails
    """

    __slots__ = ("_collection", "_view_path")

    def __init__(
        self,
        collection: AsyncIOMotorCollection[Any] | None = None,
        *,
        url: str = "mongodb://localhost:27017",
        database: str = "hbsview",
        collection_name: str = "hbs_templates",
        view_path: str = "",
    ):
        if collection is None:
            try:
                from motor.motor_asyncio import AsyncIOMotorClient
            except ImportError as e:
                raise ConfigurationError(
                    "motor is required for MongoProvider; install with hbsview[mongo]"
                ) from e
            collection = AsyncIOMotorClient(url)[database][collection_name]
        self._collection = collection
        self._view_path = view_path.rstrip("/")

    def _document_name(self, name: str) -> str:
        if self._view_path and name.startswith(self._view_path + "/"):
            return name[len(self._view_path) + 1 :]
        return name

    async def get_template(self, name: str) -> str:
        """Return the ``text`` of the document named after ``name``."""
        from pymongo.errors import PyMongoError

        doc_name = self._document_name(name)
        try:
            doc = await self._collection.find_one({"name": doc_name}, {"name": 1, "text": 1})
        except PyMongoError as e:
            raise ProviderError(
                f"MongoDB lookup failed for template '{doc_name}': {e}", template_name=name
            ) from e
        if doc is None:
            raise TemplateNotFoundError(
                f"Template '{doc_name}' not found in MongoDB", template_name=name
            )
        return doc["text"]

    async def get_partials(self) -> dict[str, str | None]:
        """Return every document flagged ``is_partial``."""
        from pymongo.errors import PyMongoError

        partials: dict[str, str | None] = {}
        try:
            async for doc in self._collection.find({"is_partial": True}, {"name": 1, "text": 1}):
                partials[doc["name"]] = doc.get("text")
        except PyMongoError as e:
            raise ProviderError(f"MongoDB partial lookup failed: {e}") from e
        return partials
