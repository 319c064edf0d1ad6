from uuid import UUID, uuid4

import msgspec
import redis.asyncio as redis
import typing as t
from pydantic import SecretStr
from pydantic_settings import SettingsConfigDict

from ...config import Settings
from ...errors import InvalidArgumentError
from ...records import Criteria, KeyStrategy, Record, matches, without_key
from .. import AdapterCapability, AdapterMetadata, AdapterStatus, StoreType
from .._base import StoreAdapter

MODULE_ID = UUID("0199a3c2-7f30-7d12-8b6c-2e4a9d0c5f18")
MODULE_STATUS = AdapterStatus.STABLE

# key separator and SCAN glob characters
_RESERVED_TARGET_CHARS = ":*?[]"

MODULE_METADATA = AdapterMetadata(
    module_id=MODULE_ID,
    name="Redis",
    category="nosql",
    provider="redis",
    store_type=StoreType.REDIS,
    status=MODULE_STATUS,
    capabilities=[
        AdapterCapability.ASYNC_OPERATIONS,
        AdapterCapability.TLS_SUPPORT,
        AdapterCapability.DIRECT_KEY_LOOKUP,
        AdapterCapability.CLIENT_SIDE_FILTERING,
    ],
    required_packages=["redis", "msgspec"],
    description="Redis key-value adapter storing JSON-encoded records",
    settings_class="NosqlSettings",
    config_example={
        "host": "localhost",
        "port": 6379,
        "db": 0,
        "password": "your-redis-password",  # pragma: allowlist secret
        "key_prefix": "app:",
    },
)


class NosqlSettings(Settings):
    """``url`` wins over ``host``/``port``/``db`` when set.

    Extra keys are passed to ``redis.asyncio.from_url`` as client options.
    """

    model_config = SettingsConfigDict(env_prefix="STOREBRIDGE_REDIS_")

    url: str | None = None
    host: str = "127.0.0.1"
    port: int = 6379
    db: int = 0
    password: SecretStr | None = None
    key_prefix: str = ""
    scan_count: int = 100

    @property
    def connection_url(self) -> str:
        return self.url or f"redis://{self.host}:{self.port}/{self.db}"


class Nosql(StoreAdapter):
    settings_class = NosqlSettings
    store_type = StoreType.REDIS
    primary_key = "id"
    key_strategy = KeyStrategy.CLIENT_GENERATED
    reuse_connection = True

    def __init__(self) -> None:
        super().__init__()
        self._key_prefix = ""
        self._scan_count = 100

    async def _create_client(self, settings: NosqlSettings) -> t.Any:
        self.logger.info(f"Initializing Redis connection to database {settings.db}")
        options = settings.extras
        if settings.password is not None:
            options["password"] = settings.password.get_secret_value()
        client = redis.from_url(settings.connection_url, **options)
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        self._key_prefix = settings.key_prefix
        self._scan_count = settings.scan_count
        return client

    async def _close_client(self, client: t.Any) -> None:
        await client.aclose()

    def _get_key(self, target: str, id: t.Any) -> str:
        if any(char in target for char in _RESERVED_TARGET_CHARS):
            msg = f"Redis target names may not contain any of {_RESERVED_TARGET_CHARS!r}: {target!r}"
            raise InvalidArgumentError(msg, target=target)
        return f"{self._key_prefix}{target}:{id}"

    def _require_key(self, operation: str, criteria: Criteria | None, primary_key: str) -> t.Any:
        key = (criteria or {}).get(primary_key)
        if key is None:
            msg = f'Redis {operation} requires "{primary_key}" in criteria'
            raise InvalidArgumentError(msg, operation=operation)
        return key

    async def insert(
        self,
        target: str,
        record: Record,
        *,
        primary_key: str | None = None,
    ) -> t.Any:
        client = self._require_client("insert")
        pk = self._resolve_key(primary_key)
        key = record.get(pk)
        if key is None:
            key = str(uuid4())
        await client.set(self._get_key(target, key), msgspec.json.encode({**record, pk: key}))
        self.logger.debug(f"Stored {self._get_key(target, key)}")
        return key

    async def find(
        self,
        target: str,
        criteria: Criteria | None = None,
        *,
        primary_key: str | None = None,
    ) -> list[Record]:
        client = self._require_client("find")
        keys = [
            key
            async for key in client.scan_iter(
                match=self._get_key(target, "*"),
                count=self._scan_count,
            )
        ]
        if not keys:
            return []
        records = (msgspec.json.decode(value) for value in await client.mget(keys) if value is not None)
        return [record for record in records if matches(record, criteria)]

    async def find_one(
        self,
        target: str,
        criteria: Criteria,
        *,
        primary_key: str | None = None,
    ) -> Record | None:
        client = self._require_client("find_one")
        pk = self._resolve_key(primary_key)
        key = self._require_key("find_one", criteria, pk)
        value = await client.get(self._get_key(target, key))
        if value is None:
            return None
        record: Record = msgspec.json.decode(value)
        return record if matches(record, without_key(criteria, pk)) else None

    async def update(
        self,
        target: str,
        criteria: Criteria,
        data: Record,
        *,
        primary_key: str | None = None,
    ) -> int:
        client = self._require_client("update")
        pk = self._resolve_key(primary_key)
        key = self._require_key("update", criteria, pk)
        changes = without_key(data, pk)
        if not changes:
            return 0
        redis_key = self._get_key(target, key)
        if not await client.exists(redis_key):
            return 0
        await client.set(redis_key, msgspec.json.encode(changes | {pk: key}))
        return 1

    async def delete(
        self,
        target: str,
        criteria: Criteria,
        *,
        primary_key: str | None = None,
    ) -> int:
        client = self._require_client("delete")
        key = self._require_key("delete", criteria, self._resolve_key(primary_key))
        return int(await client.delete(self._get_key(target, key)))
