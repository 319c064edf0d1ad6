from __future__ import annotations

from collections.abc import Mapping
from uuid import UUID

import typing as t
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import model_validator
from pydantic_settings import SettingsConfigDict

from ...config import Settings
from ...records import Criteria, KeyStrategy, Record, without_key
from .. import AdapterCapability, AdapterMetadata, AdapterStatus, StoreType
from .._base import StoreAdapter

MODULE_ID = UUID("0199a3c2-5e1d-7b40-9f2e-3c8d1a6b4e07")
MODULE_STATUS = AdapterStatus.STABLE

MODULE_METADATA = AdapterMetadata(
    module_id=MODULE_ID,
    name="MongoDB",
    category="nosql",
    provider="mongodb",
    store_type=StoreType.MONGODB,
    status=MODULE_STATUS,
    capabilities=[
        AdapterCapability.ASYNC_OPERATIONS,
        AdapterCapability.TLS_SUPPORT,
        AdapterCapability.RAW_QUERIES,
        AdapterCapability.AGGREGATION,
        AdapterCapability.NATIVE_IDENTIFIERS,
    ],
    required_packages=["motor", "pymongo"],
    description="MongoDB document adapter built on motor",
    settings_class="NosqlSettings",
    config_example={
        "url": "mongodb://localhost:27017",
        "db_name": "app",
        "collection_prefix": "",
        "serverSelectionTimeoutMS": 5000,
    },
)


class NosqlSettings(Settings):
    """Extra keys are passed through to ``AsyncIOMotorClient``."""

    model_config = SettingsConfigDict(env_prefix="STOREBRIDGE_MONGODB_")

    url: str = "mongodb://localhost:27017"
    db_name: str = "storebridge"
    collection_prefix: str = ""

    @model_validator(mode="before")
    @classmethod
    def accept_db_name_spelling(cls, data: t.Any) -> t.Any:
        if isinstance(data, dict) and "dbName" in data:
            data = dict(data)
            db_name = data.pop("dbName")
            data.setdefault("db_name", db_name)
        return data


def _normalize_id(data: Mapping[str, t.Any]) -> Record:
    normalized = dict(data)
    value = normalized.get("_id")
    if isinstance(value, str) and ObjectId.is_valid(value):
        normalized["_id"] = ObjectId(value)
    return normalized


class Nosql(StoreAdapter):
    settings_class = NosqlSettings
    store_type = StoreType.MONGODB
    primary_key = "_id"
    key_strategy = KeyStrategy.STORE_OBJECT

    def __init__(self) -> None:
        super().__init__()
        self._db: t.Any = None
        self._collection_prefix = ""

    async def _create_client(self, settings: NosqlSettings) -> AsyncIOMotorClient[t.Any]:
        self.logger.info(f"Initializing MongoDB connection to database {settings.db_name}")
        client: AsyncIOMotorClient[t.Any] = AsyncIOMotorClient(
            settings.url,
            **settings.extras,
        )
        try:
            await client.admin.command("ping")
        except Exception:
            client.close()
            raise
        self._db = client[settings.db_name]
        self._collection_prefix = settings.collection_prefix
        return client

    async def _close_client(self, client: AsyncIOMotorClient[t.Any]) -> None:
        self._db = None
        client.close()

    def _collection(self, operation: str, target: str) -> t.Any:
        self._require_client(operation)
        return self._db[f"{self._collection_prefix}{target}"]

    async def insert(
        self,
        target: str,
        record: Record,
        *,
        primary_key: str | None = None,
    ) -> t.Any:
        collection = self._collection("insert", target)
        result = await collection.insert_one(_normalize_id(record))
        self.logger.debug(f"Inserted {result.inserted_id} into {target}")
        return result.inserted_id

    async def find(
        self,
        target: str,
        criteria: Criteria | None = None,
        *,
        primary_key: str | None = None,
    ) -> list[Record]:
        collection = self._collection("find", target)
        cursor = collection.find(_normalize_id(criteria or {}))
        return t.cast("list[Record]", await cursor.to_list(length=None))

    async def find_one(
        self,
        target: str,
        criteria: Criteria,
        *,
        primary_key: str | None = None,
    ) -> Record | None:
        collection = self._collection("find_one", target)
        return t.cast("Record | None", await collection.find_one(_normalize_id(criteria)))

    async def update(
        self,
        target: str,
        criteria: Criteria,
        data: Record,
        *,
        primary_key: str | None = None,
    ) -> int:
        collection = self._collection("update", target)
        changes = without_key(data, self._resolve_key(primary_key))
        if not changes:
            return 0
        result = await collection.update_many(
            _normalize_id(criteria),
            {"$set": changes},
        )
        return int(result.modified_count)

    async def delete(
        self,
        target: str,
        criteria: Criteria,
        *,
        primary_key: str | None = None,
    ) -> int:
        collection = self._collection("delete", target)
        result = await collection.delete_many(_normalize_id(criteria))
        return int(result.deleted_count)

    async def query(
        self,
        raw: str,
        params: Mapping[str, t.Any] | list[Mapping[str, t.Any]] | None = None,
        **options: t.Any,
    ) -> list[Record]:
        """Run a filter (``params`` mapping) or pipeline (``params`` list) on
        the collection named by ``raw``.

        ``options`` go to ``find`` or ``aggregate`` unchanged, e.g. ``sort``,
        ``limit`` and ``projection`` for a filter.
        """
        collection = self._collection("query", raw)
        if isinstance(params, list):
            cursor = collection.aggregate(params, **options)
        else:
            cursor = collection.find(_normalize_id(params or {}), **options)
        return t.cast("list[Record]", await cursor.to_list(length=None))
