"""Tests for the MongoDB adapter."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typing as t
from bson import ObjectId

from storebridge.adapters.nosql.mongodb import Nosql, NosqlSettings
from storebridge.errors import NotConnectedError, StoreConnectionError
from tests.mocks import FakeMotorClient

MOTOR_CLIENT = "storebridge.adapters.nosql.mongodb.AsyncIOMotorClient"


@pytest.fixture
def motor_client() -> FakeMotorClient:
    return FakeMotorClient()


@pytest.fixture
async def nosql(motor_client: FakeMotorClient) -> t.AsyncIterator[Nosql]:
    with patch(MOTOR_CLIENT, return_value=motor_client):
        nosql = Nosql()
        nosql.logger = MagicMock()
        await nosql.connect({"url": "mongodb://db:27017", "dbName": "shop"})
        yield nosql


def collection(client: FakeMotorClient, name: str, db: str = "shop") -> t.Any:
    return client[db][name]


class TestMongoSettings:
    def test_defaults(self) -> None:
        settings = NosqlSettings()

        assert settings.url == "mongodb://localhost:27017"
        assert settings.collection_prefix == ""

    def test_snake_case_wins(self) -> None:
        settings = NosqlSettings.from_config({"db_name": "a", "dbName": "b"})

        assert settings.db_name == "a"


class TestMongoConnection:
    @pytest.mark.asyncio
    async def test_connect(self) -> None:
        client = FakeMotorClient()
        with patch(MOTOR_CLIENT, return_value=client) as motor_cls:
            nosql = Nosql()
            await nosql.connect(
                url="mongodb://db:27017",
                db_name="shop",
                serverSelectionTimeoutMS=500,
            )

        motor_cls.assert_called_once_with("mongodb://db:27017", serverSelectionTimeoutMS=500)
        client.admin.command.assert_awaited_once_with("ping")
        assert nosql.connected

    @pytest.mark.asyncio
    async def test_connect_failure_closes_client(self) -> None:
        client = FakeMotorClient()
        client.admin.command = AsyncMock(side_effect=TimeoutError("no server"))
        with patch(MOTOR_CLIENT, return_value=client):
            nosql = Nosql()
            nosql.logger = MagicMock()
            with pytest.raises(StoreConnectionError):
                await nosql.connect()

        assert client.closed
        assert not nosql.connected

    @pytest.mark.asyncio
    async def test_reconnect_closes_previous_client(
        self,
        nosql: Nosql,
        motor_client: FakeMotorClient,
    ) -> None:
        replacement = FakeMotorClient()
        with patch(MOTOR_CLIENT, return_value=replacement):
            await nosql.connect(db_name="other")

        assert motor_client.closed
        assert not replacement.closed
        await nosql.insert("users", {"name": "A"})
        assert collection(replacement, "users", "other").data

    @pytest.mark.asyncio
    async def test_disconnect(self, nosql: Nosql, motor_client: FakeMotorClient) -> None:
        await nosql.disconnect()

        assert motor_client.closed
        with pytest.raises(NotConnectedError):
            await nosql.find("users", {})


class TestMongoCrud:
    @pytest.mark.asyncio
    async def test_insert_returns_object_id(self, nosql: Nosql) -> None:
        key = await nosql.insert("users", {"name": "A", "value": 1})

        assert isinstance(key, ObjectId)
        record = await nosql.find_one("users", {"_id": key})
        assert record is not None
        assert record["name"] == "A"
        assert record["value"] == 1

    @pytest.mark.asyncio
    async def test_insert_converts_hex_id(self, nosql: Nosql) -> None:
        hex_id = str(ObjectId())

        key = await nosql.insert("users", {"_id": hex_id, "name": "A"})

        assert key == ObjectId(hex_id)

    @pytest.mark.asyncio
    async def test_insert_keeps_other_string_ids(self, nosql: Nosql) -> None:
        assert await nosql.insert("users", {"_id": "alice", "name": "A"}) == "alice"

    @pytest.mark.asyncio
    async def test_insert_does_not_mutate_input(self, nosql: Nosql) -> None:
        record = {"_id": str(ObjectId()), "name": "A"}
        original = dict(record)

        await nosql.insert("users", record)

        assert record == original

    @pytest.mark.asyncio
    async def test_find_one_with_string_id(self, nosql: Nosql) -> None:
        key = await nosql.insert("users", {"name": "A"})

        record = await nosql.find_one("users", {"_id": str(key)})

        assert record is not None
        assert record["_id"] == key

    @pytest.mark.asyncio
    async def test_find(self, nosql: Nosql) -> None:
        await nosql.insert("users", {"name": "A", "role": "admin"})
        await nosql.insert("users", {"name": "B", "role": "user"})

        assert [r["name"] for r in await nosql.find("users", {"role": "admin"})] == ["A"]
        assert len(await nosql.find("users")) == 2

    @pytest.mark.asyncio
    async def test_update(self, nosql: Nosql) -> None:
        key = await nosql.insert("users", {"name": "A", "value": 1})

        assert await nosql.update("users", {"_id": str(key)}, {"_id": ObjectId(), "value": 2}) == 1
        assert await nosql.update("users", {"_id": key}, {"value": 2}) == 0

        record = await nosql.find_one("users", {"_id": key})
        assert record == {"_id": key, "name": "A", "value": 2}

    @pytest.mark.asyncio
    async def test_update_empty_payload(self, nosql: Nosql, motor_client: FakeMotorClient) -> None:
        key = await nosql.insert("users", {"name": "A"})
        users = collection(motor_client, "users")
        users.update_many = AsyncMock()

        assert await nosql.update("users", {"_id": key}, {"_id": key}) == 0
        users.update_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete(self, nosql: Nosql) -> None:
        key = await nosql.insert("users", {"name": "A"})

        assert await nosql.delete("users", {"_id": str(key)}) == 1
        assert await nosql.find_one("users", {"_id": key}) is None
        assert await nosql.delete("users", {"_id": key}) == 0

    @pytest.mark.asyncio
    async def test_collection_prefix(self, motor_client: FakeMotorClient) -> None:
        with patch(MOTOR_CLIENT, return_value=motor_client):
            nosql = Nosql()
            await nosql.connect(db_name="shop", collection_prefix="app_")

        await nosql.insert("users", {"name": "A"})

        assert collection(motor_client, "app_users").data
        assert not collection(motor_client, "users").data


class TestMongoQuery:
    @pytest.mark.asyncio
    async def test_filter_with_options(self, nosql: Nosql, motor_client: FakeMotorClient) -> None:
        for n in range(3):
            await nosql.insert("users", {"n": n, "role": "admin"})

        rows = await nosql.query("users", {"role": "admin"}, limit=2, sort=[("n", -1)])

        assert len(rows) == 2
        assert collection(motor_client, "users").find_calls[-1] == (
            {"role": "admin"},
            {"limit": 2, "sort": [("n", -1)]},
        )

    @pytest.mark.asyncio
    async def test_pipeline(self, nosql: Nosql, motor_client: FakeMotorClient) -> None:
        await nosql.insert("users", {"role": "admin"})
        await nosql.insert("users", {"role": "user"})
        pipeline = [{"$match": {"role": "user"}}]

        rows = await nosql.query("users", pipeline)

        assert [row["role"] for row in rows] == ["user"]
        assert collection(motor_client, "users").pipelines == [pipeline]

    @pytest.mark.asyncio
    async def test_no_params(self, nosql: Nosql) -> None:
        await nosql.insert("users", {"role": "admin"})

        assert len(await nosql.query("users")) == 1
