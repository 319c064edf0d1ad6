"""Tests for settings coercion and the YAML settings loader."""

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from storebridge.adapters.nosql.mongodb import NosqlSettings as MongoSettings
from storebridge.adapters.nosql.redis import NosqlSettings as RedisSettings
from storebridge.adapters.sql.mysql import SqlSettings as MySqlSettings
from storebridge.adapters.sql.pgsql import SqlSettings as PgSqlSettings
from storebridge.config import Config
from storebridge.errors import ConfigError
from tests.mocks import FakeRedis


class TestSettings:
    def test_defaults(self) -> None:
        settings = RedisSettings.from_config()

        assert settings.host == "127.0.0.1"
        assert settings.port == 6379
        assert settings.key_prefix == ""
        assert settings.connection_url == "redis://127.0.0.1:6379/0"

    def test_mapping_and_overrides(self) -> None:
        settings = RedisSettings.from_config({"port": 6380, "db": 2}, db=3)

        assert settings.port == 6380
        assert settings.db == 3

    def test_same_instance_returned(self) -> None:
        settings = RedisSettings(port=6390)

        assert RedisSettings.from_config(settings) is settings
        assert RedisSettings.from_config(settings, db=1).port == 6390

    def test_rejects_other_types(self) -> None:
        with pytest.raises(TypeError):
            RedisSettings.from_config(["port", 6379])  # type: ignore[arg-type]

    def test_invalid_values(self) -> None:
        with pytest.raises(ValidationError):
            RedisSettings.from_config({"port": "not-a-port"})

    def test_extras_are_kept(self) -> None:
        settings = RedisSettings.from_config({"socket_timeout": 3})

        assert settings.extras == {"socket_timeout": 3}

    def test_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STOREBRIDGE_REDIS_PORT", "6385")
        monkeypatch.setenv("STOREBRIDGE_MYSQL_DATABASE", "shop")

        assert RedisSettings().port == 6385
        assert MySqlSettings().database == "shop"
        assert PgSqlSettings().database == "storebridge"

    def test_mongodb_db_name_spelling(self) -> None:
        settings = MongoSettings.from_config(
            {"url": "mongodb://db:27017", "dbName": "shop", "serverSelectionTimeoutMS": 500},
        )

        assert settings.db_name == "shop"
        assert settings.extras == {"serverSelectionTimeoutMS": 500}

    def test_sql_defaults_per_dialect(self) -> None:
        assert MySqlSettings().port == 3306
        assert PgSqlSettings().port == 5432
        assert PgSqlSettings().user == "postgres"

    def test_sql_password_is_secret(self) -> None:
        settings = MySqlSettings(password="hunter2")  # pragma: allowlist secret

        assert "hunter2" not in repr(settings)
        assert settings.async_url.password == "hunter2"  # pragma: allowlist secret


class TestConfig:
    @pytest.mark.asyncio
    async def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        settings = await Config(tmp_path).load_settings("redis")

        assert isinstance(settings, RedisSettings)
        assert settings.port == 6379

    @pytest.mark.asyncio
    async def test_reads_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "redis.yaml").write_text("port: 6390\nkey_prefix: 'app:'\n")

        settings = await Config(tmp_path).load_settings("redis", db=4)

        assert isinstance(settings, RedisSettings)
        assert settings.port == 6390
        assert settings.key_prefix == "app:"
        assert settings.db == 4

    @pytest.mark.asyncio
    async def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / "mysql.yaml").write_text("")

        settings = await Config(tmp_path).load_settings("mysql")

        assert isinstance(settings, MySqlSettings)

    @pytest.mark.asyncio
    async def test_non_mapping_file(self, tmp_path: Path) -> None:
        (tmp_path / "redis.yaml").write_text("- one\n- two\n")

        with pytest.raises(ConfigError, match="mapping"):
            await Config(tmp_path).load_settings("redis")

    @pytest.mark.asyncio
    async def test_unparseable_file(self, tmp_path: Path) -> None:
        (tmp_path / "redis.yaml").write_text("port: [6379\n")

        with pytest.raises(ConfigError):
            await Config(tmp_path).load_settings("redis")

    @pytest.mark.asyncio
    async def test_connect(self, tmp_path: Path) -> None:
        (tmp_path / "redis.yaml").write_text("key_prefix: 'cfg:'\n")
        client = FakeRedis()

        with patch("redis.asyncio.from_url", return_value=client) as from_url:
            adapter = await Config(tmp_path).connect("redis")

        from_url.assert_called_once_with("redis://127.0.0.1:6379/0")
        assert adapter.connected
        await adapter.insert("users", {"id": "1"})
        assert "cfg:users:1" in client.store
