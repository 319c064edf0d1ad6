from uuid import UUID

import typing as t
from pydantic_settings import SettingsConfigDict
from sqlalchemy import insert
from sqlalchemy.engine import CursorResult
from sqlalchemy.sql.expression import TableClause

from ...records import Record
from .. import AdapterCapability, AdapterMetadata, AdapterStatus, StoreType
from ._base import SqlBase, SqlBaseSettings

MODULE_ID = UUID("0199a3c2-b6e8-7f21-9c47-8d2e5a1f0b34")
MODULE_STATUS = AdapterStatus.STABLE

MODULE_METADATA = AdapterMetadata(
    module_id=MODULE_ID,
    name="PostgreSQL",
    category="sql",
    provider="pgsql",
    store_type=StoreType.POSTGRESQL,
    status=MODULE_STATUS,
    capabilities=[
        AdapterCapability.ASYNC_OPERATIONS,
        AdapterCapability.TLS_SUPPORT,
        AdapterCapability.RAW_QUERIES,
        AdapterCapability.RETURNING,
    ],
    required_packages=["asyncpg", "sqlalchemy"],
    description="PostgreSQL adapter built on SQLAlchemy async and asyncpg",
    settings_class="SqlSettings",
    config_example={
        "host": "localhost",
        "port": 5432,
        "user": "postgres",
        "password": "your-db-password",  # pragma: allowlist secret
        "database": "app",
    },
)


class SqlSettings(SqlBaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOREBRIDGE_POSTGRESQL_")

    _async_driver: str = "postgresql+asyncpg"

    port: int = 5432
    user: str = "postgres"

    def _timeout_args(self) -> dict[str, t.Any]:
        if self.connect_timeout is None:
            return {}
        return {"timeout": self.connect_timeout}


class Sql(SqlBase):
    settings_class = SqlSettings
    store_type = StoreType.POSTGRESQL

    def _insert_statement(self, tbl: TableClause, record: Record, primary_key: str) -> t.Any:
        return insert(tbl).values(record).returning(tbl.c[primary_key])

    def _inserted_key(
        self,
        result: CursorResult[t.Any],
        record: Record,
        primary_key: str,
    ) -> t.Any:
        return result.scalar_one()
