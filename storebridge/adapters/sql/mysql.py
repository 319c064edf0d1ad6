from uuid import UUID

import typing as t
from pydantic_settings import SettingsConfigDict
from sqlalchemy.engine import CursorResult

from ...records import Record
from .. import AdapterCapability, AdapterMetadata, AdapterStatus, StoreType
from ._base import SqlBase, SqlBaseSettings

MODULE_ID = UUID("0199a3c2-9a14-7e85-a3d1-5b7f2c9e6d23")
MODULE_STATUS = AdapterStatus.STABLE

MODULE_METADATA = AdapterMetadata(
    module_id=MODULE_ID,
    name="MySQL",
    category="sql",
    provider="mysql",
    store_type=StoreType.MYSQL,
    status=MODULE_STATUS,
    capabilities=[
        AdapterCapability.ASYNC_OPERATIONS,
        AdapterCapability.TLS_SUPPORT,
        AdapterCapability.RAW_QUERIES,
        AdapterCapability.AUTO_INCREMENT,
    ],
    required_packages=["aiomysql", "sqlalchemy"],
    description="MySQL adapter built on SQLAlchemy async and aiomysql",
    settings_class="SqlSettings",
    config_example={
        "host": "localhost",
        "port": 3306,
        "user": "admin",
        "password": "your-db-password",  # pragma: allowlist secret
        "database": "app",
    },
)


class SqlSettings(SqlBaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOREBRIDGE_MYSQL_")

    _async_driver: str = "mysql+aiomysql"

    port: int = 3306
    charset: str = "utf8mb4"

    def _url_query(self) -> dict[str, str]:
        return {"charset": self.charset}

    def _timeout_args(self) -> dict[str, t.Any]:
        if self.connect_timeout is None:
            return {}
        return {"connect_timeout": int(self.connect_timeout)}


class Sql(SqlBase):
    settings_class = SqlSettings
    store_type = StoreType.MYSQL

    def _inserted_key(
        self,
        result: CursorResult[t.Any],
        record: Record,
        primary_key: str,
    ) -> t.Any:
        supplied = record.get(primary_key)
        return supplied if supplied is not None else result.lastrowid
