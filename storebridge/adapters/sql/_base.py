from abc import abstractmethod
from collections.abc import Iterable, Mapping

import typing as t
from pydantic import SecretStr
from sqlalchemy import column, delete, insert, literal_column, select, table, text, update
from sqlalchemy.engine import URL, CursorResult
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool
from sqlalchemy.sql import Executable
from sqlalchemy.sql.expression import TableClause

from ...config import Settings
from ...records import Criteria, KeyStrategy, Record, without_key
from .._base import StoreAdapter


class SqlBaseSettings(Settings):
    """Connection settings shared by the SQL adapters.

    Extra keys are forwarded to the DBAPI driver as ``connect_args``.
    """

    _async_driver: str
    host: str = "127.0.0.1"
    port: int = 3306
    user: str = "root"
    password: SecretStr | None = None
    database: str = "storebridge"
    echo: bool = False
    connect_timeout: float | None = 30.0
    engine_kwargs: dict[str, t.Any] = {}

    @property
    def async_driver(self) -> str:
        return self._async_driver

    def _url_query(self) -> dict[str, str]:
        return {}

    def _timeout_args(self) -> dict[str, t.Any]:
        return {}

    @property
    def async_url(self) -> URL:
        return URL.create(
            drivername=self.async_driver,
            username=self.user,
            password=self.password.get_secret_value() if self.password else None,
            host=self.host,
            port=self.port,
            database=self.database,
            query=self._url_query(),
        )

    @property
    def connect_args(self) -> dict[str, t.Any]:
        return self._timeout_args() | self.extras


def _table(target: str, columns: Iterable[str]) -> TableClause:
    schema, _, name = target.rpartition(".")
    return table(
        name,
        *(column(col) for col in dict.fromkeys(columns)),
        schema=schema or None,
    )


def _where(stmt: t.Any, tbl: TableClause, criteria: Criteria | None) -> t.Any:
    if not criteria:
        return stmt
    return stmt.where(*(tbl.c[key] == value for key, value in criteria.items()))


class SqlBase(StoreAdapter):
    """Relational adapter over a single autocommit ``AsyncConnection``.

    Targets may be schema qualified (``"reporting.events"``). Identifiers are
    quoted by the dialect and values are always sent as bound parameters.
    """

    primary_key = "id"
    key_strategy = KeyStrategy.STORE_SCALAR

    def __init__(self) -> None:
        super().__init__()
        self._engine: AsyncEngine | None = None

    async def _create_client(self, settings: SqlBaseSettings) -> AsyncConnection:
        self.logger.info(
            f"Initializing {self.name} connection to {settings.host}:{settings.port}/{settings.database}",
        )
        engine = create_async_engine(
            settings.async_url,
            echo=settings.echo,
            poolclass=NullPool,
            connect_args=settings.connect_args,
            **settings.engine_kwargs,
        )
        try:
            conn = await engine.connect()
            conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
        except Exception:
            await engine.dispose()
            raise
        self._engine = engine
        return conn

    async def _close_client(self, client: AsyncConnection) -> None:
        try:
            await client.close()
        finally:
            if self._engine is not None:
                await self._engine.dispose()
                self._engine = None

    async def _execute(
        self,
        operation: str,
        target: str,
        stmt: Executable,
    ) -> CursorResult[t.Any]:
        conn: AsyncConnection = self._require_client(operation)
        self.logger.debug(f"{operation} on {target}")
        return await conn.execute(stmt)

    def _insert_statement(self, tbl: TableClause, record: Record, primary_key: str) -> t.Any:
        return insert(tbl).values(record)

    @abstractmethod
    def _inserted_key(
        self,
        result: CursorResult[t.Any],
        record: Record,
        primary_key: str,
    ) -> t.Any: ...

    async def insert(
        self,
        target: str,
        record: Record,
        *,
        primary_key: str | None = None,
    ) -> t.Any:
        self._require_client("insert")
        pk = self._resolve_key(primary_key)
        tbl = _table(target, [*record, pk])
        result = await self._execute(
            "insert",
            target,
            self._insert_statement(tbl, record, pk),
        )
        return self._inserted_key(result, record, pk)

    async def find(
        self,
        target: str,
        criteria: Criteria | None = None,
        *,
        primary_key: str | None = None,
    ) -> list[Record]:
        self._require_client("find")
        tbl = _table(target, criteria or ())
        stmt = _where(select(literal_column("*")).select_from(tbl), tbl, criteria)
        result = await self._execute("find", target, stmt)
        return [dict(row) for row in result.mappings()]

    async def find_one(
        self,
        target: str,
        criteria: Criteria,
        *,
        primary_key: str | None = None,
    ) -> Record | None:
        self._require_client("find_one")
        tbl = _table(target, criteria or ())
        stmt = _where(select(literal_column("*")).select_from(tbl), tbl, criteria).limit(1)
        result = await self._execute("find_one", target, stmt)
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def update(
        self,
        target: str,
        criteria: Criteria,
        data: Record,
        *,
        primary_key: str | None = None,
    ) -> int:
        self._require_client("update")
        changes = without_key(data, self._resolve_key(primary_key))
        if not changes:
            return 0
        tbl = _table(target, [*changes, *(criteria or ())])
        stmt = _where(update(tbl).values(changes), tbl, criteria)
        result = await self._execute("update", target, stmt)
        return int(result.rowcount)

    async def delete(
        self,
        target: str,
        criteria: Criteria,
        *,
        primary_key: str | None = None,
    ) -> int:
        self._require_client("delete")
        tbl = _table(target, criteria or ())
        result = await self._execute("delete", target, _where(delete(tbl), tbl, criteria))
        return int(result.rowcount)

    async def query(
        self,
        raw: str,
        params: Mapping[str, t.Any] | list[Mapping[str, t.Any]] | None = None,
        **options: t.Any,
    ) -> list[Record]:
        """Execute ``raw`` SQL with ``:name`` bind parameters.

        A list of mappings in ``params`` runs the statement once per mapping.
        ``options`` are passed as execution options.
        """
        conn: AsyncConnection = self._require_client("query")
        self.logger.debug(f"query: {raw}")
        result = await conn.execute(
            text(raw),
            params,
            execution_options=options or None,
        )
        if not result.returns_rows:
            return []
        return [dict(row) for row in result.mappings()]
