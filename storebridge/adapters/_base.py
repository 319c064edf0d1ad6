from abc import ABC, abstractmethod
from collections.abc import Mapping

import typing as t
from pydantic import BaseModel

from ..config import Settings
from ..errors import NotConnectedError, StoreConnectionError, UnsupportedOperationError
from ..logger import get_logger
from ..records import Criteria, KeyStrategy, Record
from . import StoreType

if t.TYPE_CHECKING:
    from loguru import Logger


class StoreAdapter(ABC):
    """Uniform async CRUD contract over a single store client.

    An adapter owns at most one live client. The client is created by
    :meth:`connect` and released by :meth:`disconnect`; every other operation
    raises :class:`NotConnectedError` while no client is present.

    Subclasses declare the store's default primary-key field and key strategy
    as class attributes. The ORM reads these declarations and never inspects
    the adapter's type.
    """

    settings_class: t.ClassVar[type[Settings]] = Settings
    store_type: t.ClassVar[StoreType]
    primary_key: t.ClassVar[str] = "id"
    key_strategy: t.ClassVar[KeyStrategy] = KeyStrategy.STORE_SCALAR
    reuse_connection: t.ClassVar[bool] = False

    def __init__(self) -> None:
        self._client: t.Any = None
        self._logger: Logger | None = None
        self.settings: Settings | None = None

    @property
    def logger(self) -> "Logger":
        if self._logger is None:
            self._logger = get_logger(type(self).__module__)
        return self._logger

    @logger.setter
    def logger(self, value: "Logger") -> None:
        self._logger = value

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def name(self) -> str:
        return self.store_type.value

    def _require_client(self, operation: str) -> t.Any:
        if self._client is None:
            raise NotConnectedError(operation, self.name)
        return self._client

    def _resolve_key(self, primary_key: str | None) -> str:
        return primary_key or self.primary_key

    @abstractmethod
    async def _create_client(self, settings: t.Any) -> t.Any: ...

    @abstractmethod
    async def _close_client(self, client: t.Any) -> None: ...

    async def connect(
        self,
        config: Mapping[str, t.Any] | BaseModel | None = None,
        /,
        **values: t.Any,
    ) -> None:
        if self._client is not None:
            if self.reuse_connection:
                self.logger.debug(f"{self.name} adapter already connected")
                return
            await self.disconnect()
        try:
            settings = self.settings_class.from_config(config, **values)
            client = await self._create_client(settings)
        except Exception as e:
            self.logger.exception(f"Failed to connect to {self.name}: {e}")
            raise StoreConnectionError(
                f"Failed to connect to {self.name}: {e}",
                operation="connect",
                original_error=e,
            ) from e
        self.settings = settings
        self._client = client
        self.logger.info(f"{self.name} connection initialized successfully")

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        await self._close_client(client)
        self.logger.info(f"{self.name} connection closed")

    @abstractmethod
    async def insert(
        self,
        target: str,
        record: Record,
        *,
        primary_key: str | None = None,
    ) -> t.Any: ...

    @abstractmethod
    async def find(
        self,
        target: str,
        criteria: Criteria | None = None,
        *,
        primary_key: str | None = None,
    ) -> list[Record]: ...

    @abstractmethod
    async def find_one(
        self,
        target: str,
        criteria: Criteria,
        *,
        primary_key: str | None = None,
    ) -> Record | None: ...

    @abstractmethod
    async def update(
        self,
        target: str,
        criteria: Criteria,
        data: Record,
        *,
        primary_key: str | None = None,
    ) -> int: ...

    @abstractmethod
    async def delete(
        self,
        target: str,
        criteria: Criteria,
        *,
        primary_key: str | None = None,
    ) -> int: ...

    async def query(
        self,
        raw: t.Any,
        params: t.Any = None,
        **options: t.Any,
    ) -> list[Record]:
        raise UnsupportedOperationError(
            f"Raw queries are not supported by the {self.name} adapter",
            operation="query",
        )

    async def __aenter__(self) -> t.Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()
