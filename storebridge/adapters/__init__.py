from enum import Enum
from importlib import import_module
from uuid import UUID

import typing as t
from pydantic import BaseModel, Field

from ..errors import UnsupportedTypeError

if t.TYPE_CHECKING:
    from ._base import StoreAdapter

__all__ = [
    "AdapterCapability",
    "AdapterMetadata",
    "AdapterStatus",
    "StoreType",
    "create_adapter",
    "get_adapter_class",
    "get_adapter_metadata",
]


class StoreType(str, Enum):
    MONGODB = "mongodb"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    REDIS = "redis"


class AdapterStatus(str, Enum):
    ALPHA = "alpha"
    BETA = "beta"
    STABLE = "stable"
    DEPRECATED = "deprecated"
    EXPERIMENTAL = "experimental"


class AdapterCapability(str, Enum):
    ASYNC_OPERATIONS = "async_operations"
    TLS_SUPPORT = "tls_support"
    RAW_QUERIES = "raw_queries"
    AGGREGATION = "aggregation"
    AUTO_INCREMENT = "auto_increment"
    RETURNING = "returning"
    NATIVE_IDENTIFIERS = "native_identifiers"
    DIRECT_KEY_LOOKUP = "direct_key_lookup"
    CLIENT_SIDE_FILTERING = "client_side_filtering"


class AdapterMetadata(BaseModel):
    module_id: UUID
    name: str
    category: str
    provider: str
    store_type: StoreType
    version: str = "1.0.0"
    status: AdapterStatus = AdapterStatus.STABLE
    description: str | None = None
    settings_class: str | None = None
    config_example: dict[str, t.Any] | None = None
    capabilities: list[AdapterCapability] = Field(default_factory=list)
    required_packages: list[str] = Field(default_factory=list)


_adapter_registry: dict[StoreType, tuple[str, str]] = {
    StoreType.MONGODB: ("storebridge.adapters.nosql.mongodb", "Nosql"),
    StoreType.MYSQL: ("storebridge.adapters.sql.mysql", "Sql"),
    StoreType.POSTGRESQL: ("storebridge.adapters.sql.pgsql", "Sql"),
    StoreType.REDIS: ("storebridge.adapters.nosql.redis", "Nosql"),
}


def _resolve_store_type(store_type: t.Any) -> StoreType:
    try:
        return StoreType(store_type)
    except (ValueError, TypeError):
        raise UnsupportedTypeError(store_type) from None


def _import_adapter_module(store_type: t.Any) -> tuple[t.Any, str]:
    module_path, class_name = _adapter_registry[_resolve_store_type(store_type)]
    return import_module(module_path), class_name


def get_adapter_class(store_type: StoreType | str) -> type["StoreAdapter"]:
    module, class_name = _import_adapter_module(store_type)
    return t.cast("type[StoreAdapter]", getattr(module, class_name))


def get_adapter_metadata(store_type: StoreType | str) -> AdapterMetadata:
    module, _ = _import_adapter_module(store_type)
    return t.cast(AdapterMetadata, module.MODULE_METADATA)


def create_adapter(store_type: StoreType | str) -> "StoreAdapter":
    """Return a new, unconnected adapter for ``store_type``.

    Accepts a :class:`StoreType` member or its string value. Any other value,
    including ``None``, raises :class:`UnsupportedTypeError`.
    """
    return get_adapter_class(store_type)()
