from .errors import (
    ConfigError,
    InvalidArgumentError,
    NotConnectedError,
    NotDefinedError,
    StoreConnectionError,
    StoreError,
    UnsupportedOperationError,
    UnsupportedTypeError,
)
from .records import UNSET, Criteria, KeyStrategy, Record
from .adapters import (
    AdapterCapability,
    AdapterMetadata,
    AdapterStatus,
    StoreType,
    create_adapter,
    get_adapter_class,
    get_adapter_metadata,
)
from .config import Config, Settings
from .logger import LoggerSettings, configure_logger, get_logger
from .adapters._base import StoreAdapter
from .model import Model
from .orm import ORM, ModelBinding

__all__ = [
    "ORM",
    "UNSET",
    "AdapterCapability",
    "AdapterMetadata",
    "AdapterStatus",
    "Config",
    "ConfigError",
    "Criteria",
    "InvalidArgumentError",
    "KeyStrategy",
    "LoggerSettings",
    "Model",
    "ModelBinding",
    "NotConnectedError",
    "NotDefinedError",
    "Record",
    "Settings",
    "StoreAdapter",
    "StoreConnectionError",
    "StoreError",
    "StoreType",
    "UnsupportedOperationError",
    "UnsupportedTypeError",
    "configure_logger",
    "create_adapter",
    "get_adapter_class",
    "get_adapter_metadata",
    "get_logger",
]
