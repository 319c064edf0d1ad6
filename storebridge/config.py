from collections.abc import Mapping
from pathlib import Path

import msgspec
import rich.repr
import typing as t
from anyio import Path as AsyncPath
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .adapters import StoreType, create_adapter, get_adapter_class
from .errors import ConfigError

if t.TYPE_CHECKING:
    from .adapters._base import StoreAdapter

SettingsT = t.TypeVar("SettingsT", bound="Settings")


@rich.repr.auto
class Settings(BaseSettings):
    """Base class for adapter settings.

    Values come from (highest priority first) explicit keyword overrides, the
    mapping or settings object handed to ``connect``, ``STOREBRIDGE_*``
    environment variables, then field defaults. Unknown keys are kept as
    extras and forwarded to the underlying driver by each adapter.
    """

    model_config = SettingsConfigDict(
        env_prefix="STOREBRIDGE_",
        extra="allow",
        arbitrary_types_allowed=True,
        validate_default=True,
        protected_namespaces=("model_", "settings_"),
    )

    @classmethod
    def from_config(
        cls: type[SettingsT],
        config: "Mapping[str, t.Any] | BaseModel | None" = None,
        /,
        **values: t.Any,
    ) -> SettingsT:
        if config is None:
            data: dict[str, t.Any] = {}
        elif isinstance(config, BaseModel):
            if isinstance(config, cls) and not values:
                return config
            data = config.model_dump()
        elif isinstance(config, Mapping):
            data = dict(config)
        else:
            msg = f"{cls.__name__} expects a mapping or settings object, got {type(config).__name__}"
            raise TypeError(msg)
        return cls(**(data | values))

    @property
    def extras(self) -> dict[str, t.Any]:
        return dict(self.model_extra or {})


@rich.repr.auto
class Config:
    """Loads adapter settings from ``<settings_path>/<store>.yaml``."""

    def __init__(self, settings_path: Path | str = Path("settings")) -> None:
        self.settings_path = Path(settings_path)

    def __rich_repr__(self) -> rich.repr.Result:
        yield "settings_path", self.settings_path

    async def _read_file(self, store_type: StoreType) -> dict[str, t.Any]:
        path = AsyncPath(self.settings_path) / f"{store_type.value}.yaml"
        if not await path.exists():
            return {}
        try:
            data = msgspec.yaml.decode(await path.read_bytes())
        except msgspec.DecodeError as e:
            raise ConfigError(path, f"Failed to parse {path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(path, f"{path} must contain a mapping of settings")
        return data

    async def load_settings(
        self,
        store_type: StoreType | str,
        **overrides: t.Any,
    ) -> Settings:
        adapter_class = get_adapter_class(store_type)
        data = await self._read_file(StoreType(store_type))
        return adapter_class.settings_class.from_config(data, **overrides)

    async def connect(
        self,
        store_type: StoreType | str,
        **overrides: t.Any,
    ) -> "StoreAdapter":
        adapter = create_adapter(store_type)
        await adapter.connect(await self.load_settings(store_type, **overrides))
        return adapter
