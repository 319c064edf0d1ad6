from collections.abc import Mapping
from dataclasses import dataclass
from uuid import uuid4

import typing as t

from .errors import InvalidArgumentError, NotDefinedError
from .logger import get_logger
from .model import Model
from .records import Criteria, KeyStrategy, Record, strip_unset, without_key

if t.TYPE_CHECKING:
    from .adapters._base import StoreAdapter

ModelRef: t.TypeAlias = type[Model] | str


def _model_name(model: ModelRef) -> str:
    return model if isinstance(model, str) else model.__name__


def _as_record(data: Mapping[str, t.Any] | Model) -> Record:
    return data.to_record() if isinstance(data, Model) else dict(data)


@dataclass(frozen=True)
class ModelBinding:
    model: ModelRef
    table_name: str
    primary_key: str
    key_strategy: KeyStrategy


class ORM:
    """Forwards model-level CRUD to a single connected adapter.

    Models are bound to a table or collection with :meth:`define_model`. A
    binding may be keyed by a :class:`Model` subclass, whose results come back
    as instances of that class, or by a plain string, whose results stay dicts.
    """

    def __init__(self, adapter: "StoreAdapter") -> None:
        self._adapter = adapter
        self._bindings: dict[ModelRef, ModelBinding] = {}
        self.logger = get_logger(__name__)

    @property
    def adapter(self) -> "StoreAdapter":
        return self._adapter

    def _make_binding(
        self,
        model: ModelRef,
        table_name: str,
        primary_key: str | None,
        key_strategy: KeyStrategy | str | None,
    ) -> ModelBinding:
        declared_key = declared_strategy = None
        if isinstance(model, type) and issubclass(model, Model):
            declared_key = model.primary_key
            declared_strategy = model.key_strategy
        return ModelBinding(
            model=model,
            table_name=table_name,
            primary_key=primary_key or declared_key or self._adapter.primary_key,
            key_strategy=KeyStrategy(
                key_strategy or declared_strategy or self._adapter.key_strategy,
            ),
        )

    def define_model(
        self,
        model: ModelRef,
        table_name: str,
        *,
        primary_key: str | None = None,
        key_strategy: KeyStrategy | str | None = None,
    ) -> ModelBinding:
        binding = self._make_binding(model, table_name, primary_key, key_strategy)
        self._bindings[model] = binding
        self.logger.debug(
            f"Model {_model_name(model)} defined for {table_name} "
            f"(key {binding.primary_key!r}, {binding.key_strategy.value})",
        )
        return binding

    def get_binding(self, model: ModelRef) -> ModelBinding:
        if binding := self._bindings.get(model):
            return binding
        if isinstance(model, type) and issubclass(model, Model) and model.table_name:
            return self._make_binding(model, model.table_name, None, None)
        raise NotDefinedError(model)

    def get_table_name(self, model: ModelRef) -> str:
        return self.get_binding(model).table_name

    def _wrap(self, binding: ModelBinding, record: Record) -> Model | Record:
        if isinstance(binding.model, str):
            return record
        if binding.primary_key not in record:
            msg = (
                f"Record from {binding.table_name} has no "
                f"{binding.primary_key!r} field for {binding.model.__name__}"
            )
            raise InvalidArgumentError(msg, operation="wrap", target=binding.table_name)
        return binding.model(record)

    async def insert(
        self,
        model: ModelRef,
        record: Mapping[str, t.Any] | Model,
    ) -> Model | Record:
        binding = self.get_binding(model)
        pk = binding.primary_key
        data = strip_unset(_as_record(record))
        if data.get(pk) is None:
            data.pop(pk, None)
            if binding.key_strategy is KeyStrategy.CLIENT_GENERATED:
                data[pk] = str(uuid4())
        data[pk] = await self._adapter.insert(binding.table_name, data, primary_key=pk)
        return self._wrap(binding, data)

    async def find(
        self,
        model: ModelRef,
        criteria: Criteria | None = None,
    ) -> list[Model | Record]:
        binding = self.get_binding(model)
        records = await self._adapter.find(
            binding.table_name,
            criteria or {},
            primary_key=binding.primary_key,
        )
        return [self._wrap(binding, record) for record in records]

    async def find_one(
        self,
        model: ModelRef,
        criteria: Criteria,
    ) -> Model | Record | None:
        binding = self.get_binding(model)
        record = await self._adapter.find_one(
            binding.table_name,
            criteria,
            primary_key=binding.primary_key,
        )
        return None if record is None else self._wrap(binding, record)

    async def update(
        self,
        model: ModelRef,
        criteria: Criteria,
        data: Mapping[str, t.Any] | Model,
    ) -> int:
        binding = self.get_binding(model)
        changes = without_key(strip_unset(_as_record(data)), binding.primary_key)
        return await self._adapter.update(
            binding.table_name,
            criteria,
            changes,
            primary_key=binding.primary_key,
        )

    async def delete(self, model: ModelRef, criteria: Criteria) -> int:
        binding = self.get_binding(model)
        return await self._adapter.delete(
            binding.table_name,
            criteria,
            primary_key=binding.primary_key,
        )

    async def query(
        self,
        raw: t.Any,
        params: t.Any = None,
        **options: t.Any,
    ) -> list[Record]:
        return await self._adapter.query(raw, params, **options)
