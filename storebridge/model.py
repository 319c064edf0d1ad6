from collections.abc import Mapping

import rich.repr
import typing as t

from .errors import InvalidArgumentError
from .records import UNSET, Criteria, KeyStrategy, Record

if t.TYPE_CHECKING:
    from .orm import ORM

ModelT = t.TypeVar("ModelT", bound="Model")


@rich.repr.auto
class Model:
    """Attribute bag persisted through an :class:`~storebridge.orm.ORM`.

    Subclasses may declare ``table_name``, ``primary_key`` and
    ``key_strategy``; anything left as ``None`` falls back to the binding
    given to ``ORM.define_model`` and then to the adapter's defaults.

    Every instance attribute is a field, including store identifiers such as
    MongoDB's ``_id``.
    """

    table_name: t.ClassVar[str | None] = None
    primary_key: t.ClassVar[str | None] = None
    key_strategy: t.ClassVar[KeyStrategy | None] = None

    def __init__(self, data: Mapping[str, t.Any] | None = None, /, **fields: t.Any) -> None:
        for name, value in {**(data or {}), **fields}.items():
            setattr(self, name, value)

    def __rich_repr__(self) -> rich.repr.Result:
        yield from vars(self).items()

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return vars(self) == vars(other)

    __hash__ = None  # type: ignore[assignment]

    def to_record(self) -> Record:
        return dict(vars(self))

    def _key(self, orm: "ORM") -> tuple[str, t.Any]:
        pk = orm.get_binding(type(self)).primary_key
        value = getattr(self, pk, None)
        return pk, None if value is UNSET else value

    async def save(self, orm: "ORM") -> t.Self:
        """Insert when the key is unset, otherwise update the stored record."""
        pk, key = self._key(orm)
        if key is None:
            saved = t.cast(Model, await orm.insert(type(self), self.to_record()))
            setattr(self, pk, getattr(saved, pk))
        else:
            await orm.update(type(self), {pk: key}, self.to_record())
        return self

    async def remove(self, orm: "ORM") -> int:
        pk, key = self._key(orm)
        if key is None:
            msg = f"Cannot remove {type(self).__name__} without a {pk!r} value"
            raise InvalidArgumentError(msg, operation="remove")
        return await orm.delete(type(self), {pk: key})

    @classmethod
    async def create(
        cls: type[ModelT],
        orm: "ORM",
        data: Mapping[str, t.Any] | None = None,
        /,
        **fields: t.Any,
    ) -> ModelT:
        return t.cast(ModelT, await orm.insert(cls, cls(data, **fields)))

    @classmethod
    async def find_by_id(cls: type[ModelT], orm: "ORM", id: t.Any) -> ModelT | None:
        pk = orm.get_binding(cls).primary_key
        return t.cast("ModelT | None", await orm.find_one(cls, {pk: id}))

    @classmethod
    async def find(
        cls: type[ModelT],
        orm: "ORM",
        criteria: Criteria | None = None,
    ) -> list[ModelT]:
        return t.cast("list[ModelT]", await orm.find(cls, criteria))

    @classmethod
    async def find_one(cls: type[ModelT], orm: "ORM", criteria: Criteria) -> ModelT | None:
        return t.cast("ModelT | None", await orm.find_one(cls, criteria))

    @classmethod
    async def update(
        cls,
        orm: "ORM",
        criteria: Criteria,
        data: Mapping[str, t.Any],
    ) -> int:
        return await orm.update(cls, criteria, data)

    @classmethod
    async def delete(cls, orm: "ORM", criteria: Criteria) -> int:
        return await orm.delete(cls, criteria)
