"""Record and criteria primitives shared by the adapters and the ORM.

Records are plain dictionaries. Nothing here enforces a schema; the only
structure this layer knows about is the primary-key field, which each model
binding declares explicitly together with the strategy used to generate it.
"""

from collections.abc import Mapping
from enum import Enum

import typing as t

Record: t.TypeAlias = dict[str, t.Any]
Criteria: t.TypeAlias = Mapping[str, t.Any]


class _Unset:
    """Marker for a field that has no value at all (as opposed to ``None``)."""

    _instance: t.ClassVar["_Unset | None"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: t.Final = _Unset()


class KeyStrategy(str, Enum):
    CLIENT_GENERATED = "client_generated"
    STORE_SCALAR = "store_scalar"
    STORE_OBJECT = "store_object"


def strip_unset(data: Mapping[str, t.Any]) -> Record:
    return {k: v for k, v in data.items() if v is not UNSET}


def without_key(data: Mapping[str, t.Any], primary_key: str) -> Record:
    return {k: v for k, v in data.items() if k != primary_key}


def _same_value(stored: t.Any, expected: t.Any) -> bool:
    # booleans never match numbers
    if isinstance(stored, bool) is not isinstance(expected, bool):
        return False
    return bool(stored == expected)


def matches(record: Mapping[str, t.Any], criteria: Criteria | None) -> bool:
    """Exact-match conjunction: every criteria field is present and equal.

    Values compare with ``==`` except that a boolean only matches a boolean,
    so ``{"active": 1}`` does not select a record stored with ``True``.
    """
    if not criteria:
        return True
    for key, value in criteria.items():
        if key not in record or not _same_value(record[key], value):
            return False
    return True
