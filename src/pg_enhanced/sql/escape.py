"""
Escape values: typed wrappers that tell the template assembler how a raw value should be
rendered into SQL text and whether it contributes to the positional `values` list.

All variants share a single value type (`EscapeValue`) discriminated by `EscapeKind`. A
wrapper is a plain data holder: nothing is validated or transformed when it is built, the
assembler (see template.py) does all of the work at render time.

Usage:
    from pg_enhanced.sql import escape, assemble

    config = assemble(
        ["SELECT * FROM ", " WHERE id = ", ""],
        escape.identifier("users"),
        escape.parameter(42),
    )
    # config.text   -> 'SELECT * FROM "users" WHERE id = $1'
    # config.values -> (42,)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence


class _Undefined:
    """
    Marker for an absent value.

    `None` is a real value (SQL NULL) and is bound like any other parameter, so "nothing was
    provided" needs its own marker. There is exactly one instance: `UNDEFINED`.
    """

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Undefined":
        return self

    def __deepcopy__(self, memo: dict) -> "_Undefined":
        return self

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED: Any = _Undefined()


def is_undefined(value: Any) -> bool:
    return value is UNDEFINED


class EscapeKind(str, Enum):
    AND_DICTIONARY = "and_dictionary"
    ARRAY_PARAMETERS = "array_parameters"
    DICTIONARY = "dictionary"
    IDENTIFIER = "identifier"
    PARAMETER = "parameter"
    KEYS_AND_VALUES = "keys_and_values"
    KEYS_AND_VALUES_WITH_EXPIRES_IN = "keys_and_values_with_expires_in"


@dataclass(frozen=True)
class EscapeValue:
    """
    One interpolated value plus the rule used to render it.

    Attributes:
        kind: Which rendering rule applies (see `EscapeKind`).
        payload: The raw value. `UNDEFINED` turns the whole wrapper into a no-op.
    """

    kind: EscapeKind
    payload: Any = UNDEFINED

    @property
    def is_empty(self) -> bool:
        return self.payload is UNDEFINED


def escape_identifier(name: Any) -> str:
    """
    Quote a PostgreSQL identifier: wrap in double quotes and double any embedded quote.

    Mirrors libpq/node-postgres identifier escaping, e.g. `my"table` -> `"my""table"`.
    """
    return '"' + str(name).replace('"', '""') + '"'


class Escape:
    """Factory methods for every escape variant."""

    @staticmethod
    def and_dictionary(item: Mapping[str, Any] = UNDEFINED) -> EscapeValue:
        """
        Mapping meant for a WHERE clause, rendered as ` AND "key1"=$1 AND "key2"=$2`.
        Entries whose value is `UNDEFINED` are skipped.
        """
        return EscapeValue(EscapeKind.AND_DICTIONARY, item)

    @staticmethod
    def array_parameters(item: Sequence[Any] = UNDEFINED) -> EscapeValue:
        """Sequence rendered as a parameterized array literal: `ARRAY[$1, $2, $3]`."""
        return EscapeValue(EscapeKind.ARRAY_PARAMETERS, item)

    @staticmethod
    def dictionary(item: Mapping[str, Any] = UNDEFINED) -> EscapeValue:
        """Mapping rendered as `"key1"=$1, "key2"=$2` (e.g. an UPDATE ... SET list)."""
        return EscapeValue(EscapeKind.DICTIONARY, item)

    @staticmethod
    def identifier(item: str | Sequence[str] = UNDEFINED) -> EscapeValue:
        """One identifier or a sequence of them, quoted and comma-joined: `"a", "b"`."""
        return EscapeValue(EscapeKind.IDENTIFIER, item)

    @staticmethod
    def parameter(item: Any = UNDEFINED) -> EscapeValue:
        """A single bound parameter: `$n` plus one entry in `values`."""
        return EscapeValue(EscapeKind.PARAMETER, item)

    @staticmethod
    def keys_and_values(
        item: Mapping[str, Any] | Sequence[Mapping[str, Any]] = UNDEFINED,
    ) -> EscapeValue:
        """
        Mapping (or sequence of mappings) for INSERT queries, rendered as
        `("key1","key2") VALUES ($1,$2),($3,$4)`. The first mapping decides the columns.
        """
        return EscapeValue(EscapeKind.KEYS_AND_VALUES, item)

    @staticmethod
    def keys_and_values_with_expires_in(item: Mapping[str, Any] = UNDEFINED) -> EscapeValue:
        """
        Like `keys_and_values`, but an `expiresIn` entry (seconds) is turned into database-side
        `expiresAt` and `expiresAtEpoch` columns.
        """
        return EscapeValue(EscapeKind.KEYS_AND_VALUES_WITH_EXPIRES_IN, item)


escape = Escape


__all__ = [
    "UNDEFINED",
    "is_undefined",
    "EscapeKind",
    "EscapeValue",
    "Escape",
    "escape",
    "escape_identifier",
]
