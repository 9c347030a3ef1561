"""
Tagged-template SQL assembler.

Takes the same shape as a tagged template (literal text fragments surrounding each
interpolated value) and builds a `QueryConfig`: SQL text with PostgreSQL `$n` placeholders
plus the ordered values bound to them.

Rendering rules:
  - `EscapeValue` with an `UNDEFINED` payload -> nothing at all.
  - `EscapeValue` -> rendered by the rule for its kind; placeholders are numbered from the
    running length of `values`, so numbering is gap-free across the whole template.
  - raw mapping / list / tuple -> compact JSON text, appended literally.
  - raw primitive (str, int, float, bool, None) -> its literal text, appended literally.
    Numbers use Python's `str()`, so `1.0` renders as `1.0` and `1e21` as `1e+21`.
  - `and_dictionary(None)` / `dictionary(None)` render nothing, like an empty mapping.

CAUTION: only escape wrappers are parameterized. A raw value is pasted into the SQL text
as-is; anything that comes from user input must be wrapped with `escape.parameter(...)`
(or another escape variant).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from ..exceptions.base import QueryTemplateError
from .escape import UNDEFINED, EscapeKind, EscapeValue, escape_identifier

EXPIRES_IN_KEY = "expiresIn"
EXPIRES_AT_KEY = "expiresAt"
EXPIRES_AT_EPOCH_KEY = "expiresAtEpoch"


@dataclass(frozen=True)
class QueryConfig:
    """
    Assembled query ready for the driver.

    Attributes:
        text: SQL text with `$1`, `$2`, ... placeholders.
        values: Parameters aligned 1:1 with the placeholders, or `None` when nothing was bound
            (never an empty tuple).
    """

    text: str
    values: tuple[Any, ...] | None = None

    def as_args(self) -> tuple[Any, ...]:
        """Return `(text, *values)`, the calling convention of asyncpg's `fetch`/`execute`."""
        return (self.text, *(self.values or ()))


class _Values:
    """Ordered parameter list shared by every renderer of one template."""

    def __init__(self) -> None:
        self._items: list[Any] = []

    def push(self, value: Any) -> str:
        # Absent values inside a payload go to the driver as NULL.
        self._items.append(None if value is UNDEFINED else value)
        return f"${len(self._items)}"

    def freeze(self) -> tuple[Any, ...] | None:
        return tuple(self._items) if self._items else None


# -----------------------
# Renderers (one per EscapeKind)
# -----------------------

def _render_and_dictionary(payload: Mapping[str, Any] | None, values: _Values) -> str:
    if payload is None:
        return ""
    parts = []
    for key, value in payload.items():
        if value is UNDEFINED:
            continue
        parts.append(f" AND {escape_identifier(key)}={values.push(value)}")
    return "".join(parts)


def _render_array_parameters(payload: Sequence[Any], values: _Values) -> str:
    placeholders = [values.push(value) for value in payload]
    return f"ARRAY[{', '.join(placeholders)}]"


def _render_dictionary(payload: Mapping[str, Any] | None, values: _Values) -> str:
    if payload is None:
        return ""
    return ", ".join(
        f"{escape_identifier(key)}={values.push(value)}" for key, value in payload.items()
    )


def _render_identifier(payload: str | Sequence[str], values: _Values) -> str:
    names = [payload] if isinstance(payload, str) or not _is_sequence(payload) else payload
    return ", ".join(escape_identifier(name) for name in names)


def _render_parameter(payload: Any, values: _Values) -> str:
    return values.push(payload)


def _render_keys_and_values(
    payload: Mapping[str, Any] | Sequence[Mapping[str, Any]], values: _Values
) -> str:
    rows = [payload] if isinstance(payload, Mapping) else list(payload)
    if not rows:
        raise QueryTemplateError("keys_and_values requires at least one row")

    # The first row is the column template; other rows are read with the same keys.
    keys = list(rows[0].keys())
    if not keys:
        raise QueryTemplateError("keys_and_values requires at least one column")

    groups = []
    for row in rows:
        placeholders = [values.push(row.get(key, UNDEFINED)) for key in keys]
        groups.append(f"({','.join(placeholders)})")

    columns = ",".join(escape_identifier(key) for key in keys)
    return f"({columns}) VALUES {','.join(groups)}"


def _render_keys_and_values_with_expires_in(payload: Mapping[str, Any], values: _Values) -> str:
    row = dict(payload)

    expires_in = row.pop(EXPIRES_IN_KEY, UNDEFINED)
    has_expiry = expires_in is not UNDEFINED and expires_in is not None
    if has_expiry:
        row.pop(EXPIRES_AT_KEY, None)
        row.pop(EXPIRES_AT_EPOCH_KEY, None)

    columns = [escape_identifier(key) for key in row]
    placeholders = [values.push(value) for value in row.values()]

    if has_expiry:
        # expiresIn is bound twice, once per synthetic column.
        columns.append(escape_identifier(EXPIRES_AT_KEY))
        placeholders.append(f"now() + {values.push(expires_in)}::interval SECOND")
        columns.append(escape_identifier(EXPIRES_AT_EPOCH_KEY))
        placeholders.append(f"FLOOR(EXTRACT(EPOCH FROM NOW())) + {values.push(expires_in)}")

    if not columns:
        raise QueryTemplateError("keys_and_values_with_expires_in requires at least one column")

    return f"({','.join(columns)}) VALUES ({', '.join(placeholders)})"


_RENDERERS: dict[EscapeKind, Callable[[Any, _Values], str]] = {
    EscapeKind.AND_DICTIONARY: _render_and_dictionary,
    EscapeKind.ARRAY_PARAMETERS: _render_array_parameters,
    EscapeKind.DICTIONARY: _render_dictionary,
    EscapeKind.IDENTIFIER: _render_identifier,
    EscapeKind.PARAMETER: _render_parameter,
    EscapeKind.KEYS_AND_VALUES: _render_keys_and_values,
    EscapeKind.KEYS_AND_VALUES_WITH_EXPIRES_IN: _render_keys_and_values_with_expires_in,
}


# -----------------------
# Raw (unparameterized) values
# -----------------------

def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _render_raw(value: Any) -> str:
    """Literal text for a value that was interpolated without an escape wrapper."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping) or _is_sequence(value):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


# -----------------------
# Public API
# -----------------------

def assemble(strings: Sequence[str], *args: Any) -> QueryConfig:
    """
    Build a `QueryConfig` from text fragments and the values that go between them.

    Args:
        strings: Literal SQL fragments; there must be exactly one more fragment than values.
        *args: Interpolated values, raw or wrapped with `escape.*`.

    Returns:
        QueryConfig: SQL text plus bound values (`values is None` when nothing was bound).

    Raises:
        QueryTemplateError: On a fragment/value count mismatch or a malformed escape payload.
    """
    if isinstance(strings, str):
        strings = [strings]
    if len(strings) != len(args) + 1:
        raise QueryTemplateError(
            f"expected {len(strings) - 1} interpolated value(s) for {len(strings)} "
            f"text fragment(s), got {len(args)}"
        )

    text_parts: list[str] = []
    values = _Values()

    for index, fragment in enumerate(strings):
        text_parts.append(fragment)
        if index >= len(args):
            continue

        arg = args[index]
        if arg is UNDEFINED:
            continue

        if isinstance(arg, EscapeValue):
            if arg.is_empty:
                continue
            text_parts.append(_RENDERERS[arg.kind](arg.payload, values))
        else:
            text_parts.append(_render_raw(arg))

    return QueryConfig(text="".join(text_parts), values=values.freeze())


def assemble_template(template: Any) -> QueryConfig:
    """
    Assemble a template-string object (anything exposing `.strings` and `.values`, such as
    the `Template` produced by a `t"..."` literal).
    """
    return assemble(list(template.strings), *template.values)


__all__ = ["QueryConfig", "assemble", "assemble_template"]
