'''
# Overview

Cells in a `listframe` table are plain python values, every column carries a
"kind" that tells us what those values are allowed to be:

    - boolean: `bool`
    - integer: integral numbers
    - numeric: real numbers, stored as `float`
    - string: `str`
    - temporal: `date`, `datetime`, `time` & `timedelta`
    - nested: anything at all, sequences, sub-tables, fitted models...

`None` is the missing value for every kind.

# Inference

When a column kind is not declared, it is inferred from the non-missing
values: identical kinds stay as they are, `integer` & `numeric` merge into
`numeric` and any other mix (or no evidence at all) makes the column
`nested`.

# Coercion

Declaring a kind (or requesting one through a typed map) acts as a
validation gate, values that can't be represented in the kind raise
`TypeMismatchError` instead of being silently converted.

'''

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from numbers import Integral, Real
from typing import Any, Iterable, Literal, get_args

import polars as pl

from listframe.errors import SchemaError, TypeMismatchError


CellKind = Literal['boolean', 'integer', 'numeric', 'string', 'temporal', 'nested']

all_kinds: tuple[CellKind, ...] = get_args(CellKind)

# kinds whose cells hold a single primitive value
scalar_kinds: tuple[CellKind, ...] = tuple(k for k in all_kinds if k != 'nested')

temporal_types: tuple[type, ...] = (datetime, date, time, timedelta)


# polars type used for every kind, temporal is resolved from the values
kind_polars_types: dict[CellKind, type[pl.DataType] | None] = {
    'boolean': pl.Boolean,
    'integer': pl.Int64,
    'numeric': pl.Float64,
    'string': pl.String,
    'temporal': None,
    'nested': pl.Object,
}


def check_kind(kind: str) -> CellKind:
    if kind not in all_kinds:
        raise SchemaError(f'Unknown cell kind {kind!r}, expected one of {all_kinds}')

    return kind  # type: ignore[return-value]


def value_kind(value: Any) -> CellKind | None:
    '''
    Kind of a single cell value, `None` for missing values.

    '''
    if value is None:
        return None

    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return 'boolean'

    if isinstance(value, Integral):
        return 'integer'

    if isinstance(value, Real):
        return 'numeric'

    if isinstance(value, str):
        return 'string'

    if isinstance(value, temporal_types):
        return 'temporal'

    return 'nested'


def merge_kinds(kinds: Iterable[CellKind | None]) -> CellKind:
    merged: CellKind | None = None
    for kind in kinds:
        if kind is None or kind == merged:
            continue

        if merged is None:
            merged = kind
            continue

        if {merged, kind} == {'integer', 'numeric'}:
            merged = 'numeric'
            continue

        return 'nested'

    return merged or 'nested'


def infer_kind(values: Iterable[Any]) -> CellKind:
    return merge_kinds(value_kind(v) for v in values)


def coerce_value(
    value: Any,
    kind: CellKind,
    position: int | str | None = None
) -> Any:
    '''
    Return `value` represented as `kind` or raise `TypeMismatchError`.

    '''
    if value is None or kind == 'nested':
        return value

    match kind:
        case 'boolean':
            if isinstance(value, bool):
                return value

        case 'integer':
            if isinstance(value, Integral):
                return int(value)

            if isinstance(value, Real) and float(value).is_integer():
                return int(value)

        case 'numeric':
            if isinstance(value, Real):
                return float(value)

        case 'string':
            if isinstance(value, str):
                return value

        case 'temporal':
            if isinstance(value, temporal_types):
                return value

        case _:
            check_kind(kind)

    raise TypeMismatchError(kind, value, position)


def coerce_values(values: Iterable[Any], kind: CellKind) -> tuple[Any, ...]:
    if kind == 'nested':
        return tuple(values)

    return tuple(
        coerce_value(v, kind, position=i) for i, v in enumerate(values)
    )


# polars interop


def polars_dtype_for(kind: CellKind) -> type[pl.DataType] | None:
    '''
    Polars type for a column kind, `None` means let polars infer it (used for
    temporal columns where the concrete type depends on the values).

    '''
    return kind_polars_types[check_kind(kind)]


def kind_for_polars(dtype: pl.DataType) -> CellKind:
    '''
    Given a polars data type obtain the kind a column of it maps to.

    '''
    if dtype == pl.Boolean:
        return 'boolean'

    if dtype.is_integer():
        return 'integer'

    if dtype.is_float() or dtype.is_decimal():
        return 'numeric'

    if dtype in (pl.String, pl.Categorical, pl.Enum):
        return 'string'

    if dtype.is_temporal():
        return 'temporal'

    return 'nested'


def from_polars_value(value: Any) -> Any:
    # decimals are not `numbers.Real`
    if isinstance(value, Decimal):
        return float(value)

    return value
