'''
Uniform-apply ("map") family.

Every function applies `f` to each element of its input, in order, and
collects the results without touching the input:

    - `map_list` keeps results as they are, on a `nested` series.
    - `map_int`, `map_numeric`, `map_bool` & `map_str` validate every result
      against the requested kind and return a flat series of it, any result
      that can't be represented raises `TypeMismatchError`.
    - `map_rows` stacks table-like results into a single `Table`,
      `map_cols` binds them side by side.
    - `map2`, `pmap` & `imap` are the two input, n input & indexed versions.

Inputs can be any iterable (except `str` & `bytes`), a `Series`, a mapping
(keys become element names) or a `Table` (its columns are the elements).
Element names are carried over to the results.

'''
from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import msgspec

from listframe.dtypes import CellKind, check_kind, coerce_value
from listframe.errors import LengthMismatchError, SchemaError, TypeMismatchError
from listframe.series import Series
from listframe.structs import FrozenStruct
from listframe.table import Table
from listframe.table.builder import TableBuilder


log = logging.getLogger(__name__)


Elements = tuple[list[Any], tuple[str, ...] | None]


def _elements(x: Any) -> Elements:
    '''
    Normalize a map input into its element list & optional element names.

    '''
    match x:
        case Series():
            return list(x.values), x.names

        case Table():
            return list(x), x.columns

        case Mapping():
            return list(x.values()), tuple(str(k) for k in x)

        case str() | bytes():
            raise TypeError(
                f'Can\'t map over {type(x).__name__}, wrap it in a list'
            )

        case Iterable():
            return list(x), None

    raise TypeError(f'Can\'t map over non iterable {type(x).__name__}')


def _ids(values: list[Any], names: tuple[str, ...] | None) -> tuple[int | str, ...]:
    return names if names is not None else tuple(range(len(values)))


def _collect(
    results: Iterable[Any],
    kind: CellKind,
    names: tuple[str, ...] | None,
    ids: tuple[int | str, ...],
) -> Series:
    check_kind(kind)
    if kind != 'nested':
        results = [
            coerce_value(r, kind, position=ident)
            for ident, r in zip(ids, results)
        ]

    return Series('', results, kind, names=names)


def _check_lengths(what: str, lengths: Iterable[int]) -> int:
    lengths = list(lengths)
    if len(set(lengths)) > 1:
        raise LengthMismatchError(
            f'{what} inputs must have the same length, got {lengths}'
        )

    return lengths[0] if lengths else 0


# single input


def map_list(x: Any, f: Callable[[Any], Any]) -> Series:
    '''
    Apply `f` to every element of `x`, results are kept as is on a nested
    series (one cell per element, same order, same names).

    '''
    values, names = _elements(x)
    return Series('', [f(v) for v in values], 'nested', names=names)


def _map_typed(x: Any, f: Callable[[Any], Any], kind: CellKind) -> Series:
    values, names = _elements(x)
    return _collect((f(v) for v in values), kind, names, _ids(values, names))


def map_int(x: Any, f: Callable[[Any], Any]) -> Series:
    return _map_typed(x, f, 'integer')


def map_numeric(x: Any, f: Callable[[Any], Any]) -> Series:
    return _map_typed(x, f, 'numeric')


def map_bool(x: Any, f: Callable[[Any], Any]) -> Series:
    return _map_typed(x, f, 'boolean')


def map_str(x: Any, f: Callable[[Any], Any]) -> Series:
    return _map_typed(x, f, 'string')


def imap(
    x: Any,
    f: Callable[[Any, int | str], Any],
    *,
    kind: CellKind = 'nested',
) -> Series:
    '''
    Like `map_list` but `f` also receives the element name (or index when
    the input is unnamed).

    '''
    values, names = _elements(x)
    ids = _ids(values, names)
    return _collect(
        (f(v, ident) for ident, v in zip(ids, values)), kind, names, ids
    )


# row binding


def _append_result(
    builder: TableBuilder,
    result: Any,
    ident: int | str,
    id_column: str | None,
    id_kind: CellKind,
) -> None:
    if result is None:
        return

    if isinstance(result, Table):
        if id_column is not None:
            if id_column in result:
                raise SchemaError(
                    f'Id column {id_column!r} already present in result of '
                    f'element {ident!r}'
                )

            result = Table._from_columns(
                [Series(id_column, [ident] * result.height, id_kind), *result],
                height=result.height,
            )

        builder.extend_table(result)
        return

    if isinstance(result, msgspec.Struct):
        result = msgspec.structs.asdict(result)

    if isinstance(result, Mapping):
        row = dict(result)
        if id_column is not None:
            if id_column in row:
                raise SchemaError(
                    f'Id column {id_column!r} already present in result of '
                    f'element {ident!r}'
                )
            row = {id_column: ident, **row}

        builder.append_dict(row)
        return

    raise TypeMismatchError('rows', result, ident)


def _bind_rows(
    results: Iterable[tuple[int | str, Any]],
    named: bool,
    id: str | None,
) -> Table:
    builder = TableBuilder()
    id_kind: CellKind = 'string' if named else 'integer'
    for ident, result in results:
        _append_result(builder, result, ident, id, id_kind)

    return builder.flush_table()


def map_rows(
    x: Any,
    f: Callable[[Any], Any],
    *,
    id: str | None = None,
) -> Table:
    '''
    Apply `f` to every element and stack the results vertically.

    Each result can be a `Table`, a mapping or a `msgspec.Struct` (one row),
    or `None` to contribute nothing. Columns are unioned, cells missing from
    a result are `None`. When `id` is passed, a first column with that name
    records the element name (or index) each row came from.

    '''
    values, names = _elements(x)
    ids = _ids(values, names)
    return _bind_rows(
        ((ident, f(v)) for ident, v in zip(ids, values)),
        named=names is not None,
        id=id,
    )


def map_cols(x: Any, f: Callable[[Any], Any]) -> Table:
    '''
    Apply `f` to every element and bind the results as columns, named after
    the elements (`col_<i>` when unnamed).

    '''
    values, names = _elements(x)
    columns = []
    for i, v in enumerate(values):
        name = names[i] if names is not None else f'col_{i}'
        result = f(v)
        if isinstance(result, Series):
            columns.append(Series(name, result.values, result.kind))

        else:
            columns.append(Series(name, result))

    _check_lengths('map_cols', (len(c) for c in columns))
    return Table._from_columns(columns)


# two inputs


def _pair(a: Any, b: Any) -> tuple[list[Any], list[Any], tuple[str, ...] | None]:
    a_values, a_names = _elements(a)
    b_values, _ = _elements(b)
    if len(a_values) != len(b_values):
        raise LengthMismatchError(
            f'map2 inputs differ in length: {len(a_values)} != {len(b_values)}'
        )

    return a_values, b_values, a_names


def map2(
    a: Any,
    b: Any,
    f: Callable[[Any, Any], Any],
    *,
    kind: CellKind = 'nested',
) -> Series:
    '''
    Apply `f(a[i], b[i])` elementwise, inputs must have the same length.
    Names come from `a`.

    '''
    a_values, b_values, names = _pair(a, b)
    return _collect(
        (f(x, y) for x, y in zip(a_values, b_values)),
        kind,
        names,
        _ids(a_values, names),
    )


def map2_rows(
    a: Any,
    b: Any,
    f: Callable[[Any, Any], Any],
    *,
    id: str | None = None,
) -> Table:
    a_values, b_values, names = _pair(a, b)
    return _bind_rows(
        (
            (ident, f(x, y))
            for ident, x, y in zip(_ids(a_values, names), a_values, b_values)
        ),
        named=names is not None,
        id=id,
    )


# n inputs


Call = tuple[tuple[Any, ...], dict[str, Any]]


def _parallel(args: Any) -> tuple[list[Call], tuple[str, ...] | None]:
    '''
    Turn parallel inputs into per element call arguments.

    - `Table`: each named row becomes keyword arguments.
    - mapping of sequences: keyword arguments.
    - sequence of sequences: positional arguments.

    '''
    if isinstance(args, Table):
        return [((), row) for row in args.iter_rows(named=True)], None

    if isinstance(args, Mapping):
        cols = {str(k): _elements(v)[0] for k, v in args.items()}
        n = _check_lengths('pmap', (len(v) for v in cols.values()))
        return [
            ((), {k: v[i] for k, v in cols.items()}) for i in range(n)
        ], None

    seqs, _ = _elements(args)
    elements = [_elements(s) for s in seqs]
    n = _check_lengths('pmap', (len(v) for v, _ in elements))
    names = elements[0][1] if elements else None
    return [
        (tuple(v[i] for v, _ in elements), {}) for i in range(n)
    ], names


def pmap(
    args: Any,
    f: Callable[..., Any],
    *,
    kind: CellKind = 'nested',
) -> Series:
    '''
    Apply `f` across any number of parallel, equally long inputs.

    '''
    calls, names = _parallel(args)
    return _collect(
        (f(*pos, **kw) for pos, kw in calls),
        kind,
        names,
        names if names is not None else tuple(range(len(calls))),
    )


def pmap_rows(
    args: Any,
    f: Callable[..., Any],
    *,
    id: str | None = None,
) -> Table:
    calls, names = _parallel(args)
    ids = names if names is not None else tuple(range(len(calls)))
    return _bind_rows(
        ((ident, f(*pos, **kw)) for ident, (pos, kw) in zip(ids, calls)),
        named=names is not None,
        id=id,
    )


# predicates


def _select(x: Any, pred: Callable[[Any], Any], want: bool) -> Series | Table:
    values, names = _elements(x)
    picked = [i for i, v in enumerate(values) if bool(pred(v)) is want]

    if isinstance(x, Table):
        return x.select([names[i] for i in picked])

    kind = x.kind if isinstance(x, Series) else None
    return Series(
        x.name if isinstance(x, Series) else '',
        (values[i] for i in picked),
        kind,
        names=(names[i] for i in picked) if names is not None else None,
    )


def keep(x: Any, pred: Callable[[Any], Any]) -> Series | Table:
    '''Keep the elements (or table columns) for which `pred` is true.'''
    return _select(x, pred, True)


def discard(x: Any, pred: Callable[[Any], Any]) -> Series | Table:
    '''Drop the elements (or table columns) for which `pred` is true.'''
    return _select(x, pred, False)


# failure capture


class Outcome(FrozenStruct, frozen=True):
    result: Any = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None


def safely(
    f: Callable[..., Any],
    otherwise: Any = None,
) -> Callable[..., Outcome]:
    '''
    Wrap `f` so that calls return an `Outcome` instead of raising, useful to
    map over inputs where some elements are expected to fail.

    '''
    @functools.wraps(f)
    def wrapper(*args, **kwargs) -> Outcome:
        try:
            return Outcome(result=f(*args, **kwargs))

        except Exception as e:
            log.debug(f'safely captured {type(e).__name__}: {e}')
            return Outcome(result=otherwise, error=e)

    return wrapper
