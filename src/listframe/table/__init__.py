from __future__ import annotations

from datetime import date, datetime, time, timedelta
from functools import cached_property
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence

import polars as pl

from listframe._utils import check_unique, get_print_rows, is_scalar_like
from listframe.dtypes import CellKind
from listframe.errors import (
    ColumnNotFoundError,
    LengthMismatchError,
    SchemaError,
)
from listframe.schema import Schema, SchemaLike
from listframe.series import Series
from listframe.table.builder import TableBuilder


_keep = object()


ColumnValues = Series | Iterable[Any] | Callable[['Table'], Any] | Any


class Table:
    '''
    Ordered collection of equally long, named columns.

    Tables are values: every verb returns a new `Table` and never modifies
    the one it was called on. Columns of kind `nested` (list columns) can
    hold anything on their cells, including other tables.

    '''

    def __init__(
        self,
        data: Mapping[str, Iterable[Any]] | Iterable[Series] | None = None,
        schema: SchemaLike | None = None,
    ) -> None:
        _schema = Schema.from_like(schema) if schema is not None else None

        if data is None:
            data = {}

        if isinstance(data, Mapping):
            pairs = list(data.items())

        else:
            pairs = []
            for s in data:
                if not isinstance(s, Series):
                    raise SchemaError(
                        f'Expected a Series or a mapping of columns, got {s!r}'
                    )
                pairs.append((s.name, s))

        check_unique(name for name, _ in pairs)

        columns: list[Series]
        if _schema is not None:
            given = dict(pairs)
            extra = set(given) - set(_schema.names)
            if extra:
                raise SchemaError(
                    f'Columns {sorted(extra)} not declared in {_schema}'
                )

            if not given:
                # schema only, empty table
                given = {name: () for name in _schema.names}

            columns = []
            for col in _schema.columns:
                if col.name not in given:
                    raise ColumnNotFoundError(col.name, tuple(given))

                columns.append(_as_series(col.name, given[col.name], col.kind))

        else:
            columns = [_as_series(name, values) for name, values in pairs]

        heights = {len(s) for s in columns}
        if len(heights) > 1:
            raise LengthMismatchError(
                'All columns must have the same length, got '
                + ', '.join(f'{s.name}={len(s)}' for s in columns)
            )

        self._columns: dict[str, Series] = {s.name: s for s in columns}
        self._height: int = heights.pop() if heights else 0

    @classmethod
    def _from_columns(
        cls,
        columns: Iterable[Series],
        height: int | None = None
    ) -> Table:
        '''
        Wrap already validated series, only row alignment is checked.

        '''
        columns = list(columns)
        table = cls.__new__(cls)
        table._columns = {s.name: s for s in columns}
        if len(table._columns) != len(columns):
            check_unique(s.name for s in columns)

        if columns:
            h = len(columns[0])
            for s in columns:
                if len(s) != h:
                    raise LengthMismatchError(
                        f'Column {s.name!r} has {len(s)} rows, expected {h}'
                    )
            table._height = h

        else:
            table._height = height or 0

        return table

    # constructors

    @staticmethod
    def empty(schema: SchemaLike) -> Table:
        return Table(schema=schema)

    @staticmethod
    def from_rows(
        rows: Iterable[Iterable[Any]],
        schema: SchemaLike,
    ) -> Table:
        builder = TableBuilder(schema)
        builder.extend(rows)
        return builder.flush_table()

    @staticmethod
    def from_dicts(
        rows: Iterable[Mapping[str, Any]],
        schema: SchemaLike | None = None,
    ) -> Table:
        builder = TableBuilder(schema)
        builder.extend_dicts(rows)
        return builder.flush_table()

    @staticmethod
    def from_polars(frame: pl.DataFrame) -> Table:
        return Table._from_columns(
            (Series.from_polars(s) for s in frame.get_columns()),
            height=frame.height,
        )

    # shape & access

    @cached_property
    def schema(self) -> Schema:
        return Schema((s.name, s.kind) for s in self._columns.values())

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(self._columns)

    @property
    def height(self) -> int:
        return self._height

    @property
    def width(self) -> int:
        return len(self._columns)

    @property
    def shape(self) -> tuple[int, int]:
        return (self._height, self.width)

    def __len__(self) -> int:
        return self._height

    def __iter__(self) -> Iterator[Series]:
        return iter(self._columns.values())

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __getitem__(self, key: str | Sequence[str]) -> Any:
        if isinstance(key, str):
            return self.column(key)

        if isinstance(key, (list, tuple)):
            return self.select(key)

        raise TypeError(f'Tables are indexed by column name, got {key!r}')

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented

        return (
            self._height == other._height
            and list(self._columns.values()) == list(other._columns.values())
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return self.pretty_str()

    def column(self, name: str) -> Series:
        try:
            return self._columns[name]

        except KeyError:
            raise ColumnNotFoundError(name, self.columns) from None

    def row(self, index: int, *, named: bool = False) -> tuple | dict[str, Any]:
        if not -self._height <= index < self._height:
            raise IndexError(f'Row {index} out of range for {self._height} rows')

        values = tuple(s.values[index] for s in self._columns.values())
        if named:
            return dict(zip(self._columns, values))

        return values

    def iter_rows(self, *, named: bool = False) -> Iterator[tuple | dict[str, Any]]:
        names = self.columns
        if not names:
            for _ in range(self._height):
                yield {} if named else ()
            return

        for values in zip(*(s.values for s in self._columns.values())):
            yield dict(zip(names, values)) if named else values

    def rows(self, *, named: bool = False) -> list[tuple | dict[str, Any]]:
        return list(self.iter_rows(named=named))

    def to_dicts(self) -> list[dict[str, Any]]:
        return self.rows(named=True)  # type: ignore[return-value]

    # verbs

    def select(self, *names: str | Iterable[str]) -> Table:
        names = _flatten_names(names)
        return Table._from_columns(
            (self.column(n) for n in names), height=self._height
        )

    def drop(self, *names: str | Iterable[str]) -> Table:
        names = _flatten_names(names)
        for n in names:
            self.column(n)

        return Table._from_columns(
            (s for s in self._columns.values() if s.name not in names),
            height=self._height,
        )

    def rename(self, mapping: Mapping[str, str]) -> Table:
        for old in mapping:
            self.column(old)

        return Table._from_columns(
            (s.rename(mapping.get(s.name, s.name)) for s in self._columns.values()),
            height=self._height,
        )

    def with_column(
        self,
        name: str,
        values: ColumnValues,
        kind: CellKind | None = None,
    ) -> Table:
        '''
        Return a copy with column `name` added at the end or replaced in its
        current position.

        `values` can be a `Series`, any sequence with one cell per row, a
        callable receiving this table and returning those, or a scalar that
        is repeated on every row.

        '''
        if callable(values) and not isinstance(values, (Series, Table)):
            values = values(self)

        if isinstance(values, Table):
            raise SchemaError(
                f'Can\'t use a Table as column {name!r}, '
                'nest it or wrap it in a sequence to store it as cells'
            )

        if is_scalar_like(values):
            values = [values] * self._height

        series = _as_series(name, values, kind)
        if len(series) != self._height:
            raise LengthMismatchError(
                f'Column {name!r} has {len(series)} values, table has '
                f'{self._height} rows'
            )

        columns = dict(self._columns)
        columns[name] = series
        return Table._from_columns(columns.values(), height=self._height)

    def mutate(self, **columns: ColumnValues) -> Table:
        '''
        Add or replace several columns, each one is evaluated against the
        table produced by the previous ones.

        '''
        table = self
        for name, values in columns.items():
            table = table.with_column(name, values)

        return table

    def recode(
        self,
        column: str,
        mapping: Mapping[Any, Any],
        default: Any = _keep,
        kind: CellKind | None = None,
    ) -> Table:
        '''
        Substitute values of `column` through `mapping`, unmatched values are
        kept unless a `default` is passed.

        '''
        src = self.column(column)
        values = [
            mapping[v] if v in mapping else (v if default is _keep else default)
            for v in src
        ]
        return self.with_column(column, values, kind=kind)

    def take(self, indices: Iterable[int]) -> Table:
        indices = tuple(indices)
        for i in indices:
            if not -self._height <= i < self._height:
                raise IndexError(f'Row {i} out of range for {self._height} rows')

        return Table._from_columns(
            (s.take(indices) for s in self._columns.values()),
            height=len(indices),
        )

    def slice(self, offset: int, length: int | None = None) -> Table:
        rows = range(self._height)[offset:]
        if length is not None:
            rows = rows[:length]

        return self.take(rows)

    def head(self, n: int = 5) -> Table:
        return self.slice(0, n)

    def tail(self, n: int = 5) -> Table:
        return self.slice(max(0, self._height - n))

    def filter(
        self,
        predicate: Callable[[dict[str, Any]], Any] | Iterable[bool],
    ) -> Table:
        '''
        Keep rows where `predicate` (called with each named row) is truthy,
        or where a boolean mask of one entry per row is `True`.

        '''
        if callable(predicate):
            mask = [bool(predicate(row)) for row in self.iter_rows(named=True)]

        else:
            mask = [bool(m) for m in predicate]
            if len(mask) != self._height:
                raise LengthMismatchError(
                    f'Filter mask has {len(mask)} entries, table has '
                    f'{self._height} rows'
                )

        return self.take(i for i, keep in enumerate(mask) if keep)

    def sort(
        self,
        by: str | Sequence[str],
        descending: bool | Sequence[bool] = False,
    ) -> Table:
        '''
        Stable sort by one or more columns, missing values always go last.

        '''
        by = [by] if isinstance(by, str) else list(by)
        if isinstance(descending, bool):
            descending = [descending] * len(by)

        if len(descending) != len(by):
            raise LengthMismatchError(
                f'Got {len(descending)} sort directions for {len(by)} columns'
            )

        order = list(range(self._height))
        # least significant key first, python sorts are stable
        for name, desc in reversed(list(zip(by, descending))):
            values = self.column(name).values
            present = [i for i in order if values[i] is not None]
            missing = [i for i in order if values[i] is None]
            present.sort(key=values.__getitem__, reverse=desc)
            order = present + missing

        return self.take(order)

    def summarise(
        self,
        by: str | Sequence[str] = (),
        **aggs: Callable[[Table], Any],
    ) -> Table:
        '''
        Group-and-collapse: one row per distinct `by` key (first appearance
        order) with one column per aggregation, each aggregation receives the
        group sub-table.

        '''
        from listframe.nesting import nest

        by = [by] if isinstance(by, str) else list(by)
        if not by:
            return Table._from_columns(
                [Series(name, [agg(self)]) for name, agg in aggs.items()],
                height=1,
            )

        into = _unused_name('group', self.columns)
        groups = nest(self, key_columns=by, into=into)
        subs = groups.column(into).values

        return Table._from_columns(
            [groups.column(k) for k in by]
            + [
                Series(name, [agg(sub) for sub in subs])
                for name, agg in aggs.items()
            ],
            height=groups.height,
        )

    def nest(
        self,
        key_columns: str | Sequence[str] | None = None,
        payload_columns: str | Sequence[str] | None = None,
        into: str = 'data',
    ) -> Table:
        from listframe.nesting import nest

        return nest(self, key_columns, payload_columns, into=into)

    def unnest(
        self,
        column: str,
        *,
        keep_empty: bool = False,
        names_sep: str | None = None,
    ) -> Table:
        from listframe.nesting import unnest

        return unnest(self, column, keep_empty=keep_empty, names_sep=names_sep)

    # export

    def to_polars(self) -> pl.DataFrame:
        return pl.DataFrame([s.to_polars() for s in self._columns.values()])

    def pretty_str(self, max_rows: int | None = None) -> str:
        '''Return a tibble like rendering of the first rows.'''
        max_rows = get_print_rows() if max_rows is None else max_rows

        header = [f'Table: {self._height} x {self.width}']
        if not self._columns:
            return header[0]

        shown = self.head(max_rows)
        grid = [
            list(self.columns),
            [f'<{kind_labels[s.kind]}>' for s in self._columns.values()],
        ] + [
            [format_cell(v) for v in row]
            for row in shown.iter_rows()
        ]
        widths = [max(len(line[i]) for line in grid) for i in range(self.width)]
        lines = header + [
            '  '.join(cell.ljust(w) for cell, w in zip(line, widths)).rstrip()
            for line in grid
        ]
        if self._height > shown.height:
            lines.append(f'... with {self._height - shown.height} more rows')

        return '\n'.join(lines)


kind_labels: dict[CellKind, str] = {
    'boolean': 'bool',
    'integer': 'int',
    'numeric': 'num',
    'string': 'str',
    'temporal': 'time',
    'nested': 'list',
}


def format_cell(value: Any, max_width: int = 24) -> str:
    '''
    Short single line representation of a cell, nested values are
    summarised.

    '''
    match value:
        case None:
            text = 'null'

        case Table():
            text = f'<table [{value.height} x {value.width}]>'

        case Series():
            text = f'<series [{len(value)}]>'

        case bool() | int() | str() | date() | datetime() | time() | timedelta():
            text = str(value)

        case float():
            text = f'{value:.6g}'

        case list() | tuple():
            text = f'<list [{len(value)}]>'

        case dict():
            text = f'<dict [{len(value)}]>'

        case _:
            text = f'<{type(value).__name__}>'

    if len(text) > max_width:
        text = text[:max_width - 3] + '...'

    return text


def concat(tables: Iterable[Table]) -> Table:
    '''
    Stack tables vertically, columns are unioned in first appearance order
    and cells missing from a table are `None`.

    '''
    builder = TableBuilder()
    for table in tables:
        builder.extend_table(table)

    return builder.flush_table()


def _as_series(
    name: str,
    values: Iterable[Any],
    kind: CellKind | None = None
) -> Series:
    if isinstance(values, Series):
        if kind is None or kind == values.kind:
            return Series(name, values.values, values.kind, ptype=values.ptype)

        return Series(name, values.values, kind)

    if is_scalar_like(values):
        raise SchemaError(
            f'Column {name!r} needs a sequence of cells, got {values!r}'
        )

    return Series(name, values, kind)


def _flatten_names(names: tuple[str | Iterable[str], ...]) -> list[str]:
    out: list[str] = []
    for n in names:
        if isinstance(n, str):
            out.append(n)
        else:
            out.extend(n)

    return out


def _unused_name(base: str, taken: Iterable[str]) -> str:
    taken = set(taken)
    name = f'.{base}'
    i = 0
    while name in taken:
        i += 1
        name = f'.{base}_{i}'

    return name
