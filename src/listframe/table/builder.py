from __future__ import annotations

from typing import Any, Iterable, Mapping, TYPE_CHECKING

import msgspec

from listframe.dtypes import CellKind, merge_kinds, value_kind
from listframe.errors import LengthMismatchError, SchemaError
from listframe.schema import Schema, SchemaLike
from listframe.series import Series


if TYPE_CHECKING:
    from listframe.table import Table


class TableBuilder:
    '''
    Lightweight column store for assembling a `Table` row by row.

    - Append/extend accumulate python values per column.
    - Without a declared schema, columns are created on first appearance and
      backfilled with `None`, so rows with different shapes can be stacked
      (column union).
    - Column kinds are declared by the schema or merged from the evidence
      seen (value kinds & kinds declared by appended tables).
    - flush_table() materializes a `Table` once, clearing internal buffers
      for reuse.

    '''

    def __init__(self, schema: SchemaLike | None = None):
        self._schema: Schema | None = (
            Schema.from_like(schema) if schema is not None else None
        )

        self._names: list[str] = []
        self._col_lists: dict[str, list[Any]] = {}
        self._evidence: dict[str, set[CellKind]] = {}
        self._nrows = 0

        if self._schema:
            for col in self._schema.columns:
                self._add_column(col.name)

    def _add_column(self, name: str) -> list[Any]:
        if self._schema is not None and name not in self._schema:
            raise SchemaError(
                f'Column {name!r} not declared in builder schema {self._schema}'
            )

        col = [None] * self._nrows
        self._names.append(name)
        self._col_lists[name] = col
        self._evidence[name] = set()
        return col

    def _column(self, name: str) -> list[Any]:
        col = self._col_lists.get(name)
        if col is None:
            col = self._add_column(name)

        return col

    def _note(self, name: str, value: Any) -> None:
        kind = value_kind(value)
        if kind is not None:
            self._evidence[name].add(kind)

    def rows(self) -> int:
        return self._nrows

    def append(self, row: Iterable[Any]) -> None:
        '''
        Append a positional row, values follow current column order.

        '''
        row = tuple(row)
        if len(row) != len(self._names):
            raise LengthMismatchError(
                f'Row has {len(row)} values, builder has {len(self._names)} columns'
            )

        for name, v in zip(self._names, row):
            self._col_lists[name].append(v)
            self._note(name, v)

        self._nrows += 1

    def extend(self, rows: Iterable[Iterable[Any]]) -> None:
        for row in rows:
            self.append(row)

    def append_dict(self, row: Mapping[str, Any] | msgspec.Struct) -> None:
        '''
        Append a named row, unknown columns are added & backfilled, missing
        ones filled with `None`.

        '''
        if isinstance(row, msgspec.Struct):
            row = msgspec.structs.asdict(row)

        for name, v in row.items():
            self._column(name).append(v)
            self._note(name, v)

        self._nrows += 1
        for col in self._col_lists.values():
            if len(col) < self._nrows:
                col.append(None)

    def extend_dicts(self, rows: Iterable[Mapping[str, Any]]) -> None:
        for row in rows:
            self.append_dict(row)

    def extend_table(self, table: 'Table') -> None:
        '''
        Append all rows of `table`, its declared column kinds count as kind
        evidence even when it has no rows.

        A `nested` column without any non missing value is the inference
        fallback, not evidence, so it is skipped.

        '''
        for series in table:
            self._column(series.name).extend(series.values)
            if series.is_nested and all(v is None for v in series.values):
                continue

            self._evidence[series.name].add(series.kind)

        self._nrows += table.height
        for col in self._col_lists.values():
            if len(col) < self._nrows:
                col.extend([None] * (self._nrows - len(col)))

    def flush_table(self) -> 'Table':
        from listframe.table import Table

        columns = []
        for name in self._names:
            kind: CellKind = (
                self._schema[name].kind
                if self._schema is not None
                else merge_kinds(self._evidence[name])
            )
            columns.append(Series(name, self._col_lists[name], kind))

        table = Table._from_columns(columns, height=self._nrows)

        for col in self._col_lists.values():
            col.clear()
        for evidence in self._evidence.values():
            evidence.clear()
        self._nrows = 0

        return table
