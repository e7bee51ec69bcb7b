'''
Conversion between "long" tables (one row per observation, repeated group
keys) and "nested" tables (one row per group, payload rows stored as a
sub-table on a list column).

Grouping is defined by equality of the key tuples, compared cell by cell
together with the cell type, so key values are constant within a group by
construction and written back exactly as they were.

'''
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from listframe.errors import SchemaError
from listframe.series import Series
from listframe.table import Table, _as_series
from listframe.table.builder import TableBuilder


log = logging.getLogger(__name__)


def _as_names(cols: str | Sequence[str] | None) -> list[str] | None:
    if cols is None:
        return None

    if isinstance(cols, str):
        return [cols]

    return list(cols)


def nest(
    table: Table,
    key_columns: str | Sequence[str] | None = None,
    payload_columns: str | Sequence[str] | None = None,
    *,
    into: str = 'data',
) -> Table:
    '''
    Collapse `table` into one row per distinct key (first appearance order),
    the payload rows of each group are stored as a sub-table on the `into`
    list column.

    Omitting the payload nests every non key column, omitting the keys
    groups by every non payload column. When both are passed, columns in
    neither are dropped.

    '''
    keys = _as_names(key_columns)
    payload = _as_names(payload_columns)

    if keys is None and payload is None:
        raise SchemaError('nest needs key columns, payload columns or both')

    if payload is None:
        payload = [c for c in table.columns if c not in keys]

    if keys is None:
        keys = [c for c in table.columns if c not in payload]

    overlap = set(keys) & set(payload)
    if overlap:
        raise SchemaError(
            f'Columns {sorted(overlap)} can\'t be both keys and payload'
        )

    if into in keys:
        raise SchemaError(f'Nested column name {into!r} collides with a key')

    key_series = [table.column(k) for k in keys]
    payload_table = table.select(payload)

    # tag cells with their type so 1, 1.0 & True stay apart
    groups: dict[tuple, list[int]] = {}
    group_keys: list[tuple] = []
    for i, key in enumerate(zip(*(s.values for s in key_series))):
        tagged = tuple((type(v), v) for v in key)
        try:
            rows = groups.get(tagged)

        except TypeError:
            raise SchemaError(
                f'Key columns {keys} hold unhashable value in row {i}: {key!r}'
            ) from None

        if rows is None:
            rows = groups[tagged] = []
            group_keys.append(key)

        rows.append(i)

    if not keys and table.height:
        # no keys, the whole table is a single group
        groups = {(): list(range(table.height))}
        group_keys = [()]

    log.debug(
        f'nested {table.height} rows into {len(groups)} groups by {keys}'
    )

    columns = [
        Series(s.name, (key[j] for key in group_keys), s.kind)
        for j, s in enumerate(key_series)
    ]
    columns.append(
        Series(
            into,
            (payload_table.take(rows) for rows in groups.values()),
            'nested',
            ptype=payload_table,
        )
    )

    return Table._from_columns(columns, height=len(groups))


def _cell_table(column: str, cell) -> Table | None:
    '''
    Expand a single list column cell into rows.

    '''
    match cell:
        case None:
            return None

        case Table():
            return cell

        case Series():
            return Table._from_columns([cell.rename(column).drop_names()])

        case str() | bytes() | dict():
            return Table({column: [cell]})

        case Iterable():
            values = list(cell)
            if not values:
                # nothing to infer a kind from
                return Table()

            return Table._from_columns([_as_series(column, values)])

    return Table({column: [cell]})


def _prefixed(inner: Table, column: str, names_sep: str | None) -> Table:
    if names_sep is None:
        return inner

    return inner.rename(
        {name: f'{column}{names_sep}{name}' for name in inner.columns}
    )


def unnest(
    table: Table,
    column: str,
    *,
    keep_empty: bool = False,
    names_sep: str | None = None,
) -> Table:
    '''
    Expand the list column `column` back into rows.

    Sub-table cells expand into their columns, sequence cells into one row
    per element under `column`, scalar cells into a single row. The rest of
    the columns are repeated on every expanded row.

    Rows whose cell is missing or empty are dropped unless `keep_empty`, in
    that case they are kept once with missing expanded cells.

    `names_sep` prefixes columns coming from sub-table cells with
    `column` + `names_sep`, sequence & scalar cells keep `column` as is.

    '''
    pos = table.schema.index_of(column)
    before = table.columns[:pos]
    after = table.columns[pos + 1:]
    outer_names = set(before) | set(after)

    nested = table.column(column)
    outer = table.drop(column)
    builder = TableBuilder()
    # declare outer columns & kinds even if every row gets dropped
    builder.extend_table(outer.take(()))

    inner_names: list[str] = []

    def declare(inner: Table, where: str) -> None:
        clash = outer_names.intersection(inner.columns)
        if clash:
            raise SchemaError(
                f'Unnesting {column!r} {where} produces columns '
                f'{sorted(clash)} that already exist, pass names_sep'
            )

        for name in inner.columns:
            if name not in inner_names:
                inner_names.append(name)

    if nested.ptype is not None:
        # sub-table columns known up front, kept even without rows
        ptype = _prefixed(nested.ptype, column, names_sep)
        declare(ptype, 'declared cells')
        builder.extend_table(ptype)

    for i, cell in enumerate(nested.values):
        if isinstance(cell, Table):
            inner = _prefixed(cell, column, names_sep)

        else:
            inner = _cell_table(column, cell)

        if inner is not None:
            declare(inner, f'row {i}')

        n = inner.height if inner is not None else 0
        if n == 0:
            if not keep_empty:
                if inner is not None:
                    # no rows, but its columns & kinds still count
                    builder.extend_table(inner)
                continue

            n = 1
            inner_cols = [
                Series(s.name, [None], s.kind) for s in inner
            ] if inner is not None else []

        else:
            inner_cols = list(inner)

        repeated = [
            Series(s.name, [s.values[i]] * n, s.kind) for s in outer
        ]
        builder.extend_table(Table._from_columns(repeated + inner_cols, height=n))

    result = builder.flush_table()
    log.debug(
        f'unnested {column!r}: {table.height} rows into {result.height}'
    )

    return result.select(list(before) + inner_names + list(after))
