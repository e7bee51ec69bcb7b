from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import cached_property

import msgspec

from listframe._utils import check_unique
from listframe.dtypes import CellKind, check_kind, scalar_kinds
from listframe.errors import ColumnNotFoundError, SchemaError
from listframe.structs import FrozenStruct


class Column(msgspec.Struct, frozen=True):
    name: str
    kind: CellKind = 'nested'

    def __post_init__(self) -> None:
        check_kind(self.kind)

    @staticmethod
    def from_like(c: ColumnLike) -> Column:
        match c:
            case Column():
                return c

            case (str() as name, str() as kind):
                return Column(name, kind)

            case str():
                return Column(c)

            case dict():
                return msgspec.convert(c, type=Column)

        raise SchemaError(f'Can\'t build a column definition from {c!r}')

    @property
    def is_nested(self) -> bool:
        return self.kind == 'nested'


ColumnLike = tuple[str, CellKind] | str | dict | Column


class SchemaMeta(FrozenStruct, frozen=True):
    columns: list[Column]


class Schema:
    '''
    Ordered column definitions (name + cell kind) of a `Table`.

    '''
    def __init__(self, columns: Iterable[ColumnLike] = ()):
        self._columns: tuple[Column, ...] = tuple(
            (Column.from_like(c) for c in columns)
        )
        check_unique(c.name for c in self._columns)

        self._index: dict[str, int] = {
            c.name: i for i, c in enumerate(self._columns)
        }

    @staticmethod
    def from_like(s: SchemaLike) -> Schema:
        match s:
            case Schema():
                return s

            case SchemaMeta():
                return Schema(s.columns)

            case dict() if isinstance(s.get('columns'), list):
                return Schema(SchemaMeta.convert(s).columns)

            case Mapping():
                return Schema(s.items())

        return Schema(s)

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self):
        return iter(self._columns)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __getitem__(self, name: str) -> Column:
        try:
            return self._columns[self._index[name]]

        except KeyError:
            raise ColumnNotFoundError(name, self.names) from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented

        return self._columns == other._columns

    def __hash__(self) -> int:
        return hash(self._columns)

    def __repr__(self) -> str:
        inner = ', '.join(f'{c.name}: {c.kind}' for c in self._columns)
        return f'Schema({inner})'

    @cached_property
    def columns(self) -> tuple[Column, ...]:
        return self._columns

    @cached_property
    def names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self._columns)

    @cached_property
    def kinds(self) -> dict[str, CellKind]:
        return {c.name: c.kind for c in self._columns}

    @cached_property
    def scalar_columns(self) -> tuple[Column, ...]:
        return tuple((col for col in self._columns if col.kind in scalar_kinds))

    @cached_property
    def nested_columns(self) -> tuple[Column, ...]:
        return tuple((col for col in self._columns if col.is_nested))

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]

        except KeyError:
            raise ColumnNotFoundError(name, self.names) from None

    def select(self, names: Iterable[str]) -> Schema:
        return Schema(self[name] for name in names)

    def pretty_str(self) -> str:
        '''Return a human-readable representation of the schema.'''
        lines = ['Schema:']
        for col in self._columns:
            lines.append(f'  - {col.name}: {col.kind}')

        return '\n'.join(lines)

    def encode(self) -> SchemaMeta:
        return SchemaMeta(columns=list(self._columns))


SchemaLike = Iterable[ColumnLike] | Mapping[str, CellKind] | SchemaMeta | Schema
