from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Iterable, Iterator, TYPE_CHECKING, overload
import warnings

import polars as pl

from listframe._utils import ListFrameWarning
from listframe.dtypes import (
    CellKind,
    check_kind,
    coerce_values,
    from_polars_value,
    infer_kind,
    kind_for_polars,
    polars_dtype_for,
)
from listframe.errors import LengthMismatchError


if TYPE_CHECKING:
    from listframe.table import Table


class Series(Sequence):
    '''
    Named, immutable sequence of cells of a single kind, optionally carrying
    per element names.

    A `nested` series (list column) can hold anything on its cells, other
    kinds are validated on construction.

    Nested series may carry a `ptype`, an empty `Table` describing the
    columns its sub-table cells share, so that shape survives even when
    there are no cells at all.

    '''
    __slots__ = ('name', 'kind', '_values', '_names', '_ptype')

    def __init__(
        self,
        name: str = '',
        values: Iterable[Any] = (),
        kind: CellKind | None = None,
        *,
        names: Iterable[str] | None = None,
        ptype: Table | None = None,
    ) -> None:
        if isinstance(values, Series):
            if names is None:
                names = values.names
            if kind is None:
                kind = values.kind
            if ptype is None:
                ptype = values.ptype

        values = tuple(values)

        self.name = name
        self.kind: CellKind = (
            check_kind(kind) if kind is not None else infer_kind(values)
        )
        self._values: tuple[Any, ...] = coerce_values(values, self.kind)

        self._names: tuple[str, ...] | None = None
        if names is not None:
            names = tuple(str(n) for n in names)
            if len(names) != len(self._values):
                raise LengthMismatchError(
                    f'Series {name!r} got {len(names)} names for '
                    f'{len(self._values)} values'
                )
            self._names = names

        self._ptype: Table | None = None
        if ptype is not None and self.kind == 'nested':
            self._ptype = ptype.take(())

    @property
    def values(self) -> tuple[Any, ...]:
        return self._values

    @property
    def names(self) -> tuple[str, ...] | None:
        return self._names

    @property
    def ptype(self) -> Table | None:
        return self._ptype

    @property
    def is_nested(self) -> bool:
        return self.kind == 'nested'

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    @overload
    def __getitem__(self, key: int | str) -> Any: ...

    @overload
    def __getitem__(self, key: slice) -> Series: ...

    def __getitem__(self, key):
        if isinstance(key, slice):
            return Series(
                self.name,
                self._values[key],
                self.kind,
                names=self._names[key] if self._names else None,
                ptype=self._ptype,
            )

        if isinstance(key, str):
            if not self._names or key not in self._names:
                raise KeyError(key)

            return self._values[self._names.index(key)]

        return self._values[key]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Series):
            return NotImplemented

        return (
            self.name == other.name
            and self.kind == other.kind
            and self._names == other._names
            and self._values == other._values
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return self.pretty_str()

    def to_list(self) -> list[Any]:
        return list(self._values)

    def to_dict(self) -> dict[str, Any]:
        '''
        Map element names to values, unnamed series use str indexes.

        '''
        return dict(zip(self.element_ids(as_str=True), self._values))

    def element_ids(self, *, as_str: bool = False) -> tuple[int | str, ...]:
        '''
        Element names if present else positional indexes.

        '''
        if self._names:
            return self._names

        if as_str:
            return tuple(str(i) for i in range(len(self._values)))

        return tuple(range(len(self._values)))

    def rename(self, name: str) -> Series:
        return Series(
            name, self._values, self.kind, names=self._names, ptype=self._ptype
        )

    def set_names(self, names: Iterable[str] | None = None) -> Series:
        '''
        Return a copy with element names, when `names` is not passed the
        values themselves are used as names.

        '''
        if names is None:
            names = (str(v) for v in self._values)

        return Series(
            self.name, self._values, self.kind, names=names, ptype=self._ptype
        )

    def drop_names(self) -> Series:
        return Series(self.name, self._values, self.kind, ptype=self._ptype)

    def cast(self, kind: CellKind) -> Series:
        return Series(
            self.name, self._values, kind, names=self._names, ptype=self._ptype
        )

    def take(self, indices: Iterable[int]) -> Series:
        indices = tuple(indices)
        return Series(
            self.name,
            (self._values[i] for i in indices),
            self.kind,
            names=(self._names[i] for i in indices) if self._names else None,
            ptype=self._ptype,
        )

    # polars interop

    def to_polars(self) -> pl.Series:
        if self.is_nested:
            # local import, table imports series
            from listframe.table import Table
            if self._values and all(
                v is None or (
                    isinstance(v, Table) and not v.schema.nested_columns
                )
                for v in self._values
            ):
                return pl.Series(
                    self.name,
                    [v.to_dicts() if v is not None else None for v in self._values],
                )

            if any(v is not None for v in self._values):
                warnings.warn(
                    f'Column {self.name!r} holds arbitrary objects, '
                    'using polars Object dtype',
                    ListFrameWarning,
                    stacklevel=2,
                )

        return pl.Series(
            self.name,
            list(self._values),
            dtype=polars_dtype_for(self.kind),
            strict=False,
        )

    @staticmethod
    def from_polars(s: pl.Series) -> Series:
        kind = kind_for_polars(s.dtype)
        values = s.to_list()

        dtype = s.dtype
        if isinstance(dtype, pl.List) and isinstance(dtype.inner, pl.Struct):
            from listframe.table import Table
            values = [
                Table.from_dicts(
                    cell,
                    schema=[
                        (f.name, kind_for_polars(f.dtype))
                        for f in dtype.inner.fields
                    ],
                )
                if cell is not None else None
                for cell in values
            ]

        else:
            values = [from_polars_value(v) for v in values]

        return Series(s.name, values, kind)

    def pretty_str(self, max_items: int = 10) -> str:
        from listframe.table import format_cell

        shown = [
            (f'{n}: ' if self._names else '') + format_cell(v)
            for n, v in zip(self.element_ids(), self._values[:max_items])
        ]
        if len(self._values) > max_items:
            shown.append(f'... {len(self._values) - max_items} more')

        return f'Series {self.name!r} <{self.kind}> [{len(self)}]: [{", ".join(shown)}]'
