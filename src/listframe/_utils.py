'''
Misc internal utilities

'''
from collections.abc import Iterable, Mapping
import os

from listframe.errors import SchemaError


class ListFrameWarning(Warning): ...


default_loglevel: str = 'info'

default_print_rows: int = 10


def get_loglevel() -> str:
    return os.getenv('LISTFRAME_LOGLEVEL', default_loglevel)


def get_print_rows() -> int:
    raw = os.getenv('LISTFRAME_PRINT_ROWS')
    if not raw:
        return default_print_rows

    try:
        rows = int(raw)

    except ValueError:
        raise ValueError(
            f'LISTFRAME_PRINT_ROWS must be an integer, got {raw!r}'
        ) from None

    return max(0, rows)


def is_scalar_like(value) -> bool:
    '''
    True for values that should be treated as a single cell instead of a
    sequence of cells (strings & bytes are iterable but atomic for us).

    '''
    if isinstance(value, (str, bytes)):
        return True

    return not isinstance(value, Iterable) or isinstance(value, Mapping)


def check_unique(names: Iterable[str], what: str = 'column') -> tuple[str, ...]:
    names = tuple(names)
    seen: set[str] = set()
    for name in names:
        if not isinstance(name, str):
            raise SchemaError(f'{what} names must be str, got {name!r}')

        if name in seen:
            raise SchemaError(f'Duplicate {what} name {name!r}')

        seen.add(name)

    return names
