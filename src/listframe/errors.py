from typing import Any


class ListFrameError(Exception): ...


class SchemaError(ListFrameError, ValueError): ...


class ColumnNotFoundError(ListFrameError, KeyError):
    def __init__(self, name: str, available: tuple[str, ...] = ()) -> None:
        self.name = name
        self.available = available
        super().__init__(name)

    def __str__(self) -> str:
        return f'No column named {self.name!r}, available: {list(self.available)}'


class LengthMismatchError(ListFrameError, ValueError): ...


class DegenerateInputError(ListFrameError, ValueError): ...


class TypeMismatchError(ListFrameError, TypeError):
    '''
    Raised when a value can't be represented in a requested cell kind.

    `position` is the element index or name that produced the value, when
    known.

    '''
    def __init__(
        self,
        kind: str,
        value: Any,
        position: int | str | None = None
    ) -> None:
        self.kind = kind
        self.value = value
        self.position = position

        msg = f'Can\'t represent {type(value).__name__} value {value!r} as {kind}'
        if position is not None:
            msg += f' (at element {position!r})'

        super().__init__(msg)
