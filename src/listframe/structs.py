from typing import Any, Self

import msgspec


def ext_enc_hook(obj: Any) -> Any:
    '''
    Extended encoder hook so structs holding nested tables or captured
    exceptions can still be dumped.

    '''
    # late import, tables depend on structs
    from listframe.table import Table
    if isinstance(obj, Table):
        return obj.to_dicts()

    if isinstance(obj, BaseException):
        return f'{type(obj).__name__}: {obj}'

    raise TypeError(f'Can\'t encode {type(obj).__name__}')


class _Struct:
    @classmethod
    def from_json(cls, s: str | bytes) -> Self:
        return msgspec.json.decode(s, type=cls)

    @classmethod
    def convert(cls, obj: Any) -> Self:
        return msgspec.convert(obj, type=cls)

    def to_dict(self) -> dict:
        return msgspec.to_builtins(self, enc_hook=ext_enc_hook)

    def to_json(self) -> str:
        return msgspec.json.encode(self, enc_hook=ext_enc_hook).decode()


class FrozenStruct(msgspec.Struct, _Struct, frozen=True): ...
