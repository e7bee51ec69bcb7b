'''
Glossary:
    - Table: An ordered set of equally long, named columns, immutable once built.
    - List column: A column of kind `nested`, its cells can hold anything,
      sequences, sub-tables, fitted models, not necessarily of the same type.
    - Map: Applying a function to every element of a sequence (or every cell
      of a column) and collecting the results in order.
    - Nest / Unnest: Converting between one row per observation and one row
      per group with the group rows stored on a list column.

'''

from .errors import (
    ColumnNotFoundError as ColumnNotFoundError,
    DegenerateInputError as DegenerateInputError,
    LengthMismatchError as LengthMismatchError,
    ListFrameError as ListFrameError,
    SchemaError as SchemaError,
    TypeMismatchError as TypeMismatchError,
)

from .schema import Column as Column, Schema as Schema

from .series import Series as Series

from .table import Table as Table, concat as concat

from .nesting import nest as nest, unnest as unnest

from .mapping import (
    discard as discard,
    imap as imap,
    keep as keep,
    map2 as map2,
    map2_rows as map2_rows,
    map_bool as map_bool,
    map_cols as map_cols,
    map_int as map_int,
    map_list as map_list,
    map_numeric as map_numeric,
    map_rows as map_rows,
    map_str as map_str,
    pmap as pmap,
    pmap_rows as pmap_rows,
    safely as safely,
)
