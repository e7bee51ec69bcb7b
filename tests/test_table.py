import polars as pl
import pytest

from listframe import (
    ColumnNotFoundError,
    LengthMismatchError,
    SchemaError,
    Series,
    Table,
    TypeMismatchError,
    concat,
    pmap,
)
from listframe import stats
from listframe._utils import ListFrameWarning
from listframe.table.builder import TableBuilder

from listframe._testing import weather_schema


def test_definitions(weather):
    print(weather.pretty_str())
    assert weather.schema == weather_schema
    assert weather.shape == (90, 5)
    assert len(weather) == weather.height


def test_inferred_kinds(people):
    assert people.schema.kinds == {
        'name': 'string',
        'team': 'string',
        'age': 'integer',
        'score': 'numeric',
    }


def test_columns_must_align():
    with pytest.raises(LengthMismatchError):
        Table({'a': [1, 2], 'b': [1]})


def test_declared_kind_is_validated():
    with pytest.raises(TypeMismatchError):
        Table({'a': [1, 'x']}, schema={'a': 'integer'})

    # ints are representable as numeric
    t = Table({'a': [1, 2]}, schema={'a': 'numeric'})
    assert t['a'].to_list() == [1.0, 2.0]
    assert all(isinstance(v, float) for v in t['a'])


def test_schema_declares_order_and_missing_columns():
    t = Table({'b': ['x'], 'a': [1]}, schema=[('a', 'integer'), ('b', 'string')])
    assert t.columns == ('a', 'b')

    with pytest.raises(ColumnNotFoundError):
        Table({'a': [1]}, schema=[('a', 'integer'), ('b', 'string')])

    with pytest.raises(SchemaError):
        Table({'a': [1], 'c': [2]}, schema=[('a', 'integer')])


def test_empty_from_schema():
    t = Table.empty(weather_schema)
    assert t.shape == (0, 5)
    assert t.schema == weather_schema


def test_nested_column_holds_anything():
    marker = object()
    sub = Table({'x': [1]})
    t = Table({'id': [1, 2, 3], 'cell': [[1, 2], sub, marker]})

    assert t.schema.kinds['cell'] == 'nested'
    assert t['cell'][0] == [1, 2]
    assert t['cell'][1] is sub
    assert t['cell'][2] is marker


def test_mutate_is_pure(people):
    out = people.mutate(age2=lambda t: [a * 2 for a in t['age']])

    assert 'age2' not in people
    assert people.columns == ('name', 'team', 'age', 'score')
    assert out.columns == ('name', 'team', 'age', 'score', 'age2')
    assert out['age2'].to_list() == [62, 50, 94, 50]


def test_mutate_keeps_rows_aligned(people):
    out = people.mutate(
        label=lambda t: pmap(
            t.select('name', 'age'),
            lambda name, age: f'{name}:{age}',
            kind='string',
        )
    )

    # every derived cell only depends on its own row
    for row in out.iter_rows(named=True):
        assert row['label'] == f'{row["name"]}:{row["age"]}'


def test_mutate_sees_previous_columns(people):
    out = people.mutate(
        double=lambda t: [a * 2 for a in t['age']],
        quad=lambda t: [d * 2 for d in t['double']],
    )
    assert out['quad'].to_list() == [124, 100, 188, 100]


def test_mutate_broadcast_and_replace(people):
    out = people.mutate(team='green')

    assert out.columns == people.columns
    assert out['team'].to_list() == ['green'] * 4


def test_with_column_errors(people):
    with pytest.raises(LengthMismatchError):
        people.with_column('x', [1, 2])

    with pytest.raises(SchemaError):
        people.with_column('x', Table({'a': [1, 2, 3, 4]}))

    with pytest.raises(TypeMismatchError):
        people.with_column('x', ['a', 'b', 'c', 'd'], kind='integer')


def test_select_drop_rename(people):
    assert people.select('name', 'age').columns == ('name', 'age')
    assert people.select(['age', 'name']).columns == ('age', 'name')
    assert people[['team']].columns == ('team',)
    assert people.drop('score').columns == ('name', 'team', 'age')
    assert people.rename({'age': 'years'}).columns == (
        'name', 'team', 'years', 'score'
    )

    with pytest.raises(ColumnNotFoundError):
        people.select('missing')

    # still a KeyError for callers
    with pytest.raises(KeyError):
        people['missing']

    with pytest.raises(SchemaError):
        people.rename({'age': 'name'})


def test_recode(people):
    assert people.recode('team', {'red': 'R'})['team'].to_list() == [
        'R', 'blue', 'R', 'blue'
    ]
    assert people.recode('team', {'red': 'R'}, default='?')['team'].to_list() == [
        'R', '?', 'R', '?'
    ]

    coded = people.recode('team', {'red': 1, 'blue': 2})
    assert coded.schema.kinds['team'] == 'integer'


def test_filter(people):
    assert people.filter(lambda r: r['age'] > 30)['name'].to_list() == ['ana', 'cyd']
    assert people.filter([True, False, False, True])['name'].to_list() == ['ana', 'dan']

    with pytest.raises(LengthMismatchError):
        people.filter([True])


def test_sort(people):
    assert people.sort('age')['name'].to_list() == ['bob', 'dan', 'ana', 'cyd']
    assert people.sort(['age', 'name'], descending=[True, False])['name'].to_list() == [
        'cyd', 'ana', 'bob', 'dan'
    ]

    # missing values go last in both directions
    assert people.sort('score')['name'].to_list() == ['ana', 'bob', 'dan', 'cyd']
    assert people.sort('score', descending=True)['name'].to_list() == [
        'dan', 'bob', 'ana', 'cyd'
    ]


def test_slicing(people):
    assert people.head(2)['name'].to_list() == ['ana', 'bob']
    assert people.tail(1)['name'].to_list() == ['dan']
    assert people.slice(1, 2)['name'].to_list() == ['bob', 'cyd']
    assert people.take([3, 0])['name'].to_list() == ['dan', 'ana']

    with pytest.raises(IndexError):
        people.take([4])


def test_rows(people):
    assert people.row(0) == ('ana', 'red', 31, 1.5)
    assert people.row(-1, named=True)['name'] == 'dan'
    assert people.to_dicts()[2] == {'name': 'cyd', 'team': 'red', 'age': 47, 'score': None}
    assert len(people.rows()) == 4


def test_summarise(people):
    out = people.summarise(
        'team',
        n=lambda t: t.height,
        mean_age=lambda t: stats.mean(t['age']),
    )

    assert out.columns == ('team', 'n', 'mean_age')
    assert out['team'].to_list() == ['red', 'blue']
    assert out['n'].to_list() == [2, 2]
    assert out['mean_age'].to_list() == [39.0, 25.0]
    assert out.schema.kinds['n'] == 'integer'

    total = people.summarise(n=lambda t: t.height)
    assert total.rows() == [(4,)]


def test_concat_unions_columns():
    out = concat([Table({'a': [1]}), Table({'a': [2.5], 'b': ['x']})])

    assert out.columns == ('a', 'b')
    assert out.schema.kinds == {'a': 'numeric', 'b': 'string'}
    assert out['a'].to_list() == [1.0, 2.5]
    assert out['b'].to_list() == [None, 'x']


def test_concat_all_missing_piece_keeps_kind():
    out = concat([Table({'a': [1]}), Table({'a': [None]})])
    assert out.schema.kinds == {'a': 'integer'}
    assert out['a'].to_list() == [1, None]

    # declared kinds still count without values
    empty = Table.empty([('a', 'numeric')])
    assert concat([Table({'a': [1]}), empty]).schema.kinds == {'a': 'numeric'}


def test_from_dicts():
    t = Table.from_dicts([{'a': 1}, {'b': 'x'}])
    assert t.columns == ('a', 'b')
    assert t['a'].to_list() == [1, None]
    assert t['b'].to_list() == [None, 'x']


def test_builder():
    builder = TableBuilder(weather_schema)
    with pytest.raises(LengthMismatchError):
        builder.append(('Austin',))

    with pytest.raises(SchemaError):
        builder.append_dict({'not_a_column': 1})

    builder = TableBuilder([('a', 'integer')])
    builder.extend([(1,), (2,)])
    assert builder.rows() == 2

    first = builder.flush_table()
    assert first['a'].to_list() == [1, 2]
    assert builder.rows() == 0

    # buffers are reusable after a flush
    builder.append((3,))
    assert builder.flush_table()['a'].to_list() == [3]
    assert first['a'].to_list() == [1, 2]


def test_series():
    s = Series('x', [1, 2, 3], names=['a', 'b', 'c'])
    assert s.kind == 'integer'
    assert s['b'] == 2
    assert s[1:].to_list() == [2, 3]
    assert s[1:].names == ('b', 'c')
    assert s.cast('numeric').to_list() == [1.0, 2.0, 3.0]
    assert s.to_dict() == {'a': 1, 'b': 2, 'c': 3}
    assert Series('w', ['p', 'q']).set_names().names == ('p', 'q')

    with pytest.raises(LengthMismatchError):
        Series('x', [1, 2], names=['a'])


def test_polars_roundtrip(people):
    frame = people.to_polars()
    assert frame.schema['age'] == pl.Int64
    assert frame.schema['score'] == pl.Float64
    assert frame.schema['name'] == pl.String

    assert Table.from_polars(frame) == people


def test_polars_nested_tables(weather):
    nested = weather.nest('city')
    frame = nested.to_polars()

    assert isinstance(frame.schema['data'], pl.List)

    back = Table.from_polars(frame)
    assert back['city'].to_list() == nested['city'].to_list()
    for got, expected in zip(back['data'], nested['data']):
        assert isinstance(got, Table)
        assert got.to_dicts() == expected.to_dicts()


def test_polars_object_fallback():
    t = Table({'m': [object(), object()]})
    with pytest.warns(ListFrameWarning):
        frame = t.to_polars()

    assert frame.schema['m'] == pl.Object


def test_pretty_str(monkeypatch, weather):
    sub = Table({'x': [1, 2, 3], 'y': [1, 2, 3]})
    text = Table({'id': [1], 'data': [sub], 'seq': [[1, 2]]}).pretty_str()
    assert '<table [3 x 2]>' in text
    assert '<list [2]>' in text
    assert '<list>' in text

    monkeypatch.setenv('LISTFRAME_PRINT_ROWS', '2')
    assert '... with 88 more rows' in weather.pretty_str()
