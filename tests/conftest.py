import pytest

from listframe import Table

from listframe._testing import reviews_table, weather_table


@pytest.fixture
def weather() -> Table:
    return weather_table()


@pytest.fixture
def reviews() -> Table:
    return reviews_table()


@pytest.fixture
def people() -> Table:
    return Table(
        {
            'name': ['ana', 'bob', 'cyd', 'dan'],
            'team': ['red', 'blue', 'red', 'blue'],
            'age': [31, 25, 47, 25],
            'score': [1.5, 2.0, None, 3.25],
        },
    )
