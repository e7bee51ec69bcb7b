from datetime import date, timedelta
import random
from typing import Generator

from listframe.schema import Schema
from listframe.table import Table


weather_schema = Schema(
    (
        ('city', 'string'),
        ('day', 'temporal'),
        ('humidity', 'numeric'),
        ('temp', 'numeric'),
        ('rain', 'boolean'),
    )
)


# per city (intercept, slope) of temp ~ humidity
city_params: dict[str, tuple[float, float]] = {
    'Austin': (38.0, -0.20),
    'Dallas': (36.0, -0.15),
    'Houston': (34.0, -0.10),
}


def weather_stream(
    *,
    cities: dict[str, tuple[float, float]] = city_params,
    start: date = date(2024, 1, 1),
    days: int = 30,
    noise: float = 0.5,
    seed: int = 42,
) -> Generator[tuple[str, date, float, float, bool], None, None]:
    '''
    Deterministic daily weather records, temperature is a noisy linear
    function of humidity with per city coefficients so regressions can
    recover them.

    Rows come city by city, each city in day order.

    '''
    if days <= 0:
        raise ValueError('days must be > 0')

    rnd = random.Random(seed)
    for city, (intercept, slope) in cities.items():
        for i in range(days):
            humidity = round(rnd.uniform(30.0, 90.0), 1)
            temp = intercept + slope * humidity + rnd.gauss(0.0, noise)
            yield (
                city,
                start + timedelta(days=i),
                humidity,
                round(temp, 2),
                humidity > 75.0,
            )


def weather_table(**kwargs) -> Table:
    return Table.from_rows(weather_stream(**kwargs), weather_schema)


review_schema = Schema(
    (
        ('product', 'string'),
        ('rating', 'integer'),
        ('text', 'string'),
    )
)


reviews: list[tuple[str, int, str]] = [
    ('kettle', 5, 'Boils fast and looks great on the counter.'),
    ('kettle', 2, 'Lid broke after a week.'),
    ('kettle', 4, 'Quiet, quick, a bit pricey.'),
    ('toaster', 3, 'Toasts unevenly but works.'),
    ('toaster', 1, 'Stopped working. Returned it.'),
    ('blender', 5, 'Crushes ice with no effort at all, love it.'),
    ('blender', 4, 'Loud but powerful.'),
]


def reviews_table() -> Table:
    return Table.from_rows(reviews, review_schema)
