import math

import pytest

from listframe import (
    DegenerateInputError,
    Table,
    TypeMismatchError,
    map_list,
    map_numeric,
    map_rows,
)
from listframe.stats import (
    LinearModel,
    augment,
    fit_lm,
    glance,
    mean,
    median,
    quantile,
    sd,
    summary,
    tidy,
    var,
)

from listframe._testing import city_params


def test_summary_statistics():
    values = [1, 2, 3, 4]
    assert mean(values) == 2.5
    assert median(values) == 2.5
    assert var(values) == pytest.approx(5 / 3)
    assert sd(values) == pytest.approx(math.sqrt(5 / 3))
    assert quantile(values, 0.25) == pytest.approx(1.75)


def test_missing_values():
    assert mean([1, None, 3]) is None
    assert mean([1, None, 3], skip_missing=True) == 2.0
    assert sd([1, float('nan'), 3], skip_missing=True) == pytest.approx(math.sqrt(2))


@pytest.mark.parametrize(
    'func, values',
    [
        (mean, []),
        (median, []),
        (var, [1.0]),
        (sd, [1.0]),
        (sd, []),
        (mean, [None]),
    ],
)
def test_degenerate_input(func, values):
    with pytest.raises(DegenerateInputError):
        func(values, skip_missing=True)


def test_non_numeric_input():
    with pytest.raises(TypeMismatchError):
        mean(['a', 'b'])


def test_summary():
    s = summary([1, 2, 3, 4, None])
    assert s.n == 4
    assert s.missing == 1
    assert s.median == 2.5
    assert s.q1 == pytest.approx(1.75)
    assert s.q3 == pytest.approx(3.25)
    assert (s.min, s.max) == (1.0, 4.0)

    assert summary([7]).sd is None

    with pytest.raises(DegenerateInputError):
        summary([None])


def test_fit_lm_recovers_coefficients(weather):
    austin = weather.filter(lambda r: r['city'] == 'Austin')
    model = fit_lm(austin, 'temp', 'humidity')

    intercept, slope = city_params['Austin']
    assert model.terms == ['(intercept)', 'humidity']
    assert model.coef('humidity') == pytest.approx(slope, abs=0.03)
    assert model.coef('(intercept)') == pytest.approx(intercept, abs=1.5)
    assert model.nobs == 30
    assert model.df_residual == 28
    assert len(model.residuals) == 30
    assert sum(model.residuals) == pytest.approx(0.0, abs=1e-6)
    assert model.r_squared > 0.8
    assert model.p_values[1] < 0.001

    with pytest.raises(KeyError):
        model.coef('wind')


def test_fit_lm_drops_incomplete_rows():
    data = Table({
        'x': [0.0, 1.0, 2.0, 3.0, None],
        'y': [1.0, 2.9, 5.1, 7.0, 100.0],
    })
    model = fit_lm(data, 'y', 'x')
    assert model.nobs == 4
    assert model.coef('x') == pytest.approx(2.0, abs=0.1)


def test_fit_lm_degenerate():
    with pytest.raises(DegenerateInputError):
        fit_lm(Table({'x': [1.0, 2.0], 'y': [1.0, 2.0]}), 'y', 'x')

    collinear = Table({
        'x': [1.0, 2.0, 3.0, 4.0],
        'z': [2.0, 4.0, 6.0, 8.0],
        'y': [1.0, 2.5, 2.9, 4.2],
    })
    with pytest.raises(DegenerateInputError):
        fit_lm(collinear, 'y', ['x', 'z'])


def test_model_per_group(weather):
    '''
    Nest by city, fit a model per sub-table, pull coefficients back out.

    '''
    by_city = weather.nest('city')
    models = by_city.mutate(
        model=lambda t: map_list(
            t['data'], lambda d: fit_lm(d, 'temp', 'humidity')
        ),
    )
    assert all(isinstance(m, LinearModel) for m in models['model'])

    slopes = map_numeric(models['model'], lambda m: m.coef('humidity'))
    for city, slope in zip(models['city'], slopes):
        assert slope == pytest.approx(city_params[city][1], abs=0.03)

    fits = (
        models
        .mutate(glance=lambda t: map_list(t['model'], glance))
        .select('city', 'glance')
        .unnest('glance')
    )
    assert fits.height == 3
    assert fits.columns[:2] == ('city', 'r_squared')
    assert all(r2 > 0.8 for r2 in fits['r_squared'])
    assert fits.schema.kinds['nobs'] == 'integer'

    coefs = map_rows(
        dict(zip(models['city'], models['model'])), tidy, id='city'
    )
    assert coefs.height == 6
    assert coefs.columns == (
        'city', 'term', 'estimate', 'std_error', 'statistic', 'p_value'
    )
    assert coefs.filter(lambda r: r['city'] == 'Houston')['term'].to_list() == [
        '(intercept)', 'humidity'
    ]


def test_augment(weather):
    dallas = weather.filter(lambda r: r['city'] == 'Dallas')
    model = fit_lm(dallas, 'temp', 'humidity')

    out = augment(model, dallas)
    assert out.columns == dallas.columns + ('fitted', 'resid')
    assert out['fitted'].to_list() == pytest.approx(model.fitted)
    assert out['resid'].to_list() == pytest.approx(model.residuals)

    # new data without the response only gets predictions
    new = Table({'humidity': [50.0, None]})
    predicted = augment(model, new)
    assert predicted.columns == ('humidity', 'fitted')
    assert predicted['fitted'][1] is None


def test_model_serialization(weather):
    model = fit_lm(weather.filter(lambda r: r['city'] == 'Austin'), 'temp', 'humidity')
    back = LinearModel.from_json(model.to_json())
    assert back.terms == model.terms
    assert back.coefficients == pytest.approx(model.coefficients)
