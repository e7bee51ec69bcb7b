'''
Summary statistics & per group linear models.

These are the usual payloads of a list column workflow: nest a table by
group, map a model fit over the sub-tables, then map `tidy`, `glance` or
`augment` over the models and unnest the results.

'''
from __future__ import annotations

import math
from typing import Any, Iterable, Sequence

import numpy as np
from scipy import stats as sps

from listframe.dtypes import coerce_value
from listframe.errors import DegenerateInputError
from listframe.series import Series
from listframe.structs import FrozenStruct
from listframe.table import Table


def _is_missing(v: Any) -> bool:
    return v is None or (isinstance(v, float) and math.isnan(v))


def _numeric(
    values: Iterable[Any],
    skip_missing: bool,
) -> np.ndarray | None:
    '''
    Validate & convert to a float array, `None` when missing values are
    present and not skipped.

    '''
    values = list(values)
    if not skip_missing and any(_is_missing(v) for v in values):
        return None

    return np.asarray(
        [
            coerce_value(v, 'numeric', position=i)
            for i, v in enumerate(values)
            if not _is_missing(v)
        ],
        dtype=np.float64,
    )


def _require(arr: np.ndarray, n: int, what: str) -> None:
    if arr.size < n:
        raise DegenerateInputError(
            f'{what} needs at least {n} value{"s" if n > 1 else ""}, got {arr.size}'
        )


def mean(values: Iterable[Any], *, skip_missing: bool = False) -> float | None:
    arr = _numeric(values, skip_missing)
    if arr is None:
        return None

    _require(arr, 1, 'mean')
    return float(np.mean(arr))


def median(values: Iterable[Any], *, skip_missing: bool = False) -> float | None:
    arr = _numeric(values, skip_missing)
    if arr is None:
        return None

    _require(arr, 1, 'median')
    return float(np.median(arr))


def quantile(
    values: Iterable[Any],
    q: float,
    *,
    skip_missing: bool = False
) -> float | None:
    if not 0 <= q <= 1:
        raise ValueError(f'quantile q must be within [0, 1], got {q}')

    arr = _numeric(values, skip_missing)
    if arr is None:
        return None

    _require(arr, 1, 'quantile')
    return float(np.quantile(arr, q))


def var(values: Iterable[Any], *, skip_missing: bool = False) -> float | None:
    '''Sample variance (n - 1 denominator).'''
    arr = _numeric(values, skip_missing)
    if arr is None:
        return None

    _require(arr, 2, 'var')
    return float(np.var(arr, ddof=1))


def sd(values: Iterable[Any], *, skip_missing: bool = False) -> float | None:
    '''Sample standard deviation (n - 1 denominator).'''
    v = var(values, skip_missing=skip_missing)
    return math.sqrt(v) if v is not None else None


class Summary(FrozenStruct, frozen=True):
    n: int
    missing: int
    mean: float
    sd: float | None
    min: float
    q1: float
    median: float
    q3: float
    max: float


def summary(values: Iterable[Any]) -> Summary:
    '''
    Five number summary plus mean & sd, missing values are dropped and
    counted.

    '''
    values = list(values)
    arr = _numeric(values, skip_missing=True)
    _require(arr, 1, 'summary')

    q1, med, q3 = np.quantile(arr, [0.25, 0.5, 0.75])
    return Summary(
        n=int(arr.size),
        missing=len(values) - int(arr.size),
        mean=float(np.mean(arr)),
        sd=float(np.std(arr, ddof=1)) if arr.size > 1 else None,
        min=float(np.min(arr)),
        q1=float(q1),
        median=float(med),
        q3=float(q3),
        max=float(np.max(arr)),
    )


# linear models

intercept_term = '(intercept)'


class LinearModel(FrozenStruct, frozen=True):
    '''
    Ordinary least squares fit of `response` on `predictors`.

    '''
    response: str
    predictors: list[str]
    intercept: bool
    terms: list[str]
    coefficients: list[float]
    std_errors: list[float]
    statistics: list[float]
    p_values: list[float]
    fitted: list[float]
    residuals: list[float]
    r_squared: float
    adj_r_squared: float
    sigma: float
    f_statistic: float | None
    f_p_value: float | None
    df_residual: int
    nobs: int

    def coef(self, term: str) -> float:
        try:
            return self.coefficients[self.terms.index(term)]

        except ValueError:
            raise KeyError(f'No term {term!r} in model, terms: {self.terms}') from None

    def predict(self, data: Table) -> Series:
        '''
        Predicted response for every row of `data`, rows with missing
        predictors predict `None`.

        '''
        cols = [data.column(p).values for p in self.predictors]
        offset = self.coefficients[0] if self.intercept else 0.
        slopes = self.coefficients[1:] if self.intercept else self.coefficients

        out: list[float | None] = []
        for i in range(data.height):
            row = [c[i] for c in cols]
            if any(_is_missing(v) for v in row):
                out.append(None)
                continue

            out.append(
                offset + sum(
                    b * coerce_value(v, 'numeric', position=i)
                    for b, v in zip(slopes, row)
                )
            )

        return Series('fitted', out, 'numeric')


def fit_lm(
    data: Table,
    response: str,
    predictors: str | Sequence[str],
    *,
    intercept: bool = True,
) -> LinearModel:
    '''
    Fit `response ~ predictors` by least squares, rows with a missing value
    in any used column are dropped.

    '''
    predictors = [predictors] if isinstance(predictors, str) else list(predictors)
    used = [data.column(c).values for c in [response, *predictors]]

    rows = [
        row for row in zip(*used)
        if not any(_is_missing(v) for v in row)
    ]
    y = np.asarray(
        [coerce_value(r[0], 'numeric', position=i) for i, r in enumerate(rows)],
        dtype=np.float64,
    )
    X = np.asarray(
        [
            [coerce_value(v, 'numeric', position=i) for v in r[1:]]
            for i, r in enumerate(rows)
        ],
        dtype=np.float64,
    ).reshape(len(rows), len(predictors))

    terms = list(predictors)
    if intercept:
        X = np.column_stack([np.ones(len(rows)), X])
        terms = [intercept_term, *terms]

    n, p = X.shape
    if n <= p:
        raise DegenerateInputError(
            f'Linear model with {p} parameters needs more than {p} complete '
            f'observations, got {n}'
        )

    beta, _, rank, _ = np.linalg.lstsq(X, y, rcond=None)
    if rank < p:
        raise DegenerateInputError(
            f'Design matrix for {terms} is rank deficient ({rank} < {p})'
        )

    fitted = X @ beta
    resid = y - fitted
    df_resid = n - p
    rss = float(resid @ resid)
    sigma = math.sqrt(rss / df_resid)

    cov = np.linalg.inv(X.T @ X) * (sigma ** 2)
    se = np.sqrt(np.diag(cov))
    with np.errstate(divide='ignore', invalid='ignore'):
        tstat = beta / se
    pvals = 2 * sps.t.sf(np.abs(tstat), df_resid)

    centered = y - y.mean() if intercept else y
    tss = float(centered @ centered)
    r2 = 1 - rss / tss if tss > 0 else float('nan')
    adj_r2 = 1 - (1 - r2) * (n - int(intercept)) / df_resid

    f_stat = f_p = None
    df_model = p - int(intercept)
    if df_model > 0 and rss > 0:
        f_stat = ((tss - rss) / df_model) / (rss / df_resid)
        f_p = float(sps.f.sf(f_stat, df_model, df_resid))

    return LinearModel(
        response=response,
        predictors=predictors,
        intercept=intercept,
        terms=terms,
        coefficients=beta.tolist(),
        std_errors=se.tolist(),
        statistics=tstat.tolist(),
        p_values=pvals.tolist(),
        fitted=fitted.tolist(),
        residuals=resid.tolist(),
        r_squared=r2,
        adj_r_squared=adj_r2,
        sigma=sigma,
        f_statistic=f_stat,
        f_p_value=f_p,
        df_residual=df_resid,
        nobs=n,
    )


def tidy(model: LinearModel) -> Table:
    '''Per term coefficient table.'''
    return Table(
        {
            'term': model.terms,
            'estimate': model.coefficients,
            'std_error': model.std_errors,
            'statistic': model.statistics,
            'p_value': model.p_values,
        },
        schema={
            'term': 'string',
            'estimate': 'numeric',
            'std_error': 'numeric',
            'statistic': 'numeric',
            'p_value': 'numeric',
        },
    )


def glance(model: LinearModel) -> Table:
    '''One row fit summary.'''
    return Table.from_dicts(
        [
            {
                'r_squared': model.r_squared,
                'adj_r_squared': model.adj_r_squared,
                'sigma': model.sigma,
                'statistic': model.f_statistic,
                'p_value': model.f_p_value,
                'df_residual': model.df_residual,
                'nobs': model.nobs,
            }
        ],
        schema={
            'r_squared': 'numeric',
            'adj_r_squared': 'numeric',
            'sigma': 'numeric',
            'statistic': 'numeric',
            'p_value': 'numeric',
            'df_residual': 'integer',
            'nobs': 'integer',
        },
    )


def augment(model: LinearModel, data: Table) -> Table:
    '''
    `data` plus `fitted` & `resid` columns (residuals only when the response
    column is present).

    '''
    fitted = model.predict(data)
    out = data.with_column('fitted', fitted)
    if model.response not in data:
        return out

    y = data.column(model.response).values
    resid = [
        coerce_value(obs, 'numeric') - fit
        if fit is not None and not _is_missing(obs) else None
        for obs, fit in zip(y, fitted)
    ]
    return out.with_column('resid', resid, kind='numeric')
