"""
Series primitives for indicator calculations.
지표 계산용 기본 함수들

- mean / std_dev: 모집단 통계 (N으로 나눔)
- rate_of_change: 변화율 (%), 분모 0이면 0
- z_score: 표준화 점수, 표준편차 0이면 0
- calc_roc / calc_yoy: pandas 시계열 버전
- percentile_rank / calc_percentile: 과거 대비 백분위 (scipy)
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Union
import math

import numpy as np
import pandas as pd
from scipy import stats


@dataclass(frozen=True)
class RawObservation:
    """Single raw observation as delivered by a data source."""
    date: date
    value: float

    @classmethod
    def from_dict(cls, row: dict) -> 'RawObservation':
        return cls(date=to_date(row['date']), value=float(row['value']))


ObservationsLike = Union[
    pd.Series,
    pd.DataFrame,
    Sequence[RawObservation],
    Sequence[dict],
]


def to_date(value) -> date:
    """Coerce str / datetime / Timestamp / date into a plain date."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean; 0 for empty input."""
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return 0.0
    return float(arr.mean())


def std_dev(values: Iterable[float]) -> float:
    """Population standard deviation (ddof=0); 0 for empty input."""
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return 0.0
    return float(arr.std(ddof=0))


def rate_of_change(current: float, previous: float) -> float:
    """
    Percentage change from previous to current.
    변화율 (%)

    Returns 0 when previous is 0 instead of dividing by zero.
    """
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def z_score(value: float, mean_value: float, std_value: float) -> float:
    """Standard score; 0 when the standard deviation is 0."""
    if std_value == 0:
        return 0.0
    return (value - mean_value) / std_value


def to_series(observations: ObservationsLike, name: str = 'value') -> pd.Series:
    """
    Normalize raw observations into a date-indexed float Series.

    Accepts a Series (index = dates), a DataFrame with 'date'/'value'
    columns, or a sequence of RawObservation / {'date', 'value'} dicts.
    The result is sorted ascending with one value per date (last wins).
    """
    if isinstance(observations, pd.Series):
        series = observations.astype(float).copy()
        series.index = pd.to_datetime(series.index)
    elif isinstance(observations, pd.DataFrame):
        if observations.empty:
            return pd.Series(dtype=float, name=name, index=pd.DatetimeIndex([]))
        series = pd.Series(
            observations['value'].astype(float).values,
            index=pd.to_datetime(observations['date']),
        )
    else:
        rows = list(observations)
        if not rows:
            return pd.Series(dtype=float, name=name, index=pd.DatetimeIndex([]))
        if not isinstance(rows[0], RawObservation):
            rows = [RawObservation.from_dict(r) for r in rows]
        dates = [r.date for r in rows]
        values = [r.value for r in rows]
        series = pd.Series(np.asarray(values, dtype=float), index=pd.to_datetime(dates))

    series = series[~series.index.duplicated(keep='last')].sort_index()
    series.name = name
    return series


def to_observations(series: pd.Series) -> List[RawObservation]:
    """Convert a date-indexed Series back into RawObservation records."""
    return [
        RawObservation(date=to_date(idx), value=float(val))
        for idx, val in series.items()
        if not (isinstance(val, float) and math.isnan(val))
    ]


def calc_roc(
    series: pd.Series,
    periods: int = 6,
) -> pd.Series:
    """
    Calculate rate of change against the value `periods` observations back.
    N기간 변화율

    Args:
        series: Input time series (evenly spaced)
        periods: Number of observations to look back

    Returns:
        RoC as percentage; NaN where history is insufficient,
        0 where the base value is 0
    """
    previous = series.shift(periods)
    roc = (series - previous) / previous.replace(0, np.nan) * 100
    roc[previous == 0] = 0.0
    return roc


def calc_yoy(
    series: pd.Series,
    periods: int = 12,  # Monthly observations in a year
) -> pd.Series:
    """
    Calculate Year-over-Year change.
    전년 대비 변화율
    """
    return calc_roc(series, periods=periods)


def percentile_rank(values: Sequence[float], value: float) -> float:
    """
    Percentile rank (0-100) of `value` within `values`; NaN when empty.
    """
    clean = [v for v in values if v is not None and not math.isnan(v)]
    if not clean:
        return float('nan')
    return float(stats.percentileofscore(clean, value))


def calc_percentile(
    series: pd.Series,
    window: int = 60,
    min_periods: Optional[int] = None,
) -> pd.Series:
    """
    Rolling percentile rank of the latest value within its window.
    롤링 백분위

    Args:
        series: Input time series
        window: Window size in observations
        min_periods: Minimum periods required (default: half the window)

    Returns:
        Percentile rank (0-100)
    """
    if min_periods is None:
        min_periods = max(1, window // 2)

    def rank_last(x):
        if np.isnan(x[-1]) or np.count_nonzero(~np.isnan(x)) < min_periods:
            return np.nan
        return percentile_rank(x, x[-1])

    return series.rolling(window=window, min_periods=min_periods).apply(rank_last, raw=True)
