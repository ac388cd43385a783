"""
Derived metric builder for money-supply series.
통화량 시계열 파생 지표 계산

For one entity (e.g. one country's M2) builds, per observation:
1. roc6m: 6-period rate of change (null for the first 6 points)
2. yoy_change: 12-period rate of change (null for the first 12 points)
3. zscore: roc6m standardized against the mean/std of *all* RoC values
   in the series (global-to-date baseline, not a rolling window)

Null fields mean "insufficient history"; they are never errors.
"""
from dataclasses import dataclass, asdict
from datetime import date
from typing import List, Optional

import pandas as pd

from .transforms import (
    ObservationsLike,
    calc_percentile,
    calc_roc,
    mean,
    std_dev,
    to_date,
    to_series,
    z_score,
)


@dataclass(frozen=True)
class DerivedPoint:
    """One enriched observation; keyed by (entity, date)."""
    entity: str
    date: date
    value: float
    roc6m: Optional[float]
    yoy_change: Optional[float]
    zscore: Optional[float]

    @property
    def key(self):
        return (self.entity, self.date)

    def to_dict(self) -> dict:
        return asdict(self)


def _nullable(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def build_derived_points(
    observations: ObservationsLike,
    entity: str,
    roc_periods: int = 6,
    yoy_periods: int = 12,
) -> List[DerivedPoint]:
    """
    Build the full DerivedPoint sequence for one entity.
    개체별 파생 지표 전체 재계산

    Args:
        observations: Raw observations, assumed evenly spaced (monthly)
        entity: Entity key (country code)
        roc_periods: Look-back for the RoC (default 6 months)
        yoy_periods: Look-back for the YoY change (default 12 months)

    Returns:
        DerivedPoint list ordered by date, one per input date.
        Empty input gives an empty list.
    """
    series = to_series(observations)
    if series.empty:
        return []

    roc = calc_roc(series, periods=roc_periods)
    yoy = calc_roc(series, periods=yoy_periods)

    # Normalization baseline over the whole history
    rocs = roc.iloc[roc_periods:].tolist()
    roc_mean = mean(rocs)
    roc_std = std_dev(rocs)

    points = []
    for i, (idx, value) in enumerate(series.items()):
        roc6m = _nullable(roc.iloc[i]) if i >= roc_periods else None
        yoy_change = _nullable(yoy.iloc[i]) if i >= yoy_periods else None

        zscore = None
        if roc6m is not None and roc_std > 0:
            zscore = z_score(roc6m, roc_mean, roc_std)

        points.append(DerivedPoint(
            entity=entity,
            date=to_date(idx),
            value=float(value),
            roc6m=roc6m,
            yoy_change=yoy_change,
            zscore=zscore,
        ))

    return points


def derived_points_to_frame(points: List[DerivedPoint]) -> pd.DataFrame:
    """
    Convert DerivedPoints to a DataFrame (nulls become NaN).

    Columns: entity, date, value, roc6m, yoy_change, zscore
    """
    columns = ['entity', 'date', 'value', 'roc6m', 'yoy_change', 'zscore']
    if not points:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([p.to_dict() for p in points], columns=columns)
    df['date'] = pd.to_datetime(df['date'])
    for col in ('roc6m', 'yoy_change', 'zscore'):
        df[col] = df[col].astype(float)
    return df.sort_values(['entity', 'date']).reset_index(drop=True)


def latest_point(points: List[DerivedPoint]) -> Optional[DerivedPoint]:
    """Most recent point of a sequence, or None when empty."""
    if not points:
        return None
    return max(points, key=lambda p: p.date)


def summarize_entity(points: List[DerivedPoint]) -> dict:
    """
    Latest values for one entity, for dashboard cards.

    Returns:
        Dict with latest date/value/roc6m/yoy_change/zscore
        plus where the latest RoC ranks among all RoC values (0-100)
        and the number of points with a valid RoC.
    """
    latest = latest_point(points)
    valid_roc = sum(1 for p in points if p.roc6m is not None)
    if latest is None:
        return {
            'date': None,
            'value': None,
            'roc6m': None,
            'yoy_change': None,
            'zscore': None,
            'roc6m_percentile': None,
            'valid_roc_points': 0,
        }

    # Window spans the whole history: rank of the latest RoC among all of them
    roc = derived_points_to_frame(points)['roc6m'].astype(float)
    roc_ranks = calc_percentile(roc, window=len(roc), min_periods=1)
    return {
        'date': latest.date,
        'value': latest.value,
        'roc6m': latest.roc6m,
        'yoy_change': latest.yoy_change,
        'zscore': latest.zscore,
        'roc6m_percentile': _nullable(roc_ranks.iloc[-1]),
        'valid_roc_points': valid_roc,
    }
