"""
Global weighted composite.
글로벌 가중 합성 지표

Per date:
- total_value: unweighted sum of every reporting entity's value
- weighted_roc: Σ(roc6m × w) / Σw over entities that have a roc6m,
  so entities without data that month do not dilute the composite
"""
from dataclasses import dataclass, asdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .derived_metrics import DerivedPoint


@dataclass(frozen=True)
class CompositePoint:
    """Global composite value for one date."""
    date: date
    total_value: float
    weighted_roc: Optional[float]
    contributors: int  # Entities that carried weight in weighted_roc

    def to_dict(self) -> dict:
        return asdict(self)


def _weighted_roc(points: Iterable[DerivedPoint], weights: Mapping[str, float]):
    weighted = 0.0
    total_weight = 0.0
    contributors = 0
    for point in points:
        if point.roc6m is None:
            continue
        weight = weights.get(point.entity, 0.0)
        if weight <= 0:
            continue
        weighted += point.roc6m * weight
        total_weight += weight
        contributors += 1

    if total_weight == 0:
        return None, 0
    return weighted / total_weight, contributors


def aggregate_global_composite(
    points_by_entity: Mapping[str, List[DerivedPoint]],
    weights: Mapping[str, float],
) -> List[CompositePoint]:
    """
    Combine per-entity derived points into one composite point per date.

    Args:
        points_by_entity: Entity -> DerivedPoint sequence
        weights: Entity -> weight (need not sum to 1; missing entity = 0)

    Returns:
        CompositePoints sorted ascending by date. weighted_roc is None on
        dates where no weighted entity reports a roc6m.
    """
    by_date: Dict[date, List[DerivedPoint]] = {}
    for entity, points in points_by_entity.items():
        for point in points:
            # Entity key of the mapping wins over the point's own label
            if point.entity != entity:
                point = DerivedPoint(entity, point.date, point.value,
                                     point.roc6m, point.yoy_change, point.zscore)
            by_date.setdefault(point.date, []).append(point)

    results = []
    for day in sorted(by_date):
        day_points = by_date[day]
        weighted_roc, contributors = _weighted_roc(day_points, weights)
        results.append(CompositePoint(
            date=day,
            total_value=float(sum(p.value for p in day_points)),
            weighted_roc=weighted_roc,
            contributors=contributors,
        ))

    return results


def weighted_latest_roc(
    latest_by_entity: Mapping[str, Optional[DerivedPoint]],
    weights: Mapping[str, float],
) -> Optional[float]:
    """
    Composite RoC from the latest point of each entity.

    This is the value compared against thresholds on every refresh; the
    entities' latest dates may differ.
    """
    points = [p for p in latest_by_entity.values() if p is not None]
    value, _ = _weighted_roc(points, weights)
    return value


def composite_to_frame(points: List[CompositePoint]) -> pd.DataFrame:
    """Composite points as a date-indexed DataFrame."""
    if not points:
        return pd.DataFrame(columns=['total_value', 'weighted_roc', 'contributors'])
    df = pd.DataFrame([p.to_dict() for p in points])
    df['date'] = pd.to_datetime(df['date'])
    df['weighted_roc'] = df['weighted_roc'].astype(float)
    return df.set_index('date')
