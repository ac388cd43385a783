"""
Credit impulse calculator.
신용 임펄스 계산

Credit impulse = change in the credit stock over GDP of the same quarter.
Credit and GDP come from independent sources; they are aligned by
calendar (year, quarter) and credit points without a GDP quarter are
dropped (or raise, in strict mode).
"""
from dataclasses import dataclass, asdict
from datetime import date
from typing import Dict, List, Optional, Tuple
import logging

import pandas as pd

from .errors import DegenerateDenominatorError, UnmatchedQuarterError
from .transforms import ObservationsLike, to_date, to_series

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreditImpulsePoint:
    """Credit impulse for one quarter; keyed by (entity, quarter)."""
    entity: str
    quarter: date
    new_credit: float    # Credit stock delta vs. the previous observation
    credit_level: float  # Credit stock at this observation
    gdp: float
    impulse: float

    @property
    def key(self):
        return (self.entity, self.quarter)

    def to_dict(self) -> dict:
        return asdict(self)


def quarter_key(value) -> Tuple[int, int]:
    """(year, zero-based quarter index) of a date."""
    d = to_date(value)
    return d.year, (d.month - 1) // 3


def quarter_start(value) -> date:
    """First day of the calendar quarter containing the date."""
    year, q = quarter_key(value)
    return date(year, q * 3 + 1, 1)


def calculate_credit_impulse(
    credit: ObservationsLike,
    gdp: ObservationsLike,
    entity: str = 'US',
    strict: bool = False,
) -> List[CreditImpulsePoint]:
    """
    Calculate credit impulse from credit stock and quarterly GDP.
    신용 임펄스 = 신규 신용 / 동분기 GDP

    Args:
        credit: Credit stock observations (quarterly or higher frequency)
        gdp: Quarterly GDP observations
        entity: Entity key for the emitted points
        strict: Raise instead of dropping unmatched quarters / zero GDP

    Returns:
        One point per credit observation (from the second on) whose
        quarter has a GDP observation, ordered by date.

    Raises:
        UnmatchedQuarterError: strict mode, credit quarter has no GDP
        DegenerateDenominatorError: strict mode, matched GDP is 0
    """
    credit_series = to_series(credit)
    gdp_series = to_series(gdp)

    # First GDP observation wins within a quarter
    gdp_by_quarter: Dict[Tuple[int, int], float] = {}
    for idx, value in gdp_series.items():
        gdp_by_quarter.setdefault(quarter_key(idx), float(value))

    results = []
    dates = list(credit_series.index)
    values = credit_series.tolist()

    for i in range(1, len(values)):
        current_date = to_date(dates[i])
        matched = gdp_by_quarter.get(quarter_key(current_date))

        if matched is None:
            if strict:
                raise UnmatchedQuarterError(current_date)
            logger.debug(f"[{entity}] No GDP quarter for credit point {current_date}, skipped")
            continue

        new_credit = values[i] - values[i - 1]
        if matched == 0:
            if strict:
                raise DegenerateDenominatorError('credit impulse', current_date)
            logger.warning(f"[{entity}] Zero GDP for {current_date}, impulse set to 0")
            impulse = 0.0
        else:
            impulse = new_credit / matched

        results.append(CreditImpulsePoint(
            entity=entity,
            quarter=current_date,
            new_credit=new_credit,
            credit_level=values[i],
            gdp=matched,
            impulse=impulse,
        ))

    return results


def credit_impulse_to_frame(points: List[CreditImpulsePoint]) -> pd.DataFrame:
    """Convert points to a DataFrame ordered by entity, quarter."""
    columns = ['entity', 'quarter', 'new_credit', 'credit_level', 'gdp', 'impulse']
    if not points:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame([p.to_dict() for p in points], columns=columns)
    df['quarter'] = pd.to_datetime(df['quarter'])
    return df.sort_values(['entity', 'quarter']).reset_index(drop=True)


def blend_credit_impulse(
    latest_by_entity: Dict[str, float],
    weights: Dict[str, float],
) -> Optional[float]:
    """
    Headline impulse as a weighted blend of the latest entity impulses.

    Weights renormalize over the entities that have a value, so a single
    available entity is returned unchanged. None when nothing is available.
    """
    total = 0.0
    total_weight = 0.0
    for entity, weight in weights.items():
        value = latest_by_entity.get(entity)
        if value is None or weight <= 0:
            continue
        total += value * weight
        total_weight += weight

    if total_weight == 0:
        return None
    return total / total_weight
