"""
Debt maturity aggregation.
부채 만기 집계

Groups sovereign / IG / HY maturities by calendar quarter; the quarterly
total feeds the maturity-spike level watcher.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

import pandas as pd

from config import Sector
from .transforms import to_date


@dataclass(frozen=True)
class DebtMaturity:
    """Single bond maturity; amount in billions USD."""
    issuer: str
    amount: float
    maturity_date: date
    sector: Sector
    coupon: float = 0.0
    rating: str = ''
    geography: str = ''


def filter_maturities(
    maturities: Sequence[DebtMaturity],
    geography: Optional[str] = None,
    sector: Optional[Sector] = None,
    rating: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[DebtMaturity]:
    """Filter maturities (all bounds inclusive), ordered by maturity date."""
    result = []
    for m in maturities:
        if geography and m.geography != geography:
            continue
        if sector and m.sector != sector:
            continue
        if rating and m.rating != rating:
            continue
        if start_date and m.maturity_date < to_date(start_date):
            continue
        if end_date and m.maturity_date > to_date(end_date):
            continue
        result.append(m)
    return sorted(result, key=lambda m: m.maturity_date)


def quarter_label(value) -> str:
    """'Qn YYYY' label of the quarter containing the date."""
    d = to_date(value)
    return f"Q{(d.month - 1) // 3 + 1} {d.year}"


def quarterly_maturities(
    maturities: Sequence[DebtMaturity],
    as_of: Optional[date] = None,
) -> pd.DataFrame:
    """
    Aggregate maturities by calendar quarter.
    분기별 만기 집계

    Args:
        maturities: Maturity records
        as_of: Only maturities on or after this date (default: today)

    Returns:
        DataFrame with columns: quarter, quarter_start, sovereign,
        ig_corp, hy_corp, total; ascending by quarter
    """
    columns = ['quarter', 'quarter_start', 'sovereign', 'ig_corp', 'hy_corp', 'total']
    as_of = to_date(as_of) if as_of is not None else date.today()

    rows = [
        {
            'quarter_start': pd.Timestamp(m.maturity_date).to_period('Q').start_time,
            'sector': m.sector.value,
            'amount': float(m.amount),
        }
        for m in maturities
        if m.maturity_date >= as_of
    ]
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows)
    pivot = df.pivot_table(
        index='quarter_start',
        columns='sector',
        values='amount',
        aggfunc='sum',
        fill_value=0.0,
    )
    for sector in Sector:
        if sector.value not in pivot.columns:
            pivot[sector.value] = 0.0

    result = pd.DataFrame({
        'quarter_start': pivot.index,
        'sovereign': pivot[Sector.SOVEREIGN.value].values,
        'ig_corp': pivot[Sector.IG_CORP.value].values,
        'hy_corp': pivot[Sector.HY_CORP.value].values,
    })
    result['total'] = result[['sovereign', 'ig_corp', 'hy_corp']].sum(axis=1)
    result['quarter'] = result['quarter_start'].apply(quarter_label)
    return result.sort_values('quarter_start')[columns].reset_index(drop=True)


def next_12_month_total(
    maturities: Sequence[DebtMaturity],
    as_of: Optional[date] = None,
) -> float:
    """Total maturing between as_of and as_of + 12 months (inclusive)."""
    as_of = to_date(as_of) if as_of is not None else date.today()
    horizon = (pd.Timestamp(as_of) + pd.DateOffset(months=12)).date()
    return float(sum(
        m.amount for m in maturities
        if as_of <= m.maturity_date <= horizon
    ))


def upcoming_quarter_total(
    maturities: Sequence[DebtMaturity],
    as_of: Optional[date] = None,
):
    """
    (label, total) of the first quarter with maturities on or after as_of, or None.

    This is the value handed to the maturity-spike watcher.
    """
    table = quarterly_maturities(maturities, as_of)
    if table.empty:
        return None
    first = table.iloc[0]
    return first['quarter'], float(first['total'])
