"""Unit tests for debt maturity aggregation."""
import pytest
import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Sector
from indicators.maturities import (
    DebtMaturity, filter_maturities, quarter_label, quarterly_maturities,
    next_12_month_total, upcoming_quarter_total,
)
from loaders.sample_data import generate_sample_maturities

AS_OF = date(2025, 1, 15)


@pytest.fixture
def maturities():
    return [
        DebtMaturity('US Treasury', 300.0, date(2025, 2, 15), Sector.SOVEREIGN, geography='US'),
        DebtMaturity('Apple', 120.0, date(2025, 3, 1), Sector.IG_CORP, rating='AA+', geography='US'),
        DebtMaturity('Carnival', 100.0, date(2025, 3, 20), Sector.HY_CORP, rating='BB', geography='US'),
        DebtMaturity('Japan JGB', 200.0, date(2025, 5, 1), Sector.SOVEREIGN, geography='JP'),
        DebtMaturity('Old Bond', 999.0, date(2024, 12, 31), Sector.IG_CORP, geography='US'),
        DebtMaturity('Far Bond', 50.0, date(2026, 6, 1), Sector.HY_CORP, geography='EU'),
    ]


def test_quarter_label():
    assert quarter_label(date(2025, 3, 31)) == 'Q1 2025'
    assert quarter_label(date(2025, 10, 1)) == 'Q4 2025'


def test_quarterly_maturities(maturities):
    df = quarterly_maturities(maturities, AS_OF)
    assert list(df.columns) == ['quarter', 'quarter_start', 'sovereign', 'ig_corp', 'hy_corp', 'total']
    assert df['quarter'].tolist() == ['Q1 2025', 'Q2 2025', 'Q2 2026']
    first = df.iloc[0]
    assert first['sovereign'] == pytest.approx(300.0)
    assert first['ig_corp'] == pytest.approx(120.0)
    assert first['hy_corp'] == pytest.approx(100.0)
    assert first['total'] == pytest.approx(520.0)


def test_quarterly_maturities_empty():
    assert quarterly_maturities([], AS_OF).empty


def test_upcoming_quarter_total(maturities):
    assert upcoming_quarter_total(maturities, AS_OF) == ('Q1 2025', pytest.approx(520.0))
    assert upcoming_quarter_total([], AS_OF) is None


def test_next_12_month_total(maturities):
    assert next_12_month_total(maturities, AS_OF) == pytest.approx(720.0)


def test_filter_maturities(maturities):
    us = filter_maturities(maturities, geography='US', start_date=AS_OF)
    assert [m.issuer for m in us] == ['US Treasury', 'Apple', 'Carnival']
    hy = filter_maturities(maturities, sector=Sector.HY_CORP)
    assert {m.issuer for m in hy} == {'Carnival', 'Far Bond'}


def test_sample_maturities_cover_all_sectors():
    sample = generate_sample_maturities(as_of=AS_OF, n_quarters=4)
    assert all(m.maturity_date >= AS_OF for m in sample)
    df = quarterly_maturities(sample, AS_OF)
    assert (df['total'] > 0).all()
    assert {Sector.SOVEREIGN, Sector.IG_CORP, Sector.HY_CORP} == {m.sector for m in sample}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
