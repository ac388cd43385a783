"""
Sample data generator for offline runs.
오프라인 실행용 샘플 데이터 생성기

네트워크 없이도 전체 파이프라인이 동작하도록 합성 데이터 생성
"""
from datetime import date, timedelta
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from config import CREDIT_SERIES, GDP_SERIES, M2_SERIES, Sector
from indicators.maturities import DebtMaturity
from .base import DataLoader, DataSchema


# Starting broad-money stock per country (trillions, local currency)
_M2_BASE: Dict[str, float] = {
    'US': 15.4,
    'CN': 198.0,
    'EU': 13.0,
    'JP': 1100.0,
    'UK': 2.9,
}


def generate_sample_data(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    seed: int = 42,
) -> Dict[str, pd.DataFrame]:
    """
    Generate synthetic monthly M2, quarterly bank credit and quarterly GDP.

    The data shows a realistic liquidity cycle:
    - Surge (2020-2021): broad money expands quickly
    - Contraction (2022-2023): growth stalls, RoC turns negative
    - Recovery: moderate re-acceleration

    Args:
        start_date: Start date (default: 2020-01-01)
        end_date: End date (default: today)
        seed: Random seed for reproducibility

    Returns:
        Dict mapping series id to DataFrame(date, value, indicator)
    """
    rng = np.random.RandomState(seed)

    if end_date is None:
        end_date = date.today()
    if start_date is None:
        start_date = date(2020, 1, 1)

    months = pd.date_range(start=start_date, end=end_date, freq='MS')
    quarters = pd.date_range(start=start_date, end=end_date, freq='QS')
    n_m = len(months)
    n_q = len(quarters)
    t_m = np.linspace(0, 1, n_m) if n_m else np.array([])
    t_q = np.linspace(0, 1, n_q) if n_q else np.array([])

    data: Dict[str, pd.DataFrame] = {}

    # M2 per country: fast expansion, plateau with a dip, slow recovery
    for country, series_id in M2_SERIES.items():
        base = _M2_BASE[country]
        growth = (
            0.25 * (1 - np.exp(-6 * t_m))
            - 0.04 * np.clip(t_m - 0.45, 0, 0.2) / 0.2
            + 0.06 * np.clip(t_m - 0.7, 0, None)
        )
        noise = rng.normal(0, 0.002, n_m).cumsum()
        data[series_id] = pd.DataFrame({
            'date': months,
            'value': base * (1 + growth + noise),
            'indicator': series_id,
        })

    # US bank credit (trillions USD): trend plus a credit cycle
    credit = 15.0 + 3.0 * t_q + 0.4 * np.sin(2 * np.pi * t_q * 1.5) + rng.normal(0, 0.03, n_q)
    data[CREDIT_SERIES['US']] = pd.DataFrame({
        'date': quarters,
        'value': credit,
        'indicator': CREDIT_SERIES['US'],
    })

    # US nominal GDP (trillions USD, annualized)
    gdp = 21.0 + 7.0 * t_q + rng.normal(0, 0.05, n_q)
    data[GDP_SERIES['US']] = pd.DataFrame({
        'date': quarters,
        'value': gdp,
        'indicator': GDP_SERIES['US'],
    })

    return data


def generate_correlation_series(n: int = 90, seed: int = 7) -> Dict[str, List[float]]:
    """
    Synthetic daily series for the correlation matrix.

    Risk assets partly follow the M2 RoC series with a short lead, the
    dollar moves against it.
    """
    rng = np.random.RandomState(seed)
    driver = np.cumsum(rng.normal(0, 0.3, n + 5)) + 3.0
    m2_roc = driver[5:]
    lagged = driver[:-5]

    return {
        'Global M2 RoC': m2_roc.tolist(),
        'Credit Impulse': (0.01 * m2_roc + rng.normal(0, 0.01, n)).tolist(),
        'BTC': (40000 + 4000 * lagged + rng.normal(0, 3000, n)).tolist(),
        'S&P 500': (4500 + 120 * lagged + rng.normal(0, 80, n)).tolist(),
        'Gold': (2000 + rng.normal(0, 40, n).cumsum()).tolist(),
        'DXY': (105 - 0.8 * m2_roc + rng.normal(0, 0.5, n)).tolist(),
    }


def generate_sample_maturities(
    as_of: Optional[date] = None,
    n_quarters: int = 8,
    seed: int = 11,
) -> List[DebtMaturity]:
    """
    Synthetic maturity schedule starting at as_of.

    One quarter in the middle is a deliberate "maturity wall".
    """
    rng = np.random.RandomState(seed)
    as_of = as_of or date.today()
    issuers = {
        Sector.SOVEREIGN: ['US Treasury', 'Japan JGB', 'Italy BTP', 'UK Gilt'],
        Sector.IG_CORP: ['Apple', 'Microsoft', 'JPMorgan', 'Toyota'],
        Sector.HY_CORP: ['Carnival', 'Ford Credit', 'Occidental'],
    }
    geographies = ['US', 'JP', 'EU', 'UK']
    ratings = {Sector.SOVEREIGN: 'AA+', Sector.IG_CORP: 'A', Sector.HY_CORP: 'BB'}

    maturities = []
    for q in range(n_quarters):
        wall = 2.0 if q == n_quarters // 2 else 1.0
        for sector, names in issuers.items():
            for name in names:
                offset = q * 91 + int(rng.randint(0, 85))
                amount = float(rng.uniform(10, 60)) * wall
                if sector == Sector.SOVEREIGN:
                    amount *= 2.5
                maturities.append(DebtMaturity(
                    issuer=name,
                    amount=round(amount, 1),
                    maturity_date=as_of + timedelta(days=offset),
                    sector=sector,
                    coupon=round(float(rng.uniform(1.0, 7.5)), 2),
                    rating=ratings[sector],
                    geography=geographies[int(rng.randint(0, len(geographies)))],
                ))

    return sorted(maturities, key=lambda m: m.maturity_date)


class SampleDataLoader(DataLoader):
    """
    Data source backed by generated sample data.
    샘플 데이터 로더
    """

    def __init__(
        self,
        schema: Optional[DataSchema] = None,
        seed: int = 42,
        end_date: Optional[date] = None,
    ):
        super().__init__(schema)
        self.seed = seed
        self.end_date = end_date
        self._sample_data: Optional[Dict[str, pd.DataFrame]] = None

    def _ensure_data_loaded(self) -> None:
        if self._sample_data is None:
            self._sample_data = generate_sample_data(end_date=self.end_date, seed=self.seed)

    def load(
        self,
        series_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> pd.DataFrame:
        """
        Load sample data for a series id.

        Raises:
            ValueError: If the series id is not part of the sample set
        """
        self._ensure_data_loaded()

        if series_id not in self._sample_data:
            raise ValueError(f"Sample data not available for: {series_id}")

        df = self._sample_data[series_id].copy()
        return self.filter_dates(df, start_date, end_date)

    def get_available_series(self) -> list:
        self._ensure_data_loaded()
        return list(self._sample_data.keys())
