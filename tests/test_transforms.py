"""Unit tests for transforms module."""
import math
import pytest
import pandas as pd
import numpy as np
import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from indicators.transforms import (
    RawObservation, mean, std_dev, rate_of_change, z_score,
    to_series, to_observations, calc_roc, calc_yoy,
    percentile_rank, calc_percentile,
)

@pytest.fixture
def sample_series():
    dates = pd.date_range('2020-01-01', periods=48, freq='MS')
    values = 100 + np.cumsum(np.random.RandomState(0).randn(48))
    return pd.Series(values, index=dates)

def test_mean_and_population_std():
    assert mean([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(5.0)
    assert std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

def test_empty_stats_are_zero():
    assert mean([]) == 0.0
    assert std_dev([]) == 0.0

def test_rate_of_change():
    assert rate_of_change(105, 100) == pytest.approx(5.0)
    assert rate_of_change(90, 100) == pytest.approx(-10.0)
    assert rate_of_change(5, 0) == 0.0

def test_z_score():
    assert z_score(7, 5, 2) == pytest.approx(1.0)
    assert z_score(7, 5, 0) == 0.0

def test_to_series_sorts_and_keeps_last_duplicate():
    obs = [
        RawObservation(date(2024, 3, 1), 3.0),
        RawObservation(date(2024, 1, 1), 1.0),
        RawObservation(date(2024, 3, 1), 30.0),
    ]
    series = to_series(obs)
    assert list(series.index) == [pd.Timestamp('2024-01-01'), pd.Timestamp('2024-03-01')]
    assert series.iloc[-1] == 30.0

def test_to_series_from_dicts_and_frame():
    rows = [{'date': '2024-01-01', 'value': 1}, {'date': '2024-02-01', 'value': 2}]
    from_dicts = to_series(rows)
    from_frame = to_series(pd.DataFrame(rows))
    assert from_dicts.tolist() == [1.0, 2.0]
    assert from_frame.tolist() == [1.0, 2.0]
    assert to_series([]).empty

def test_to_observations_drops_nan():
    series = pd.Series([1.0, np.nan, 3.0], index=pd.date_range('2024-01-01', periods=3, freq='MS'))
    obs = to_observations(series)
    assert [o.value for o in obs] == [1.0, 3.0]
    assert obs[0].date == date(2024, 1, 1)

def test_calc_roc(sample_series):
    result = calc_roc(sample_series, periods=6)
    assert len(result) == len(sample_series)
    assert result.iloc[:6].isna().all()
    expected = (sample_series.iloc[6] - sample_series.iloc[0]) / sample_series.iloc[0] * 100
    assert result.iloc[6] == pytest.approx(expected)

def test_calc_roc_zero_base():
    series = pd.Series([0.0, 1.0, 2.0], index=pd.date_range('2024-01-01', periods=3, freq='MS'))
    result = calc_roc(series, periods=1)
    assert result.iloc[1] == 0.0
    assert result.iloc[2] == pytest.approx(100.0)

def test_calc_yoy(sample_series):
    result = calc_yoy(sample_series)
    assert result.iloc[:12].isna().all()
    assert not result.iloc[12:].isna().any()

def test_percentile_rank():
    assert percentile_rank([1, 2, 3, 4], 4) == pytest.approx(100.0)
    assert math.isnan(percentile_rank([], 1.0))

def test_calc_percentile(sample_series):
    result = calc_percentile(sample_series, window=12)
    valid = result.dropna()
    assert len(valid) > 0
    assert valid.min() >= 0
    assert valid.max() <= 100

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
