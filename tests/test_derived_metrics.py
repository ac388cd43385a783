"""Unit tests for derived metric builder."""
import pytest
import pandas as pd
import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from indicators.transforms import RawObservation
from indicators.derived_metrics import (
    build_derived_points, derived_points_to_frame, latest_point, summarize_entity,
)


def monthly(values, start='2023-01-01'):
    dates = pd.date_range(start, periods=len(values), freq='MS')
    return [RawObservation(d.date(), float(v)) for d, v in zip(dates, values)]


@pytest.fixture
def us_series():
    # 7th value is 5% above the 1st
    values = [100, 101, 102, 103, 104, 104.5, 105, 106, 107, 108, 109, 110, 111]
    return monthly(values)


class TestBuildDerivedPoints:

    def test_one_point_per_observation(self, us_series):
        points = build_derived_points(us_series, 'US')
        assert len(points) == 13
        assert all(p.entity == 'US' for p in points)
        assert [p.date for p in points] == sorted(p.date for p in points)

    def test_roc_history_boundary(self, us_series):
        points = build_derived_points(us_series, 'US')
        assert all(p.roc6m is None for p in points[:6])
        assert points[6].roc6m == pytest.approx(5.0)
        assert all(p.roc6m is not None for p in points[6:])

    def test_yoy_history_boundary(self, us_series):
        points = build_derived_points(us_series, 'US')
        assert all(p.yoy_change is None for p in points[:12])
        assert points[12].yoy_change == pytest.approx(11.0)

    def test_zscore_uses_global_baseline(self, us_series):
        points = build_derived_points(us_series, 'US')
        zscores = [p.zscore for p in points if p.zscore is not None]
        assert len(zscores) == 7
        # Standardized against the same mean/std: sums to zero
        assert sum(zscores) == pytest.approx(0.0, abs=1e-9)

    def test_constant_roc_has_no_zscore(self):
        # Constant series: every RoC is 0, std 0
        points = build_derived_points(monthly([100] * 10), 'JP')
        assert points[6].roc6m == 0.0
        assert all(p.zscore is None for p in points)

    def test_empty_input(self):
        assert build_derived_points([], 'US') == []

    @pytest.mark.parametrize('length', [0, 1, 5, 6, 11, 12])
    def test_short_history_boundaries(self, length):
        points = build_derived_points(monthly([100 + i for i in range(length)]), 'US')
        assert len(points) == length
        assert all(p.roc6m is None for p in points[:6])
        assert all(p.roc6m is not None for p in points[6:])
        # Twelve observations are one short of a YoY pair
        assert all(p.yoy_change is None for p in points)

    def test_unsorted_input_is_ordered(self, us_series):
        points = build_derived_points(list(reversed(us_series)), 'US')
        assert points[0].date == date(2023, 1, 1)
        assert points[6].roc6m == pytest.approx(5.0)


def test_frame_and_latest(us_series):
    points = build_derived_points(us_series, 'US')
    df = derived_points_to_frame(points)
    assert list(df.columns) == ['entity', 'date', 'value', 'roc6m', 'yoy_change', 'zscore']
    assert df['roc6m'].isna().sum() == 6
    assert latest_point(points).date == date(2024, 1, 1)
    assert latest_point([]) is None


def test_summarize_entity(us_series):
    summary = summarize_entity(build_derived_points(us_series, 'US'))
    assert summary['valid_roc_points'] == 7
    assert summary['date'] == date(2024, 1, 1)
    assert 0 <= summary['roc6m_percentile'] <= 100

    # Accelerating growth: latest RoC is the highest seen
    accelerating = build_derived_points(monthly([100 + i * i for i in range(13)]), 'CN')
    assert summarize_entity(accelerating)['roc6m_percentile'] == pytest.approx(100.0)

    short = summarize_entity(build_derived_points(monthly([100, 101, 102]), 'CN'))
    assert short['roc6m_percentile'] is None

    empty = summarize_entity([])
    assert empty['value'] is None
    assert empty['valid_roc_points'] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
