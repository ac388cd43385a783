"""Unit tests for credit impulse calculator."""
import pytest
import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from indicators.transforms import RawObservation
from indicators.errors import UnmatchedQuarterError, DegenerateDenominatorError
from indicators.credit_impulse import (
    calculate_credit_impulse, blend_credit_impulse, credit_impulse_to_frame,
    quarter_key, quarter_start,
)


@pytest.fixture
def credit():
    return [
        RawObservation(date(2023, 1, 1), 100.0),
        RawObservation(date(2023, 4, 1), 150.0),
        RawObservation(date(2023, 7, 1), 130.0),
    ]


@pytest.fixture
def gdp():
    return [
        RawObservation(date(2023, 1, 1), 1000.0),
        RawObservation(date(2023, 4, 1), 1000.0),
        RawObservation(date(2023, 7, 1), 1000.0),
    ]


def test_quarter_key():
    assert quarter_key(date(2023, 1, 31)) == (2023, 0)
    assert quarter_key(date(2023, 3, 31)) == (2023, 0)
    assert quarter_key(date(2023, 4, 1)) == (2023, 1)
    assert quarter_key('2023-12-15') == (2023, 3)
    assert quarter_start(date(2023, 8, 20)) == date(2023, 7, 1)


class TestCalculateCreditImpulse:

    def test_basic_impulse(self, credit, gdp):
        points = calculate_credit_impulse(credit, gdp, entity='US')
        assert [p.impulse for p in points] == pytest.approx([0.05, -0.02])
        assert [p.new_credit for p in points] == pytest.approx([50.0, -20.0])
        assert [p.credit_level for p in points] == [150.0, 130.0]
        assert points[0].quarter == date(2023, 4, 1)
        assert all(p.entity == 'US' for p in points)

    def test_first_observation_has_no_point(self, credit, gdp):
        points = calculate_credit_impulse(credit[:1], gdp)
        assert points == []

    def test_unmatched_quarter_is_dropped(self, credit, gdp):
        points = calculate_credit_impulse(credit, gdp[:2])
        assert len(points) == 1
        assert points[0].quarter == date(2023, 4, 1)

    def test_unmatched_quarter_strict(self, credit, gdp):
        with pytest.raises(UnmatchedQuarterError):
            calculate_credit_impulse(credit, gdp[:2], strict=True)

    def test_monthly_credit_matches_quarter(self, gdp):
        monthly = [
            RawObservation(date(2023, 4, 1), 100.0),
            RawObservation(date(2023, 5, 1), 110.0),
            RawObservation(date(2023, 6, 1), 120.0),
        ]
        points = calculate_credit_impulse(monthly, gdp)
        assert len(points) == 2
        assert all(p.gdp == 1000.0 for p in points)

    def test_first_gdp_in_quarter_wins(self, credit):
        gdp = [
            RawObservation(date(2023, 4, 1), 1000.0),
            RawObservation(date(2023, 5, 1), 2000.0),
        ]
        points = calculate_credit_impulse(credit[:2], gdp)
        assert points[0].gdp == 1000.0

    def test_zero_gdp_lenient(self, credit):
        gdp = [RawObservation(date(2023, 4, 1), 0.0)]
        points = calculate_credit_impulse(credit[:2], gdp)
        assert points[0].impulse == 0.0

    def test_zero_gdp_strict(self, credit):
        gdp = [RawObservation(date(2023, 4, 1), 0.0)]
        with pytest.raises(DegenerateDenominatorError):
            calculate_credit_impulse(credit[:2], gdp, strict=True)

    def test_frame(self, credit, gdp):
        df = credit_impulse_to_frame(calculate_credit_impulse(credit, gdp))
        assert len(df) == 2
        assert df['impulse'].tolist() == pytest.approx([0.05, -0.02])
        assert credit_impulse_to_frame([]).empty


class TestBlend:

    def test_weighted_blend(self):
        value = blend_credit_impulse({'CN': 0.02, 'US': -0.01}, {'CN': 0.6, 'US': 0.4})
        assert value == pytest.approx(0.6 * 0.02 + 0.4 * -0.01)

    def test_renormalizes_missing_entity(self):
        value = blend_credit_impulse({'US': 0.03}, {'CN': 0.6, 'US': 0.4})
        assert value == pytest.approx(0.03)

    def test_nothing_available(self):
        assert blend_credit_impulse({}, {'CN': 0.6, 'US': 0.4}) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
