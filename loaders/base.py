"""
Abstract base class for data sources.
데이터 소스 추상 클래스

모든 원천 데이터(CSV, 샘플, 외부 API 어댑터)는 이 인터페이스를 구현합니다.
A source returns an ordered (date, value) frame and an empty frame, not
an error, when nothing exists for the requested range.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional
import logging

import pandas as pd

from indicators.transforms import RawObservation, to_date

logger = logging.getLogger(__name__)


@dataclass
class DataSchema:
    """
    Standard schema for all data.
    모든 데이터의 표준 스키마
    """
    date_column: str = 'date'
    value_column: str = 'value'
    indicator_column: str = 'indicator'


class DataLoader(ABC):
    """
    Abstract base class for all data sources.
    데이터 로더 추상 클래스
    """

    def __init__(self, schema: Optional[DataSchema] = None):
        self.schema = schema or DataSchema()

    @abstractmethod
    def load(
        self,
        series_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> pd.DataFrame:
        """
        Load observations for a single series.

        Args:
            series_id: Series identifier (e.g. 'M2SL') or file path
            start_date: Inclusive start (default: all history)
            end_date: Inclusive end (default: all history)

        Returns:
            DataFrame with columns: date, value, indicator
        """
        pass

    def load_observations(
        self,
        series_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[RawObservation]:
        """Load a series as ordered RawObservation records."""
        return self.to_observations(self.load(series_id, start_date, end_date))

    def load_multiple(
        self,
        series_ids: Dict[str, str],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, List[RawObservation]]:
        """
        Load several series keyed by entity.

        A failing series is logged and returned as an empty list so the
        other entities still load.
        """
        results: Dict[str, List[RawObservation]] = {}
        for entity, series_id in series_ids.items():
            try:
                results[entity] = self.load_observations(series_id, start_date, end_date)
            except Exception as e:
                logger.warning(f"Failed to load {series_id} for {entity}: {e}")
                results[entity] = []
        return results

    @staticmethod
    def to_observations(df: pd.DataFrame) -> List[RawObservation]:
        """Frame in the standard schema -> RawObservation list (sorted, unique dates)."""
        if df is None or df.empty:
            return []
        frame = df[['date', 'value']].dropna(subset=['value'])
        frame = frame.assign(date=pd.to_datetime(frame['date']))
        frame = frame.drop_duplicates(subset='date', keep='last').sort_values('date')
        return [
            RawObservation(date=to_date(d), value=float(v))
            for d, v in zip(frame['date'], frame['value'])
        ]

    @staticmethod
    def empty_frame() -> pd.DataFrame:
        return pd.DataFrame({
            'date': pd.Series(dtype='datetime64[ns]'),
            'value': pd.Series(dtype=float),
            'indicator': pd.Series(dtype=object),
        })

    @staticmethod
    def validate_dataframe(df: pd.DataFrame, schema: DataSchema) -> bool:
        """
        Validate DataFrame against schema.

        Returns:
            True if valid, raises ValueError if not
        """
        required_cols = [schema.date_column, schema.value_column, schema.indicator_column]
        missing = [col for col in required_cols if col not in df.columns]

        if missing:
            raise ValueError(f"Missing required columns: {missing}")

        if not pd.api.types.is_datetime64_any_dtype(df[schema.date_column]):
            try:
                pd.to_datetime(df[schema.date_column])
            except (ValueError, TypeError):
                raise ValueError(f"Column {schema.date_column} cannot be converted to datetime")

        if not pd.api.types.is_numeric_dtype(df[schema.value_column]):
            raise ValueError(f"Column {schema.value_column} must be numeric")

        return True

    @staticmethod
    def standardize_output(
        df: pd.DataFrame,
        indicator_name: str,
        date_col: str = 'date',
        value_col: str = 'value',
    ) -> pd.DataFrame:
        """
        Standardize output to match expected schema.

        Args:
            df: Input DataFrame (may have various column names)
            indicator_name: Name to assign to indicator column
            date_col: Name of date column in input
            value_col: Name of value column in input

        Returns:
            Standardized DataFrame with columns: date, value, indicator,
            ascending by date with one row per date
        """
        result = pd.DataFrame({
            'date': pd.to_datetime(df[date_col]),
            'value': pd.to_numeric(df[value_col], errors='coerce').astype(float),
            'indicator': indicator_name,
        })
        result = result.dropna(subset=['value'])
        result = result.drop_duplicates(subset='date', keep='last')
        return result.sort_values('date').reset_index(drop=True)

    @staticmethod
    def filter_dates(
        df: pd.DataFrame,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> pd.DataFrame:
        if start_date is not None:
            df = df[df['date'] >= pd.Timestamp(start_date)]
        if end_date is not None:
            df = df[df['date'] <= pd.Timestamp(end_date)]
        return df.reset_index(drop=True)
