"""
CSV file loader.
CSV 파일 로더

외부에서 내려받은 시계열 파일을 표준 스키마로 매핑
"""
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
import io

import pandas as pd

from .base import DataLoader, DataSchema


class CSVLoader(DataLoader):
    """
    CSV file loader with automatic column detection.

    `series_id` is a file path, or a name registered with `register`.
    """

    # Recognised names, matched case-insensitively
    DATE_COLUMNS = ('date', 'observation_date', 'datetime', 'timestamp', 'quarter')
    VALUE_COLUMNS = ('value', 'close', 'level')

    def __init__(self, schema: Optional[DataSchema] = None, base_dir: Optional[str] = None):
        super().__init__(schema)
        self.base_dir = Path(base_dir) if base_dir else None
        self._registered: Dict[str, pd.DataFrame] = {}

    def register(self, series_id: str, df: pd.DataFrame) -> None:
        """Serve an in-memory frame under a series id."""
        self._registered[series_id] = df.copy()

    def load(
        self,
        series_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> pd.DataFrame:
        """
        Load a series from a registered frame or a CSV file.

        Returns:
            DataFrame with columns: date, value, indicator (empty when the
            registered frame or file has no rows in range)
        """
        if series_id in self._registered:
            return self.load_from_dataframe(
                self._registered[series_id], series_id,
                start_date=start_date, end_date=end_date,
            )
        return self.load_from_path(series_id, start_date, end_date)

    def _resolve(self, file_path: str) -> Path:
        path = Path(file_path)
        if not path.suffix:
            path = path.with_suffix('.csv')
        if self.base_dir is not None and not path.is_absolute():
            path = self.base_dir / path
        return path

    def load_from_path(
        self,
        file_path: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        indicator_name: Optional[str] = None,
    ) -> pd.DataFrame:
        """
        Load data from a CSV file path.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = self._resolve(file_path)
        df = pd.read_csv(path)

        if indicator_name is None:
            indicator_name = path.stem

        return self._process_dataframe(df, indicator_name, start_date, end_date)

    def load_from_text(
        self,
        content: str,
        indicator_name: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> pd.DataFrame:
        """Load data from CSV text."""
        df = pd.read_csv(io.StringIO(content))
        return self._process_dataframe(df, indicator_name, start_date, end_date)

    def load_from_dataframe(
        self,
        df: pd.DataFrame,
        indicator_name: str,
        date_col: Optional[str] = None,
        value_col: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> pd.DataFrame:
        """Convert an arbitrary DataFrame to standard schema."""
        return self._process_dataframe(
            df.copy(), indicator_name, start_date, end_date,
            date_col=date_col, value_col=value_col,
        )

    def _match_name(self, df: pd.DataFrame, candidates: Sequence[str]) -> Optional[str]:
        lowered = {str(col).lower(): col for col in df.columns}
        for name in candidates:
            if name in lowered:
                return lowered[name]
        return None

    def _detect_date_column(self, df: pd.DataFrame) -> str:
        """Named date column first, else the first text column that parses as dates."""
        col = self._match_name(df, self.DATE_COLUMNS)
        if col is not None:
            return col

        text_cols = [c for c in df.columns if not pd.api.types.is_numeric_dtype(df[c])]
        for col in text_cols:
            parsed = pd.to_datetime(df[col].head(10), errors='coerce')
            if parsed.notna().all():
                return col

        raise ValueError("No date column found; pass date_col explicitly")

    def _detect_value_column(self, df: pd.DataFrame, exclude: Optional[str] = None) -> str:
        """Named value column first, else the first numeric column."""
        col = self._match_name(df, self.VALUE_COLUMNS)
        if col is not None:
            return col

        numeric = [c for c in df.select_dtypes(include='number').columns if c != exclude]
        if not numeric:
            raise ValueError("No numeric value column found; pass value_col explicitly")
        return numeric[0]

    def _process_dataframe(
        self,
        df: pd.DataFrame,
        indicator_name: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        date_col: Optional[str] = None,
        value_col: Optional[str] = None,
    ) -> pd.DataFrame:
        if df.empty:
            return self.empty_frame()

        date_col = date_col or self._detect_date_column(df)
        value_col = value_col or self._detect_value_column(df, exclude=date_col)

        standardized = self.standardize_output(df, indicator_name, date_col, value_col)
        return self.filter_dates(standardized, start_date, end_date)

    def validate_file(self, df: pd.DataFrame) -> Dict[str, Any]:
        """
        Dry-run column detection on a frame.

        Returns:
            Dict: valid, errors, warnings, detected_date_col,
            detected_value_col, row_count
        """
        errors: List[str] = []
        warnings: List[str] = []
        detected = {}

        for key, detect in (('detected_date_col', self._detect_date_column),
                            ('detected_value_col', self._detect_value_column)):
            try:
                detected[key] = detect(df)
            except ValueError as e:
                detected[key] = None
                errors.append(str(e))

        date_col = detected['detected_date_col']
        if date_col is not None and len(df):
            dupes = int(df[date_col].duplicated().sum())
            if dupes:
                warnings.append(f"{dupes} duplicate dates (last value kept)")

        return {
            'valid': not errors,
            'errors': errors,
            'warnings': warnings,
            'row_count': len(df),
            **detected,
        }
