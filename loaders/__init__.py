# Loaders package: data sources returning ordered (date, value) series
from .base import DataLoader, DataSchema
from .csv_loader import CSVLoader
from .sample_data import (
    SampleDataLoader,
    generate_sample_data,
    generate_correlation_series,
    generate_sample_maturities,
)
from .retry import ExponentialBackoff, RetriesExhausted, fetch_with_retry

__all__ = [
    'DataLoader',
    'DataSchema',
    'CSVLoader',
    'SampleDataLoader',
    'generate_sample_data',
    'generate_correlation_series',
    'generate_sample_maturities',
    # Retry utilities
    'ExponentialBackoff',
    'RetriesExhausted',
    'fetch_with_retry',
]
