# Storage package: keyed tables for derived metrics, alerts and thresholds
from .store import KeyedTable, MetricStore, FetchLogEntry

__all__ = [
    'KeyedTable',
    'MetricStore',
    'FetchLogEntry',
]
