"""
In-memory metric store.
메트릭 저장소

Insert-or-replace tables keyed by (entity, date), the append-only alert
log, per-user thresholds and the last-known composite values that the
watchers compare against on the next refresh.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Dict, Generic, Hashable, Iterable, List, Optional, TypeVar
import itertools
import logging
import threading

from config import DEFAULT_THRESHOLDS, AlertThresholds
from indicators.alerts import Alert
from indicators.credit_impulse import CreditImpulsePoint
from indicators.derived_metrics import DerivedPoint

logger = logging.getLogger(__name__)

T = TypeVar('T')


class KeyedTable(Generic[T]):
    """
    Insert-or-replace table keyed by a composite key.

    Iteration is ordered by key, so (entity, date) keys come back grouped
    by entity and ascending by date.
    """

    def __init__(self, key_func: Callable[[T], Hashable]):
        self._key_func = key_func
        self._rows: Dict[Hashable, T] = {}
        self._lock = threading.RLock()

    def upsert(self, row: T) -> None:
        with self._lock:
            self._rows[self._key_func(row)] = row

    def upsert_many(self, rows: Iterable[T]) -> int:
        count = 0
        with self._lock:
            for row in rows:
                self._rows[self._key_func(row)] = row
                count += 1
        return count

    def get(self, key: Hashable) -> Optional[T]:
        with self._lock:
            return self._rows.get(key)

    def delete_where(self, predicate: Callable[[T], bool]) -> int:
        with self._lock:
            doomed = [k for k, v in self._rows.items() if predicate(v)]
            for k in doomed:
                del self._rows[k]
            return len(doomed)

    def rows(self) -> List[T]:
        with self._lock:
            return [self._rows[k] for k in sorted(self._rows)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


@dataclass
class FetchLogEntry:
    """Outcome of one data-source fetch during a refresh."""
    source: str
    series_id: Optional[str]
    status: str  # 'success', 'skipped', 'error'
    records_fetched: Optional[int] = None
    error_message: Optional[str] = None
    fetched_at: datetime = field(default_factory=datetime.now)


class MetricStore:
    """
    Thread-safe store for everything the refresh cycle persists.

    Derived points and credit impulse points replace by (entity, date);
    alerts are only appended and toggled read/unread.
    """

    def __init__(self, default_thresholds: Optional[AlertThresholds] = None):
        self._lock = threading.RLock()
        self.derived = KeyedTable[DerivedPoint](lambda p: p.key)
        self.credit_impulse = KeyedTable[CreditImpulsePoint](lambda p: p.key)
        self._alerts: List[Alert] = []
        self._alert_ids = itertools.count(1)
        self._thresholds: Dict[str, AlertThresholds] = {}
        self._default_thresholds = default_thresholds or DEFAULT_THRESHOLDS
        self._snapshots: Dict[str, float] = {}
        self.fetch_log: List[FetchLogEntry] = []

    # ------------------------------------------------------------------
    # Derived points
    # ------------------------------------------------------------------

    def replace_derived(self, entity: str, points: List[DerivedPoint]) -> int:
        """Supersede the entity's whole sequence with a fresh one."""
        with self._lock:
            self.derived.delete_where(lambda p: p.entity == entity)
            return self.derived.upsert_many(points)

    def upsert_derived(self, points: Iterable[DerivedPoint]) -> int:
        return self.derived.upsert_many(points)

    def get_derived(self, entity: Optional[str] = None, start_date: Optional[date] = None) -> List[DerivedPoint]:
        rows = self.derived.rows()
        if entity is not None:
            rows = [p for p in rows if p.entity == entity]
        if start_date is not None:
            rows = [p for p in rows if p.date >= start_date]
        return rows

    def derived_by_entity(self) -> Dict[str, List[DerivedPoint]]:
        grouped: Dict[str, List[DerivedPoint]] = {}
        for point in self.derived.rows():
            grouped.setdefault(point.entity, []).append(point)
        return grouped

    def latest_derived(self) -> Dict[str, DerivedPoint]:
        """Latest point per entity."""
        return {entity: points[-1] for entity, points in self.derived_by_entity().items()}

    # ------------------------------------------------------------------
    # Credit impulse
    # ------------------------------------------------------------------

    def upsert_credit_impulse(self, points: Iterable[CreditImpulsePoint]) -> int:
        return self.credit_impulse.upsert_many(points)

    def get_credit_impulse(self, entity: Optional[str] = None,
                           start_date: Optional[date] = None) -> List[CreditImpulsePoint]:
        rows = self.credit_impulse.rows()
        if entity is not None:
            rows = [p for p in rows if p.entity == entity]
        if start_date is not None:
            rows = [p for p in rows if p.quarter >= start_date]
        return rows

    def latest_credit_impulse(self) -> Dict[str, CreditImpulsePoint]:
        latest: Dict[str, CreditImpulsePoint] = {}
        for point in self.credit_impulse.rows():
            latest[point.entity] = point
        return latest

    # ------------------------------------------------------------------
    # Watcher snapshots ("previous value" for the next refresh)
    # ------------------------------------------------------------------

    def get_snapshot(self, metric: str) -> Optional[float]:
        with self._lock:
            return self._snapshots.get(metric)

    def set_snapshot(self, metric: str, value: Optional[float]) -> None:
        with self._lock:
            if value is None:
                self._snapshots.pop(metric, None)
            else:
                self._snapshots[metric] = value

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def add_alert(self, alert: Alert) -> Alert:
        with self._lock:
            stored = replace(alert, id=next(self._alert_ids))
            self._alerts.append(stored)
            return stored

    def get_alerts(self, limit: int = 50, unread_only: bool = False,
                   related_entity: Optional[str] = None) -> List[Alert]:
        """Most recent first."""
        with self._lock:
            alerts = list(reversed(self._alerts))
        if unread_only:
            alerts = [a for a in alerts if not a.is_read]
        if related_entity is not None:
            alerts = [a for a in alerts if a.related_entity == related_entity]
        return alerts[:limit]

    def _find_alert(self, alert_id: int) -> Alert:
        for alert in self._alerts:
            if alert.id == alert_id:
                return alert
        raise KeyError(f"Alert {alert_id} not found")

    def mark_alert_read(self, alert_id: int) -> Alert:
        with self._lock:
            alert = self._find_alert(alert_id)
            alert.mark_read()
            return alert

    def mark_alert_unread(self, alert_id: int) -> Alert:
        with self._lock:
            alert = self._find_alert(alert_id)
            alert.mark_unread()
            return alert

    def mark_all_read(self) -> int:
        with self._lock:
            unread = [a for a in self._alerts if not a.is_read]
            for alert in unread:
                alert.mark_read()
            return len(unread)

    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for a in self._alerts if not a.is_read)

    # ------------------------------------------------------------------
    # Thresholds
    # ------------------------------------------------------------------

    def get_thresholds(self, user_id: str = 'default') -> AlertThresholds:
        with self._lock:
            return self._thresholds.get(user_id, self._default_thresholds)

    def update_thresholds(self, thresholds: AlertThresholds, user_id: str = 'default') -> None:
        with self._lock:
            self._thresholds[user_id] = thresholds
        logger.info(f"Thresholds updated for {user_id}: {thresholds.to_dict()}")

    # ------------------------------------------------------------------
    # Fetch log
    # ------------------------------------------------------------------

    def log_fetch(self, source: str, series_id: Optional[str], status: str,
                  records_fetched: Optional[int] = None,
                  error_message: Optional[str] = None) -> FetchLogEntry:
        entry = FetchLogEntry(source, series_id, status, records_fetched, error_message)
        with self._lock:
            self.fetch_log.append(entry)
        return entry

    def fetch_summary(self) -> Dict[str, int]:
        with self._lock:
            entries = list(self.fetch_log)
        summary: Dict[str, int] = {}
        for entry in entries:
            summary[entry.status] = summary.get(entry.status, 0) + 1
        return summary

