"""
Refresh orchestration.
데이터 갱신 파이프라인

One refresh per metric: fetch source series, recompute derived values,
persist them, evaluate the watcher against the previous snapshot, persist
and fan out any alert. A failing entity or sink is logged and skipped;
an alert that was stored is never rolled back by a failed delivery.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence
import logging
import threading
import time

from config import AppConfig, CREDIT_SERIES, GDP_SERIES, M2_SERIES, config as default_config
from indicators.aggregate import weighted_latest_roc
from indicators.alerts import Alert, AlertEngine
from indicators.credit_impulse import blend_credit_impulse, calculate_credit_impulse
from indicators.derived_metrics import build_derived_points
from indicators.maturities import DebtMaturity, upcoming_quarter_total
from indicators.transforms import RawObservation
from loaders.base import DataLoader
from loaders.retry import ExponentialBackoff, RetriesExhausted, fetch_with_retry
from notifications.sinks import LoggingSink, NotificationSink, notify_alert
from storage.store import MetricStore

logger = logging.getLogger(__name__)

M2_SNAPSHOT = 'global_m2_roc'


def default_sinks(app_config: AppConfig) -> List[NotificationSink]:
    """Sinks enabled by configuration."""
    sinks: List[NotificationSink] = []
    if app_config.notifications.log_alerts:
        sinks.append(LoggingSink())
    return sinks


def credit_snapshot_key(entity: str) -> str:
    return f'credit_impulse:{entity}'


@dataclass
class RefreshResult:
    """Outcome of one refresh run."""
    metric: str
    entities_updated: List[str] = field(default_factory=list)
    records_written: int = 0
    alerts: List[Alert] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    deliveries: Dict[int, Dict[str, bool]] = field(default_factory=dict)
    previous: Optional[float] = None
    current: Optional[float] = None

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            'metric': self.metric,
            'entities_updated': list(self.entities_updated),
            'records_written': self.records_written,
            'alerts': [a.to_dict() for a in self.alerts],
            'errors': dict(self.errors),
            'previous': self.previous,
            'current': self.current,
        }


class RefreshService:
    """
    Runs the periodic refresh cycle against a data source and a store.
    주기적 갱신 서비스

    Each metric's refresh is serialised by its own lock, so two overlapping
    runs of the same refresh never interleave their read-previous /
    write-current steps.
    """

    def __init__(
        self,
        loader: DataLoader,
        store: MetricStore,
        engine: Optional[AlertEngine] = None,
        sinks: Optional[Sequence[NotificationSink]] = None,
        app_config: Optional[AppConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            loader: Data source for all series
            store: Persistence for points, snapshots, alerts and fetch log
            engine: Alert engine (default: one writing to `store`)
            sinks: Notification destinations (default: from config)
            app_config: Settings (default: module-level config)
            sleep: Sleep function used between retries
        """
        self.loader = loader
        self.store = store
        self.config = app_config or default_config
        self.engine = engine or AlertEngine(
            store=store,
            threshold_provider=lambda: store.get_thresholds(self.config.default_user),
        )
        self.sinks = default_sinks(self.config) if sinks is None else list(sinks)
        self._sleep = sleep
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock_for(self, metric: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[metric]

    def _fetch(
        self,
        series_id: str,
        start_date: Optional[date] = None,
    ) -> List[RawObservation]:
        backoff = ExponentialBackoff.from_config(self.config.retry)
        observations = fetch_with_retry(
            self.loader.load_observations,
            series_id,
            start_date,
            backoff=backoff,
            name=series_id,
            sleep=self._sleep,
        )
        # An empty response is "no data yet", not a failure
        self.store.log_fetch(
            type(self.loader).__name__, series_id, 'success' if observations else 'skipped',
            records_fetched=len(observations),
        )
        return observations

    def _log_failure(self, result: RefreshResult, entity: str, series_id: str, error: Exception) -> None:
        cause = error.last_error if isinstance(error, RetriesExhausted) else error
        logger.error(f"[{result.metric}] {entity} ({series_id}) skipped: {cause}")
        result.errors[entity] = str(cause)
        self.store.log_fetch(
            type(self.loader).__name__, series_id, 'error', error_message=str(cause),
        )

    def _evaluate(self, result: RefreshResult, check: Callable[..., Optional[Alert]], *args) -> None:
        """Run a watcher check; a persistence failure is recorded, never raised."""
        try:
            alert = check(*args)
        except Exception as e:
            logger.error(f"[{result.metric}] alert check failed: {e}")
            result.errors['alert'] = str(e)
            return
        self._dispatch(result, alert)

    def _dispatch(self, result: RefreshResult, alert: Optional[Alert]) -> None:
        """Alert is already stored by the engine; delivery is best-effort."""
        if alert is None:
            return
        result.alerts.append(alert)
        if self.sinks:
            result.deliveries[alert.id] = notify_alert(
                alert, self.sinks, max_workers=self.config.notifications.max_workers,
            )

    def refresh_m2(
        self,
        series_map: Optional[Dict[str, str]] = None,
        start_date: Optional[date] = None,
    ) -> RefreshResult:
        """
        Refresh per-country M2 derived points and check the composite RoC.

        Args:
            series_map: entity -> series id (default: M2_SERIES)
            start_date: History start (default: config.history_start)

        Returns:
            RefreshResult; `previous`/`current` are the composite RoC
        """
        series_map = series_map or M2_SERIES
        start_date = start_date or self.config.history_start
        result = RefreshResult(metric='m2')

        with self._lock_for('m2'):
            previous = self.store.get_snapshot(M2_SNAPSHOT)
            result.previous = previous

            for entity, series_id in series_map.items():
                try:
                    observations = self._fetch(series_id, start_date)
                    if not observations:
                        logger.warning(f"[m2] {entity} ({series_id}) returned no data, stored history kept")
                        continue
                    points = build_derived_points(
                        observations,
                        entity,
                        roc_periods=self.config.roc_periods,
                        yoy_periods=self.config.yoy_periods,
                    )
                    result.records_written += self.store.replace_derived(entity, points)
                    result.entities_updated.append(entity)
                except Exception as e:
                    self._log_failure(result, entity, series_id, e)

            current = weighted_latest_roc(self.store.latest_derived(), self.config.country_weights)
            result.current = current
            logger.info(
                f"M2 refresh: {len(result.entities_updated)}/{len(series_map)} entities, "
                f"composite RoC {previous} -> {current}"
            )

            self._evaluate(result, self.engine.check_m2, previous, current)

            # No composite this run: keep the last known value for next time
            if current is not None:
                self.store.set_snapshot(M2_SNAPSHOT, current)

        return result

    def refresh_credit_impulse(
        self,
        entity: str = 'US',
        credit_series: Optional[str] = None,
        gdp_series: Optional[str] = None,
    ) -> RefreshResult:
        """
        Refresh one entity's credit impulse and check for a sign reversal.

        Args:
            entity: Entity key (e.g. 'US')
            credit_series: Credit stock series id (default: CREDIT_SERIES[entity])
            gdp_series: GDP series id (default: GDP_SERIES[entity])
        """
        credit_series = credit_series or CREDIT_SERIES.get(entity)
        gdp_series = gdp_series or GDP_SERIES.get(entity)
        result = RefreshResult(metric=f'credit_impulse:{entity}')

        if credit_series is None or gdp_series is None:
            result.errors[entity] = f"No credit/GDP series configured for {entity}"
            logger.warning(result.errors[entity])
            return result

        key = credit_snapshot_key(entity)
        with self._lock_for(key):
            previous = self.store.get_snapshot(key)
            result.previous = previous

            try:
                credit = self._fetch(credit_series, self.config.history_start)
            except Exception as e:
                self._log_failure(result, entity, credit_series, e)
                return result
            try:
                gdp = self._fetch(gdp_series, self.config.history_start)
            except Exception as e:
                self._log_failure(result, entity, gdp_series, e)
                return result

            if not credit or not gdp:
                logger.warning(f"[{result.metric}] no credit or GDP data, stored impulse kept")
                return result

            try:
                points = calculate_credit_impulse(
                    credit, gdp, entity=entity, strict=self.config.strict_quarter_matching,
                )
                result.records_written = self.store.upsert_credit_impulse(points)
            except Exception as e:
                logger.error(f"[{result.metric}] calculation failed: {e}")
                result.errors[entity] = str(e)
                return result

            if points:
                result.entities_updated.append(entity)

            current = points[-1].impulse if points else None
            result.current = current
            logger.info(f"Credit impulse refresh ({entity}): {len(points)} points, {previous} -> {current}")

            self._evaluate(result, self.engine.check_credit_impulse, previous, current)

            if current is not None:
                self.store.set_snapshot(key, current)

        return result

    def check_maturities(
        self,
        maturities: Sequence[DebtMaturity],
        as_of: Optional[date] = None,
    ) -> RefreshResult:
        """Check the next quarter's maturity total against the spike level."""
        result = RefreshResult(metric='maturities')

        with self._lock_for('maturities'):
            upcoming = upcoming_quarter_total(maturities, as_of)
            if upcoming is None:
                logger.info("No upcoming maturities")
                return result

            quarter, total = upcoming
            result.current = total
            self._evaluate(result, self.engine.check_maturity, total, quarter)

        return result

    def run_all(
        self,
        maturities: Optional[Sequence[DebtMaturity]] = None,
        as_of: Optional[date] = None,
    ) -> Dict[str, RefreshResult]:
        """
        Run every refresh in sequence.

        Returns:
            Dict of metric name -> RefreshResult
        """
        results: Dict[str, RefreshResult] = {}

        m2 = self.refresh_m2()
        results[m2.metric] = m2

        for entity in CREDIT_SERIES:
            credit = self.refresh_credit_impulse(entity)
            results[credit.metric] = credit

        latest = {e: p.impulse for e, p in self.store.latest_credit_impulse().items()}
        headline = blend_credit_impulse(latest, self.config.credit_impulse_weights)
        if headline is not None:
            logger.info(f"Blended credit impulse: {headline * 100:.2f}%")

        if maturities is not None:
            results['maturities'] = self.check_maturities(maturities, as_of)

        n_alerts = sum(len(r.alerts) for r in results.values())
        n_errors = sum(len(r.errors) for r in results.values())
        logger.info(f"Refresh cycle complete: {len(results)} refreshes, {n_alerts} alerts, {n_errors} errors")
        return results
