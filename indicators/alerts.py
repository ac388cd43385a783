"""
Alert system module.
알림 시스템 모듈

세 가지 감시 규칙 (각각 호출당 최대 1개 알림):
1. M2 임계치 교차: 이전 ≤ 상한 < 현재 → critical, 이전 ≥ 하한 > 현재 → critical
2. 신용 임펄스 부호 전환: 음→양 critical, 양→음 warning
3. 만기 집중: 분기 합계 > 임계치 → warning (상태 없음)

Watchers are pure: the previous value is passed in by the caller, who
stores the current value for the next cycle.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional
import logging

from config import (
    ALERT_SECTIONS,
    DEFAULT_THRESHOLDS,
    SEVERITY_COLORS,
    SEVERITY_MARKERS,
    AlertSeverity,
    AlertThresholds,
    AlertType,
)

logger = logging.getLogger(__name__)


@dataclass
class Alert:
    """Single alert instance."""
    type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    related_entity: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    is_read: bool = False
    id: Optional[int] = None

    def mark_read(self) -> None:
        self.is_read = True

    def mark_unread(self) -> None:
        self.is_read = False

    def format_message(self) -> str:
        """Format alert as standard one-line message."""
        return f"[{self.severity.value.upper()}] {self.title}: {self.message}"

    def to_dict(self) -> dict:
        """Convert to dictionary for display / persistence."""
        return {
            'id': self.id,
            'type': self.type.value,
            'severity': self.severity.value,
            'title': self.title,
            'message': self.message,
            'related_entity': self.related_entity,
            'created_at': self.created_at.isoformat(),
            'is_read': self.is_read,
        }


def watch_m2_roc(
    previous: Optional[float],
    current: Optional[float],
    thresholds: Optional[AlertThresholds] = None,
) -> Optional[Alert]:
    """
    Threshold-crossing watcher for the composite M2 RoC.
    M2 RoC 임계치 교차 감시

    Fires only on the crossing edge: previous ≤ upper < current, or
    previous ≥ lower > current. No previous value means no alert.
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    if previous is None or current is None:
        return None

    upper = thresholds.roc_upper
    lower = thresholds.roc_lower

    if previous <= upper and current > upper:
        return Alert(
            type=AlertType.M2_INFLECTION,
            severity=AlertSeverity.CRITICAL,
            title=f"M2 RoC Crossed +{upper:g}% Threshold",
            message=(
                f"Global M2 6-month rate of change has crossed above +{upper:g}%, "
                f"signaling potential risk-on conditions ahead. "
                f"Current RoC: {current:.2f}%"
            ),
            related_entity=ALERT_SECTIONS[AlertType.M2_INFLECTION],
        )

    if previous >= lower and current < lower:
        return Alert(
            type=AlertType.M2_INFLECTION,
            severity=AlertSeverity.CRITICAL,
            title=f"M2 RoC Crossed {lower:g}% Threshold",
            message=(
                f"Global M2 6-month rate of change has crossed below {lower:g}%, "
                f"signaling potential risk-off conditions ahead. "
                f"Current RoC: {current:.2f}%"
            ),
            related_entity=ALERT_SECTIONS[AlertType.M2_INFLECTION],
        )

    return None


def watch_credit_impulse(
    previous: Optional[float],
    current: Optional[float],
) -> Optional[Alert]:
    """
    Sign-reversal watcher for the credit impulse.
    신용 임펄스 부호 전환 감시

    Zero counts as non-negative.
    """
    if previous is None or current is None:
        return None

    if previous < 0 and current >= 0:
        return Alert(
            type=AlertType.CREDIT_REVERSAL,
            severity=AlertSeverity.CRITICAL,
            title='Credit Impulse Turned Positive',
            message=(
                "Credit impulse has reversed from negative to positive territory, "
                "historically a bullish signal for risk assets. "
                f"Current impulse: {current * 100:.2f}%"
            ),
            related_entity=ALERT_SECTIONS[AlertType.CREDIT_REVERSAL],
        )

    if previous >= 0 and current < 0:
        return Alert(
            type=AlertType.CREDIT_REVERSAL,
            severity=AlertSeverity.WARNING,
            title='Credit Impulse Turned Negative',
            message=(
                "Credit impulse has reversed from positive to negative territory, "
                "historically a cautious signal for risk assets. "
                f"Current impulse: {current * 100:.2f}%"
            ),
            related_entity=ALERT_SECTIONS[AlertType.CREDIT_REVERSAL],
        )

    return None


def watch_maturity(
    quarterly_total: Optional[float],
    quarter: str,
    thresholds: Optional[AlertThresholds] = None,
) -> Optional[Alert]:
    """
    Level watcher for quarterly debt maturities.
    만기 집중 감시

    Stateless: fires every time the total is above the threshold, so the
    caller must evaluate each quarter once per refresh.
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    if quarterly_total is None or quarterly_total <= thresholds.maturity_spike:
        return None

    return Alert(
        type=AlertType.MATURITY_SPIKE,
        severity=AlertSeverity.WARNING,
        title=f"{quarter} Maturity Wall Alert",
        message=(
            f"Quarterly debt maturities of ${quarterly_total:.0f}B exceed the "
            f"${thresholds.maturity_spike:g}B threshold. "
            "This concentration may create refinancing pressure."
        ),
        related_entity=ALERT_SECTIONS[AlertType.MATURITY_SPIKE],
    )


def create_custom_alert(
    title: str,
    message: str,
    severity: AlertSeverity = AlertSeverity.INFO,
    related_entity: Optional[str] = None,
) -> Alert:
    """User-defined alert (type CUSTOM)."""
    return Alert(
        type=AlertType.CUSTOM,
        severity=severity,
        title=title,
        message=message,
        related_entity=related_entity,
    )


class AlertEngine:
    """
    Alert generation engine.
    알림 생성 엔진

    Reads the active thresholds before every check and appends created
    alerts to the store. Holds no previous-value state of its own.
    """

    def __init__(
        self,
        store=None,
        threshold_provider: Optional[Callable[[], AlertThresholds]] = None,
    ):
        """
        Initialize alert engine.

        Args:
            store: Object with `add_alert(alert) -> Alert` (e.g. MetricStore)
            threshold_provider: Returns the active thresholds; when omitted
                the store's thresholds are used, else the defaults
        """
        self.store = store
        self._threshold_provider = threshold_provider

    def thresholds(self) -> AlertThresholds:
        if self._threshold_provider is not None:
            return self._threshold_provider()
        if self.store is not None and hasattr(self.store, 'get_thresholds'):
            return self.store.get_thresholds()
        return DEFAULT_THRESHOLDS

    def _record(self, alert: Optional[Alert]) -> Optional[Alert]:
        if alert is None:
            return None
        logger.info(f"Alert triggered: {alert.type.value} / {alert.severity.value} - {alert.title}")
        if self.store is not None:
            return self.store.add_alert(alert)
        return alert

    def check_m2(self, previous: Optional[float], current: Optional[float]) -> Optional[Alert]:
        return self._record(watch_m2_roc(previous, current, self.thresholds()))

    def check_credit_impulse(self, previous: Optional[float], current: Optional[float]) -> Optional[Alert]:
        return self._record(watch_credit_impulse(previous, current))

    def check_maturity(self, quarterly_total: Optional[float], quarter: str) -> Optional[Alert]:
        return self._record(watch_maturity(quarterly_total, quarter, self.thresholds()))

    def add_custom(
        self,
        title: str,
        message: str,
        severity: AlertSeverity = AlertSeverity.INFO,
        related_entity: Optional[str] = None,
    ) -> Alert:
        return self._record(create_custom_alert(title, message, severity, related_entity))


def format_alert_for_display(alert: Alert) -> dict:
    """Format alert for dashboard display."""
    return {
        'color': SEVERITY_COLORS.get(alert.severity, '#666666'),
        'icon': SEVERITY_MARKERS.get(alert.severity, ''),
        'title': alert.title,
        'message': alert.format_message(),
        'timestamp': alert.created_at.strftime('%Y-%m-%d %H:%M'),
        'is_read': alert.is_read,
    }


def summarize_alerts(alerts: List[Alert]) -> dict:
    """Count alerts by severity plus unread count."""
    return {
        'critical': sum(1 for a in alerts if a.severity == AlertSeverity.CRITICAL),
        'warning': sum(1 for a in alerts if a.severity == AlertSeverity.WARNING),
        'info': sum(1 for a in alerts if a.severity == AlertSeverity.INFO),
        'unread': sum(1 for a in alerts if not a.is_read),
    }
