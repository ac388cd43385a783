"""
Notification sinks and fan-out.
알림 전송 채널

Every sink is independent: one failing (or raising) sink never blocks or
fails another, and nothing here can undo the alert that was already
stored.
"""
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence
import logging
import threading

from indicators.alerts import Alert

logger = logging.getLogger(__name__)


class NotificationSink(ABC):
    """
    Abstract base class for alert destinations.
    알림 채널 추상 클래스
    """

    name: str = 'sink'

    @abstractmethod
    def send(self, alert: Alert) -> bool:
        """
        Deliver one alert.

        Returns:
            True on success, False when the sink declined or failed
        """
        pass


class LoggingSink(NotificationSink):
    """Writes alerts to the application log."""

    name = 'log'

    def __init__(self, level: int = logging.WARNING):
        self.level = level

    def send(self, alert: Alert) -> bool:
        logger.log(self.level, alert.format_message())
        return True


class MemorySink(NotificationSink):
    """Collects alerts in memory."""

    name = 'memory'

    def __init__(self):
        self._lock = threading.Lock()
        self.sent: List[Alert] = []

    def send(self, alert: Alert) -> bool:
        with self._lock:
            self.sent.append(alert)
        return True


class CallbackSink(NotificationSink):
    """
    Adapter around an external transport callable.

    The callable receives the formatted payload (see formatters) or the
    alert itself; a falsy return value counts as a failed delivery.
    """

    def __init__(
        self,
        name: str,
        callback: Callable[[object], object],
        formatter: Optional[Callable[[Alert], object]] = None,
    ):
        self.name = name
        self.callback = callback
        self.formatter = formatter

    def send(self, alert: Alert) -> bool:
        payload = self.formatter(alert) if self.formatter else alert
        result = self.callback(payload)
        return result is None or bool(result)


def _deliver(sink: NotificationSink, alert: Alert) -> bool:
    try:
        ok = sink.send(alert)
    except Exception as e:
        logger.error(f"[{sink.name}] Failed to send alert '{alert.title}': {e}")
        return False
    if ok:
        logger.debug(f"[{sink.name}] Alert sent: {alert.title}")
    else:
        logger.warning(f"[{sink.name}] Alert not delivered: {alert.title}")
    return bool(ok)


def notify_alert(
    alert: Alert,
    sinks: Sequence[NotificationSink],
    max_workers: int = 4,
) -> Dict[str, bool]:
    """
    Fan an alert out to every sink concurrently.

    Args:
        alert: Stored alert
        sinks: Destinations
        max_workers: Thread pool size

    Returns:
        Dict of sink name -> delivered
    """
    if not sinks:
        return {}

    results: Dict[str, bool] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(sinks)))) as pool:
        futures = [(sink, pool.submit(_deliver, sink, alert)) for sink in sinks]
        for sink, future in futures:
            results[sink.name] = future.result()
    return results
