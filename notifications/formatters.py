"""
Alert formatting for notification sinks.
알림 메시지 포맷

Transports (SMTP, chat bots) live outside this package; they receive
the already formatted payload.
"""
from typing import Dict

from config import SEVERITY_MARKERS
from indicators.alerts import Alert


def format_email(alert: Alert, app_name: str = 'Liquidity Tracker') -> Dict[str, str]:
    """Subject line and plain-text body for an email sink."""
    marker = SEVERITY_MARKERS.get(alert.severity, '')
    subject = f"{marker} {app_name}: {alert.title}".strip()
    lines = [
        alert.title,
        '',
        alert.message,
        '',
        f"Severity: {alert.severity.value}",
        f"Timestamp: {alert.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
    ]
    if alert.related_entity:
        lines.append(f"Section: {alert.related_entity}")
    return {'subject': subject, 'body': '\n'.join(lines)}


def format_chat(alert: Alert) -> str:
    """Markdown message for a chat-bot sink."""
    marker = SEVERITY_MARKERS.get(alert.severity, '')
    return (
        f"{marker} *{alert.title}*\n\n"
        f"{alert.message}\n\n"
        f"_{alert.created_at.strftime('%Y-%m-%d %H:%M')}_"
    ).strip()
