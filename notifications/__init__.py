# Notifications package: alert sinks and concurrent fan-out
from .sinks import (
    NotificationSink,
    LoggingSink,
    MemorySink,
    CallbackSink,
    notify_alert,
)
from .formatters import format_email, format_chat

__all__ = [
    'NotificationSink',
    'LoggingSink',
    'MemorySink',
    'CallbackSink',
    'notify_alert',
    'format_email',
    'format_chat',
]
