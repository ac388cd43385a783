# Pipeline package: scheduled refresh orchestration
from .refresh import RefreshService, RefreshResult, default_sinks

__all__ = [
    'RefreshService',
    'RefreshResult',
    'default_sinks',
]
