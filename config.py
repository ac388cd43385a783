"""
Configuration module for the Global Liquidity Tracker.
글로벌 유동성 트래커 설정 모듈

핵심 흐름:
1) 국가별 M2 → 파생 지표 (RoC, YoY, z-score)
2) GDP 가중 글로벌 합성 지표
3) 임계치 교차 시 1회 알림
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional
from enum import Enum
import os


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_date(name: str, default: date) -> date:
    raw = os.environ.get(name)
    if not raw:
        return default
    return date.fromisoformat(raw.strip())


class AlertType(Enum):
    """Kinds of alerts the engine can emit."""
    M2_INFLECTION = "M2_INFLECTION"
    CREDIT_REVERSAL = "CREDIT_REVERSAL"
    MATURITY_SPIKE = "MATURITY_SPIKE"
    CUSTOM = "CUSTOM"


class AlertSeverity(Enum):
    """Alert severity levels."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class Sector(Enum):
    """Debt maturity sectors."""
    SOVEREIGN = "Sovereign"
    IG_CORP = "IG_Corp"
    HY_CORP = "HY_Corp"


@dataclass(frozen=True)
class AlertThresholds:
    """Threshold configuration for alerts (one active set per user)."""
    roc_upper: float = 5.0        # Alert when composite RoC crosses above (%)
    roc_lower: float = -2.0       # Alert when composite RoC crosses below (%)
    maturity_spike: float = 500.0  # Quarterly maturities, billions USD

    def to_dict(self) -> Dict[str, float]:
        return {
            'roc_upper': self.roc_upper,
            'roc_lower': self.roc_lower,
            'maturity_spike': self.maturity_spike,
        }


DEFAULT_THRESHOLDS = AlertThresholds()


@dataclass
class RetryConfig:
    """Backoff settings for data source calls made during a refresh."""
    initial_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    max_retries: int = 3
    jitter: float = 0.1


@dataclass
class NotificationConfig:
    """Which built-in sinks are enabled."""
    log_alerts: bool = field(default_factory=lambda: _env_flag('LIQUIDITY_NOTIFY_LOG', True))
    max_workers: int = 4


@dataclass
class AppConfig:
    """Main application configuration."""
    # Derived metric windows (monthly observations)
    roc_periods: int = 6
    yoy_periods: int = 12

    # History requested from data sources on every refresh
    history_start: date = field(
        default_factory=lambda: _env_date('LIQUIDITY_HISTORY_START', date(2020, 1, 1))
    )

    # Raise instead of silently dropping credit points without a GDP quarter
    strict_quarter_matching: bool = field(
        default_factory=lambda: _env_flag('LIQUIDITY_STRICT_QUARTERS', False)
    )

    # Aggregation weights (GDP share, approximate)
    country_weights: Dict[str, float] = field(default_factory=lambda: dict(COUNTRY_WEIGHTS))
    credit_impulse_weights: Dict[str, float] = field(
        default_factory=lambda: dict(CREDIT_IMPULSE_WEIGHTS)
    )

    thresholds: AlertThresholds = field(default_factory=AlertThresholds)
    retry: RetryConfig = field(default_factory=RetryConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)

    default_user: str = 'default'


# ============================================================================
# SERIES DEFINITIONS
# ============================================================================

# GDP-based weights for the global M2 composite
COUNTRY_WEIGHTS: Dict[str, float] = {
    'US': 0.31,
    'CN': 0.28,
    'EU': 0.22,
    'JP': 0.12,
    'UK': 0.07,
}

# Headline credit impulse blend (China weighted more heavily)
CREDIT_IMPULSE_WEIGHTS: Dict[str, float] = {
    'CN': 0.6,
    'US': 0.4,
}

# Broad money series ids per country (FRED)
M2_SERIES: Dict[str, str] = {
    'US': 'M2SL',             # US M2 Money Stock
    'CN': 'MYAGM2CNM189N',    # China M2 (CNY)
    'EU': 'MABMM301EZM189S',  # Eurozone M3
    'JP': 'MABMM301JPM189S',  # Japan M2
    'UK': 'MABMM301GBM189S',  # UK M4
}

CREDIT_SERIES: Dict[str, str] = {
    'US': 'TOTBKCR',  # Commercial bank credit
}

GDP_SERIES: Dict[str, str] = {
    'US': 'GDP',
}


# ============================================================================
# ALERT PRESENTATION
# ============================================================================

# Related dashboard section per alert type
ALERT_SECTIONS: Dict[AlertType, Optional[str]] = {
    AlertType.M2_INFLECTION: 'liquidity',
    AlertType.CREDIT_REVERSAL: 'credit',
    AlertType.MATURITY_SPIKE: 'maturities',
    AlertType.CUSTOM: None,
}

SEVERITY_MARKERS: Dict[AlertSeverity, str] = {
    AlertSeverity.CRITICAL: '🚨',
    AlertSeverity.WARNING: '⚠️',
    AlertSeverity.INFO: 'ℹ️',
}

SEVERITY_COLORS: Dict[AlertSeverity, str] = {
    AlertSeverity.CRITICAL: '#ef4444',
    AlertSeverity.WARNING: '#eab308',
    AlertSeverity.INFO: '#3b82f6',
}


# ============================================================================
# DEFAULT CONFIG INSTANCE
# ============================================================================

config = AppConfig()
