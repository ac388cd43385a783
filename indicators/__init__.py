# Indicators package for liquidity calculations and alerts
from .transforms import (
    RawObservation,
    mean,
    std_dev,
    rate_of_change,
    z_score,
    to_series,
    calc_roc,
    calc_yoy,
)
from .derived_metrics import (
    DerivedPoint,
    build_derived_points,
    derived_points_to_frame,
    latest_point,
)
from .credit_impulse import (
    CreditImpulsePoint,
    calculate_credit_impulse,
    blend_credit_impulse,
    quarter_key,
)
from .correlation import (
    CorrelationMatrix,
    CorrelationResult,
    pearson_correlation,
    pearson_with_status,
    correlation_matrix,
    pair_correlation,
    lead_lag_scan,
)
from .aggregate import (
    CompositePoint,
    aggregate_global_composite,
    weighted_latest_roc,
)
from .maturities import (
    DebtMaturity,
    quarterly_maturities,
    next_12_month_total,
)
from .alerts import (
    Alert,
    AlertEngine,
    watch_m2_roc,
    watch_credit_impulse,
    watch_maturity,
)
from .errors import (
    IndicatorError,
    UnmatchedQuarterError,
    DegenerateDenominatorError,
)

__all__ = [
    # Series primitives
    'RawObservation',
    'mean',
    'std_dev',
    'rate_of_change',
    'z_score',
    'to_series',
    'calc_roc',
    'calc_yoy',
    # Derived metrics
    'DerivedPoint',
    'build_derived_points',
    'derived_points_to_frame',
    'latest_point',
    # Credit impulse
    'CreditImpulsePoint',
    'calculate_credit_impulse',
    'blend_credit_impulse',
    'quarter_key',
    # Correlation
    'CorrelationMatrix',
    'CorrelationResult',
    'pearson_correlation',
    'pearson_with_status',
    'correlation_matrix',
    'pair_correlation',
    'lead_lag_scan',
    # Aggregation
    'CompositePoint',
    'aggregate_global_composite',
    'weighted_latest_roc',
    # Maturities
    'DebtMaturity',
    'quarterly_maturities',
    'next_12_month_total',
    # Alerts
    'Alert',
    'AlertEngine',
    'watch_m2_roc',
    'watch_credit_impulse',
    'watch_maturity',
    # Errors
    'IndicatorError',
    'UnmatchedQuarterError',
    'DegenerateDenominatorError',
]
