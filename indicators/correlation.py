"""
Correlation engine.
상관관계 엔진

Pairwise Pearson correlation over N named series with an optional lag:
at lag k, x at time T is compared with y at time T+k ("x leads y by k").
Degenerate inputs (empty, length mismatch, zero variance) give 0, never
NaN; `pearson_with_status` additionally reports that the 0 is degenerate.
"""
from dataclasses import dataclass
from typing import List, Mapping, Sequence, Tuple, Union
import math

import numpy as np
import pandas as pd
from scipy import stats


NamedSeries = Union[Mapping[str, Sequence[float]], Sequence[Tuple[str, Sequence[float]]]]


@dataclass(frozen=True)
class CorrelationResult:
    """Correlation value plus whether it is the degenerate-input fallback."""
    value: float
    degenerate: bool
    n: int


@dataclass
class CorrelationMatrix:
    """N x N correlation grid; row/column order follows `assets`."""
    assets: List[str]
    matrix: List[List[float]]
    lag: int = 0

    def get(self, asset1: str, asset2: str) -> float:
        i = self.assets.index(asset1)
        j = self.assets.index(asset2)
        return self.matrix[i][j]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.matrix, index=self.assets, columns=self.assets)

    def to_dict(self) -> dict:
        return {'assets': list(self.assets), 'matrix': [list(r) for r in self.matrix], 'lag': self.lag}


def _as_pairs(series: NamedSeries) -> List[Tuple[str, List[float]]]:
    """Ordered (name, values) pairs; mapping insertion order is kept."""
    items = series.items() if isinstance(series, Mapping) else series
    return [(name, [float(v) for v in values]) for name, values in items]


def pearson_with_status(x: Sequence[float], y: Sequence[float]) -> CorrelationResult:
    """
    Pearson correlation from sums over mean-centered values.

    r = (nΣxy − ΣxΣy) / sqrt((nΣx² − (Σx)²)(nΣy² − (Σy)²))

    Centering leaves r unchanged and keeps level series (e.g. 1e9 + noise)
    from cancelling to 0.
    """
    if len(x) != len(y) or len(x) == 0:
        return CorrelationResult(value=0.0, degenerate=True, n=min(len(x), len(y)))

    xa = np.asarray(x, dtype=float)
    ya = np.asarray(y, dtype=float)
    n = len(xa)
    if np.ptp(xa) == 0 or np.ptp(ya) == 0:
        return CorrelationResult(value=0.0, degenerate=True, n=n)

    xa = xa - xa.mean()
    ya = ya - ya.mean()

    sum_x = xa.sum()
    sum_y = ya.sum()
    sum_xy = (xa * ya).sum()
    sum_x2 = (xa * xa).sum()
    sum_y2 = (ya * ya).sum()

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)

    # Rounding can push a zero-variance product slightly negative
    if not variance_product > 0:
        return CorrelationResult(value=0.0, degenerate=True, n=n)

    denominator = math.sqrt(variance_product)
    if denominator == 0 or not math.isfinite(denominator):
        return CorrelationResult(value=0.0, degenerate=True, n=n)

    r = float(numerator / denominator)
    return CorrelationResult(value=max(-1.0, min(1.0, r)), degenerate=False, n=n)


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation; 0 for empty, mismatched or zero-variance input."""
    return pearson_with_status(x, y).value


def correlation_pvalue(r: float, n: int) -> float:
    """
    Two-sided p-value of a Pearson r over n pairs (t-test, n - 2 dof).

    1.0 when there are fewer than 3 pairs; 0.0 for a perfect correlation.
    """
    if n < 3:
        return 1.0
    if abs(r) >= 1.0:
        return 0.0
    t_stat = r * math.sqrt((n - 2) / (1.0 - r * r))
    return float(2 * stats.t.sf(abs(t_stat), n - 2))


def align_lagged(
    x: Sequence[float],
    y: Sequence[float],
    lag: int = 0,
) -> Tuple[List[float], List[float]]:
    """
    Align x at time T with y at time T+lag, trimmed to a common trailing length.

    Args:
        x: Leading series
        y: Lagging series
        lag: Non-negative shift in observations

    Returns:
        (x, y) of equal length, most recent observations kept
    """
    if lag < 0:
        raise ValueError(f"lag must be >= 0, got {lag}")

    x = list(x)
    y = list(y)
    if lag > 0:
        y = y[lag:]
        x = x[:len(x) - lag] if len(x) > lag else []

    min_len = min(len(x), len(y))
    if min_len == 0:
        return [], []
    return x[-min_len:], y[-min_len:]


def correlation_matrix(series: NamedSeries, lag: int = 0) -> CorrelationMatrix:
    """
    Calculate the correlation matrix for multiple series.
    다중 시계열 상관행렬

    Symmetric with unit diagonal at lag 0; asymmetric for lag > 0 because
    (i, j) and (j, i) use different shifted alignments.
    """
    pairs = _as_pairs(series)
    assets = [name for name, _ in pairs]

    matrix = []
    for _, x in pairs:
        row = []
        for _, y in pairs:
            xs, ys = align_lagged(x, y, lag)
            row.append(pearson_correlation(xs, ys))
        matrix.append(row)

    return CorrelationMatrix(assets=assets, matrix=matrix, lag=lag)


def select_assets(series: NamedSeries, names: Sequence[str]) -> List[Tuple[str, List[float]]]:
    """Subset of named series in the requested order; unknown names ignored."""
    lookup = dict(_as_pairs(series))
    return [(name, lookup[name]) for name in names if name in lookup]


def pair_correlation(series: NamedSeries, asset1: str, asset2: str, lag: int = 0) -> float:
    """
    Correlation of one pair (asset1 leads asset2 by `lag`).

    Raises:
        KeyError: If either asset is unknown
    """
    lookup = dict(_as_pairs(series))
    missing = [a for a in (asset1, asset2) if a not in lookup]
    if missing:
        raise KeyError(f"Unknown assets: {missing}")
    xs, ys = align_lagged(lookup[asset1], lookup[asset2], lag)
    return pearson_correlation(xs, ys)


def lead_lag_scan(
    x: Sequence[float],
    y: Sequence[float],
    max_lag: int = 12,
) -> pd.Series:
    """
    Correlation of x leading y at every lag from 0 to max_lag.

    Returns:
        Series indexed by lag
    """
    lags = range(0, max_lag + 1)
    values = [pearson_correlation(*align_lagged(x, y, lag)) for lag in lags]
    return pd.Series(values, index=list(lags), name='correlation', dtype=float)


def best_lead_lag(x: Sequence[float], y: Sequence[float], max_lag: int = 12) -> Tuple[int, float]:
    """Lag with the largest absolute correlation (smallest lag on ties)."""
    scan = lead_lag_scan(x, y, max_lag)
    best = int(scan.abs().idxmax())
    return best, float(scan.loc[best])


def correlation_summary(matrix: CorrelationMatrix) -> dict:
    """Strongest off-diagonal pair, for dashboard cards."""
    best_pair = None
    best_value = 0.0
    n = len(matrix.assets)
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            value = matrix.matrix[i][j]
            if best_pair is None or abs(value) > abs(best_value):
                best_pair = (matrix.assets[i], matrix.assets[j])
                best_value = value
    if best_pair is None:
        return {}
    return {'asset1': best_pair[0], 'asset2': best_pair[1], 'correlation': best_value}


def significant_pairs(
    series: NamedSeries,
    lag: int = 0,
    alpha: float = 0.05,
) -> pd.DataFrame:
    """
    Off-diagonal pairs whose correlation is significant at `alpha`.

    Degenerate pairs are never significant.

    Returns:
        DataFrame(asset1, asset2, correlation, n, p_value), strongest first
    """
    pairs = _as_pairs(series)
    rows = []
    for name_x, x in pairs:
        for name_y, y in pairs:
            if name_x == name_y:
                continue
            result = pearson_with_status(*align_lagged(x, y, lag))
            if result.degenerate:
                continue
            p_value = correlation_pvalue(result.value, result.n)
            if p_value < alpha:
                rows.append({
                    'asset1': name_x,
                    'asset2': name_y,
                    'correlation': result.value,
                    'n': result.n,
                    'p_value': p_value,
                })

    columns = ['asset1', 'asset2', 'correlation', 'n', 'p_value']
    if not rows:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(rows, columns=columns)
    order = df['correlation'].abs().sort_values(ascending=False).index
    return df.loc[order].reset_index(drop=True)
