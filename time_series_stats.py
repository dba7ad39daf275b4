"""
Statistics primitives for short monthly series.
Moving averages, OLS trend fit, lag-12 seasonality check, error and interval helpers.
"""

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.metrics import mean_absolute_error
from typing import Dict, Optional, Sequence
from config import config
from data_validation import ValidationError
from models import INCREASING, DECREASING, STABLE, as_data_points


def _values(data) -> np.ndarray:
    return np.array([p.value for p in as_data_points(data)], dtype=float)


def simple_moving_average(data, window: Optional[int] = None) -> float:
    """Mean of the last `window` values (all values if fewer). Empty input gives 0."""
    if window is None:
        window = config.DEFAULT_SMA_WINDOW
    values = _values(data)
    if len(values) == 0:
        return 0.0
    return float(pd.Series(values).tail(window).mean())


def exponential_moving_average(data, alpha: Optional[float] = None) -> float:
    """
    Final value of the recurrence ema[0] = v[0], ema[i] = alpha*v[i] + (1-alpha)*ema[i-1].

    Args:
        data: Sequence of data points
        alpha: Smoothing factor (default from config)

    Returns:
        Last EMA value, 0 for empty input
    """
    if alpha is None:
        alpha = config.DEFAULT_EMA_ALPHA
    values = _values(data)
    if len(values) == 0:
        return 0.0
    if len(values) == 1:
        return float(values[0])
    # adjust=False gives exactly the recursive form above
    return float(pd.Series(values).ewm(alpha=alpha, adjust=False).mean().iloc[-1])


def linear_regression(data) -> Dict[str, float]:
    """
    Ordinary least squares of value against point index (0..n-1).

    Points are treated as equally spaced; dates are not used.

    Returns:
        Dictionary with 'slope', 'intercept' and 'r2'
    """
    y = _values(data)
    n = len(y)
    if n < 2:
        return {'slope': 0.0, 'intercept': 0.0, 'r2': 0.0}

    x = np.arange(n, dtype=float)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_x2 = (x * x).sum()

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    ss_total = ((y - y.mean()) ** 2).sum()
    ss_residual = ((y - (slope * x + intercept)) ** 2).sum()
    # A constant series is fit exactly by a flat line
    r2 = 1.0 if ss_total == 0 else 1 - ss_residual / ss_total

    return {'slope': float(slope), 'intercept': float(intercept), 'r2': float(r2)}


def detect_seasonality(data, lag: Optional[int] = None,
                       threshold: Optional[float] = None) -> bool:
    """
    Check for monthly seasonality via the autocorrelation at lag 12.

    Args:
        data: Sequence of data points
        lag: Seasonal lag in periods (default 12)
        threshold: Minimum absolute autocorrelation (default 0.3)

    Returns:
        True if |autocorrelation| exceeds the threshold. Series shorter than
        the lag, and zero-variance series, are never seasonal.
    """
    if lag is None:
        lag = config.SEASONAL_LAG
    if threshold is None:
        threshold = config.SEASONALITY_THRESHOLD

    values = _values(data)
    if len(values) < lag:
        return False

    deviations = values - values.mean()
    denominator = (deviations ** 2).sum()
    if denominator == 0:
        return False

    numerator = (deviations[:-lag] * deviations[lag:]).sum()
    return bool(abs(numerator / denominator) > threshold)


def calculate_mae(actual: Sequence[float], predicted: Sequence[float],
                  strict: bool = False) -> float:
    """
    Mean absolute error between two equal-length sequences.

    Mismatched lengths are treated as "not computable" and give 0, unless
    `strict` is set, in which case ValidationError is raised.
    """
    if len(actual) != len(predicted):
        if strict:
            raise ValidationError(
                f"Length mismatch: actual ({len(actual)}) vs predicted ({len(predicted)})"
            )
        return 0.0
    if len(actual) == 0:
        return 0.0
    return float(mean_absolute_error(actual, predicted))


def residual_std(actual: Sequence[float], fitted: Sequence[float]) -> float:
    """Population standard deviation of in-sample residuals (root mean square)."""
    residuals = np.asarray(actual, dtype=float) - np.asarray(fitted, dtype=float)
    if len(residuals) == 0:
        return 0.0
    return float(np.sqrt(np.mean(residuals ** 2)))


def z_multiplier(confidence_level: float) -> float:
    """Two-sided normal multiplier for a confidence level, e.g. 0.95 -> 1.96."""
    if not 0 < confidence_level < 1:
        raise ValueError(f"confidence_level must be in (0, 1), got {confidence_level}")
    return float(stats.norm.ppf(0.5 + confidence_level / 2))


def confidence_interval(value: float, std_dev: float,
                        multiplier: Optional[float] = None) -> Dict[str, float]:
    """
    Symmetric interval around a point estimate, floored at zero.

    Monetary aggregates cannot be negative, so both bounds are clamped to >= 0.
    """
    if multiplier is None:
        multiplier = config.CONFIDENCE_MULTIPLIER
    spread = multiplier * std_dev
    return {
        'lower': max(0.0, value - spread),
        'upper': max(0.0, value + spread)
    }


def classify_trend(change: float, threshold: float) -> str:
    """Label a slope/trend/delta as increasing, decreasing or stable."""
    if change > threshold:
        return INCREASING
    if change < -threshold:
        return DECREASING
    return STABLE
