"""
Forecasting methods for monthly income/expense series.
Linear trend, Holt's exponential smoothing, moving average and a weighted ensemble.
"""

import logging
import numpy as np
from typing import Callable, Dict, List, Optional
from config import config
from forecast_utils import forecast_dates
from models import DataPoint, ForecastPoint, ForecastResult, STABLE, as_data_points
from time_series_stats import (
    calculate_mae, classify_trend, confidence_interval, detect_seasonality,
    linear_regression, residual_std, simple_moving_average, z_multiplier
)

logger = logging.getLogger(__name__)

LINEAR_TREND = "Linear Trend"
EXPONENTIAL_SMOOTHING = "Exponential Smoothing"
MOVING_AVERAGE = "Moving Average"
ENSEMBLE = "Ensemble (Combined)"


def _multiplier(confidence_level: Optional[float]) -> float:
    if confidence_level is None:
        return config.CONFIDENCE_MULTIPLIER
    return z_multiplier(confidence_level)


def _build_forecasts(points: List[DataPoint], predictions: List[float], std_dev: float,
                     multiplier: float) -> List[ForecastPoint]:
    # Error variance grows linearly with the horizon, so the spread scales by sqrt(step)
    forecasts = []
    dates = forecast_dates(points[-1].date, len(predictions))
    for step, (date, predicted) in enumerate(zip(dates, predictions), start=1):
        bounds = confidence_interval(predicted, std_dev * np.sqrt(step), multiplier)
        forecasts.append(ForecastPoint(
            date=date,
            predicted=max(0.0, float(predicted)),
            lower=bounds['lower'],
            upper=bounds['upper'],
        ))
    return forecasts


def _empty_result(method: str) -> ForecastResult:
    logger.debug("%s: no data points, returning empty forecast", method)
    return ForecastResult(method=method, forecasts=[], trend=STABLE, seasonality=False)


def linear_trend_forecast(data, periods_ahead: int,
                          confidence_level: Optional[float] = None) -> ForecastResult:
    """
    Project the OLS trend line forward.

    Args:
        data: Chronological monthly data points
        periods_ahead: Forecast horizon in months
        confidence_level: Optional two-sided level for the bands (default multiplier 1.96)

    Returns:
        ForecastResult whose accuracy is 1 - |R²| (lower is a better fit)
    """
    points = as_data_points(data)
    if not points:
        return _empty_result(LINEAR_TREND)

    fit = linear_regression(points)
    slope, intercept = fit['slope'], fit['intercept']
    n = len(points)

    fitted = [slope * i + intercept for i in range(n)]
    std_dev = residual_std([p.value for p in points], fitted)

    predictions = [slope * (n + step) + intercept for step in range(1, max(periods_ahead, 0) + 1)]
    forecasts = _build_forecasts(points, predictions, std_dev, _multiplier(confidence_level))

    return ForecastResult(
        method=LINEAR_TREND,
        forecasts=forecasts,
        accuracy=1 - abs(fit['r2']),
        trend=classify_trend(slope, config.LINEAR_TREND_THRESHOLD),
        seasonality=detect_seasonality(points),
    )


def exponential_smoothing_forecast(data, periods_ahead: int, alpha: Optional[float] = None,
                                   beta: Optional[float] = None,
                                   confidence_level: Optional[float] = None) -> ForecastResult:
    """
    Holt's linear method (level + trend).

    Series with fewer than 3 points fall back to the linear trend forecast.

    Args:
        data: Chronological monthly data points
        periods_ahead: Forecast horizon in months
        alpha: Level smoothing factor (default 0.3)
        beta: Trend smoothing factor (default 0.1)
        confidence_level: Optional two-sided level for the bands

    Returns:
        ForecastResult whose accuracy is the in-sample MAE of the smoothed values
    """
    if alpha is None:
        alpha = config.HOLT_ALPHA
    if beta is None:
        beta = config.HOLT_BETA

    points = as_data_points(data)
    if len(points) < config.MIN_POINTS_FOR_SMOOTHING:
        logger.debug("Exponential smoothing needs %d points, got %d; using linear trend",
                     config.MIN_POINTS_FOR_SMOOTHING, len(points))
        return linear_trend_forecast(points, periods_ahead, confidence_level)

    values = [p.value for p in points]
    level = values[0]
    trend = values[1] - values[0]
    smoothed = [values[0]]

    for value in values[1:]:
        prev_level = level
        level = alpha * value + (1 - alpha) * (level + trend)
        trend = beta * (level - prev_level) + (1 - beta) * trend
        smoothed.append(level + trend)

    std_dev = residual_std(values, smoothed)
    predictions = [level + step * trend for step in range(1, max(periods_ahead, 0) + 1)]
    forecasts = _build_forecasts(points, predictions, std_dev, _multiplier(confidence_level))

    return ForecastResult(
        method=EXPONENTIAL_SMOOTHING,
        forecasts=forecasts,
        accuracy=calculate_mae(values, smoothed),
        # Threshold is in currency units per month, unlike the slope-based ones
        trend=classify_trend(trend, config.HOLT_TREND_THRESHOLD),
        seasonality=detect_seasonality(points),
    )


def moving_average_forecast(data, periods_ahead: int, window: Optional[int] = None,
                            confidence_level: Optional[float] = None) -> ForecastResult:
    """
    Flat forecast at the simple moving average of the last `window` months.

    Bands use the population standard deviation of that window. The trend label
    comes from the raw change between the last point and the point two steps earlier.
    """
    if window is None:
        window = config.DEFAULT_SMA_WINDOW

    points = as_data_points(data)
    if not points:
        return _empty_result(MOVING_AVERAGE)

    moving_avg = simple_moving_average(points, window)
    recent = np.array([p.value for p in points[-window:]], dtype=float)
    std_dev = float(np.std(recent))

    predictions = [moving_avg] * max(periods_ahead, 0)
    forecasts = _build_forecasts(points, predictions, std_dev, _multiplier(confidence_level))

    lag = config.MOVING_AVERAGE_TREND_LAG
    recent_change = points[-1].value - points[-1 - lag].value if len(points) > lag else 0.0

    return ForecastResult(
        method=MOVING_AVERAGE,
        forecasts=forecasts,
        trend=classify_trend(recent_change, config.MOVING_AVERAGE_TREND_THRESHOLD),
        seasonality=detect_seasonality(points),
    )


def validate_ensemble_weights(weights: Dict[str, float]) -> Dict[str, float]:
    """
    Check an ensemble weight map.

    Raises:
        ValueError: if keys differ from the three component methods, any weight is
        negative, or the weights do not sum to 1
    """
    expected = set(config.ENSEMBLE_WEIGHTS)
    if set(weights) != expected:
        raise ValueError(f"Ensemble weights must have keys {sorted(expected)}, got {sorted(weights)}")
    if any(w < 0 for w in weights.values()):
        raise ValueError(f"Ensemble weights must be non-negative: {weights}")
    if not np.isclose(sum(weights.values()), 1.0):
        raise ValueError(f"Ensemble weights must sum to 1, got {sum(weights.values()):.4f}")
    return dict(weights)


def ensemble_forecast(data, periods_ahead: int, weights: Optional[Dict[str, float]] = None,
                      confidence_level: Optional[float] = None) -> ForecastResult:
    """
    Weighted blend of the linear, exponential smoothing and moving average forecasts.

    The band for each step is the union of the component bands (min lower, max upper).
    Trend is taken from the linear component. No accuracy is reported.
    """
    weights = validate_ensemble_weights(weights) if weights is not None else config.get_ensemble_weights()

    points = as_data_points(data)
    if len(points) < config.MIN_POINTS_FOR_SMOOTHING:
        logger.debug("Ensemble needs %d points, got %d; using linear trend",
                     config.MIN_POINTS_FOR_SMOOTHING, len(points))
        return linear_trend_forecast(points, periods_ahead, confidence_level)

    components = {
        'linear': linear_trend_forecast(points, periods_ahead, confidence_level),
        'exponential': exponential_smoothing_forecast(points, periods_ahead,
                                                      confidence_level=confidence_level),
        'moving_average': moving_average_forecast(points, periods_ahead,
                                                  confidence_level=confidence_level),
    }

    forecasts = []
    for step in range(max(periods_ahead, 0)):
        step_points = {name: result.forecasts[step] for name, result in components.items()}
        predicted = sum(step_points[name].predicted * weights[name] for name in step_points)
        forecasts.append(ForecastPoint(
            date=step_points['linear'].date,
            predicted=max(0.0, predicted),
            lower=min(p.lower for p in step_points.values()),
            upper=max(p.upper for p in step_points.values()),
        ))

    return ForecastResult(
        method=ENSEMBLE,
        forecasts=forecasts,
        trend=components['linear'].trend,
        seasonality=detect_seasonality(points),
    )


FORECAST_METHODS: Dict[str, Callable[..., ForecastResult]] = {
    'linear': linear_trend_forecast,
    'exponential': exponential_smoothing_forecast,
    'moving_average': moving_average_forecast,
    'ensemble': ensemble_forecast,
}


def generate_forecast(data, periods_ahead: int, method: Optional[str] = None,
                      **kwargs) -> ForecastResult:
    """
    Run a forecasting method by name.

    Args:
        data: Chronological monthly data points
        periods_ahead: Forecast horizon in months
        method: One of FORECAST_METHODS (default from config)
        **kwargs: Extra keyword arguments for the method

    Returns:
        ForecastResult
    """
    if method is None:
        method = config.DEFAULT_FORECAST_METHOD
    if method not in FORECAST_METHODS:
        raise ValueError(f"Unknown forecast method '{method}'. Choose from {sorted(FORECAST_METHODS)}")
    return FORECAST_METHODS[method](data, periods_ahead, **kwargs)
