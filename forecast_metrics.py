"""
Forecast accuracy metrics module for the forecasting core.
Scores monthly forecasts against the actual totals observed later.
"""

import pandas as pd
import numpy as np
from dataclasses import replace
from typing import Dict, List, Optional, Any, Union
from sklearn.metrics import mean_absolute_error, mean_squared_error
from models import ForecastResult, as_data_points


class ForecastMetrics:
    """Forecast accuracy metrics calculator."""

    def calculate_all_metrics(self, actual: Union[pd.Series, np.ndarray, List],
                              forecast: Union[pd.Series, np.ndarray, List],
                              lower: Optional[Union[np.ndarray, List]] = None,
                              upper: Optional[Union[np.ndarray, List]] = None) -> Dict[str, Any]:
        """
        Calculate forecast accuracy metrics.

        Args:
            actual: Actual values
            forecast: Forecasted values
            lower: Optional lower confidence bounds
            upper: Optional upper confidence bounds

        Returns:
            Dictionary with all calculated metrics
        """
        actual = np.array(actual, dtype=float)
        forecast = np.array(forecast, dtype=float)

        if len(actual) != len(forecast):
            raise ValueError(f"Length mismatch: actual ({len(actual)}) vs forecast ({len(forecast)})")

        if len(actual) == 0:
            return self._empty_metrics()

        metrics = {
            'basic_metrics': self._calculate_basic_metrics(actual, forecast),
            'percentage_metrics': self._calculate_percentage_metrics(actual, forecast),
            'data_info': {'total_points': len(actual)}
        }

        if lower is not None and upper is not None:
            metrics['interval_metrics'] = self._calculate_interval_metrics(
                actual, np.array(lower, dtype=float), np.array(upper, dtype=float)
            )

        metrics['overall_assessment'] = self._assess_forecast_quality(metrics)
        return metrics

    def _calculate_basic_metrics(self, actual: np.ndarray, forecast: np.ndarray) -> Dict[str, float]:
        """Calculate basic forecast accuracy metrics."""
        errors = forecast - actual
        return {
            'mae': float(mean_absolute_error(actual, forecast)),
            'rmse': float(np.sqrt(mean_squared_error(actual, forecast))),
            'me': float(np.mean(errors)),  # Mean Error (bias)
            'max_error': float(np.max(np.abs(errors))),
        }

    def _calculate_percentage_metrics(self, actual: np.ndarray, forecast: np.ndarray) -> Dict[str, float]:
        """Calculate percentage-based metrics over months with non-zero actuals."""
        non_zero_mask = actual != 0
        if not np.any(non_zero_mask):
            return {'mape': np.inf, 'smape': np.inf, 'wape': np.inf}

        actual_nz = actual[non_zero_mask]
        forecast_nz = forecast[non_zero_mask]
        errors_nz = forecast_nz - actual_nz

        mape = np.mean(np.abs(errors_nz / actual_nz)) * 100
        denominator = np.abs(actual_nz) + np.abs(forecast_nz)
        smape = np.mean(2 * np.abs(errors_nz) / denominator) * 100
        wape = np.sum(np.abs(forecast - actual)) / np.sum(np.abs(actual)) * 100

        return {'mape': float(mape), 'smape': float(smape), 'wape': float(wape)}

    def _calculate_interval_metrics(self, actual: np.ndarray, lower: np.ndarray,
                                    upper: np.ndarray) -> Dict[str, float]:
        """Share of actuals inside the band, and the average band width."""
        inside = (actual >= lower) & (actual <= upper)
        return {
            'coverage': float(np.mean(inside) * 100),
            'mean_width': float(np.mean(upper - lower)),
        }

    def _assess_forecast_quality(self, metrics: Dict[str, Any]) -> Dict[str, Any]:
        """Assess overall forecast quality based on calculated metrics."""
        ratings = [self._rate_mape(metrics['percentage_metrics']['mape'])]
        if 'interval_metrics' in metrics:
            ratings.append(self._rate_coverage(metrics['interval_metrics']['coverage']))

        rating_scores = {'excellent': 4, 'good': 3, 'fair': 2, 'poor': 1}
        avg_score = float(np.mean([rating_scores[r] for r in ratings]))

        if avg_score >= 3.5:
            overall = 'excellent'
        elif avg_score >= 2.5:
            overall = 'good'
        elif avg_score >= 1.5:
            overall = 'fair'
        else:
            overall = 'poor'

        return {
            'mape_rating': ratings[0],
            'coverage_rating': ratings[1] if len(ratings) > 1 else None,
            'overall_rating': overall,
            'overall_score': avg_score
        }

    def _rate_mape(self, mape: float) -> str:
        """Rate forecast based on MAPE."""
        if mape <= 10:
            return 'excellent'
        elif mape <= 20:
            return 'good'
        elif mape <= 50:
            return 'fair'
        else:
            return 'poor'

    def _rate_coverage(self, coverage: float) -> str:
        """Rate how often actuals fall inside the ~95% band."""
        if coverage >= 90:
            return 'excellent'
        elif coverage >= 75:
            return 'good'
        elif coverage >= 50:
            return 'fair'
        else:
            return 'poor'

    def _empty_metrics(self) -> Dict[str, Any]:
        """Return empty metrics structure when no valid data is available."""
        return {
            'basic_metrics': {},
            'percentage_metrics': {},
            'data_info': {'total_points': 0},
            'overall_assessment': {'overall_rating': 'insufficient_data', 'overall_score': 0}
        }


def calculate_forecast_metrics(actual: Union[pd.Series, np.ndarray, List],
                               forecast: Union[pd.Series, np.ndarray, List],
                               lower=None, upper=None) -> Dict[str, Any]:
    """
    Convenience function for calculating forecast metrics.

    Args:
        actual: Actual values
        forecast: Forecasted values
        lower: Optional lower confidence bounds
        upper: Optional upper confidence bounds

    Returns:
        Dictionary with all calculated metrics
    """
    calculator = ForecastMetrics()
    return calculator.calculate_all_metrics(actual, forecast, lower, upper)


def attach_actuals(result: ForecastResult, actual_points) -> ForecastResult:
    """
    Copy of `result` with ForecastPoint.actual filled from observed monthly totals.

    Args:
        result: ForecastResult to annotate
        actual_points: DataPoints (or {'date', 'value'} mappings) observed after the forecast

    Returns:
        New ForecastResult; steps without an observed month keep actual=None
    """
    observed = {p.date: p.value for p in as_data_points(actual_points)}
    forecasts = [replace(p, actual=observed.get(p.date, p.actual)) for p in result.forecasts]
    return replace(result, forecasts=forecasts)


def evaluate_forecast(result: ForecastResult, actual_points) -> Dict[str, Any]:
    """
    Score a forecast against the months that have since been observed.

    Returns:
        Metrics dictionary (see ForecastMetrics.calculate_all_metrics) plus
        'method' and the annotated 'result'
    """
    annotated = attach_actuals(result, actual_points)
    matched = [p for p in annotated.forecasts if p.actual is not None]

    metrics = calculate_forecast_metrics(
        [p.actual for p in matched],
        [p.predicted for p in matched],
        [p.lower for p in matched],
        [p.upper for p in matched],
    )
    metrics['method'] = result.method
    metrics['result'] = annotated
    return metrics
