"""
Unit tests for forecast accuracy metrics and forecast evaluation.
"""

import unittest
import numpy as np
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from forecast_metrics import ForecastMetrics, attach_actuals, calculate_forecast_metrics, evaluate_forecast
from models import DataPoint, ForecastPoint, ForecastResult


class TestForecastMetrics(unittest.TestCase):
    """Test suite for forecast metrics functions."""

    def setUp(self):
        """Set up test data."""
        self.actual = np.array([100, 110, 105, 120, 115, 125])
        self.forecast = np.array([102, 108, 110, 118, 111, 130])
        self.metrics_calculator = ForecastMetrics()

    def test_basic_metrics(self):
        metrics = calculate_forecast_metrics(self.actual, self.forecast)
        basic = metrics['basic_metrics']

        errors = self.forecast - self.actual
        self.assertAlmostEqual(basic['mae'], np.mean(np.abs(errors)))
        self.assertAlmostEqual(basic['rmse'], np.sqrt(np.mean(errors ** 2)))
        self.assertAlmostEqual(basic['me'], np.mean(errors))
        self.assertEqual(basic['max_error'], 5)

    def test_percentage_metrics_skip_zero_actuals(self):
        metrics = calculate_forecast_metrics([0, 100], [50, 110])
        self.assertAlmostEqual(metrics['percentage_metrics']['mape'], 10.0)

        all_zero = calculate_forecast_metrics([0, 0], [5, 5])
        self.assertEqual(all_zero['percentage_metrics']['mape'], np.inf)
        self.assertEqual(all_zero['overall_assessment']['overall_rating'], 'poor')

    def test_interval_metrics(self):
        metrics = calculate_forecast_metrics([100, 200], [100, 180], lower=[90, 150], upper=[110, 190])
        self.assertAlmostEqual(metrics['interval_metrics']['coverage'], 50.0)
        self.assertAlmostEqual(metrics['interval_metrics']['mean_width'], 30.0)

    def test_assessment(self):
        metrics = calculate_forecast_metrics(self.actual, self.forecast,
                                             lower=self.forecast - 20, upper=self.forecast + 20)
        assessment = metrics['overall_assessment']
        self.assertEqual(assessment['mape_rating'], 'excellent')
        self.assertEqual(assessment['coverage_rating'], 'excellent')
        self.assertEqual(assessment['overall_rating'], 'excellent')

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            self.metrics_calculator.calculate_all_metrics([1, 2, 3], [1, 2])

    def test_empty(self):
        metrics = calculate_forecast_metrics([], [])
        self.assertEqual(metrics['overall_assessment']['overall_rating'], 'insufficient_data')


class TestForecastEvaluation(unittest.TestCase):
    """Test suite for comparing forecasts with later actuals."""

    def setUp(self):
        self.result = ForecastResult(
            method='Moving Average',
            forecasts=[
                ForecastPoint('2024-07-01', 200.0, 150.0, 250.0),
                ForecastPoint('2024-08-01', 200.0, 130.0, 270.0),
                ForecastPoint('2024-09-01', 200.0, 110.0, 290.0),
            ],
        )
        self.actuals = [DataPoint('2024-07-01', 210.0), {'date': '2024-08-01', 'value': 300.0}]

    def test_attach_actuals(self):
        annotated = attach_actuals(self.result, self.actuals)

        self.assertEqual([p.actual for p in annotated.forecasts], [210.0, 300.0, None])
        # Original result is left untouched
        self.assertTrue(all(p.actual is None for p in self.result.forecasts))
        self.assertEqual(annotated.forecasts[0].to_dict()['actual'], 210.0)

    def test_evaluate_forecast(self):
        metrics = evaluate_forecast(self.result, self.actuals)

        self.assertEqual(metrics['method'], 'Moving Average')
        self.assertEqual(metrics['data_info']['total_points'], 2)
        self.assertAlmostEqual(metrics['basic_metrics']['mae'], 55.0)
        self.assertAlmostEqual(metrics['interval_metrics']['coverage'], 50.0)
        self.assertEqual(metrics['result'].forecasts[1].actual, 300.0)

    def test_evaluate_without_observed_months(self):
        metrics = evaluate_forecast(self.result, [])
        self.assertEqual(metrics['overall_assessment']['overall_rating'], 'insufficient_data')


if __name__ == '__main__':
    unittest.main()
