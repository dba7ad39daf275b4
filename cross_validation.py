"""
Cross-validation module for the forecasting core.
Backtests the monthly forecasting methods on held-out months and picks the best one.
"""

import logging
import numpy as np
from typing import Dict, List, Tuple, Optional, Any, Callable
from sklearn.model_selection import TimeSeriesSplit
from config import config
from forecast_metrics import calculate_forecast_metrics
from forecasting import FORECAST_METHODS
from models import as_data_points

logger = logging.getLogger(__name__)


class MonthlyBacktester:
    """
    Time series backtesting of forecast methods over a monthly series.
    Each fold trains on an expanding prefix and forecasts the next `horizon` months.
    """

    def __init__(self, n_splits: Optional[int] = None, horizon: Optional[int] = None,
                 min_train_size: Optional[int] = None):
        """
        Initialize backtester.

        Args:
            n_splits: Maximum number of folds
            horizon: Months forecast (and held out) per fold
            min_train_size: Minimum months in every training window
        """
        self.n_splits = n_splits if n_splits is not None else config.BACKTEST_SPLITS
        self.horizon = horizon if horizon is not None else config.BACKTEST_HORIZON
        self.min_train_size = min_train_size if min_train_size is not None else config.BACKTEST_MIN_TRAIN_MONTHS

    def splits(self, data_length: int) -> List[Tuple[np.ndarray, np.ndarray]]:
        """
        Generate (train_indices, test_indices) folds.

        The fold count is reduced until the first training window holds at least
        `min_train_size` points. Series too short for a single fold give no folds.
        """
        if self.horizon < 1:
            return []
        min_train = max(self.min_train_size, 1)
        n_splits = min(self.n_splits, (data_length - min_train) // self.horizon)
        if n_splits < 1:
            return []
        if n_splits == 1:
            # TimeSeriesSplit needs at least two folds
            cut = data_length - self.horizon
            return [(np.arange(cut), np.arange(cut, data_length))]
        splitter = TimeSeriesSplit(n_splits=n_splits, test_size=self.horizon)
        return list(splitter.split(np.arange(data_length)))

    def backtest(self, data, methods: Optional[Dict[str, Callable]] = None) -> Dict[str, Any]:
        """
        Backtest forecast methods.

        Args:
            data: Chronological monthly data points
            methods: Dict of {method_name: forecast_function(data, periods_ahead)}

        Returns:
            Dictionary with per-method fold metrics, summary and best method
        """
        if methods is None:
            methods = FORECAST_METHODS
        points = as_data_points(data)
        folds = self.splits(len(points))

        if not folds:
            logger.debug("Series of %d months is too short to backtest", len(points))
            return {'error': 'No valid splits generated', 'splits_info': [],
                    'method_results': {}, 'summary': {},
                    'best_method': {'method': None, 'reason': 'No valid splits'}}

        results = {
            'method_results': {name: {'fold_metrics': []} for name in methods},
            'splits_info': [],
            'summary': {},
            'best_method': None
        }

        for fold_idx, (train_idx, test_idx) in enumerate(folds):
            train = [points[i] for i in train_idx]
            test = [points[i] for i in test_idx]
            results['splits_info'].append({
                'fold': fold_idx + 1,
                'train_size': len(train),
                'test_size': len(test),
                'test_start_date': test[0].date,
                'test_end_date': test[-1].date
            })

            actual = [p.value for p in test]
            for name, forecast_func in methods.items():
                forecast = forecast_func(train, len(test))
                fold_metrics = calculate_forecast_metrics(
                    actual,
                    [p.predicted for p in forecast.forecasts],
                    [p.lower for p in forecast.forecasts],
                    [p.upper for p in forecast.forecasts],
                )
                results['method_results'][name]['fold_metrics'].append(fold_metrics)

        results['summary'] = self._calculate_summary(results['method_results'])
        results['best_method'] = self._determine_best_method(results['summary'])
        return results

    def _calculate_summary(self, method_results: Dict[str, Any]) -> Dict[str, Any]:
        """Calculate summary statistics across all folds."""
        summary = {}
        for method_name, method_result in method_results.items():
            fold_metrics = method_result['fold_metrics']
            maes = [fm['basic_metrics']['mae'] for fm in fold_metrics]
            mapes = [fm['percentage_metrics']['mape'] for fm in fold_metrics]
            finite_mapes = [m for m in mapes if np.isfinite(m)]
            coverages = [fm['interval_metrics']['coverage'] for fm in fold_metrics]

            summary[method_name] = {
                'mean_mae': float(np.mean(maes)),
                'std_mae': float(np.std(maes)),
                'mean_mape': float(np.mean(finite_mapes)) if finite_mapes else np.inf,
                'mean_coverage': float(np.mean(coverages)),
                'valid_folds': len(fold_metrics)
            }
        return summary

    def _determine_best_method(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        """Choose the method with the lowest mean MAE."""
        if not summary:
            return {'method': None, 'reason': 'No valid methods'}

        best_name = min(summary, key=lambda name: summary[name]['mean_mae'])
        return {
            'method': best_name,
            'score': summary[best_name]['mean_mae'],
            'reason': f"Lowest mean MAE: {summary[best_name]['mean_mae']:.2f}"
        }


def select_best_method(data, methods: Optional[Dict[str, Callable]] = None,
                       n_splits: Optional[int] = None, horizon: Optional[int] = None,
                       min_train_size: Optional[int] = None) -> str:
    """
    Select the forecasting method with the lowest backtest MAE.

    Args:
        data: Chronological monthly data points
        methods: Dict of method_name -> function (default: all registered methods)
        n_splits: Maximum number of folds
        horizon: Months forecast per fold
        min_train_size: Minimum months in every training window

    Returns:
        method_name (str); the configured default when the series cannot be backtested
    """
    backtester = MonthlyBacktester(n_splits, horizon, min_train_size)
    best = backtester.backtest(data, methods)['best_method']['method']
    if best is None:
        return config.DEFAULT_FORECAST_METHOD
    return best
