"""
Configuration module for the monthly finance forecasting core.
Centralizes all forecasting defaults and thresholds.
"""
import os


class Config:
    """Configuration class for the forecasting core."""

    def __init__(self):
        # Aggregation window (configurable via environment variable)
        self.DEFAULT_LOOKBACK_MONTHS = int(os.getenv('FORECAST_LOOKBACK_MONTHS', '12'))
        self.TRANSACTION_TYPES = ['income', 'expense']

        # Statistics defaults
        self.DEFAULT_SMA_WINDOW = 3
        self.DEFAULT_EMA_ALPHA = 0.3
        self.SEASONAL_LAG = 12
        self.SEASONALITY_THRESHOLD = 0.3

        # Holt's linear method
        self.HOLT_ALPHA = 0.3
        self.HOLT_BETA = 0.1
        self.MIN_POINTS_FOR_SMOOTHING = 3

        # Confidence bands
        self.CONFIDENCE_MULTIPLIER = 1.96

        # Trend thresholds (slope per month, Holt trend and raw delta are in currency units)
        self.LINEAR_TREND_THRESHOLD = 0.1
        self.HOLT_TREND_THRESHOLD = 5
        self.MOVING_AVERAGE_TREND_THRESHOLD = 10
        self.MOVING_AVERAGE_TREND_LAG = 2

        # Forecast method used when none is requested or backtesting is not possible
        self.DEFAULT_FORECAST_METHOD = "ensemble"

        self.ENSEMBLE_WEIGHTS = {
            'linear': 0.4,
            'exponential': 0.4,
            'moving_average': 0.2
        }

        # Backtesting
        self.BACKTEST_SPLITS = 3
        self.BACKTEST_HORIZON = 3
        self.BACKTEST_MIN_TRAIN_MONTHS = 6

    def get_ensemble_weights(self):
        """Get a copy of the default ensemble weights."""
        return dict(self.ENSEMBLE_WEIGHTS)

# Global config instance
config = Config()
