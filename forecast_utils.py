import logging
import pandas as pd
from typing import List, Optional
from config import config
from data_validation import TransactionValidator, transactions_to_frame
from models import DataPoint, as_data_points

logger = logging.getLogger(__name__)


def month_key(date) -> str:
    """Return the 'YYYY-MM' bucket key for a date-like value."""
    return pd.Timestamp(date).strftime('%Y-%m')


def add_months(date, n: int) -> str:
    """
    Step a date forward by `n` calendar months.

    Args:
        date: ISO date string or date-like value
        n: Number of months (may be negative)

    Returns:
        ISO date string (YYYY-MM-DD). Day-of-month is clamped to the target month's length.
    """
    return (pd.Timestamp(date) + pd.DateOffset(months=n)).strftime('%Y-%m-%d')


def forecast_dates(last_date, periods_ahead: int) -> List[str]:
    """Dates for each forecast step, one calendar month apart, starting after `last_date`."""
    return [add_months(last_date, i) for i in range(1, periods_ahead + 1)]


def to_series(data) -> pd.Series:
    """
    Convert data points to a pandas Series indexed by month start.

    Args:
        data: Sequence of DataPoint or {'date', 'value'} mappings

    Returns:
        Float Series with a DatetimeIndex
    """
    points = as_data_points(data)
    if not points:
        return pd.Series(dtype=float)
    index = pd.to_datetime([p.date for p in points])
    return pd.Series([p.value for p in points], index=index, dtype=float)


def prepare_monthly_data(transactions, type: str, months: Optional[int] = None,
                         now=None, strict: bool = False) -> List[DataPoint]:
    """
    Aggregate transactions into gap-filled monthly totals for one transaction type.

    Args:
        transactions: DataFrame or iterable of {'date', 'amount', 'type'} records
        type: 'income' or 'expense'
        months: Lookback window in months, ending at the current month (default from config)
        now: Reference date for the window (defaults to today)
        strict: If True, malformed transactions raise ValidationError instead of being skipped

    Returns:
        List of DataPoint in ascending month order, each dated on the 1st.
        Months without matching transactions contribute 0.
    """
    if months is None:
        months = config.DEFAULT_LOOKBACK_MONTHS
    if months <= 0:
        return []

    reference = pd.Timestamp(now) if now is not None else pd.Timestamp.today()
    periods = pd.period_range(end=reference.to_period('M'), periods=months, freq='M')
    monthly = pd.Series(0.0, index=[str(p) for p in periods])

    validator = TransactionValidator(strict_mode=strict)
    cleaned = validator.validate_transactions(transactions_to_frame(transactions))['cleaned_data']

    if not cleaned.empty:
        matching = cleaned[cleaned['type'] == type]
        if not matching.empty:
            keys = matching['date'].dt.strftime('%Y-%m')
            totals = matching['amount'].groupby(keys).sum()
            # Transactions outside the lookback window are ignored
            in_window = totals[totals.index.isin(monthly.index)]
            monthly.loc[in_window.index] += in_window
            skipped = len(totals) - len(in_window)
            if skipped:
                logger.debug("Ignored %d months of %s transactions outside the window", skipped, type)

    return [DataPoint(date=f"{key}-01", value=float(value)) for key, value in monthly.items()]
