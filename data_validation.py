"""
Data validation module for the forecasting core.
Validates raw transaction records before they are aggregated into monthly totals.
"""

import logging
import pandas as pd
import numpy as np
from dataclasses import asdict, is_dataclass
from typing import Dict, List, Optional, Any
from config import config

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['date', 'amount', 'type']


class ValidationError(Exception):
    """Custom exception for data validation errors."""
    pass


def transactions_to_frame(transactions) -> pd.DataFrame:
    """
    Build a DataFrame from transaction records.

    Args:
        transactions: DataFrame, or iterable of mappings / Transaction dataclasses

    Returns:
        DataFrame with one row per transaction
    """
    if transactions is None:
        return pd.DataFrame(columns=REQUIRED_COLUMNS)
    if isinstance(transactions, pd.DataFrame):
        return transactions.copy()

    records = [asdict(t) if is_dataclass(t) else dict(t) for t in transactions]
    if not records:
        return pd.DataFrame(columns=REQUIRED_COLUMNS)
    return pd.DataFrame(records)


def _parse_date(value) -> Optional[pd.Timestamp]:
    # Parsed one at a time so mixed ISO formats do not poison the whole column
    if value is None:
        return None
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed


class TransactionValidator:
    """Validation of transaction records feeding the monthly aggregator."""

    def __init__(self, strict_mode: bool = False):
        """
        Initialize transaction validator.

        Args:
            strict_mode: If True, raises ValidationError on the first malformed record.
                        If False, drops malformed records and reports them as warnings.
        """
        self.strict_mode = strict_mode

    def validate_transactions(self, df: pd.DataFrame) -> Dict[str, Any]:
        """
        Validate and clean transaction data.

        Args:
            df: DataFrame with 'date', 'amount' and 'type' columns

        Returns:
            Dictionary with validation results and cleaned data. The cleaned
            'date' column holds pandas Timestamps and 'amount' holds floats.
        """
        results = {
            'is_valid': True,
            'warnings': [],
            'errors': [],
            'cleaned_data': pd.DataFrame(columns=REQUIRED_COLUMNS),
            'validation_summary': {}
        }

        if df is None or df.empty:
            results['validation_summary']['empty_data'] = {'status': 'passed', 'rows': 0}
            return results

        missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing_columns:
            return self._handle_validation_issue(
                'missing_columns', f"Missing required columns: {missing_columns}", results
            )

        cleaned_df = df.copy()
        checks = [
            self._validate_date_column,
            self._validate_amount_column,
            self._validate_type_column,
            self._validate_amount_range,
        ]

        for check in checks:
            check_result = check(cleaned_df)
            results['validation_summary'][check.__name__] = check_result['status']
            results['warnings'].extend(check_result.get('warnings', []))
            cleaned_df = check_result.get('cleaned_data', cleaned_df)

        results['cleaned_data'] = cleaned_df.reset_index(drop=True)
        return results

    def _validate_date_column(self, df: pd.DataFrame) -> Dict[str, Any]:
        """Parse dates and drop records whose date cannot be parsed."""
        parsed = df['date'].map(_parse_date)
        invalid_mask = parsed.isna()
        invalid_count = int(invalid_mask.sum())

        if invalid_count:
            message = f"Found {invalid_count} transactions with invalid date"
            if self.strict_mode:
                bad = df.loc[invalid_mask, 'date'].tolist()[:3]
                raise ValidationError(f"invalid_date: {message} (e.g. {bad})")
            logger.warning(message)

        cleaned = df.loc[~invalid_mask].copy()
        cleaned['date'] = pd.to_datetime(parsed[~invalid_mask])
        return {
            'status': 'warning' if invalid_count else 'passed',
            'warnings': [message] if invalid_count else [],
            'cleaned_data': cleaned
        }

    def _validate_amount_column(self, df: pd.DataFrame) -> Dict[str, Any]:
        """Coerce amounts to floats and drop non-numeric ones."""
        amounts = pd.to_numeric(df['amount'], errors='coerce')
        invalid_mask = amounts.isna() | np.isinf(amounts)
        invalid_count = int(invalid_mask.sum())

        if invalid_count:
            message = f"Found {invalid_count} transactions with non-numeric amount"
            if self.strict_mode:
                raise ValidationError(f"invalid_amount: {message}")
            logger.warning(message)

        cleaned = df.loc[~invalid_mask].copy()
        cleaned['amount'] = amounts[~invalid_mask].astype(float)
        return {
            'status': 'warning' if invalid_count else 'passed',
            'warnings': [message] if invalid_count else [],
            'cleaned_data': cleaned
        }

    def _validate_type_column(self, df: pd.DataFrame) -> Dict[str, Any]:
        """Drop records whose type is not a known transaction type."""
        invalid_mask = ~df['type'].isin(config.TRANSACTION_TYPES)
        invalid_count = int(invalid_mask.sum())

        if invalid_count:
            unknown = sorted({str(t) for t in df.loc[invalid_mask, 'type']})
            message = f"Found {invalid_count} transactions with unknown type: {unknown}"
            if self.strict_mode:
                raise ValidationError(f"invalid_type: {message}")
            logger.warning(message)

        return {
            'status': 'warning' if invalid_count else 'passed',
            'warnings': [message] if invalid_count else [],
            'cleaned_data': df.loc[~invalid_mask].copy()
        }

    def _validate_amount_range(self, df: pd.DataFrame) -> Dict[str, Any]:
        """Report negative amounts. They are kept, since refunds legitimately net out."""
        negative_count = int((df['amount'] < 0).sum())
        if negative_count:
            return {
                'status': 'warning',
                'warnings': [f"Found {negative_count} transactions with negative amount"]
            }
        return {'status': 'passed'}

    def _handle_validation_issue(self, issue_type: str, message: str,
                                 results: Dict[str, Any]) -> Dict[str, Any]:
        """Handle validation issues based on strict mode."""
        if self.strict_mode:
            raise ValidationError(f"{issue_type}: {message}")
        logger.warning(message)
        results['is_valid'] = False
        results['errors'].append(message)
        results['validation_summary'][issue_type] = {'status': 'failed', 'message': message}
        return results


def validate_transactions(transactions, strict_mode: bool = False) -> Dict[str, Any]:
    """
    Convenience function for validating transaction records.

    Args:
        transactions: DataFrame or iterable of transaction records
        strict_mode: If True, raises ValidationError for malformed records

    Returns:
        Dictionary with validation results and cleaned data
    """
    validator = TransactionValidator(strict_mode=strict_mode)
    return validator.validate_transactions(transactions_to_frame(transactions))


def create_sample_transactions(months: int = 12, end=None) -> List[Dict[str, Any]]:
    """Create sample income/expense transactions covering the last `months` months."""
    end = pd.Timestamp(end) if end is not None else pd.Timestamp.today()
    periods = pd.period_range(end=end.to_period('M'), periods=months, freq='M')
    rng = np.random.default_rng(42)

    data = []
    for period in periods:
        start = period.start_time
        data.append({'date': start.strftime('%Y-%m-%d'),
                     'amount': 3000.0, 'type': 'income'})
        for day in (2, 9, 16, 23):
            data.append({
                'date': (start + pd.Timedelta(days=day)).strftime('%Y-%m-%d'),
                'amount': round(float(rng.lognormal(mean=4, sigma=0.4)), 2),
                'type': 'expense'
            })
    return data
