"""
Unit tests for transaction validation.
"""

import unittest
import pandas as pd
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data_validation import (
    TransactionValidator, ValidationError, create_sample_transactions,
    transactions_to_frame, validate_transactions
)
from models import Transaction


class TestTransactionValidation(unittest.TestCase):
    """Test suite for data validation functions."""

    def setUp(self):
        """Set up test data."""
        self.valid = [
            {'date': '2024-01-05', 'amount': 50.0, 'type': 'expense'},
            {'date': '2024-01-31', 'amount': 3000, 'type': 'income'},
        ]
        self.invalid = self.valid + [
            {'date': 'invalid-date', 'amount': 30.0, 'type': 'expense'},
            {'date': None, 'amount': 40.0, 'type': 'expense'},
            {'date': '2024-01-04', 'amount': 'invalid-amount', 'type': 'expense'},
            {'date': '2024-01-06', 'amount': 20.0, 'type': 'transfer'},
            {'date': '2024-01-07', 'amount': -15.0, 'type': 'expense'},
        ]

    def test_validate_valid_data(self):
        result = validate_transactions(self.valid)

        self.assertTrue(result['is_valid'])
        self.assertEqual(result['warnings'], [])
        self.assertEqual(len(result['cleaned_data']), 2)
        self.assertTrue(pd.api.types.is_datetime64_any_dtype(result['cleaned_data']['date']))

    def test_invalid_rows_dropped(self):
        result = validate_transactions(self.invalid)
        cleaned = result['cleaned_data']

        self.assertTrue(result['is_valid'])
        # Two valid rows plus the negative refund survive
        self.assertEqual(len(cleaned), 3)
        self.assertTrue(any('invalid date' in w for w in result['warnings']))
        self.assertTrue(any('non-numeric amount' in w for w in result['warnings']))
        self.assertTrue(any('unknown type' in w for w in result['warnings']))
        self.assertTrue(any('negative amount' in w for w in result['warnings']))

    def test_required_columns_validation(self):
        result = validate_transactions([{'date': '2024-01-01', 'amount': 50.0}])

        self.assertFalse(result['is_valid'])
        self.assertTrue(any('Missing required columns' in error for error in result['errors']))
        self.assertTrue(result['cleaned_data'].empty)

    def test_empty_data_handling(self):
        for empty in ([], None, pd.DataFrame()):
            result = validate_transactions(empty)
            self.assertTrue(result['is_valid'])
            self.assertTrue(result['cleaned_data'].empty)

    def test_strict_mode(self):
        with self.assertRaises(ValidationError):
            validate_transactions(self.invalid, strict_mode=True)
        with self.assertRaises(ValidationError):
            TransactionValidator(strict_mode=True).validate_transactions(
                pd.DataFrame({'wrong_column': ['x']})
            )

    def test_strict_mode_accepts_valid_data(self):
        result = validate_transactions(self.valid, strict_mode=True)
        self.assertEqual(len(result['cleaned_data']), 2)

    def test_transactions_to_frame(self):
        frame = transactions_to_frame([Transaction('2024-02-01', 10.0, 'expense')])
        self.assertEqual(list(frame.columns), ['date', 'amount', 'type'])
        self.assertEqual(len(transactions_to_frame(iter([]))), 0)

    def test_sample_transactions(self):
        data = create_sample_transactions(months=3, end='2024-03-31')
        result = validate_transactions(data, strict_mode=True)
        self.assertEqual(len(result['cleaned_data']), 15)


if __name__ == '__main__':
    unittest.main()
