#!/usr/bin/env python3
"""
Tests for the helper utilities.
"""

import os
import json
import datetime
import tempfile
import shutil
import unittest
from decimal import Decimal

# Add the parent directory to the path so we can import the module
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rent_ledger.utils.helpers import (
    generate_period_list,
    get_period_info,
    load_json,
    month_from_name,
    parse_date,
    parse_period,
    round_percent,
    save_json,
    to_decimal,
    to_int,
)


class TestToDecimal(unittest.TestCase):
    """Money coercion never raises."""

    def test_numeric_values(self):
        self.assertEqual(to_decimal(4000), Decimal('4000'))
        self.assertEqual(to_decimal('1250.50'), Decimal('1250.50'))
        self.assertEqual(to_decimal(12.5), Decimal('12.5'))

    def test_malformed_values_are_zero(self):
        for value in (None, '', 'abc', float('nan'), 'NaN', float('inf'), True, {'amount': 5}):
            self.assertEqual(to_decimal(value), Decimal('0'), value)

    def test_to_int(self):
        self.assertEqual(to_int('2024'), 2024)
        self.assertEqual(to_int(3), 3)
        self.assertIsNone(to_int('March'))
        self.assertIsNone(to_int(None))


class TestDates(unittest.TestCase):
    """Date and period parsing."""

    def test_parse_date_formats(self):
        expected = datetime.date(2024, 1, 15)
        self.assertEqual(parse_date('2024-01-15'), expected)
        self.assertEqual(parse_date('01/15/2024'), expected)
        self.assertEqual(parse_date('2024-01-15T00:00:00.000Z'), expected)
        self.assertEqual(parse_date(datetime.datetime(2024, 1, 15, 9, 30)), expected)
        self.assertEqual(parse_date(expected), expected)

    def test_parse_date_invalid(self):
        self.assertIsNone(parse_date('not a date'))
        self.assertIsNone(parse_date(''))
        self.assertIsNone(parse_date(None))

    def test_parse_period(self):
        self.assertEqual(parse_period('202403'), datetime.date(2024, 3, 1))
        self.assertIsNone(parse_period('202413'))
        self.assertIsNone(parse_period('2024-3'))

    def test_period_info(self):
        info = get_period_info('202402')

        self.assertTrue(info['valid'])
        self.assertEqual(info['month_name'], 'February')
        self.assertEqual(info['days_in_month'], 29)
        self.assertEqual(info['last_day'], datetime.date(2024, 2, 29))

    def test_generate_period_list_across_year_end(self):
        self.assertEqual(
            generate_period_list('202311', '202402'),
            ['202311', '202312', '202401', '202402']
        )
        self.assertEqual(generate_period_list('202402', '202401'), [])

    def test_month_from_name(self):
        self.assertEqual(month_from_name('march'), 3)
        self.assertIsNone(month_from_name('Smarch'))

    def test_round_percent_half_up(self):
        self.assertEqual(round_percent(Decimal('66.5')), 67)
        self.assertEqual(round_percent(Decimal('33.3')), 33)


class TestJsonFiles(unittest.TestCase):
    """JSON input and output."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_save_json_converts_decimals_and_dates(self):
        path = os.path.join(self.test_dir, 'nested', 'result.json')

        saved = save_json(path, {'amount': Decimal('10.50'), 'due': datetime.date(2024, 4, 1)})

        self.assertTrue(saved)
        with open(path) as f:
            data = json.load(f)
        self.assertEqual(data, {'amount': 10.5, 'due': '2024-04-01'})
        self.assertEqual(load_json(path), data)

    def test_load_json_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_json(os.path.join(self.test_dir, 'missing.json'))


if __name__ == '__main__':
    unittest.main()
