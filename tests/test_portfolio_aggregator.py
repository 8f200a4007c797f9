#!/usr/bin/env python3
"""
Tests for the portfolio_aggregator module.
"""

import os
import unittest
from decimal import Decimal

# Add the parent directory to the path so we can import the module
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rent_ledger.portfolio_aggregator import (
    aggregate,
    build_monthly_stats,
    build_overview,
    build_yearly_stats,
    normalize_filters,
)
from rent_ledger.record_normalizer import normalize_payments, normalize_properties


class PortfolioFixture(unittest.TestCase):
    """Three properties: one paid-up tenant, one pending tenant from June, one vacant."""

    def setUp(self):
        self.properties = normalize_properties([
            {
                "_id": "p1", "shopName": "Corner Shop", "shopNumber": "S-1",
                "rent": {"amount": 10000, "maintenance": 500},
                "tenant": {"_id": "t1", "name": "Asha", "startDate": "2024-01-10",
                           "rentStatus": "paid", "maintenanceStatus": "paid", "lightBillStatus": "paid"},
            },
            {
                "_id": "p2", "shopName": "Flat 2A", "shopNumber": "F-2A",
                "rent": {"amount": 8000, "maintenance": 400},
                "tenant": {"_id": "t2", "name": "Bilal", "startDate": "2024-06-01", "rentStatus": "pending"},
            },
            {
                "_id": "p3", "shopName": "Plot 7",
                "rent": {"amount": 5000},
            },
        ])
        self.payments = normalize_payments([
            {"propertyId": "p1", "type": "rent", "amount": 10000, "year": 2024, "month": 3},
            {"propertyId": "p1", "type": "maintenance", "amount": 500, "year": 2024, "month": 3},
            {"propertyId": "p1", "type": "advance", "amount": 20000, "year": 2024, "month": 1},
            {"propertyId": "p2", "type": "rent", "amount": 8000, "year": 2024, "month": 6},
            {"propertyId": "p1", "type": "rent", "amount": 10000, "year": 2023, "month": 12},
        ])


class TestAggregate(PortfolioFixture):
    """Test cases for the analytics summary."""

    def test_single_month(self):
        summary = aggregate(self.properties, self.payments, {"year": 2024, "month": 3})

        self.assertEqual(summary['period'], {'year': 2024, 'month': 3, 'month_name': 'March'})
        self.assertEqual(summary['earnings']['total'], Decimal('10500'))
        self.assertEqual(summary['earnings']['count'], 2)
        self.assertEqual(summary['spends']['total'], Decimal('500'))
        self.assertEqual(summary['spends']['paid'], Decimal('500'))
        self.assertEqual(summary['spends']['pending'], Decimal('0'))
        self.assertEqual(summary['spends']['count'], 1)
        self.assertEqual(summary['net_amount'], Decimal('10000'))
        self.assertEqual(summary['profit_margin'], 95)
        self.assertEqual(summary['occupancy_rate'], 67)
        self.assertEqual(summary['collection_efficiency'], 56)

    def test_whole_year_counts_advance_as_earnings(self):
        summary = aggregate(self.properties, self.payments, {"year": 2024})

        self.assertEqual(summary['earnings']['by_type']['advance'], Decimal('20000'))
        self.assertEqual(summary['earnings']['total'], Decimal('38500'))
        # Twelve months for p1, June to December for p2
        self.assertEqual(summary['spends']['total'], Decimal('8800'))
        self.assertEqual(summary['spends']['pending'], Decimal('8300'))

    def test_no_filters_reports_one_month_of_maintenance(self):
        summary = aggregate(self.properties, self.payments)

        self.assertEqual(summary['earnings']['total'], Decimal('48500'))
        self.assertEqual(summary['spends']['total'], Decimal('900'))
        self.assertIsNone(summary['period']['year'])

    def test_pending_rent_follows_status_flags(self):
        pending = aggregate(self.properties, self.payments, {"year": 2024})['pending_rent']

        self.assertEqual(pending['total'], Decimal('8000'))
        self.assertEqual(pending['count'], 1)
        self.assertEqual(pending['details'], [{
            'property_id': 'p2',
            'property': 'Flat 2A',
            'property_number': 'F-2A',
            'tenant': 'Bilal',
            'amount': Decimal('8000'),
        }])

    def test_property_filter(self):
        summary = aggregate(self.properties, self.payments, {"propertyId": "p2"})

        self.assertEqual(summary['property_count'], 1)
        self.assertEqual(summary['occupancy_rate'], 100)
        self.assertEqual(summary['earnings']['total'], Decimal('8000'))
        self.assertEqual(summary['collection_efficiency'], 0)

    def test_empty_portfolio(self):
        summary = aggregate([], [])

        self.assertEqual(summary['earnings']['total'], Decimal('0'))
        self.assertEqual(summary['profit_margin'], 0)
        self.assertEqual(summary['occupancy_rate'], 0)
        self.assertEqual(summary['collection_efficiency'], 100)

    def test_aggregate_is_repeatable(self):
        filters = {"year": 2024, "month": 6}
        self.assertEqual(
            aggregate(self.properties, self.payments, filters),
            aggregate(self.properties, self.payments, filters)
        )

    def test_out_of_range_month_is_ignored(self):
        self.assertEqual(normalize_filters({"year": "2024", "month": 13}),
                         {'year': 2024, 'month': None, 'property_id': None})
        self.assertEqual(
            aggregate(self.properties, self.payments, {"year": 2024, "month": 13}),
            aggregate(self.properties, self.payments, {"year": 2024})
        )


class TestDashboardStats(PortfolioFixture):
    """Test cases for the overview and statistics builders."""

    def test_overview(self):
        overview = build_overview(self.properties)

        self.assertEqual(overview['total_properties'], 3)
        self.assertEqual(overview['total_tenants'], 2)
        self.assertEqual(overview['total_rent'], Decimal('23000'))
        self.assertEqual(overview['pending_rent_count'], 1)
        # Missing flags count as pending
        self.assertEqual(overview['pending_maintenance_count'], 1)
        self.assertEqual(overview['pending_light_count'], 1)
        self.assertEqual(overview['pending_rent'], Decimal('8000'))
        self.assertEqual(overview['rent_collected'], Decimal('15000'))

    def test_monthly_stats(self):
        stats = build_monthly_stats(self.properties, self.payments, 2024, 6)

        self.assertEqual(stats['month_name'], 'June')
        self.assertEqual(stats['rent'], {'collected': Decimal('8000'), 'pending': Decimal('10000')})
        self.assertEqual(stats['maintenance'], {'collected': Decimal('0'), 'pending': Decimal('900')})
        self.assertEqual(stats['light'], {'collected': Decimal('0'), 'pending': Decimal('0')})

    def test_yearly_stats(self):
        stats = build_yearly_stats(self.payments, 2024)

        self.assertEqual(sorted(stats['monthly_breakdown']), list(range(1, 13)))
        self.assertEqual(stats['monthly_breakdown'][3]['rent'], Decimal('10000'))
        self.assertEqual(stats['monthly_breakdown'][6]['rent'], Decimal('8000'))
        self.assertEqual(stats['totals'], {
            'rent': Decimal('18000'),
            'maintenance': Decimal('500'),
            'light': Decimal('0'),
        })


if __name__ == '__main__':
    unittest.main()
