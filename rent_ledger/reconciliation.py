#!/usr/bin/env python3
"""
Rent Ledger Reconciliation - Main CLI Entrypoint

This script runs the whole ledger over one snapshot of the portfolio:
1. Normalizes the property and payment records exported from the API
2. Reconciles every active period of the year and lists what is outstanding
3. Computes next due dates and risk for every occupied property
4. Aggregates the portfolio summary and dashboard overview
5. Writes the combined result as JSON

Usage:
  python -m rent_ledger.reconciliation --properties PROPERTIES.json --payments PAYMENTS.json
      [--year YEAR] [--month MONTH] [--property_id PROPERTY_ID] [--today YYYY-MM-DD]
      [--settings SETTINGS.json] [--output RESULT.json] [--verbose]

Examples:
  rent-ledger --properties properties.json --payments payments.json --year 2024
  rent-ledger --properties properties.json --payments payments.json --year 2024 --month 3 --today 2024-03-10
"""

import os
import sys
import argparse
import logging
import datetime
from typing import Dict, Any, List, Optional

from rent_ledger.due_classifier import upcoming_dues
from rent_ledger.errors import LedgerError
from rent_ledger.period_reconciler import build_outstanding_entries, summarize_outstanding
from rent_ledger.portfolio_aggregator import aggregate, build_overview
from rent_ledger.record_normalizer import normalize_payments, normalize_properties
from rent_ledger.settings_loader import load_settings, settings_path_from_env
from rent_ledger.utils.helpers import load_json, make_period, parse_date, save_json

# Configure logging
logger = logging.getLogger(__name__)


def process_portfolio(
    raw_properties: List[Dict[str, Any]],
    raw_payments: List[Dict[str, Any]],
    today: datetime.date,
    year: Optional[int] = None,
    month: Optional[int] = None,
    property_id: Optional[str] = None,
    settings: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Process one portfolio snapshot.

    Args:
        raw_properties: Property records as returned by the API
        raw_payments: Payment records as returned by the API
        today: Reference date for due dates and the outstanding cut-off
        year: Billing year; defaults to today's year
        month: Optional billing month filter for the summary
        property_id: Optional property filter
        settings: Optional settings dictionary

    Returns:
        Dictionary with 'summary', 'overview', 'outstanding',
        'outstanding_summary' and 'due_items'
    """
    year = year or today.year
    logger.info(f"Processing portfolio for {year}, month={month or 'all'}, property={property_id or 'all'}")

    properties = normalize_properties(raw_properties)
    payments = normalize_payments(raw_payments)

    if property_id:
        scoped_properties = [p for p in properties if p.get('property_id') == property_id]
        if not scoped_properties:
            logger.warning(f"Property {property_id} not found in snapshot")
    else:
        scoped_properties = properties

    # Periods after the current month are not yet due
    cut_off = make_period(today.year, today.month) if year >= today.year else None
    outstanding = build_outstanding_entries(scoped_properties, payments, year, until=cut_off)

    filters = {'year': year, 'month': month, 'property_id': property_id}

    return {
        'filters': filters,
        'today': today,
        'summary': aggregate(properties, payments, filters),
        'overview': build_overview(scoped_properties),
        'outstanding': outstanding,
        'outstanding_summary': summarize_outstanding(outstanding),
        'due_items': upcoming_dues(scoped_properties, today, settings),
    }


def _records(data: Any, name: str) -> List[Dict[str, Any]]:
    """Accept either a bare JSON list or an API response with a 'data' list."""
    if isinstance(data, dict):
        data = data.get('data', data.get(name, []))
    if not isinstance(data, list):
        raise LedgerError(f"Expected a list of {name}")
    return data


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Rent Ledger Reconciliation')

    parser.add_argument(
        '--properties',
        type=str,
        required=True,
        help='JSON file with the property records (tenants embedded)'
    )
    parser.add_argument(
        '--payments',
        type=str,
        required=True,
        help='JSON file with the payment records'
    )
    parser.add_argument(
        '--year',
        type=int,
        help='Billing year (default: the year of --today)'
    )
    parser.add_argument(
        '--month',
        type=int,
        choices=range(1, 13),
        metavar='MONTH',
        help='Optional billing month (1-12) for the summary'
    )
    parser.add_argument(
        '--property_id',
        type=str,
        help='Optional property identifier to restrict the run to'
    )
    parser.add_argument(
        '--today',
        type=str,
        help='Reference date in YYYY-MM-DD format (default: the current date)'
    )
    parser.add_argument(
        '--settings',
        type=str,
        default=settings_path_from_env(),
        help='JSON settings file (default: $RENT_LEDGER_SETTINGS_PATH)'
    )
    parser.add_argument(
        '--output',
        type=str,
        default=os.path.join('Output', 'ledger_result.json'),
        help='Where to write the JSON result'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ledger command."""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        today = parse_date(args.today) if args.today else datetime.date.today()
        if today is None:
            raise LedgerError(f"Invalid --today date: {args.today}")

        settings = load_settings(args.settings)
        raw_properties = _records(load_json(args.properties), 'properties')
        raw_payments = _records(load_json(args.payments), 'payments')

        results = process_portfolio(
            raw_properties,
            raw_payments,
            today,
            year=args.year,
            month=args.month,
            property_id=args.property_id,
            settings=settings
        )

        if not save_json(args.output, results):
            raise LedgerError(f"Could not write result to {args.output}")

        summary = results['summary']
        outstanding_summary = results['outstanding_summary']

        print("\n" + "=" * 80)
        print(f"LEDGER RECONCILIATION COMPLETE - {today.isoformat()}")
        print("=" * 80)
        print(f"Properties: {summary['property_count']} ({summary['occupancy_rate']}% occupied)")
        print(f"Earnings: {summary['earnings']['total']} from {summary['earnings']['count']} payments")
        print(f"Net Amount: {summary['net_amount']} ({summary['profit_margin']}% margin)")
        print(f"Collection Efficiency: {summary['collection_efficiency']}%")
        print(
            f"Outstanding: {outstanding_summary['total_outstanding']} across "
            f"{outstanding_summary['entry_count']} periods"
        )
        print(f"Overdue Tenancies: {sum(1 for item in results['due_items'] if item['overdue'])}")
        print(f"\nResult written to: {args.output}")
        print("=" * 80 + "\n")

        return 0

    except Exception as e:
        logger.exception(f"Error during ledger reconciliation: {str(e)}")
        print(f"\nERROR: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
