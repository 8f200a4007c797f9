#!/usr/bin/env python3
"""
Portfolio Aggregator Module

This module folds payments and reconciled periods across the whole portfolio
into the dashboard and analytics summaries: earnings, maintenance spends,
pending rent, profit margin, occupancy rate and collection efficiency.

Two pending-rent figures coexist on purpose. The 'pending_rent' block of the
analytics summary is driven by each tenant's rent status flag, while the
outstanding listing (period_reconciler) is driven by per-period
reconciliation. They answer different questions and are kept apart.

Known quirk: advance receipts count as earnings.
"""

import logging
from decimal import Decimal
from typing import Dict, Any, List, Optional, Iterable

from rent_ledger.payment_ledger import index_by_period, payments_for, sum_amounts, sum_by_type
from rent_ledger.period_reconciler import reconcile_period
from rent_ledger.record_normalizer import STATUS_PENDING, active_tenant
from rent_ledger.schedule_resolver import due_for_period, resolve_schedule
from rent_ledger.utils.helpers import (
    CHARGE_TYPES,
    get_month_name,
    make_period,
    round_percent,
    to_decimal,
    to_int,
    year_periods,
)

# Configure logging
logger = logging.getLogger(__name__)

# Charge types reported by the monthly and yearly statistics
STAT_TYPES = ('rent', 'maintenance', 'light')


def _percentage(part: Decimal, whole: Decimal) -> int:
    """Whole-number percentage of part over whole; callers guard whole == 0."""
    return round_percent(Decimal(part) / Decimal(whole) * Decimal('100'))


def normalize_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Read the optional year, month and property filters.

    Accepts 'property_id' or 'propertyId'. Empty values mean "no filter".
    """
    filters = filters or {}
    property_id = filters.get('property_id', filters.get('propertyId'))

    month = to_int(filters.get('month'))
    if month is not None and not 1 <= month <= 12:
        logger.warning(f"Ignoring out-of-range month filter: {month}")
        month = None

    return {
        'year': to_int(filters.get('year')),
        'month': month,
        'property_id': str(property_id) if property_id not in (None, "") else None,
    }


def filter_periods(year: Optional[int], month: Optional[int]) -> Optional[List[str]]:
    """
    Get the billing periods covered by a year/month filter.

    Returns None when no year is given: the summary then reports one month's
    charges per occupied property.
    """
    if year is None:
        return None
    if month is None:
        return year_periods(year)
    return [make_period(year, month)]


def maintenance_due(
    property_record: Dict[str, Any],
    tenant: Dict[str, Any],
    periods: Optional[List[str]]
) -> Decimal:
    """Total maintenance due for an occupied property over the filtered periods."""
    if periods is None:
        return to_decimal(property_record.get('maintenance'), 'maintenance')

    schedule = resolve_schedule(property_record, tenant, until=periods[-1], since=periods[0])
    return sum(
        (due_for_period(schedule, period)['maintenance'] for period in periods),
        Decimal('0')
    )


def build_pending_rent(occupied: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    List occupied properties whose tenant's rent status is pending.

    Returns:
        Dictionary with 'total', 'count' and 'details'
    """
    details = []
    for property_record in occupied:
        tenant = property_record['tenant']
        if tenant.get('rent_status') != STATUS_PENDING:
            continue
        details.append({
            'property_id': property_record.get('property_id'),
            'property': property_record.get('label', ''),
            'property_number': property_record.get('number', ''),
            'tenant': tenant.get('name', ''),
            'amount': to_decimal(property_record.get('rent'), 'rent'),
        })

    return {
        'total': sum((detail['amount'] for detail in details), Decimal('0')),
        'count': len(details),
        'details': details,
    }


def aggregate(
    properties: Iterable[Dict[str, Any]],
    payments: Iterable[Dict[str, Any]],
    filters: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build the portfolio summary for the analytics screen.

    Args:
        properties: Normalized property dictionaries
        payments: Normalized payment dictionaries
        filters: Optional 'year', 'month' (billing period, not payment date)
            and 'property_id'

    Returns:
        Portfolio summary dictionary
    """
    selected = normalize_filters(filters)
    property_id = selected['property_id']

    considered = [
        p for p in properties
        if property_id is None or p.get('property_id') == property_id
    ]
    occupied = [p for p in considered if active_tenant(p) is not None]

    matching = payments_for(
        payments,
        property_id=property_id,
        year=selected['year'],
        month=selected['month']
    )

    # Earnings: every matching payment, advance included
    by_type = {charge_type: sum_by_type(matching, charge_type) for charge_type in CHARGE_TYPES}
    earnings_total = sum_amounts(matching)

    # Spends: maintenance due across occupied properties versus maintenance paid
    periods = filter_periods(selected['year'], selected['month'])
    spends_total = sum(
        (maintenance_due(p, p['tenant'], periods) for p in occupied),
        Decimal('0')
    )
    spends_paid = by_type['maintenance']
    maintenance_payments = [p for p in matching if p.get('type') == 'maintenance']

    pending_rent = build_pending_rent(occupied)

    net_amount = earnings_total - spends_total
    profit_margin = _percentage(net_amount, earnings_total) if earnings_total > 0 else 0

    occupancy_rate = _percentage(len(occupied), len(considered)) if considered else 0

    total_expected_rent = sum(
        (to_decimal(p.get('rent'), 'rent') for p in occupied),
        Decimal('0')
    )
    if total_expected_rent > 0:
        collection_efficiency = _percentage(total_expected_rent - pending_rent['total'], total_expected_rent)
    else:
        collection_efficiency = 100

    summary = {
        'period': {
            'year': selected['year'],
            'month': selected['month'],
            'month_name': get_month_name(selected['month']) if selected['month'] else '',
        },
        'earnings': {
            'total': earnings_total,
            'by_type': by_type,
            'count': len(matching),
        },
        'spends': {
            'total': spends_total,
            'paid': spends_paid,
            'pending': max(spends_total - spends_paid, Decimal('0')),
            'count': len(maintenance_payments),
        },
        'pending_rent': pending_rent,
        'net_amount': net_amount,
        'profit_margin': profit_margin,
        'property_count': len(considered),
        'occupied_count': len(occupied),
        'occupancy_rate': occupancy_rate,
        'collection_efficiency': collection_efficiency,
    }

    logger.info(
        f"Aggregated {len(considered)} properties and {len(matching)} payments: "
        f"earnings={earnings_total}, spends={spends_total}, margin={profit_margin}%"
    )

    return summary


def build_overview(properties: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Build the dashboard overview from the tenants' status flags.

    Args:
        properties: Normalized property dictionaries

    Returns:
        Dictionary with property and tenant counts, total monthly rent,
        pending counts per status flag, pending rent and rent collected
    """
    properties = list(properties)
    tenants = [t for t in (active_tenant(p) for p in properties) if t is not None]

    total_rent = sum((to_decimal(p.get('rent'), 'rent') for p in properties), Decimal('0'))
    pending_rent = build_pending_rent(p for p in properties if active_tenant(p) is not None)

    return {
        'total_properties': len(properties),
        'total_tenants': len(tenants),
        'total_rent': total_rent,
        'pending_rent_count': sum(1 for t in tenants if t.get('rent_status') == STATUS_PENDING),
        'pending_maintenance_count': sum(1 for t in tenants if t.get('maintenance_status') == STATUS_PENDING),
        'pending_light_count': sum(1 for t in tenants if t.get('light_bill_status') == STATUS_PENDING),
        'pending_rent': pending_rent['total'],
        'rent_collected': max(total_rent - pending_rent['total'], Decimal('0')),
    }


def build_monthly_stats(
    properties: Iterable[Dict[str, Any]],
    payments: Iterable[Dict[str, Any]],
    year: int,
    month: int
) -> Dict[str, Any]:
    """
    Collected and pending amounts per charge type for one billing month.

    Pending comes from reconciling each occupied property's dues for the
    month against its payments.

    Args:
        properties: Normalized property dictionaries
        payments: Normalized payment dictionaries
        year: Billing year
        month: Billing month (1-12)

    Returns:
        Dictionary with 'year', 'month', 'month_name' and a
        {'collected', 'pending'} block per charge type
    """
    period = make_period(year, month)
    month_payments = payments_for(payments, year=year, month=month)
    payment_index = index_by_period(month_payments)

    stats = {
        'year': year,
        'month': month,
        'month_name': get_month_name(month),
    }
    for charge_type in STAT_TYPES:
        stats[charge_type] = {
            'collected': sum_by_type(month_payments, charge_type),
            'pending': Decimal('0'),
        }

    for property_record in properties:
        tenant = active_tenant(property_record)
        if tenant is None:
            continue
        schedule = resolve_schedule(property_record, tenant, until=period, since=period)
        result = reconcile_period(
            due_for_period(schedule, period),
            payment_index.get((property_record.get('property_id'), year, month), [])
        )
        for charge_type in STAT_TYPES:
            stats[charge_type]['pending'] += result['pending'][charge_type]

    return stats


def build_yearly_stats(payments: Iterable[Dict[str, Any]], year: int) -> Dict[str, Any]:
    """
    Collected amounts per charge type for every month of a year.

    Args:
        payments: Normalized payment dictionaries
        year: Billing year

    Returns:
        Dictionary with 'year', 'monthly_breakdown' (month number to amounts
        per charge type) and 'totals'
    """
    year_payments = payments_for(payments, year=year)

    breakdown = {}
    for month in range(1, 13):
        month_payments = payments_for(year_payments, month=month)
        breakdown[month] = {
            charge_type: sum_by_type(month_payments, charge_type)
            for charge_type in STAT_TYPES
        }

    totals = {
        charge_type: sum((breakdown[month][charge_type] for month in breakdown), Decimal('0'))
        for charge_type in STAT_TYPES
    }

    return {
        'year': year,
        'monthly_breakdown': breakdown,
        'totals': totals,
    }
