#!/usr/bin/env python3
"""
Period Reconciler Module

This module nets amounts due against amounts paid for each billing period and
charge type, and builds the outstanding-payments listing and the per-tenancy
monthly statement from those reconciliations.

Each period is reconciled on its own: an overpayment in one period is not
carried forward to reduce the next period's due.
"""

import logging
from decimal import Decimal
from typing import Dict, Any, List, Optional, Iterable, Union

from rent_ledger.payment_ledger import index_by_period, payments_for, sum_by_type
from rent_ledger.record_normalizer import active_tenant
from rent_ledger.schedule_resolver import due_for_period, resolve_schedule
from rent_ledger.utils.helpers import (
    CHARGE_TYPES,
    get_period_info,
    make_period,
    month_from_name,
    to_decimal,
)

# Configure logging
logger = logging.getLogger(__name__)


def reconcile_period(
    due_by_type: Dict[str, Any],
    payments: Iterable[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Reconcile one period's dues against the payments attributed to it.

    Args:
        due_by_type: Dictionary mapping charge type to amount due
        payments: Payments attributed to the same property and period

    Returns:
        Dictionary with 'paid' and 'pending' (both by charge type) and 'total'
        (the sum of pending amounts). Pending is never negative.
    """
    payments = list(payments)
    paid = {}
    pending = {}

    for charge_type in CHARGE_TYPES:
        due = to_decimal(due_by_type.get(charge_type), f"{charge_type} due")
        paid[charge_type] = sum_by_type(payments, charge_type)
        pending[charge_type] = max(due - paid[charge_type], Decimal('0'))

    return {
        'paid': paid,
        'pending': pending,
        'total': sum(pending.values(), Decimal('0')),
    }


def build_outstanding_entries(
    properties: Iterable[Dict[str, Any]],
    payments: Iterable[Dict[str, Any]],
    year: int,
    until: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    List every (property, period) of a year that still has something pending.

    Args:
        properties: Normalized property dictionaries
        payments: Normalized payment dictionaries
        year: Billing year to reconcile
        until: Optional last period (YYYYMM) to include; defaults to December

    Returns:
        List of outstanding entries, one per property and period with a
        non-zero outstanding total, in property then period order
    """
    payment_index = index_by_period(payments)
    last_period = min(until, make_period(year, 12)) if until else make_period(year, 12)
    rows = []

    for property_record in properties:
        tenant = active_tenant(property_record)
        if tenant is None:
            continue

        schedule = resolve_schedule(
            property_record,
            tenant,
            until=last_period,
            since=make_period(year, 1)
        )

        for period in schedule['active_periods']:
            info = get_period_info(period)
            period_payments = payment_index.get(
                (property_record['property_id'], info['year'], info['month']), []
            )
            result = reconcile_period(due_for_period(schedule, period), period_payments)

            # Fully settled periods are not reported
            if result['total'] <= 0:
                continue

            rows.append({
                'flat_id': property_record['property_id'],
                'flat': property_record.get('label', ''),
                'tenant_id': tenant.get('tenant_id'),
                'tenant': tenant.get('name', ''),
                'tenant_phone': tenant.get('phone', ''),
                'period': info['month_name'],
                'year': info['year'],
                'month': info['month'],
                'rent_pending': result['pending']['rent'],
                'maintenance_pending': result['pending']['maintenance'],
                'light_pending': result['pending']['light'],
                'advance_pending': result['pending']['advance'],
                'total_outstanding': result['total'],
            })

    logger.info(f"Built {len(rows)} outstanding entries for {year}")
    return rows


def filter_outstanding_entries(
    rows: Iterable[Dict[str, Any]],
    tenant_id: Optional[str] = None,
    flat_id: Optional[str] = None,
    month: Union[int, str, None] = None,
    search: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Apply the outstanding table filters.

    Args:
        rows: Outstanding entries
        tenant_id: Only rows for this tenant
        flat_id: Only rows for this property
        month: Only rows for this month, as a number (1-12) or a month name
        search: Case-insensitive substring of the tenant name or flat label

    Returns:
        Matching rows in input order
    """
    if isinstance(month, str):
        month_number = month_from_name(month)
        if month_number is None:
            logger.warning(f"Unknown month filter: {month}")
            return []
        month = month_number

    needle = search.strip().lower() if search else ''
    matches = []

    for row in rows:
        if tenant_id and row.get('tenant_id') != tenant_id:
            continue
        if flat_id and row.get('flat_id') != flat_id:
            continue
        if month and row.get('month') != month:
            continue
        if needle and needle not in (row.get('tenant') or '').lower() \
                and needle not in (row.get('flat') or '').lower():
            continue
        matches.append(row)

    return matches


def summarize_outstanding(rows: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Summarize outstanding entries for the table header.

    Returns:
        Dictionary with 'total_outstanding', 'entry_count', 'property_count'
        and 'tenant_count'
    """
    rows = list(rows)
    return {
        'total_outstanding': sum((row['total_outstanding'] for row in rows), Decimal('0')),
        'entry_count': len(rows),
        'property_count': len({row.get('flat_id') for row in rows}),
        'tenant_count': len({row.get('tenant_id') for row in rows}),
    }


def build_tenancy_statement(
    property_record: Dict[str, Any],
    payments: Iterable[Dict[str, Any]],
    year: int
) -> List[Dict[str, Any]]:
    """
    Build the month-by-month paid and pending statement for one property.

    Only the tenant's active months within the year are included.

    Args:
        property_record: Normalized property dictionary
        payments: Normalized payment dictionaries
        year: Billing year

    Returns:
        List of monthly rows with '<type>_paid', '<type>_pending' per charge
        type and 'total_pending'
    """
    tenant = active_tenant(property_record)
    if tenant is None:
        logger.debug(f"Property {property_record.get('property_id')} has no active tenant")
        return []

    schedule = resolve_schedule(
        property_record,
        tenant,
        until=make_period(year, 12),
        since=make_period(year, 1)
    )
    property_payments = payments_for(payments, property_id=property_record['property_id'], year=year)

    statement = []
    for period in schedule['active_periods']:
        info = get_period_info(period)
        result = reconcile_period(
            due_for_period(schedule, period),
            payments_for(property_payments, month=info['month'])
        )

        row = {'period': period, 'month': info['month'], 'month_name': info['month_name']}
        for charge_type in CHARGE_TYPES:
            row[f'{charge_type}_paid'] = result['paid'][charge_type]
            row[f'{charge_type}_pending'] = result['pending'][charge_type]
        row['total_pending'] = result['total']
        statement.append(row)

    return statement


def count_outstanding_months(statement: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Count, per charge type, the statement months that still have something pending."""
    counts = {charge_type: 0 for charge_type in CHARGE_TYPES}
    for row in statement:
        for charge_type in CHARGE_TYPES:
            if row.get(f'{charge_type}_pending', Decimal('0')) > 0:
                counts[charge_type] += 1
    return counts
