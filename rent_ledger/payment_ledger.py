#!/usr/bin/env python3
"""
Payment Ledger Module

This module provides the read side of the payment ledger: filtering the flat
payment collection by property, tenant, billing period and charge type, and
summing amounts. Payments are append-only facts; nothing here mutates them.
"""

import logging
from decimal import Decimal
from typing import Dict, Any, List, Optional, Iterable

from rent_ledger.utils.helpers import CHARGE_TYPES, to_decimal

# Configure logging
logger = logging.getLogger(__name__)


def payments_for(
    payments: Iterable[Dict[str, Any]],
    property_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
    charge_type: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Filter payments. Every filter is optional; given filters must all match.

    Args:
        payments: Normalized payment dictionaries
        property_id: Only payments for this property
        tenant_id: Only payments made by this tenant
        year: Only payments attributed to this billing year
        month: Only payments attributed to this billing month (1-12)
        charge_type: Only payments of this type

    Returns:
        Matching payments in input order
    """
    matches = []

    for payment in payments:
        if property_id is not None and payment.get('property_id') != property_id:
            continue
        if tenant_id is not None and payment.get('tenant_id') != tenant_id:
            continue
        if year is not None and payment.get('year') != year:
            continue
        if month is not None and payment.get('month') != month:
            continue
        if charge_type is not None and payment.get('type') != charge_type:
            continue
        matches.append(payment)

    return matches


def sum_by_type(payments: Iterable[Dict[str, Any]], charge_type: str) -> Decimal:
    """
    Sum the amounts of payments of one charge type.

    Missing or non-numeric amounts count as zero.
    """
    return sum(
        (to_decimal(payment.get('amount')) for payment in payments if payment.get('type') == charge_type),
        Decimal('0')
    )


def sum_amounts(payments: Iterable[Dict[str, Any]]) -> Decimal:
    """Sum the amounts of all payments regardless of type."""
    return sum((to_decimal(payment.get('amount')) for payment in payments), Decimal('0'))


def totals_by_type(payments: Iterable[Dict[str, Any]]) -> Dict[str, Decimal]:
    """
    Total payments per charge type, as shown on the payment history screen.

    Args:
        payments: Normalized payment dictionaries

    Returns:
        Dictionary with one key per charge type plus 'total'
    """
    totals = {charge_type: Decimal('0') for charge_type in CHARGE_TYPES}
    totals['total'] = Decimal('0')

    for payment in payments:
        amount = to_decimal(payment.get('amount'))
        charge_type = payment.get('type')
        if charge_type in CHARGE_TYPES:
            totals[charge_type] += amount
        else:
            logger.debug(f"Payment {payment.get('payment_id')} has unknown type {charge_type!r}")
        totals['total'] += amount

    return totals


def sort_by_paid_on(
    payments: Iterable[Dict[str, Any]],
    descending: bool = True
) -> List[Dict[str, Any]]:
    """
    Sort payments by the date they were actually paid.

    Payments without a paid_on date sort last in either direction. The sort
    is stable, so equal dates keep their input order.
    """
    payments = list(payments)
    dated = [p for p in payments if p.get('paid_on') is not None]
    undated = [p for p in payments if p.get('paid_on') is None]

    dated.sort(key=lambda p: p['paid_on'], reverse=descending)
    return dated + undated


def index_by_period(payments: Iterable[Dict[str, Any]]) -> Dict[tuple, List[Dict[str, Any]]]:
    """
    Group payments by (property_id, year, month).

    Args:
        payments: Normalized payment dictionaries

    Returns:
        Dictionary mapping (property_id, year, month) to payments in input order
    """
    index: Dict[tuple, List[Dict[str, Any]]] = {}
    for payment in payments:
        key = (payment.get('property_id'), payment.get('year'), payment.get('month'))
        index.setdefault(key, []).append(payment)
    return index
