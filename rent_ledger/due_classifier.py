#!/usr/bin/env python3
"""
Due-Date & Risk Classifier Module

This module computes each tenancy's next rent due date and classifies how
risky the tenancy currently is.

Rent is billed per calendar month on the 1st, whatever the move-in day was.
A due date equal to today is already current, so the next due date is always
the first 1st-of-month strictly after today.
"""

import math
import logging
import datetime
from decimal import Decimal
from typing import Dict, Any, List, Optional, Iterable, Union

from dateutil.relativedelta import relativedelta

from rent_ledger.record_normalizer import STATUS_PENDING, active_tenant
from rent_ledger.settings_loader import resolve_settings

# Configure logging
logger = logging.getLogger(__name__)

RISK_LOW = 'Low'
RISK_MEDIUM = 'Medium'
RISK_HIGH = 'High'

SECONDS_PER_DAY = 86400

Today = Union[datetime.date, datetime.datetime]


def next_due_date(start_date: Optional[datetime.date], today: Today) -> datetime.date:
    """
    Get the first 1st-of-month on or after the tenancy start that is strictly after today.

    Args:
        start_date: Tenancy start date; today is used when missing
        today: Reference date or datetime

    Returns:
        Next due date
    """
    today_date = today.date() if isinstance(today, datetime.datetime) else today
    anchor = start_date or today_date

    due_date = anchor.replace(day=1)
    while not _is_after(due_date, today):
        due_date += relativedelta(months=1)

    return due_date


def _is_after(due_date: datetime.date, today: Today) -> bool:
    """Check whether the due date (at midnight) is strictly after today."""
    if isinstance(today, datetime.datetime):
        return datetime.datetime.combine(due_date, datetime.time(), tzinfo=today.tzinfo) > today
    return due_date > today


def days_until(due_date: datetime.date, today: Today) -> int:
    """
    Whole days from today until the due date, rounded up.

    Positive means days remaining, negative means days overdue.
    """
    if isinstance(today, datetime.datetime):
        due_moment = datetime.datetime.combine(due_date, datetime.time(), tzinfo=today.tzinfo)
        return math.ceil((due_moment - today).total_seconds() / SECONDS_PER_DAY)
    return (due_date - today).days


def classify_risk(
    days_until_or_overdue: int,
    overdue: bool,
    settings: Optional[Dict[str, Any]] = None
) -> str:
    """
    Classify a tenancy's risk.

    High is checked first: every High case would also satisfy the Medium rule.

    Args:
        days_until_or_overdue: Signed days until the due date
        overdue: Whether the tenancy is overdue
        settings: Optional settings with 'risk' thresholds

    Returns:
        'High', 'Medium' or 'Low'
    """
    risk_settings = resolve_settings(settings)['risk']

    if overdue and days_until_or_overdue < -risk_settings['high_risk_overdue_days']:
        return RISK_HIGH
    if overdue or days_until_or_overdue <= risk_settings['due_soon_days']:
        return RISK_MEDIUM
    return RISK_LOW


def next_due(
    tenant: Optional[Dict[str, Any]],
    today: Today,
    amount: Decimal = Decimal('0'),
    settings: Optional[Dict[str, Any]] = None
) -> Optional[Dict[str, Any]]:
    """
    Compute the next due item for a tenant.

    Args:
        tenant: Normalized tenant dictionary
        today: Reference date or datetime
        amount: Monthly rent amount to report on the item
        settings: Optional settings with 'risk' thresholds

    Returns:
        Due item dictionary, or None if there is no active tenant
    """
    if not tenant or not tenant.get('property_id'):
        return None

    due_date = next_due_date(tenant.get('start_date'), today)
    days = days_until(due_date, today)

    # Date arithmetic and the status flag are independent signals
    overdue = days < 0 or tenant.get('rent_status') == STATUS_PENDING

    return {
        'tenant_id': tenant.get('tenant_id'),
        'tenant': tenant.get('name', ''),
        'status': tenant.get('rent_status'),
        'due_date': due_date,
        'days_until_or_overdue': days,
        'amount': amount,
        'overdue': overdue,
        'risk': classify_risk(days, overdue, settings),
    }


def upcoming_dues(
    properties: Iterable[Dict[str, Any]],
    today: Today,
    settings: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Build due items for every occupied property, overdue items first.

    Args:
        properties: Normalized property dictionaries
        today: Reference date or datetime
        settings: Optional settings with 'risk' thresholds and 'upcoming_limit'
        limit: Maximum number of items to return; overrides the settings

    Returns:
        Due items sorted by overdue (overdue first), then by days until due
    """
    items = []

    for property_record in properties:
        item = next_due(
            active_tenant(property_record),
            today,
            amount=property_record.get('rent', Decimal('0')),
            settings=settings
        )
        if item is None:
            continue
        item['property_id'] = property_record.get('property_id')
        item['property'] = property_record.get('label', '')
        items.append(item)

    items.sort(key=lambda item: (not item['overdue'], item['days_until_or_overdue']))

    if limit is None:
        limit = resolve_settings(settings).get('upcoming_limit')
    if limit is not None:
        items = items[:limit]

    overdue_count = sum(1 for item in items if item['overdue'])
    logger.info(f"Built {len(items)} due items, {overdue_count} overdue")

    return items
