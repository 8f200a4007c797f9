#!/usr/bin/env python3
"""
Charge Schedule Resolver Module

This module derives, for a property and its tenant, the recurring monthly
charges by type and the billing periods during which the tenant is liable.

Occupancy is resolved per calendar month: the move-in month and the move-out
month are both billed in full. The advance is a one-time charge that is only
due in the tenant's first active period.
"""

import logging
import datetime
from decimal import Decimal
from typing import Dict, Any, Optional, Union

from rent_ledger.errors import ConfigurationError
from rent_ledger.utils.helpers import (
    CHARGE_TYPES,
    generate_period_list,
    parse_period,
    period_of,
)

# Configure logging
logger = logging.getLogger(__name__)

PeriodBound = Union[str, datetime.date, None]


def _as_period(bound: PeriodBound) -> Optional[str]:
    """Convert a date or YYYYMM string bound into a YYYYMM period."""
    if bound is None:
        return None
    if isinstance(bound, datetime.date):
        return period_of(bound)
    if parse_period(bound) is None:
        raise ConfigurationError(f"Invalid period bound (expected YYYYMM): {bound!r}")
    return bound


def zero_dues() -> Dict[str, Decimal]:
    """Get a due-by-type mapping with every charge type at zero."""
    return {charge_type: Decimal('0') for charge_type in CHARGE_TYPES}


def get_monthly_charges(property_record: Dict[str, Any]) -> Dict[str, Decimal]:
    """
    Get the property's charge schedule by type.

    The light bill is the snapshot cost of the most recent meter reading
    (last unit x unit rate), billed as one flat monthly charge.

    Args:
        property_record: Normalized property dictionary

    Returns:
        Dictionary mapping charge type to amount
    """
    return {
        'rent': property_record.get('rent', Decimal('0')),
        'maintenance': property_record.get('maintenance', Decimal('0')),
        'light': property_record.get('light_bill', Decimal('0')),
        'advance': property_record.get('advance', Decimal('0')),
    }


def resolve_schedule(
    property_record: Dict[str, Any],
    tenant: Optional[Dict[str, Any]],
    until: PeriodBound = None,
    since: PeriodBound = None
) -> Dict[str, Any]:
    """
    Resolve the charge schedule and active periods for a tenancy.

    Args:
        property_record: Normalized property dictionary
        tenant: Normalized tenant dictionary, or None for a vacant property
        until: Last period to enumerate (YYYYMM or date); required when the
            tenancy has no end date
        since: Optional first period to enumerate (YYYYMM or date)

    Returns:
        Dictionary with 'first_period', 'last_period', 'active_periods' and
        'due_by_type'

    Raises:
        ConfigurationError: If the tenancy is open-ended and no 'until' bound
            is given, or a bound is not a valid period
    """
    result = {
        'property_id': property_record.get('property_id'),
        'tenant_id': tenant.get('tenant_id') if tenant else None,
        'first_period': None,
        'last_period': None,
        'active_periods': [],
        'due_by_type': zero_dues(),
    }

    # A tenant without a property is inactive and owes nothing
    if not tenant or not tenant.get('property_id'):
        return result

    until_period = _as_period(until)
    since_period = _as_period(since)

    start_date = tenant.get('start_date')
    end_date = tenant.get('end_date')

    if end_date is None and until_period is None:
        raise ConfigurationError(
            f"Tenant {tenant.get('tenant_id')} has no end date; "
            f"an 'until' period is required to bound the schedule"
        )

    first_period = period_of(start_date) if start_date else None
    last_period = period_of(end_date) if end_date else None

    if start_date and end_date and end_date < start_date:
        logger.warning(
            f"Tenant {tenant.get('tenant_id')} ends ({end_date}) before it starts ({start_date}), "
            f"no active periods"
        )
        return result

    result['first_period'] = first_period
    result['last_period'] = last_period
    result['due_by_type'] = get_monthly_charges(property_record)

    # Intersect the occupancy window with the requested range
    lower_bounds = [p for p in (first_period, since_period) if p is not None]
    upper = min(p for p in (last_period, until_period) if p is not None)

    if not lower_bounds:
        logger.warning(
            f"Tenant {tenant.get('tenant_id')} has no start date and no 'since' bound, "
            f"no active periods"
        )
        return result

    lower = max(lower_bounds)
    result['active_periods'] = generate_period_list(lower, upper)

    logger.debug(
        f"Resolved schedule for property {result['property_id']}: "
        f"{len(result['active_periods'])} active periods from {lower} to {upper}"
    )

    return result


def is_active_period(schedule: Dict[str, Any], period: str) -> bool:
    """
    Check whether a period falls inside the tenancy's occupancy window.

    A schedule whose tenant has no start date only covers its enumerated
    active periods.
    """
    first_period = schedule.get('first_period')
    last_period = schedule.get('last_period')

    if first_period is None:
        return period in schedule.get('active_periods', [])
    if period < first_period:
        return False
    if last_period is not None and period > last_period:
        return False
    return True


def due_for_period(schedule: Dict[str, Any], period: str) -> Dict[str, Decimal]:
    """
    Get the amounts due by charge type for one period.

    Periods outside the occupancy window owe nothing. The advance is only due
    in the first active period.

    Args:
        schedule: Result of resolve_schedule
        period: Period in YYYYMM format

    Returns:
        Dictionary mapping charge type to the amount due in that period
    """
    if not is_active_period(schedule, period):
        return zero_dues()

    dues = dict(schedule['due_by_type'])
    if period != schedule.get('first_period'):
        dues['advance'] = Decimal('0')

    return dues
