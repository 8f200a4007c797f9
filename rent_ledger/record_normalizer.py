#!/usr/bin/env python3
"""
Record Normalizer Module

This module converts the loosely shaped property, tenant and payment records
returned by the API into the canonical dictionaries the ledger works on.
Field aliases (for example rent.amount, rent.monthlyRent and monthlyRent) are
resolved here so that the reconciliation code only ever sees one shape.

Malformed values never raise: amounts fall back to zero, dates to None.
"""

import logging
from typing import Dict, Any, List, Optional, Iterable

from rent_ledger.utils.helpers import (
    CHARGE_TYPES,
    PROPERTY_TYPES,
    parse_date,
    to_decimal,
    to_int,
)

# Configure logging
logger = logging.getLogger(__name__)

STATUS_PAID = 'paid'
STATUS_PENDING = 'pending'


def _first_present(record: Dict[str, Any], *paths: str, scalar: bool = False) -> Any:
    """Return the first non-empty value found along dotted key paths.

    With scalar=True, nested objects found on a path are skipped.
    """
    for path in paths:
        value: Any = record
        for key in path.split('.'):
            if not isinstance(value, dict):
                value = None
                break
            value = value.get(key)
        if value is None or value == "" or (scalar and isinstance(value, dict)):
            continue
        return value
    return None


def _reference_id(value: Any) -> Optional[str]:
    """Get an identifier from a plain id or a populated reference object."""
    if isinstance(value, dict):
        value = value.get('_id', value.get('id'))
    if value is None or value == "":
        return None
    return str(value)


def _status(value: Any) -> str:
    """Normalize a status flag; anything other than 'paid' is pending."""
    if isinstance(value, str) and value.strip().lower() == STATUS_PAID:
        return STATUS_PAID
    return STATUS_PENDING


def normalize_tenant(
    raw: Optional[Dict[str, Any]],
    property_id: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    """
    Normalize a tenant record.

    Args:
        raw: Raw tenant record, or None for a vacant property
        property_id: Identifier of the property the tenant is embedded on

    Returns:
        Canonical tenant dictionary, or None if there is no tenant
    """
    if not isinstance(raw, dict):
        return None

    tenant_id = _reference_id(_first_present(raw, '_id', 'id', 'tenant_id'))

    # An embedded tenant belongs to its property unless the record says otherwise
    if 'propertyId' in raw or 'property_id' in raw:
        tenant_property = _reference_id(_first_present(raw, 'propertyId', 'property_id'))
    else:
        tenant_property = property_id

    start_value = _first_present(raw, 'startDate', 'start_date')
    end_value = _first_present(raw, 'endDate', 'end_date')
    start_date = parse_date(start_value)
    end_date = parse_date(end_value)

    if start_value and not start_date:
        logger.warning(f"Invalid start date for tenant {tenant_id}: {start_value}")
    if end_value and not end_date:
        logger.warning(f"Invalid end date for tenant {tenant_id}: {end_value}")

    return {
        'tenant_id': tenant_id,
        'name': raw.get('name') or '',
        'phone': raw.get('phone') or '',
        'property_id': tenant_property,
        'start_date': start_date,
        'end_date': end_date,
        'rent_status': _status(_first_present(raw, 'rentStatus', 'rent_status')),
        'maintenance_status': _status(_first_present(raw, 'maintenanceStatus', 'maintenance_status')),
        'light_bill_status': _status(_first_present(raw, 'lightBillStatus', 'light_bill_status')),
    }


def normalize_property(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a property record and its embedded tenant.

    Args:
        raw: Raw property record

    Returns:
        Canonical property dictionary
    """
    property_id = _reference_id(_first_present(raw, '_id', 'id', 'property_id'))

    property_type = _first_present(raw, 'propertyType', 'property_type')
    if property_type is not None and property_type not in PROPERTY_TYPES:
        logger.warning(f"Unknown property type for property {property_id}: {property_type}")

    rent = to_decimal(
        _first_present(raw, 'rent.amount', 'rent.monthlyRent', 'monthlyRent', 'monthly_rent', 'rent',
                       scalar=True),
        'rent'
    )
    maintenance = to_decimal(
        _first_present(raw, 'rent.maintenance', 'maintenance', 'monthlyMaintenance', scalar=True),
        'maintenance'
    )
    unit_rate = to_decimal(_first_present(raw, 'electricity.unitRate', 'unit_rate', scalar=True), 'unit rate')
    last_unit = to_decimal(_first_present(raw, 'electricity.lastUnit', 'last_unit', scalar=True), 'last unit')
    advance = _first_present(raw, 'advance.amount', 'advance', scalar=True)

    return {
        'property_id': property_id,
        'label': _first_present(raw, 'shopName', 'name', 'label', 'location') or '',
        'number': _first_present(raw, 'shopNumber', 'number') or '',
        'property_type': property_type,
        'rent': rent,
        'maintenance': maintenance,
        'unit_rate': unit_rate,
        'last_unit': last_unit,
        'light_bill': last_unit * unit_rate,
        'advance': to_decimal(advance, 'advance'),
        'tenant': normalize_tenant(raw.get('tenant'), property_id),
    }


def normalize_payment(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a payment record.

    Args:
        raw: Raw payment record

    Returns:
        Canonical payment dictionary
    """
    charge_type = raw.get('type')
    if charge_type not in CHARGE_TYPES:
        logger.warning(f"Unknown payment type: {charge_type!r}")

    month = to_int(raw.get('month'))
    if month is not None and not 1 <= month <= 12:
        logger.warning(f"Payment month out of range: {month}")

    return {
        'payment_id': _reference_id(_first_present(raw, '_id', 'id', 'payment_id')),
        'property_id': _reference_id(_first_present(raw, 'propertyId', 'property_id')),
        'tenant_id': _reference_id(_first_present(raw, 'tenantId', 'tenant_id')),
        'type': charge_type,
        'amount': to_decimal(raw.get('amount')),
        'year': to_int(raw.get('year')),
        'month': month,
        'paid_on': parse_date(_first_present(raw, 'paidOn', 'paid_on')),
    }


def normalize_properties(raws: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Normalize a collection of property records, skipping non-objects."""
    properties = []
    for raw in raws or []:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping malformed property record: {raw!r}")
            continue
        properties.append(normalize_property(raw))
    return properties


def normalize_payments(raws: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Normalize a collection of payment records, skipping non-objects."""
    payments = []
    for raw in raws or []:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping malformed payment record: {raw!r}")
            continue
        payments.append(normalize_payment(raw))
    return payments


def is_occupied(property_record: Dict[str, Any]) -> bool:
    """A property is occupied when it has a tenant attached to a property."""
    tenant = property_record.get('tenant')
    return bool(tenant and tenant.get('property_id'))


def active_tenant(property_record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Get the property's tenant if it contributes obligations, else None."""
    if is_occupied(property_record):
        return property_record['tenant']
    return None
