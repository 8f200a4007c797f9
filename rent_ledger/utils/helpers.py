#!/usr/bin/env python3
"""
Helper utilities for the rent ledger reconciliation system.

This module contains common utility functions used throughout the ledger:
money coercion, date and period parsing, and JSON input/output.
"""

import os
import json
import logging
import datetime
import decimal
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, List, Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

# Configure logging
logger = logging.getLogger(__name__)

MONEY_QUANTIZE = Decimal('0.01')
CHARGE_TYPES = ('rent', 'maintenance', 'light', 'advance')
PROPERTY_TYPES = ('shop', 'flat', 'plot')
MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December"
]


def load_json(file_path: str) -> Any:
    """
    Load a JSON file and return its contents.

    Args:
        file_path: Path to the JSON file

    Returns:
        Parsed JSON contents

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        logger.error(f"File not found: {file_path}")
        raise
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in file: {file_path}")
        raise


def save_json(file_path: str, data: Any, indent: int = 2) -> bool:
    """
    Save data to a JSON file, converting Decimals and dates on the way.

    Args:
        file_path: Path where to save the JSON file
        data: Data to save
        indent: Number of spaces for indentation (default: 2)

    Returns:
        True if successful, False otherwise
    """
    try:
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(to_serializable(data), f, indent=indent)
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Error saving JSON file {file_path}: {str(e)}")
        return False


def to_serializable(value: Any) -> Any:
    """Recursively convert Decimals to rounded floats and dates to ISO strings."""
    if isinstance(value, Decimal):
        return float(round_money(value))
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_serializable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_serializable(item) for item in value]
    return value


def to_decimal(value: Any, field: str = 'amount') -> Decimal:
    """
    Coerce a loosely typed amount into a Decimal.

    Missing, empty, NaN, infinite and non-numeric values become zero so that
    one malformed record never breaks a whole computation.

    Args:
        value: Raw value (number, numeric string, Decimal or None)
        field: Field name used in the log message

    Returns:
        Decimal amount, zero when the value is unusable
    """
    if value is None or value == "" or isinstance(value, bool):
        return Decimal('0')

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (decimal.InvalidOperation, ValueError, TypeError):
        logger.warning(f"Non-numeric {field} treated as 0: {value!r}")
        return Decimal('0')

    if not amount.is_finite():
        logger.warning(f"Non-finite {field} treated as 0: {value!r}")
        return Decimal('0')

    return amount


def to_int(value: Any) -> Optional[int]:
    """Coerce a year or month field into an int, or None when unusable."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        logger.warning(f"Invalid integer value: {value!r}")
        return None


def round_money(amount: Decimal) -> Decimal:
    """Round a money amount to 2 decimal places."""
    return amount.quantize(MONEY_QUANTIZE, rounding=ROUND_HALF_UP)


def round_percent(value: Decimal) -> int:
    """Round a percentage to the nearest whole number, halves away from zero."""
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def parse_date(value: Union[str, datetime.date, datetime.datetime, None]) -> Optional[datetime.date]:
    """
    Parse a date in various formats.

    Args:
        value: Date string (YYYY-MM-DD, MM/DD/YYYY or an ISO timestamp such as
            2024-01-15T00:00:00.000Z), or a date/datetime object

    Returns:
        datetime.date object or None if parsing fails
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        logger.error(f"Could not parse date: {value!r}")
        return None

    formats = [
        "%Y-%m-%d",  # YYYY-MM-DD
        "%m/%d/%Y",  # MM/DD/YYYY
    ]

    for fmt in formats:
        try:
            return datetime.datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue

    try:
        return date_parser.isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        logger.error(f"Could not parse date: {value}")
        return None


def get_month_name(month: int) -> str:
    """
    Get month name from month number.

    Args:
        month: Month number (1-12)

    Returns:
        Month name
    """
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    else:
        logger.error(f"Invalid month number: {month}")
        return ""


def month_from_name(name: str) -> Optional[int]:
    """Get month number (1-12) from a month name, case-insensitive."""
    lowered = name.strip().lower()
    for index, month_name in enumerate(MONTH_NAMES, 1):
        if month_name.lower() == lowered:
            return index
    return None


def make_period(year: int, month: int) -> str:
    """Build a period string in YYYYMM format."""
    return f"{year}{month:02d}"


def period_of(day: datetime.date) -> str:
    """Get the YYYYMM period a date falls in."""
    return make_period(day.year, day.month)


def parse_period(period_str: str) -> Optional[datetime.date]:
    """
    Parse a period string in YYYYMM format.

    Args:
        period_str: Period string in YYYYMM format

    Returns:
        datetime.date object with day set to 1, or None if parsing fails
    """
    try:
        if len(period_str) != 6:
            logger.error(f"Invalid period format (expected YYYYMM): {period_str}")
            return None

        year = int(period_str[:4])
        month = int(period_str[4:6])

        if not (1 <= month <= 12):
            logger.error(f"Invalid month in period: {period_str}")
            return None

        return datetime.date(year, month, 1)
    except (ValueError, TypeError):
        logger.error(f"Could not parse period: {period_str}")
        return None


def get_period_info(period: str) -> Dict[str, Any]:
    """
    Get detailed information about a period.

    Args:
        period: Period in YYYYMM format

    Returns:
        Dictionary with period information (year, month, days, etc.)
    """
    period_date = parse_period(period)

    if not period_date:
        return {
            'valid': False,
            'period': period
        }

    last_day = period_date + relativedelta(months=1) - datetime.timedelta(days=1)

    return {
        'valid': True,
        'period': period,
        'year': period_date.year,
        'month': period_date.month,
        'month_name': get_month_name(period_date.month),
        'days_in_month': last_day.day,
        'first_day': period_date,
        'last_day': last_day
    }


def generate_period_list(start_period: str, end_period: str) -> List[str]:
    """
    Generate a list of periods between start and end, both inclusive.

    Args:
        start_period: Start period in YYYYMM format
        end_period: End period in YYYYMM format

    Returns:
        List of periods in YYYYMM format
    """
    start_date = parse_period(start_period)
    end_date = parse_period(end_period)

    if not start_date or not end_date:
        return []

    if start_date > end_date:
        logger.debug(f"Start period {start_period} is after end period {end_period}")
        return []

    periods = []
    current_date = start_date

    while current_date <= end_date:
        periods.append(period_of(current_date))
        current_date += relativedelta(months=1)

    return periods


def year_periods(year: int) -> List[str]:
    """Generate the twelve periods (January through December) of a year."""
    return [make_period(year, month) for month in range(1, 13)]
