"""
Phone number normalization.

Single source of truth for the dialable form used as the customer identity
key inside a tenant.
"""
import re
from typing import Optional

from core.settings import settings


NON_DIGITS = re.compile(r"\D")

# Digit counts of a national number without country code (landline, mobile)
NATIONAL_NUMBER_LENGTHS = (10, 11)


def normalize_phone(phone: Optional[str], default_country_code: Optional[str] = None) -> str:
    """
    Normalize free text to a digits-only dialable string.

    Strips every non-digit; when exactly 10 or 11 digits remain the default
    country code is prepended, otherwise the digits are returned unchanged.
    Never fails.

    Args:
        phone: Phone number in any format
        default_country_code: Country code digits (settings default when None)

    Returns:
        Normalized digits, possibly empty

    Examples:
        >>> normalize_phone("(11) 98888-7777")
        '5511988887777'
        >>> normalize_phone("+55 11 98888-7777")
        '5511988887777'
        >>> normalize_phone("abc")
        ''
    """
    if not phone:
        return ""

    code = settings.default_country_code if default_country_code is None else default_country_code
    digits = NON_DIGITS.sub("", phone)

    if len(digits) in NATIONAL_NUMBER_LENGTHS:
        return f"{code}{digits}"

    return digits


def is_dialable(normalized: str, min_digits: Optional[int] = None) -> bool:
    """Check a normalized phone against the minimum-length gate."""
    minimum = settings.min_phone_digits if min_digits is None else min_digits
    return len(normalized) >= minimum
