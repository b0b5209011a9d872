"""
Labor Administration - RUT Utilities

Validation and formatting of the Chilean national ID (RUT).

A RUT is a 7-8 digit body plus a modulo-11 check digit (0-9 or K), written
as 12.345.678-5. Dots are optional on input; the hyphen is required.
"""

import re

_RUT_PATTERN = re.compile(r"^(\d{7,8})-([\dK])$")


def clean_rut(rut: str) -> str:
    """Strip dots and whitespace and uppercase the check digit."""
    return rut.replace(".", "").strip().upper()


def compute_check_digit(body: str) -> str:
    """Modulo-11 check digit for a RUT body of digits."""
    total = 0
    multiplier = 2
    for digit in reversed(body):
        total += int(digit) * multiplier
        multiplier = 2 if multiplier == 7 else multiplier + 1

    remainder = 11 - (total % 11)
    if remainder == 11:
        return "0"
    if remainder == 10:
        return "K"
    return str(remainder)


def validate_rut(rut: str) -> bool:
    """Return True when the RUT is well formed and its check digit matches."""
    if not rut:
        return False

    match = _RUT_PATTERN.match(clean_rut(rut))
    if not match:
        return False

    body, check_digit = match.groups()
    return compute_check_digit(body) == check_digit


def format_rut(rut: str) -> str:
    """Format a RUT as 12.345.678-5 (thousands separators, hyphenated check digit)."""
    cleaned = clean_rut(rut).replace("-", "")
    body, check_digit = cleaned[:-1], cleaned[-1]
    return f"{int(body):,}".replace(",", ".") + f"-{check_digit}"
