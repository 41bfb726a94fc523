#!/usr/bin/env python3
"""
Amount Parser - Turn receipt-formatted currency text into signed Decimal values

Costco prints refunds and discounts with a trailing minus sign ("7.99-"),
so the sign can sit on either side of the number.
"""

import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

CENTS = Decimal('0.01')

_PLAIN_NUMBER = re.compile(r'^-?\d+(?:\.\d+)?$')


class AmountParseError(ValueError):
    """Raised when a currency token does not hold a valid decimal number"""


def parse_amount(token: str) -> Decimal:
    """
    Parse a currency token such as "$1,234.56" or "7.99-"
    
    Args:
        token: Currency text as printed on the receipt
        
    Returns:
        Signed Decimal amount (no rounding applied)
        
    Raises:
        AmountParseError: If the token is not a valid amount
    """
    if token is None:
        raise AmountParseError("Empty amount token")
    
    text = token.strip()
    is_negative = False
    if text.endswith('-'):
        is_negative = True
        text = text[:-1].strip()
    
    if text.startswith('$'):
        text = text[1:].strip()
    elif text.startswith('-$'):
        text = '-' + text[2:].strip()
    text = text.replace(',', '')
    
    if not _PLAIN_NUMBER.match(text):
        raise AmountParseError(f"Not a valid amount: {token!r}")
    
    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise AmountParseError(f"Not a valid amount: {token!r}") from e
    
    return -amount if is_negative else amount


def round_cents(amount: Decimal) -> Decimal:
    """Round an amount to hundredths (half up), used only for total comparison"""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_amount(amount: Decimal) -> str:
    """Format an amount for output, e.g. Decimal('-7.99') -> '-7.99'"""
    return f"{round_cents(amount):.2f}"
