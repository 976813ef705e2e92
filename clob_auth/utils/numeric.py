"""
Numeric type utilities for Decimal precision.

Every conversion from human order terms to on-chain base units goes through
this module. Rounding is always toward zero so an order never commits more
funds than the caller asked for.
"""

from typing import Any, Optional
from decimal import Context, Decimal, ROUND_DOWN, InvalidOperation, localcontext
import logging

logger = logging.getLogger(__name__)

# USDC and conditional tokens both use 6 decimals
TOKEN_DECIMALS = 6

# Wide enough for any uint256 base-unit amount plus its fractional digits.
# Inexact division truncates instead of rounding up.
AMOUNT_CONTEXT = Context(prec=100, rounding=ROUND_DOWN)


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Safely convert any value to Decimal.

    Args:
        value: Value to convert (str, int, float, Decimal, None)
        default: Default value if conversion fails (default: None)

    Returns:
        Decimal or default if conversion fails

    Examples:
        >>> to_decimal("0.65")
        Decimal('0.65')
        >>> to_decimal(100.50)
        Decimal('100.5')
        >>> to_decimal(None, Decimal("0"))
        Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return default

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, str):
            # Direct string conversion (most precise)
            result = Decimal(value.strip())
        elif isinstance(value, (int, float)):
            # Convert via string to avoid float precision loss
            result = Decimal(str(value))
        else:
            logger.warning(f"Cannot convert {type(value)} to Decimal: {value}")
            return default
    except (ValueError, InvalidOperation) as e:
        logger.warning(f"Failed to convert {value} to Decimal: {e}")
        return default

    if not result.is_finite():
        return default
    return result


def round_down(value: Decimal, decimals: int) -> Decimal:
    """
    Truncate toward zero to a fixed number of decimal places.

    Examples:
        >>> round_down(Decimal("12.8205"), 2)
        Decimal('12.82')
        >>> round_down(Decimal("0.999"), 2)
        Decimal('0.99')
    """
    quantizer = Decimal(1).scaleb(-decimals)
    with localcontext(AMOUNT_CONTEXT):
        return value.quantize(quantizer, rounding=ROUND_DOWN)


def to_token_units(amount: Decimal, decimals: int = TOKEN_DECIMALS) -> int:
    """
    Convert a token amount to base units, truncating any remainder.

    Args:
        amount: Amount in token units (Decimal)
        decimals: Number of decimals (default: 6 for USDC/CTF)

    Returns:
        Amount in base units (int)

    Examples:
        >>> to_token_units(Decimal("9.9996"))
        9999600
        >>> to_token_units(Decimal("0.0000019"))
        1
    """
    with localcontext(AMOUNT_CONTEXT):
        scaled = amount.scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))
