"""Utility modules for the CLOB auth client."""

from .validators import (
    validate_price,
    validate_size,
    validate_token_id,
    validate_address,
    validate_private_key,
)
from .numeric import to_decimal, round_down, to_token_units
from .clock import Clock, FixedClock

__all__ = [
    "validate_price",
    "validate_size",
    "validate_token_id",
    "validate_address",
    "validate_private_key",
    "to_decimal",
    "round_down",
    "to_token_units",
    "Clock",
    "FixedClock",
]
