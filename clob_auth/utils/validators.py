"""
Input validation utilities.

Validates order economics, addresses and keys before anything is signed.
All failures raise ValidationError.
"""

import re
from typing import Any
from decimal import Decimal

from eth_utils import is_checksum_address, to_checksum_address

from ..exceptions import ValidationError, TickSizeError
from ..models import TickSize
from .numeric import TOKEN_DECIMALS, to_decimal, round_down

MAX_UINT256 = 2 ** 256 - 1

# Largest whole token amount whose base units still fit in a uint256
MAX_TOKEN_AMOUNT = Decimal(MAX_UINT256 // 10 ** TOKEN_DECIMALS)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_PRIVATE_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def _as_decimal(value: Any, name: str) -> Decimal:
    result = to_decimal(value)
    if result is None:
        raise ValidationError(f"{name.capitalize()} must be a finite number, got {value!r}")
    return result


def validate_price(price: Any, tick_size: TickSize = TickSize.TICK_0_01) -> Decimal:
    """
    Validate and normalize a limit price.

    The price is truncated to the tick's price decimals and must then sit in
    [tick, 1 - tick]. Prices of 0 or 1 (or outside) are always rejected.

    Args:
        price: Order price (float, int, str, or Decimal)
        tick_size: Market tick size

    Returns:
        Normalized price (Decimal)

    Raises:
        ValidationError: If price is not numeric or outside (0, 1)
        TickSizeError: If the truncated price falls outside the tick bounds
    """
    price_dec = _as_decimal(price, "price")

    # Binary outcome prices live strictly inside (0, 1)
    if not (Decimal("0") < price_dec < Decimal("1")):
        raise ValidationError(f"Price must be strictly between 0 and 1, got {price_dec}")

    tick = tick_size.decimal
    normalized = round_down(price_dec, tick_size.round_config.price)

    if normalized < tick or normalized > Decimal("1") - tick:
        raise TickSizeError(
            f"Price {price_dec} invalid for tick size {tick}. "
            f"Must be between {tick} and {Decimal('1') - tick}",
            price=str(price_dec),
            tick_size=str(tick)
        )

    return normalized


def validate_size(size: Any, decimals: int = 2) -> Decimal:
    """
    Validate and normalize an order size (or market order amount).

    Args:
        size: Size (float, int, str, or Decimal)
        decimals: Decimal places kept after truncation

    Returns:
        Normalized size (Decimal)

    Raises:
        ValidationError: If size is not positive, before or after truncation,
            or too large for a uint256 amount
    """
    size_dec = _as_decimal(size, "size")

    if size_dec <= 0:
        raise ValidationError(f"Size must be positive, got {size_dec}")
    if size_dec > MAX_TOKEN_AMOUNT:
        raise ValidationError(f"Size {size_dec} exceeds the uint256 amount range")

    normalized = round_down(size_dec, decimals)
    if normalized <= 0:
        raise ValidationError(
            f"Size {size_dec} truncates to zero at {decimals} decimal places"
        )

    return normalized


def validate_token_id(token_id: Any) -> int:
    """
    Validate token ID and parse it without loss of precision.

    Token IDs are uint256 values, usually well beyond 64 bits. Both decimal
    strings and 0x-prefixed hex strings are accepted.

    Args:
        token_id: ERC1155 token ID (string)

    Returns:
        Token ID as int

    Raises:
        ValidationError: If token ID is invalid
    """
    if not isinstance(token_id, str):
        raise ValidationError(f"Token ID must be string, got {type(token_id)}")

    value = token_id.strip()
    if not value:
        raise ValidationError("Token ID cannot be empty")

    if value.lower().startswith("0x"):
        digits = value[2:]
        if not digits or not re.fullmatch(r"[0-9a-fA-F]+", digits):
            raise ValidationError(f"Token ID must be numeric string, got {token_id}")
        parsed = int(digits, 16)
    else:
        if not value.isdigit() or not value.isascii():
            raise ValidationError(f"Token ID must be numeric string, got {token_id}")
        parsed = int(value)

    if parsed > MAX_UINT256:
        raise ValidationError(f"Token ID exceeds uint256: {token_id}")

    return parsed


def validate_uint(value: Any, name: str) -> int:
    """
    Validate a non-negative integer field (nonce, expiration, fee rate).

    Raises:
        ValidationError: If value is not a non-negative integer
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be int, got {type(value)}")
    if value < 0 or value > MAX_UINT256:
        raise ValidationError(f"{name} must be a non-negative uint256, got {value}")
    return value


def validate_address(address: Any) -> str:
    """
    Validate Ethereum address.

    Args:
        address: Ethereum address

    Returns:
        Checksummed address

    Raises:
        ValidationError: If address is invalid
    """
    if not isinstance(address, str):
        raise ValidationError(f"Address must be string, got {type(address)}")

    addr = address.strip()
    if not addr.startswith("0x"):
        addr = f"0x{addr}"

    # 20 bytes = 40 hex chars
    if not _ADDRESS_RE.match(addr):
        raise ValidationError(f"Invalid Ethereum address: {address}")

    # Mixed case means EIP-55; a wrong checksum is a typo, not a new address
    digits = addr[2:]
    if digits != digits.lower() and digits != digits.upper() and not is_checksum_address(addr):
        raise ValidationError(f"Invalid EIP-55 checksum: {address}")

    return to_checksum_address(addr)


def validate_private_key(private_key: Any) -> str:
    """
    Validate private key format.

    Args:
        private_key: Private key hex string

    Returns:
        Normalized private key

    Raises:
        ValidationError: If private key is invalid
    """
    if not isinstance(private_key, str):
        raise ValidationError(f"Private key must be string, got {type(private_key)}")

    # Remove 0x prefix if present
    key = private_key.strip()
    key = key[2:] if key.startswith("0x") else key

    # 32 bytes = 64 hex chars; never echo the value
    if not _PRIVATE_KEY_RE.match(key):
        raise ValidationError("Invalid private key format")

    return f"0x{key.lower()}"
