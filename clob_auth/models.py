"""
Type definitions for the CLOB auth client.

Pydantic models for wire artifacts, dataclasses for credentials and headers.
DECIMAL PRECISION: Order economics are carried as Decimal, never float.
"""

from enum import Enum
from typing import Optional, Any, Union
from dataclasses import dataclass, field
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, field_validator

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Auth tiers
L0 = 0
L1 = 1
L2 = 2

# Header names
POLY_ADDRESS = "POLY_ADDRESS"
POLY_SIGNATURE = "POLY_SIGNATURE"
POLY_TIMESTAMP = "POLY_TIMESTAMP"
POLY_NONCE = "POLY_NONCE"
POLY_API_KEY = "POLY_API_KEY"
POLY_PASSPHRASE = "POLY_PASSPHRASE"

Numeric = Union[Decimal, str, int, float]


class Side(str, Enum):
    """Order side."""
    BUY = "BUY"
    SELL = "SELL"

    @property
    def code(self) -> int:
        """Integer encoding used inside the signed order."""
        return 0 if self is Side.BUY else 1


class OrderType(str, Enum):
    """Order type."""
    GTC = "GTC"  # Good-til-cancelled
    GTD = "GTD"  # Good-til-date
    FOK = "FOK"  # Fill-or-kill
    FAK = "FAK"  # Fill-and-kill


class SignatureType(int, Enum):
    """Wallet signature type."""
    EOA = 0  # Externally Owned Account (MetaMask, hardware wallet)
    POLY_PROXY = 1  # Polymarket proxy wallet (email/Magic login)
    POLY_GNOSIS_SAFE = 2  # Gnosis safe funded by the signer


@dataclass(frozen=True)
class RoundConfig:
    """Decimal places used when converting an order to base units."""
    price: int
    size: int
    amount: int


class TickSize(str, Enum):
    """Minimum price increment of a market."""
    TICK_0_1 = "0.1"
    TICK_0_01 = "0.01"
    TICK_0_001 = "0.001"
    TICK_0_0001 = "0.0001"

    @property
    def decimal(self) -> Decimal:
        return Decimal(self.value)

    @property
    def round_config(self) -> RoundConfig:
        return ROUNDING_CONFIG[self]


ROUNDING_CONFIG = {
    TickSize.TICK_0_1: RoundConfig(price=1, size=2, amount=3),
    TickSize.TICK_0_01: RoundConfig(price=2, size=2, amount=4),
    TickSize.TICK_0_001: RoundConfig(price=3, size=2, amount=5),
    TickSize.TICK_0_0001: RoundConfig(price=4, size=2, amount=6),
}


class ContractConfig(BaseModel):
    """Exchange contracts for one chain."""
    model_config = ConfigDict(frozen=True)

    exchange: str


@dataclass(frozen=True)
class ApiCreds:
    """
    L2 API credentials.

    SECURITY: Secret and passphrase are hidden from repr to prevent leakage in logs.
    Instances are immutable; rotation replaces the whole triple.
    """
    api_key: str
    api_secret: str = field(repr=False)  # SECURITY: Hide from logs
    api_passphrase: str = field(repr=False)  # SECURITY: Hide from logs

    @classmethod
    def from_response(cls, response: Any) -> Optional["ApiCreds"]:
        """
        Parse the server's credential payload.

        Returns:
            ApiCreds, or None if any field is missing
        """
        if not isinstance(response, dict):
            return None

        api_key = response.get("apiKey")
        api_secret = response.get("secret")
        api_passphrase = response.get("passphrase")

        if not all([api_key, api_secret, api_passphrase]):
            return None

        return cls(api_key=api_key, api_secret=api_secret, api_passphrase=api_passphrase)


@dataclass(frozen=True)
class AuthHeaders:
    """
    L2 authentication headers for exactly one request.

    The timestamp is part of the signed message, so an instance is only valid
    for the request it was built for and only while the timestamp is fresh.
    """
    api_key: str
    signature: str
    timestamp: str
    passphrase: str = field(repr=False)  # SECURITY: Hide from logs
    address: str = ""

    def to_dict(self) -> dict[str, str]:
        """Headers as placed verbatim on the outgoing request."""
        headers = {
            POLY_API_KEY: self.api_key,
            POLY_SIGNATURE: self.signature,
            POLY_TIMESTAMP: self.timestamp,
            POLY_PASSPHRASE: self.passphrase,
        }
        if self.address:
            headers[POLY_ADDRESS] = self.address
        return headers


@dataclass(frozen=True)
class OrderArgs:
    """Limit order parameters. Validated by the order signer, not here."""
    token_id: str
    price: Numeric
    size: Numeric
    side: Side
    fee_rate_bps: int = 0
    nonce: int = 0
    expiration: int = 0  # 0 = good-till-cancelled
    taker: str = ZERO_ADDRESS


@dataclass(frozen=True)
class MarketOrderArgs:
    """
    Market order parameters.

    BUY: amount is collateral to spend. SELL: amount is shares to sell.
    """
    token_id: str
    amount: Numeric
    side: Side
    price: Numeric
    fee_rate_bps: int = 0
    nonce: int = 0
    taker: str = ZERO_ADDRESS


@dataclass(frozen=True)
class CreateOrderOptions:
    """Market metadata needed to encode an order."""
    tick_size: TickSize = TickSize.TICK_0_01
    neg_risk: bool = False


class SignedOrder(BaseModel):
    """
    EIP-712 signed order.

    Immutable. Numeric fields are decimal strings of fixed-point integers.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    salt: int
    maker: str
    signer: str
    taker: str
    token_id: str = Field(..., alias="tokenId")
    maker_amount: str = Field(..., alias="makerAmount")
    taker_amount: str = Field(..., alias="takerAmount")
    expiration: str
    nonce: str
    fee_rate_bps: str = Field(..., alias="feeRateBps")
    side: Side
    signature_type: SignatureType = Field(..., alias="signatureType")
    signature: str

    def to_dict(self) -> dict[str, Any]:
        """
        Wire form expected by POST /order.

        salt and signatureType are JSON integers, side is "BUY"/"SELL".
        """
        return {
            "salt": self.salt,
            "maker": self.maker,
            "signer": self.signer,
            "taker": self.taker,
            "tokenId": self.token_id,
            "makerAmount": self.maker_amount,
            "takerAmount": self.taker_amount,
            "expiration": self.expiration,
            "nonce": self.nonce,
            "feeRateBps": self.fee_rate_bps,
            "side": self.side.value,
            "signatureType": int(self.signature_type),
            "signature": self.signature,
        }


class WalletConfig(BaseModel):
    """Wallet configuration."""
    private_key: str = Field(..., repr=False, description="Wallet private key (hex)")
    signature_type: SignatureType = Field(default=SignatureType.EOA)
    funder: Optional[str] = Field(None, description="Funder address for proxy wallets")

    @field_validator("private_key")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()
