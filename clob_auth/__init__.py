"""
Polymarket CLOB auth client

Wallet-derived API credentials, HMAC request authentication and EIP-712
order signing for Polymarket's central limit order book.

Adapted from Polymarket's official clients (MIT License):
- https://github.com/Polymarket/py-clob-client
- https://github.com/Polymarket/rs-clob-client
"""

from .client import ClobClient
from .config import ClobSettings, get_settings, get_contract_config
from .models import (
    L0,
    L1,
    L2,
    ZERO_ADDRESS,
    Side,
    OrderType,
    SignatureType,
    TickSize,
    ApiCreds,
    AuthHeaders,
    OrderArgs,
    MarketOrderArgs,
    CreateOrderOptions,
    SignedOrder,
    WalletConfig,
)
from .exceptions import (
    ClobError,
    ConfigurationError,
    ValidationError,
    TickSizeError,
    SigningError,
    AuthError,
    AuthRequiredError,
    StaleAuthError,
    APIError,
    RateLimitError,
    TimeoutError,
)
from .auth import (
    KeyMaterial,
    RequestAuthenticator,
    CredentialManager,
    CredentialStore,
    build_auth_headers,
)
from .trading import OrderSigner

__version__ = "0.1.0"

__all__ = [
    "ClobClient",
    "ClobSettings",
    "get_settings",
    "get_contract_config",
    "L0",
    "L1",
    "L2",
    "ZERO_ADDRESS",
    "Side",
    "OrderType",
    "SignatureType",
    "TickSize",
    "ApiCreds",
    "AuthHeaders",
    "OrderArgs",
    "MarketOrderArgs",
    "CreateOrderOptions",
    "SignedOrder",
    "WalletConfig",
    "ClobError",
    "ConfigurationError",
    "ValidationError",
    "TickSizeError",
    "SigningError",
    "AuthError",
    "AuthRequiredError",
    "StaleAuthError",
    "APIError",
    "RateLimitError",
    "TimeoutError",
    "KeyMaterial",
    "RequestAuthenticator",
    "CredentialManager",
    "CredentialStore",
    "build_auth_headers",
    "OrderSigner",
]
