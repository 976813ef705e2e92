"""
Polymarket CLOB client.

Owns the auth tier state machine:

    L0  no signer            public endpoints
    L1  signer attached      credential handshake, order signing
    L2  signer + API creds   authenticated trading endpoints

Every operation checks the tier it needs and raises AuthRequiredError
otherwise. Nothing is retried here.
"""

from typing import Optional, Any, Union
import logging

from .config import get_settings, ClobSettings
from .models import (
    ApiCreds, OrderArgs, MarketOrderArgs, CreateOrderOptions, SignedOrder,
    OrderType, SignatureType, WalletConfig, L0, L1, L2,
)
from .auth.key_material import KeyMaterial
from .auth.authenticator import RequestAuthenticator
from .auth.credentials import CredentialManager, CredentialStore
from .trading.order_builder import OrderSigner
from .api import endpoints
from .api.base import BaseAPIClient, dumps_body
from .exceptions import AuthRequiredError, APIError
from .metrics import Metrics, get_metrics
from .utils.clock import Clock

logger = logging.getLogger(__name__)

_LEVEL_NAMES = {L0: "L0", L1: "L1", L2: "L2"}


class ClobClient:
    """
    Client for the Polymarket CLOB API.

    Usage:
        client = ClobClient(key=private_key)
        creds = client.create_or_derive_api_key()
        client.set_creds(creds)
        order = client.create_order(OrderArgs(token_id, price="0.5", size=10, side=Side.BUY))
        client.post_order(order)
    """

    def __init__(
        self,
        host: Optional[str] = None,
        chain_id: Optional[int] = None,
        key: Optional[str] = None,
        creds: Optional[ApiCreds] = None,
        signature_type: Optional[SignatureType] = None,
        funder: Optional[str] = None,
        settings: Optional[ClobSettings] = None,
        transport: Optional[BaseAPIClient] = None,
        key_material: Optional[KeyMaterial] = None,
        metrics: Optional[Metrics] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize CLOB client.

        Args:
            host: API base URL (default: settings.clob_url)
            chain_id: Chain ID (default: settings.chain_id)
            key: Wallet private key, enables L1
            creds: API credentials, enables L2 together with a signer
            signature_type: Wallet signature type (default: EOA)
            funder: Funder address for proxy signature types
            settings: Optional settings (loads from env if not provided)
            transport: Optional HTTP client
            key_material: Pre-built signer (takes precedence over key)
            metrics: Optional metrics collector
            clock: Optional timestamp source

        Raises:
            SigningError: If the private key is invalid
            ValidationError: If a proxy signature type has no funder
        """
        self.settings = settings or get_settings()
        self.host = (host or self.settings.clob_url).rstrip("/")
        self.chain_id = chain_id if chain_id is not None else self.settings.chain_id
        self.metrics = metrics or get_metrics(enabled=self.settings.enable_metrics)
        self.clock = clock or Clock()

        if key_material is not None:
            self.key_material = key_material
        elif key:
            self.key_material = KeyMaterial.from_private_key(key)
        else:
            self.key_material = KeyMaterial()

        self.signature_type = SignatureType(
            signature_type if signature_type is not None else SignatureType.EOA
        )
        self.funder = funder

        self.transport = transport or BaseAPIClient(self.host, self.settings, metrics=self.metrics)
        self.authenticator = RequestAuthenticator(
            chain_id=self.chain_id,
            clock=self.clock,
            tolerance=self.settings.auth_timestamp_tolerance,
            metrics=self.metrics
        )
        self._store = CredentialStore(creds)

        self.order_signer: Optional[OrderSigner] = None
        self.credential_manager: Optional[CredentialManager] = None

        if self.key_material.has_signer:
            self.order_signer = OrderSigner(
                self.key_material,
                chain_id=self.chain_id,
                signature_type=self.signature_type,
                funder=funder,
                exchange_address=self.settings.exchange_address,
                neg_risk_exchange_address=self.settings.neg_risk_exchange_address,
                metrics=self.metrics
            )
            self.credential_manager = CredentialManager(
                self.key_material, self.authenticator, self.transport, metrics=self.metrics
            )
        elif creds is not None:
            logger.warning("API credentials supplied without a signer; client stays at L0")

        logger.info(f"CLOB client initialized ({_LEVEL_NAMES[self.mode]}, chain_id={self.chain_id})")

    @classmethod
    def from_wallet_config(cls, wallet: WalletConfig, **kwargs) -> "ClobClient":
        """Client for a WalletConfig (key, signature type, funder)."""
        return cls(
            key=wallet.private_key,
            signature_type=wallet.signature_type,
            funder=wallet.funder,
            **kwargs
        )

    # ========== Tier state ==========

    @property
    def mode(self) -> int:
        """Current auth tier (L0, L1 or L2)."""
        if not self.key_material.has_signer:
            return L0
        if self._store.has_creds:
            return L2
        return L1

    @property
    def creds(self) -> Optional[ApiCreds]:
        return self._store.get()

    def set_creds(self, creds: ApiCreds) -> None:
        """Install API credentials atomically (L1 -> L2)."""
        self._store.set(creds)

    def clear_creds(self) -> None:
        """Drop API credentials (L2 -> L1)."""
        self._store.clear()

    def _assert_level(self, required: int) -> None:
        if self.mode < required:
            raise AuthRequiredError(
                f"{_LEVEL_NAMES[required]} authentication required "
                f"(client is at {_LEVEL_NAMES[self.mode]})",
                required_level=required
            )

    def _assert_l2(self) -> ApiCreds:
        self._assert_level(L2)
        creds = self._store.get()
        if creds is None:
            # Cleared by another thread between the check and the read
            raise AuthRequiredError("L2 authentication required", required_level=L2)
        return creds

    def _maybe_sync_clock(self) -> None:
        if self.settings.use_server_time and not self.clock.synced:
            self.sync_clock()

    # ========== L0 ==========

    def get_ok(self) -> Any:
        """CLOB health check."""
        return self.transport.get(endpoints.OK)

    def get_server_time(self) -> int:
        """Server unix time in seconds."""
        response = self.transport.get(endpoints.TIME)
        try:
            return int(response)
        except (TypeError, ValueError):
            raise APIError(f"Unexpected /time response: {response!r}", response=response) from None

    def sync_clock(self) -> int:
        """
        Offset the local clock by the server's time.

        Returns:
            Offset in seconds
        """
        return self.clock.sync(self.get_server_time())

    # ========== L1 ==========

    def get_address(self) -> Optional[str]:
        """Wallet address, or None without a signer."""
        if not self.key_material.has_signer:
            return None
        return self.key_material.address()

    def create_api_key(self, nonce: Optional[int] = None) -> ApiCreds:
        """Create new API credentials. Not installed; see set_creds."""
        self._assert_level(L1)
        self._maybe_sync_clock()
        return self.credential_manager.create_api_key(nonce)

    def derive_api_key(self, nonce: Optional[int] = None) -> ApiCreds:
        """Derive existing API credentials. Not installed; see set_creds."""
        self._assert_level(L1)
        self._maybe_sync_clock()
        return self.credential_manager.derive_api_key(nonce)

    def create_or_derive_api_key(self, nonce: Optional[int] = None) -> ApiCreds:
        """Create API credentials, deriving them if they already exist."""
        self._assert_level(L1)
        self._maybe_sync_clock()
        return self.credential_manager.create_or_derive_api_key(nonce)

    def create_order(
        self,
        order_args: OrderArgs,
        options: Optional[CreateOrderOptions] = None,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """
        Sign a limit order.

        Args:
            order_args: Order parameters
            options: Market tick size and neg-risk flag (default: 0.01, False)
            idempotency_key: Optional key for a deterministic salt

        Returns:
            Signed order, ready for post_order
        """
        self._assert_level(L1)
        return self.order_signer.sign_order(
            order_args, options=options, idempotency_key=idempotency_key
        )

    def create_market_order(
        self,
        order_args: MarketOrderArgs,
        options: Optional[CreateOrderOptions] = None,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """Sign a market order."""
        self._assert_level(L1)
        return self.order_signer.sign_market_order(
            order_args, options=options, idempotency_key=idempotency_key
        )

    # ========== L2 ==========

    def _l2_request(
        self,
        method: str,
        path: str,
        creds: ApiCreds,
        payload: Any = None,
        params: Optional[dict[str, Any]] = None
    ) -> Any:
        self._maybe_sync_clock()

        # Serialize once: the signed string is the sent string
        body = dumps_body(payload) if payload is not None else ""

        headers = self.authenticator.build_auth_headers(
            method, path, body, creds, address=self.key_material.address()
        )

        return self.transport.request(
            method,
            path,
            headers=headers.to_dict(),
            params=params,
            data=body or None
        )

    def post_order(
        self,
        order: SignedOrder,
        order_type: Union[OrderType, str] = OrderType.GTC
    ) -> Any:
        """
        Submit a signed order.

        Args:
            order: Signed order
            order_type: GTC, GTD, FOK or FAK

        Returns:
            Server response
        """
        creds = self._assert_l2()
        payload = {
            "order": order.to_dict(),
            "owner": creds.api_key,
            "orderType": OrderType(order_type).value,
        }
        return self._l2_request("POST", endpoints.POST_ORDER, creds, payload)

    def create_and_post_order(
        self,
        order_args: OrderArgs,
        options: Optional[CreateOrderOptions] = None,
        order_type: Union[OrderType, str] = OrderType.GTC
    ) -> Any:
        """Sign a limit order and submit it."""
        self._assert_l2()
        order = self.create_order(order_args, options)
        return self.post_order(order, order_type)

    def cancel(self, order_id: str) -> Any:
        """Cancel one order."""
        creds = self._assert_l2()
        return self._l2_request("DELETE", endpoints.CANCEL, creds, {"orderID": order_id})

    def cancel_orders(self, order_ids: list[str]) -> Any:
        """Cancel several orders."""
        creds = self._assert_l2()
        return self._l2_request("DELETE", endpoints.CANCEL_ORDERS, creds, list(order_ids))

    def cancel_all(self) -> Any:
        """Cancel every open order of the account."""
        creds = self._assert_l2()
        return self._l2_request("DELETE", endpoints.CANCEL_ALL, creds)

    def get_orders(
        self,
        id: Optional[str] = None,
        market: Optional[str] = None,
        asset_id: Optional[str] = None
    ) -> Any:
        """Open orders, optionally filtered."""
        creds = self._assert_l2()
        params = {
            key: value
            for key, value in (("id", id), ("market", market), ("asset_id", asset_id))
            if value
        }
        return self._l2_request("GET", endpoints.ORDERS, creds, params=params or None)

    def get_order(self, order_id: str) -> Any:
        """One order by ID."""
        creds = self._assert_l2()
        return self._l2_request("GET", f"{endpoints.GET_ORDER}{order_id}", creds)

    def get_api_keys(self) -> Any:
        """API keys of the account."""
        creds = self._assert_l2()
        return self._l2_request("GET", endpoints.GET_API_KEYS, creds)

    def delete_api_key(self) -> Any:
        """Delete the API key in use. Local credentials are kept until clear_creds."""
        creds = self._assert_l2()
        return self._l2_request("DELETE", endpoints.DELETE_API_KEY, creds)

    def close(self) -> None:
        """Close the transport."""
        self.transport.close()

    def __repr__(self) -> str:
        return (
            f"ClobClient(host={self.host}, chain_id={self.chain_id}, "
            f"mode={_LEVEL_NAMES[self.mode]}, signer={self.key_material!r})"
        )
