"""
API credential lifecycle.

CredentialManager runs the L1 handshake (create, derive, create-or-derive)
against the exchange. CredentialStore is the single shared cell holding the
active ApiCreds; it is replaced whole, never mutated field by field.
"""

import threading
from typing import Optional, Protocol, Any
import logging

from .authenticator import RequestAuthenticator
from .key_material import KeyMaterial
from ..api import endpoints
from ..exceptions import AuthError, APIError, RateLimitError, TimeoutError
from ..metrics import Metrics
from ..models import ApiCreds

logger = logging.getLogger(__name__)

# Server responses that mean "a key already exists for this nonce".
# A 409 always does; a 400 only when the message says so.
_CONFLICT_STATUS = 409
_ALREADY_EXISTS_HINTS = ("exist", "could not create")


class Transport(Protocol):
    def get(self, path: str, headers: Optional[dict[str, str]] = None,
            params: Optional[dict[str, Any]] = None) -> Any: ...

    def post(self, path: str, headers: Optional[dict[str, str]] = None,
             data: Optional[str] = None) -> Any: ...


class CredentialStore:
    """
    Thread-safe holder for the active API credentials.

    Readers always see one complete (key, secret, passphrase) triple.
    """

    def __init__(self, creds: Optional[ApiCreds] = None):
        self._creds = creds
        self._lock = threading.Lock()

    def get(self) -> Optional[ApiCreds]:
        with self._lock:
            return self._creds

    def set(self, creds: ApiCreds) -> None:
        """Atomically replace the credentials."""
        if not isinstance(creds, ApiCreds):
            raise TypeError(f"Expected ApiCreds, got {type(creds).__name__}")
        with self._lock:
            self._creds = creds
        logger.info(f"API credentials installed (key={creds.api_key})")

    def clear(self) -> None:
        with self._lock:
            self._creds = None
        logger.info("API credentials cleared")

    @property
    def has_creds(self) -> bool:
        return self.get() is not None

    def __repr__(self) -> str:
        creds = self.get()
        return f"CredentialStore(api_key={creds.api_key if creds else None})"


def is_already_exists(error: AuthError) -> bool:
    """True if a create rejection means the key exists and can be derived."""
    if error.status_code == _CONFLICT_STATUS:
        return True
    if error.status_code not in (400, None):
        return False
    message = error.message.lower()
    return any(hint in message for hint in _ALREADY_EXISTS_HINTS)


class CredentialManager:
    """
    Obtains L2 API credentials by proving control of the wallet (L1).

    Results are returned, not installed: the caller decides when to put them
    in a CredentialStore.
    """

    def __init__(
        self,
        key_material: KeyMaterial,
        authenticator: RequestAuthenticator,
        transport: Transport,
        metrics: Optional[Metrics] = None
    ):
        self.key_material = key_material
        self.authenticator = authenticator
        self.transport = transport
        self.metrics = metrics

    def _handshake(self, operation: str, method: str, path: str, nonce: Optional[int]) -> ApiCreds:
        headers = self.authenticator.create_l1_headers(self.key_material, nonce=nonce or 0)

        try:
            if method == "POST":
                response = self.transport.post(path, headers=headers)
            else:
                response = self.transport.get(path, headers=headers)
        except AuthError:
            self._track(operation, "rejected")
            raise
        except (RateLimitError, TimeoutError):
            self._track(operation, "error")
            raise
        except APIError as e:
            self._track(operation, "rejected")
            raise AuthError(e.message, status_code=e.status_code, response=e.response) from e

        creds = ApiCreds.from_response(response)
        if creds is None:
            self._track(operation, "rejected")
            raise AuthError(
                f"{operation} returned no usable credentials",
                response=response
            )

        self._track(operation, "success")
        logger.info(f"{operation} succeeded (key={creds.api_key})")
        return creds

    def create_api_key(self, nonce: Optional[int] = None) -> ApiCreds:
        """
        Create a new API key for the wallet.

        Args:
            nonce: ClobAuth nonce (default: 0)

        Returns:
            New credentials

        Raises:
            AuthError: If the server rejects the request
            SigningError: If no signer is attached
        """
        return self._handshake("create_api_key", "POST", endpoints.CREATE_API_KEY, nonce)

    def derive_api_key(self, nonce: Optional[int] = None) -> ApiCreds:
        """
        Derive the existing API key for the wallet and nonce.

        Args:
            nonce: ClobAuth nonce (default: 0)

        Returns:
            Existing credentials

        Raises:
            AuthError: If the server rejects the request or has no key
            SigningError: If no signer is attached
        """
        return self._handshake("derive_api_key", "GET", endpoints.DERIVE_API_KEY, nonce)

    derive_credentials = derive_api_key

    def create_or_derive_api_key(self, nonce: Optional[int] = None) -> ApiCreds:
        """
        Create an API key, falling back to derivation if one already exists.

        Any rejection other than "already exists" is raised unchanged.
        """
        try:
            return self.create_api_key(nonce)
        except AuthError as e:
            if not is_already_exists(e):
                raise
            logger.info(f"API key exists ({e.status_code}), deriving instead")

        return self.derive_api_key(nonce)

    def _track(self, operation: str, status: str) -> None:
        if self.metrics:
            self.metrics.track_credential_handshake(operation, status)
