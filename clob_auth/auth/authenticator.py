"""
Authentication handler for Polymarket CLOB.

Handles L1 (wallet EIP-712) and L2 (API key HMAC) authentication headers.

The L2 message is timestamp + method + path + body, byte for byte. The body
must be the exact string that goes on the wire, so callers serialize once and
pass the same string here and to the transport.
"""

import hmac
import hashlib
import base64
import binascii
from typing import Optional, Union
import logging

from .eip712_models import clob_auth_hash
from .key_material import KeyMaterial
from ..models import (
    ApiCreds, AuthHeaders,
    POLY_ADDRESS, POLY_SIGNATURE, POLY_TIMESTAMP, POLY_NONCE,
)
from ..exceptions import SigningError, StaleAuthError
from ..metrics import Metrics
from ..utils.clock import Clock

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMP_TOLERANCE = 30


def build_hmac_signature(
    secret: str,
    timestamp: Union[int, str],
    method: str,
    path: str,
    body: str = ""
) -> str:
    """
    Compute the L2 HMAC signature.

    Args:
        secret: API secret (URL-safe base64)
        timestamp: Unix timestamp in seconds
        method: HTTP method, used exactly as given
        path: Request path without host
        body: Serialized request body ("" for none)

    Returns:
        URL-safe base64 HMAC-SHA256 digest

    Raises:
        SigningError: If the secret is not valid base64
    """
    # URL-safe alphabet, strict: stray characters are an error, not skipped
    try:
        key = base64.b64decode(secret, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        # SECURITY: Never echo the secret
        raise SigningError(f"API secret is not valid base64: {type(e).__name__}") from None

    if not key:
        raise SigningError("API secret is empty")

    message = f"{timestamp}{method}{path}{body or ''}"

    h = hmac.new(key, message.encode("utf-8"), hashlib.sha256)
    return base64.urlsafe_b64encode(h.digest()).decode("utf-8")


def build_auth_headers(
    method: str,
    path: str,
    body: str,
    creds: ApiCreds,
    timestamp: Optional[int] = None,
    address: str = "",
    clock: Optional[Clock] = None
) -> AuthHeaders:
    """
    Build the L2 header set for one request.

    Args:
        method: HTTP method
        path: Request path
        body: Serialized request body ("" for none)
        creds: API credentials
        timestamp: Unix seconds (default: clock source)
        address: Wallet address for POLY_ADDRESS

    Returns:
        AuthHeaders for exactly this request
    """
    if timestamp is None:
        timestamp = (clock or Clock()).now()

    signature = build_hmac_signature(creds.api_secret, timestamp, method, path, body)

    return AuthHeaders(
        api_key=creds.api_key,
        signature=signature,
        timestamp=str(timestamp),
        passphrase=creds.api_passphrase,
        address=address,
    )


class RequestAuthenticator:
    """
    Builds and checks request authentication for Polymarket CLOB.

    L1: EIP-712 ClobAuth signature, used for the credential handshake
    L2: HMAC signature with cached API credentials, used for trading calls
    """

    def __init__(
        self,
        chain_id: int = 137,
        clock: Optional[Clock] = None,
        tolerance: int = DEFAULT_TIMESTAMP_TOLERANCE,
        metrics: Optional[Metrics] = None
    ):
        """
        Initialize authenticator.

        Args:
            chain_id: Chain ID bound into the L1 domain
            clock: Timestamp source (default: local wall clock)
            tolerance: Max header age in seconds for ensure_fresh
            metrics: Optional metrics collector
        """
        self.chain_id = chain_id
        self.clock = clock or Clock()
        self.tolerance = tolerance
        self.metrics = metrics

    def create_l1_headers(
        self,
        key_material: KeyMaterial,
        nonce: int = 0,
        timestamp: Optional[int] = None
    ) -> dict[str, str]:
        """
        Create L1 authentication headers.

        Args:
            key_material: Wallet signer
            nonce: ClobAuth nonce (default: 0)
            timestamp: Unix timestamp (uses clock if None)

        Returns:
            L1 headers dict

        Raises:
            SigningError: If no signer is attached or signing fails
        """
        if timestamp is None:
            timestamp = self.clock.now()

        address = key_material.address()
        digest = clob_auth_hash(address, timestamp, nonce, self.chain_id)

        try:
            signature = key_material.sign(digest)
        except SigningError:
            if self.metrics:
                self.metrics.track_signing_failure("l1_headers")
            raise

        if self.metrics:
            self.metrics.track_auth_headers("L1")

        logger.debug(f"Created L1 headers for {address}")
        return {
            POLY_ADDRESS: address,
            POLY_SIGNATURE: signature,
            POLY_TIMESTAMP: str(timestamp),
            POLY_NONCE: str(nonce),
        }

    def build_auth_headers(
        self,
        method: str,
        path: str,
        body: str,
        creds: ApiCreds,
        timestamp: Optional[int] = None,
        address: str = ""
    ) -> AuthHeaders:
        """
        Create L2 authentication headers.

        Args:
            method: HTTP method
            path: Request path
            body: Serialized request body
            creds: API credentials
            timestamp: Unix timestamp (uses clock if None)
            address: Wallet address for POLY_ADDRESS

        Returns:
            AuthHeaders

        Raises:
            SigningError: If the API secret is malformed
        """
        try:
            headers = build_auth_headers(
                method, path, body, creds,
                timestamp=timestamp, address=address, clock=self.clock
            )
        except SigningError:
            if self.metrics:
                self.metrics.track_signing_failure("l2_headers")
            raise

        if self.metrics:
            self.metrics.track_auth_headers("L2")

        logger.debug(f"Created L2 headers for {method} {path}")
        return headers

    def verify_l2_signature(
        self,
        api_secret: str,
        signature: str,
        timestamp: Union[int, str],
        method: str,
        path: str,
        body: str = ""
    ) -> bool:
        """
        Verify L2 HMAC signature.

        Args:
            api_secret: API secret (base64 encoded)
            signature: Signature to verify
            timestamp: Request timestamp
            method: HTTP method
            path: Request path
            body: Request body

        Returns:
            True if signature is valid
        """
        expected_signature = build_hmac_signature(api_secret, timestamp, method, path, body)
        return hmac.compare_digest(signature.encode("utf-8"), expected_signature.encode("utf-8"))

    def ensure_fresh(self, headers: AuthHeaders, now: Optional[int] = None) -> None:
        """
        Reject headers whose timestamp is outside the tolerance window.

        Raises:
            StaleAuthError: If the timestamp is too old or too far ahead
        """
        if now is None:
            now = self.clock.now()

        timestamp = int(headers.timestamp)
        skew = now - timestamp

        if abs(skew) > self.tolerance:
            raise StaleAuthError(
                f"Auth timestamp {timestamp} is {skew:+d}s from now "
                f"(tolerance {self.tolerance}s)",
                timestamp=timestamp,
                skew=skew
            )
