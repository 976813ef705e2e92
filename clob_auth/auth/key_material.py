"""
Wallet signing capability.

KeyMaterial is the only place a private key lives. It exposes the wallet
address and a single capability, signing a 32-byte digest. Callers never see
the key and never branch on whether it is held locally or by an external
signer (hardware wallet, KMS, remote service).
"""

from typing import Callable, Optional, Protocol, Union
import logging

from eth_account import Account
from eth_utils import to_checksum_address

from ..exceptions import SigningError, ValidationError
from ..utils.validators import validate_private_key, validate_address

logger = logging.getLogger(__name__)

DIGEST_LENGTH = 32
SIGNATURE_LENGTH = 65


class HashSigner(Protocol):
    """Anything that can sign a 32-byte digest for one address."""

    @property
    def address(self) -> str: ...

    def sign_hash(self, digest: bytes) -> bytes: ...


class LocalSigner:
    """
    Signer backed by an in-process private key (eth-account).

    SECURITY: The key is held by the eth-account LocalAccount only.
    """

    def __init__(self, private_key: str):
        try:
            key = validate_private_key(private_key)
        except ValidationError as e:
            raise SigningError(str(e)) from None

        try:
            self._account = Account.from_key(key)
        except Exception as e:
            # SECURITY: Sanitize error message to prevent credential leakage
            raise SigningError(f"Invalid private key: {type(e).__name__}") from None

    @property
    def address(self) -> str:
        return self._account.address

    def sign_hash(self, digest: bytes) -> bytes:
        signed = self._account.unsafe_sign_hash(digest)
        return bytes(signed.signature)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address})"


class ExternalSigner:
    """
    Signer that delegates to a callable.

    The callable receives the 32-byte digest and returns the 65-byte
    signature (r || s || v) as bytes or a hex string.
    """

    def __init__(self, address: str, sign_fn: Callable[[bytes], Union[bytes, str]]):
        try:
            self._address = validate_address(address)
        except ValidationError as e:
            raise SigningError(str(e)) from None
        self._sign_fn = sign_fn

    @property
    def address(self) -> str:
        return self._address

    def sign_hash(self, digest: bytes) -> bytes:
        raw = self._sign_fn(digest)
        if isinstance(raw, str):
            raw = bytes.fromhex(raw[2:] if raw.startswith("0x") else raw)
        return bytes(raw)

    def __repr__(self) -> str:
        return f"ExternalSigner(address={self.address})"


class KeyMaterial:
    """
    Holds a wallet's signing capability and address.

    Never serialized, never logged beyond its address.
    """

    def __init__(self, signer: Optional[HashSigner] = None):
        self._signer = signer

    @classmethod
    def from_private_key(cls, private_key: str) -> "KeyMaterial":
        """Key material for a locally held private key."""
        return cls(LocalSigner(private_key))

    @classmethod
    def from_external(
        cls,
        address: str,
        sign_fn: Callable[[bytes], Union[bytes, str]]
    ) -> "KeyMaterial":
        """Key material for a signer living outside this process."""
        return cls(ExternalSigner(address, sign_fn))

    @property
    def has_signer(self) -> bool:
        return self._signer is not None

    def _require_signer(self) -> HashSigner:
        if self._signer is None:
            raise SigningError("No signer attached (client is at L0)")
        return self._signer

    def address(self) -> str:
        """
        Wallet address.

        Returns:
            Checksummed address

        Raises:
            SigningError: If no signer is attached
        """
        return to_checksum_address(self._require_signer().address)

    def sign(self, message: bytes) -> str:
        """
        Sign a 32-byte digest.

        Signing is deterministic (RFC 6979): the same key and digest always
        produce the same signature.

        Args:
            message: 32-byte digest (EIP-712 typed-data hash)

        Returns:
            0x-prefixed hex signature, r || s || v with v in {27, 28}

        Raises:
            SigningError: If no signer is attached or signing fails
        """
        signer = self._require_signer()

        if not isinstance(message, (bytes, bytearray)) or len(message) != DIGEST_LENGTH:
            raise SigningError(
                f"Expected a {DIGEST_LENGTH}-byte digest, got "
                f"{len(message) if isinstance(message, (bytes, bytearray)) else type(message).__name__}"
            )

        try:
            signature = signer.sign_hash(bytes(message))
        except SigningError:
            raise
        except Exception as e:
            # SECURITY: Sanitize error message to prevent credential leakage
            error_type = type(e).__name__
            logger.error(f"Signing failed: {error_type}")
            raise SigningError(f"Signing failed: {error_type}") from None

        if len(signature) != SIGNATURE_LENGTH:
            raise SigningError(
                f"Signer returned {len(signature)} bytes, expected {SIGNATURE_LENGTH}"
            )

        # Normalize recovery id to the 27/28 form the exchange verifies
        if signature[-1] < 27:
            signature = signature[:-1] + bytes([signature[-1] + 27])

        return "0x" + signature.hex()

    def __repr__(self) -> str:
        if self._signer is None:
            return "KeyMaterial(signer=None)"
        return f"KeyMaterial(address={self._signer.address})"

    def __reduce__(self):
        raise TypeError("KeyMaterial cannot be serialized")
