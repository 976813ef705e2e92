"""
EIP-712 struct models for the Polymarket CLOB.

Uses poly_eip712_structs library (Polymarket's fork).
Field order in each struct is the canonical order the exchange hashes.
"""

from typing import Optional

from eth_utils import keccak
from poly_eip712_structs import EIP712Struct, Address, String, Uint, make_domain

CLOB_DOMAIN_NAME = "ClobAuthDomain"
CLOB_VERSION = "1"
MSG_TO_SIGN = "This message attests that I control the given wallet"

EXCHANGE_DOMAIN_NAME = "Polymarket CTF Exchange"
EXCHANGE_VERSION = "1"


class ClobAuth(EIP712Struct):
    """
    CLOB authentication message structure.

    Used for Level 1 (private key) authentication with Polymarket CLOB.
    """
    address = Address()
    timestamp = String()
    nonce = Uint()
    message = String()


class Order(EIP712Struct):
    """CTF exchange order structure."""
    salt = Uint(256)
    maker = Address()
    signer = Address()
    taker = Address()
    tokenId = Uint(256)
    makerAmount = Uint(256)
    takerAmount = Uint(256)
    expiration = Uint(256)
    nonce = Uint(256)
    feeRateBps = Uint(256)
    side = Uint(8)
    signatureType = Uint(8)


def clob_auth_domain(chain_id: int):
    """Domain for L1 auth messages (no verifying contract)."""
    return make_domain(name=CLOB_DOMAIN_NAME, version=CLOB_VERSION, chainId=chain_id)


def exchange_domain(chain_id: int, verifying_contract: str):
    """Domain for orders, bound to chain and exchange contract."""
    return make_domain(
        name=EXCHANGE_DOMAIN_NAME,
        version=EXCHANGE_VERSION,
        chainId=chain_id,
        verifyingContract=verifying_contract
    )


def typed_data_hash(struct: EIP712Struct, domain) -> bytes:
    """keccak256("\\x19\\x01" || domainSeparator || hashStruct(message))."""
    return keccak(struct.signable_bytes(domain))


def clob_auth_hash(
    address: str,
    timestamp: int,
    nonce: int,
    chain_id: int,
    message: Optional[str] = None
) -> bytes:
    """Digest signed during credential creation/derivation."""
    auth = ClobAuth(
        address=address,
        timestamp=str(timestamp),
        nonce=nonce,
        message=message or MSG_TO_SIGN
    )
    return typed_data_hash(auth, clob_auth_domain(chain_id))
