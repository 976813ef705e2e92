"""Wallet signing, request authentication and API credential handshake."""

from .key_material import KeyMaterial, LocalSigner, ExternalSigner
from .authenticator import RequestAuthenticator, build_auth_headers, build_hmac_signature
from .credentials import CredentialManager, CredentialStore

__all__ = [
    "KeyMaterial",
    "LocalSigner",
    "ExternalSigner",
    "RequestAuthenticator",
    "build_auth_headers",
    "build_hmac_signature",
    "CredentialManager",
    "CredentialStore",
]
