"""Tests for wallet key material."""

import pickle

import pytest
from eth_account import Account
from eth_utils import keccak

from ..auth.key_material import KeyMaterial, LocalSigner
from ..exceptions import SigningError
from .conftest import TEST_PRIVATE_KEY, TEST_ADDRESS

DIGEST = keccak(text="clob-auth-digest")


def test_address_from_private_key(key_material):
    assert key_material.address() == TEST_ADDRESS


def test_private_key_without_prefix_accepted():
    km = KeyMaterial.from_private_key(TEST_PRIVATE_KEY[2:])
    assert km.address() == TEST_ADDRESS


def test_sign_shape(key_material):
    signature = key_material.sign(DIGEST)

    assert signature.startswith("0x")
    assert len(signature) == 132
    assert int(signature[-2:], 16) in (27, 28)


def test_sign_deterministic(key_material):
    assert key_material.sign(DIGEST) == key_material.sign(DIGEST)


def test_sign_recovers_to_address(key_material):
    signature = key_material.sign(DIGEST)
    recovered = Account._recover_hash(DIGEST, signature=bytes.fromhex(signature[2:]))
    assert recovered == TEST_ADDRESS


def test_different_digests_different_signatures(key_material):
    other = keccak(text="another-digest")
    assert key_material.sign(DIGEST) != key_material.sign(other)


class TestMissingSigner:
    def test_address_requires_signer(self):
        with pytest.raises(SigningError):
            KeyMaterial().address()

    def test_sign_requires_signer(self):
        with pytest.raises(SigningError):
            KeyMaterial().sign(DIGEST)

    def test_has_signer(self, key_material):
        assert key_material.has_signer
        assert not KeyMaterial().has_signer


class TestPayloadLength:
    @pytest.mark.parametrize("payload", [b"", b"\x00" * 31, b"\x00" * 33])
    def test_non_32_byte_payload_rejected(self, key_material, payload):
        with pytest.raises(SigningError):
            key_material.sign(payload)

    def test_text_payload_rejected(self, key_material):
        with pytest.raises(SigningError):
            key_material.sign("0x" + "00" * 32)


class TestKeyNeverExposed:
    def test_invalid_key_error_does_not_echo(self):
        bad_key = "0x" + "zz" * 32
        with pytest.raises(SigningError) as exc_info:
            KeyMaterial.from_private_key(bad_key)
        assert bad_key not in str(exc_info.value)

    def test_repr_shows_address_only(self, key_material):
        text = repr(key_material)
        assert TEST_ADDRESS in text
        assert TEST_PRIVATE_KEY[2:] not in text
        assert TEST_PRIVATE_KEY[2:] not in repr(LocalSigner(TEST_PRIVATE_KEY))

    def test_cannot_be_pickled(self, key_material):
        with pytest.raises(TypeError):
            pickle.dumps(key_material)


class TestExternalSigner:
    def test_hex_signature_with_low_v_normalized(self, key_material):
        account = Account.from_key(TEST_PRIVATE_KEY)

        def sign_fn(digest):
            raw = bytes(account.unsafe_sign_hash(digest).signature)
            # Signers that return v as 0/1
            return "0x" + (raw[:-1] + bytes([raw[-1] - 27])).hex()

        external = KeyMaterial.from_external(TEST_ADDRESS.lower(), sign_fn)

        assert external.address() == TEST_ADDRESS
        assert external.sign(DIGEST) == key_material.sign(DIGEST)

    def test_raw_bytes_signature(self, key_material):
        account = Account.from_key(TEST_PRIVATE_KEY)
        external = KeyMaterial.from_external(
            TEST_ADDRESS, lambda digest: bytes(account.unsafe_sign_hash(digest).signature)
        )
        assert external.sign(DIGEST) == key_material.sign(DIGEST)

    def test_failing_signer_wrapped(self):
        def sign_fn(digest):
            raise RuntimeError("device unplugged")

        external = KeyMaterial.from_external(TEST_ADDRESS, sign_fn)
        with pytest.raises(SigningError) as exc_info:
            external.sign(DIGEST)
        assert "RuntimeError" in str(exc_info.value)

    def test_wrong_signature_length(self):
        external = KeyMaterial.from_external(TEST_ADDRESS, lambda digest: b"\x01" * 64)
        with pytest.raises(SigningError):
            external.sign(DIGEST)

    def test_invalid_address(self):
        with pytest.raises(SigningError):
            KeyMaterial.from_external("0x1234", lambda digest: b"")
