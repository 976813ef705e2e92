"""Shared fixtures."""

import pytest
from prometheus_client import CollectorRegistry

from ..auth.key_material import KeyMaterial
from ..config import ClobSettings
from ..metrics import Metrics
from ..models import ApiCreds
from ..utils.clock import FixedClock

# Well-known development key (Hardhat/Anvil account #0). Never funded on mainnet.
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
FUNDER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

TEST_TIMESTAMP = 1700000000

TEST_SECRET = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA="


@pytest.fixture
def key_material():
    return KeyMaterial.from_private_key(TEST_PRIVATE_KEY)


@pytest.fixture
def metrics():
    """Metrics bound to a private registry so tests do not collide."""
    return Metrics(enabled=True, registry=CollectorRegistry())


@pytest.fixture
def clock():
    return FixedClock(TEST_TIMESTAMP)


@pytest.fixture
def creds():
    return ApiCreds(
        api_key="00000000-1111-2222-3333-444444444444",
        api_secret=TEST_SECRET,
        api_passphrase="test-passphrase"
    )


@pytest.fixture
def settings():
    return ClobSettings(_env_file=None, chain_id=137, clob_url="https://clob.example.test")
