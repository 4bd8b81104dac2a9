"""
Test Configuration
==================

Pytest fixtures for fundsproof tests.
"""

import os
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass

import pytest
import pytest_asyncio
from coincurve import PrivateKey
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["ZK_STORAGE_BACKEND"] = "memory"
os.environ["ZK_KDF_ITERATIONS"] = "1000"

from fundsproof.zk.address import AddressCodec  # noqa: E402
from fundsproof.zk.encryption import InputCipher  # noqa: E402
from fundsproof.zk.hashing import address_from_public_key, default_hasher, to_hex  # noqa: E402
from fundsproof.zk.secure_store import SecureInputStore  # noqa: E402
from fundsproof.zk.signature import SignatureParameterDeriver  # noqa: E402
from fundsproof.zk.storage import MemoryStorageBackend  # noqa: E402


# EIP-55 reference vectors
CHECKSUM_ADDRESSES = [
    "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
    "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359",
    "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB",
    "0xD1220A0cf47c7B9Be7A2E6BA89F429762e7b9aDb",
]

WALLET_ADDRESS = CHECKSUM_ADDRESSES[0]


@dataclass
class TestWallet:
    """A secp256k1 key and its checksummed address."""

    __test__ = False

    key: PrivateKey
    address: str

    def sign(self, address: str | None = None, add_27: bool = True) -> str:
        """Sign the ownership message for ``address`` (defaults to own address)."""
        message_hash = SignatureParameterDeriver().message_hash(address or self.address)
        signature = bytearray(self.key.sign_recoverable(message_hash, hasher=None))
        if add_27:
            signature[64] += 27
        return to_hex(bytes(signature))


def _wallet_from_secret(secret: bytes) -> TestWallet:
    key = PrivateKey(secret)
    raw = address_from_public_key(default_hasher(), key.public_key.format(compressed=False))
    return TestWallet(key=key, address=AddressCodec().checksum(to_hex(raw)))


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def wallet_address() -> str:
    return WALLET_ADDRESS


@pytest.fixture
def wallet() -> TestWallet:
    """Deterministic signing wallet."""
    return _wallet_from_secret(bytes.fromhex("11" * 32))


@pytest.fixture
def other_wallet() -> TestWallet:
    return _wallet_from_secret(bytes.fromhex("22" * 32))


@pytest.fixture
def memory_backend() -> MemoryStorageBackend:
    return MemoryStorageBackend()


@pytest.fixture
def secure_store(memory_backend: MemoryStorageBackend) -> SecureInputStore:
    """Store on an in-memory backend with a fast KDF."""
    return SecureInputStore(backend=memory_backend, cipher=InputCipher(iterations=1000))


@pytest.fixture
def make_store() -> Callable[..., SecureInputStore]:
    """Factory for stores with a custom backend or timeout."""

    def factory(backend, **kwargs) -> SecureInputStore:
        return SecureInputStore(backend=backend, cipher=InputCipher(iterations=1000), **kwargs)

    return factory


@pytest_asyncio.fixture
async def parameters_client() -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Parameters Service."""
    from services.parameters.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
