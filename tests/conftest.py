"""
Shared test fixtures for Social Aura.

Provides an in-memory ledger, registry and state machine wired to the
reference codec, generated wallet signers, and an async HTTP test client
with the ledger, codec and decryption delay overridden.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from aura.core.codec import ReferenceCodec, set_codec
from aura.core.signing import LocalKeySigner
from aura.ledger.base import set_ledger
from aura.ledger.memory import InMemoryLedger
from aura.matching.decryption import DecryptionChallenge, DecryptionFlow
from aura.matching.registry import MatchRegistry
from aura.matching.state_machine import MatchStateMachine

LEDGER_ADDRESS = "0x1111111111111111111111111111111111111111"


# --- Ledger / codec ---


@pytest.fixture
def ledger():
    """Fresh in-memory ledger for every test."""
    return InMemoryLedger(address=LEDGER_ADDRESS)


@pytest.fixture
def codec():
    return ReferenceCodec()


@pytest.fixture(autouse=True)
def configured_backends(ledger, codec):
    """Point the module-level factories at the test doubles."""
    set_ledger(ledger)
    set_codec(codec)
    yield
    set_ledger(None)
    set_codec(None)


@pytest.fixture
def registry(ledger):
    return MatchRegistry(ledger)


@pytest.fixture
def machine(registry, codec):
    return MatchStateMachine(registry, codec)


# --- Signers ---


@pytest.fixture(scope="session")
def alice():
    """A generated wallet (counterparty in most tests)."""
    return LocalKeySigner.generate()


@pytest.fixture(scope="session")
def bob():
    """A second, unrelated wallet."""
    return LocalKeySigner.generate()


@pytest.fixture(autouse=True)
def reconnect_signers(alice, bob):
    """Session-scoped signers may be disconnected by a test; undo that."""
    yield
    alice.connect()
    bob.connect()


# --- Decryption ---


@pytest.fixture
def challenge():
    return DecryptionChallenge.create(LEDGER_ADDRESS, 11155111, now=1_700_000_000)


@pytest.fixture
def flow(codec, challenge):
    """Decryption flow with no artificial delay."""
    return DecryptionFlow(codec, challenge, delay_seconds=0)


# --- HTTP client ---


@pytest_asyncio.fixture
async def client(codec, challenge):
    """
    Async HTTP test client.  The decryption flow is overridden to use the
    fixture challenge and skip the artificial delay.
    """
    from aura.api.deps import get_challenge, get_decryption_flow
    from aura.main import app

    async def override_get_challenge():
        return challenge

    def override_get_decryption_flow():
        return DecryptionFlow(codec, challenge, delay_seconds=0)

    app.dependency_overrides[get_challenge] = override_get_challenge
    app.dependency_overrides[get_decryption_flow] = override_get_decryption_flow

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# --- Sample Data ---


@pytest.fixture
def sample_interests():
    return ["Web3", "Art"]
