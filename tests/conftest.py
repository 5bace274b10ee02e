"""
Shared fixtures.

The circuit under test uses 3 MiMC rounds instead of 91: the relation has
the same shape (one public digest, one secret, four constraints per round)
and pure-Python setup and proving stay fast. The full-size circuit only
runs under the ``slow`` marker.
"""

import pytest

from zkpreimage.chain import ChainClient, SimulatedBackend
from zkpreimage.circuit import CircuitDescriptor, compile
from zkpreimage.config import Config
from zkpreimage.groth16 import prove, setup
from zkpreimage.lifecycle import ProofService, SetupOrchestrator
from zkpreimage.store import ArtifactStore
from zkpreimage.witness import build

TEST_ROUNDS = 3
TEST_SECRET = b"secret"
WRONG_INPUT = 42


@pytest.fixture(scope="session")
def descriptor():
    return CircuitDescriptor(mimc_rounds=TEST_ROUNDS)


@pytest.fixture(scope="session")
def cs(descriptor):
    return compile(descriptor)


@pytest.fixture(scope="session")
def keys(cs):
    """(ProvingKey, VerifyingKey) for ``cs``."""
    return setup(cs)


@pytest.fixture(scope="session")
def digest(descriptor):
    return descriptor.hash(TEST_SECRET)


@pytest.fixture(scope="session")
def proof(cs, keys, digest):
    pk, _ = keys
    return prove(cs, pk, build(TEST_SECRET, digest))


@pytest.fixture(scope="session")
def digest_int(digest):
    return int.from_bytes(digest, "big")


@pytest.fixture
def test_config(tmp_path):
    return Config(artifact_dir=str(tmp_path / "circuit"), mimc_rounds=TEST_ROUNDS)


@pytest.fixture(scope="session")
def session_config(tmp_path_factory):
    return Config(artifact_dir=str(tmp_path_factory.mktemp("circuit")), mimc_rounds=TEST_ROUNDS)


@pytest.fixture(scope="session")
def initialized_store(session_config):
    """Store holding a complete triple, written by a real setup run."""
    store = ArtifactStore.from_config(session_config)
    SetupOrchestrator.from_config(session_config, store).run()
    return store


@pytest.fixture(scope="session")
def chain():
    return SimulatedBackend()


@pytest.fixture(scope="session")
def service(initialized_store, chain):
    return ProofService.load(initialized_store, ChainClient(chain))
