import pytest
from substrateinterface import Keypair, KeypairType

from erasure_client.keys import SubstrateSigner, derive
from erasure_client.store import MemoryBlobStore

SELLER_SEED = "0x" + "11" * 32
BUYER_SEED = "0x" + "22" * 32
STRANGER_SEED = "0x" + "33" * 32


def make_signer(seed: str) -> SubstrateSigner:
    return SubstrateSigner(Keypair.create_from_seed(seed, crypto_type=KeypairType.ED25519))


@pytest.fixture
def store():
    return MemoryBlobStore()


@pytest.fixture(scope="session")
def seller_signer():
    return make_signer(SELLER_SEED)


@pytest.fixture(scope="session")
def buyer_signer():
    return make_signer(BUYER_SEED)


@pytest.fixture(scope="session")
def seller_keys(seller_signer):
    return derive(seller_signer)


@pytest.fixture(scope="session")
def buyer_keys(buyer_signer):
    return derive(buyer_signer)


@pytest.fixture(scope="session")
def stranger_keys():
    return derive(make_signer(STRANGER_SEED))
