import itertools
import random

import pytest

from onion_relay.codec import OnionCodec
from onion_relay.crypto import KeyService, rsa_generate_keypair
from onion_relay.directory import Directory
from onion_relay.network import Network

POOL_SIZE = 6


@pytest.fixture(scope="session")
def rsa_keys():
    # RSA-2048 generation is slow; share one pool across the run
    return [rsa_generate_keypair(2048) for _ in range(POOL_SIZE)]


class PooledKeyService(KeyService):
    """Hands out pre-generated RSA keys in order instead of generating new ones."""

    def __init__(self, keys, scheme="cbc"):
        super().__init__(rsa_bits=2048, scheme=scheme)
        self._keys = itertools.cycle(keys)

    def generate_keypair(self):
        return next(self._keys)


class RecordingNetwork:
    """Transport double that keeps every delivery instead of dispatching it."""

    def __init__(self):
        self.delivered = []
        self.bound = {}

    def bind(self, address, handler, label=None):
        self.bound[address] = handler

    def unbind(self, address):
        self.bound.pop(address, None)

    def deliver(self, address, blob, source=None):
        self.delivered.append((address, blob))


@pytest.fixture
def key_service(rsa_keys):
    return PooledKeyService(rsa_keys)


@pytest.fixture
def codec(key_service):
    return OnionCodec(key_service)


@pytest.fixture
def directory():
    return Directory()


@pytest.fixture
def network():
    return Network()


@pytest.fixture
def recording_network():
    return RecordingNetwork()


@pytest.fixture
def rng():
    return random.Random(1234)
