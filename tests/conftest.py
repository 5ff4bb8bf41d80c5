"""
Shared fixtures.

Key generation is the slow part of every test, so identities are created
once per test session; each test gets fresh sessions (empty registries)
built on top of them.
"""

import pytest

from cryptomessenger import AlgorithmMode, EngineConfig, Session


@pytest.fixture(scope="session")
def key_dir(tmp_path_factory):
    return str(tmp_path_factory.mktemp("keys"))


@pytest.fixture(scope="session")
def config(key_dir):
    return EngineConfig(key_dir=key_dir)


def _identities(config, mode, *names):
    return [Session.open(name, mode, config).identity for name in names]


@pytest.fixture(scope="session")
def rsa_identities(config):
    return _identities(config, AlgorithmMode.RSA_HYBRID, "alice", "bob", "carol")


@pytest.fixture(scope="session")
def dh_identities(config):
    return _identities(config, AlgorithmMode.DH_AES, "alice", "bob", "carol")


def _exchange(a: Session, b: Session):
    a.receive_public_key_from(b.name, b.public_key_pem())
    b.receive_public_key_from(a.name, a.public_key_pem())


@pytest.fixture
def rsa_sessions(rsa_identities):
    """alice and bob (RSA_HYBRID) with exchanged public keys, plus carol."""
    alice, bob, carol = (Session(identity) for identity in rsa_identities)
    _exchange(alice, bob)
    return alice, bob, carol


@pytest.fixture
def dh_sessions(dh_identities):
    """alice and bob (DH_AES) with exchanged public keys, plus carol."""
    alice, bob, carol = (Session(identity) for identity in dh_identities)
    _exchange(alice, bob)
    return alice, bob, carol
