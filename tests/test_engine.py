"""
Unit tests for the hybrid encryption engine.

Tests:
- Round trips in both modes
- Envelope layout
- Unknown and removed parties
- Malformed and tampered envelopes
"""

import os

import pytest

from cryptomessenger.common.exceptions import DecryptionError, UnknownPartyError
from cryptomessenger.crypto.aes import BLOCK_SIZE, IV_SIZE
from cryptomessenger.engine import CryptoEngine
from cryptomessenger.registry import PartyRegistry
from cryptomessenger.session import Session

PLAINTEXTS = [b"", b"x", b"exactly16bytes!!", os.urandom(1000)]


def _flip(data: bytes, index: int) -> bytes:
    tampered = bytearray(data)
    tampered[index] ^= 0x01
    return bytes(tampered)


class TestRsaHybrid:
    """Tests for RSA_HYBRID mode."""

    @pytest.mark.parametrize("plaintext", PLAINTEXTS)
    def test_round_trip(self, rsa_sessions, plaintext):
        alice, bob, _ = rsa_sessions
        envelope = alice.engine.encrypt(plaintext, "bob")
        assert bob.engine.decrypt(envelope) == plaintext

    @pytest.mark.parametrize("plaintext", PLAINTEXTS)
    def test_key_block_is_256_bytes(self, rsa_sessions, plaintext):
        """The wrapped key always takes exactly the modulus length."""
        alice, bob, _ = rsa_sessions
        envelope = alice.engine.encrypt(plaintext, "bob")
        padded = (len(plaintext) // BLOCK_SIZE + 1) * BLOCK_SIZE
        assert len(envelope) == 256 + IV_SIZE + padded

    def test_sender_identifier_not_needed(self, rsa_sessions):
        """The envelope carries its key, so any sender label is ignored."""
        alice, bob, _ = rsa_sessions
        envelope = alice.engine.encrypt(b"hi", "bob")
        assert bob.engine.decrypt(envelope, "whoever") == b"hi"

    def test_fresh_message_key(self, rsa_sessions):
        """Two encryptions of one message should share nothing."""
        alice, _, _ = rsa_sessions
        first = alice.engine.encrypt(b"same", "bob")
        second = alice.engine.encrypt(b"same", "bob")
        assert first[:256] != second[:256]
        assert first[256:] != second[256:]

    def test_wrong_recipient(self, rsa_sessions):
        """A third party should not be able to decrypt."""
        alice, _, carol = rsa_sessions
        envelope = alice.engine.encrypt(b"for bob only", "bob")
        with pytest.raises(DecryptionError):
            carol.engine.decrypt(envelope)

    def test_pkcs1v15_compatibility_mode(self, rsa_identities):
        """Legacy padding should round trip when both sides use it."""
        alice = Session(rsa_identities[0], rsa_padding="pkcs1v15")
        bob = Session(rsa_identities[1], rsa_padding="pkcs1v15")
        alice.receive_public_key_from("bob", bob.public_key_pem())

        envelope = alice.engine.encrypt(b"legacy", "bob")
        assert bob.engine.decrypt(envelope) == b"legacy"

    def test_truncated(self, rsa_sessions):
        """Anything shorter than key block + IV + one block is malformed."""
        alice, bob, _ = rsa_sessions
        envelope = alice.engine.encrypt(b"hi", "bob")
        with pytest.raises(DecryptionError):
            bob.engine.decrypt(envelope[:256 + IV_SIZE + BLOCK_SIZE - 1])
        with pytest.raises(DecryptionError):
            bob.engine.decrypt(b"")

    def test_tampered_key_block(self, rsa_sessions):
        alice, bob, _ = rsa_sessions
        envelope = alice.engine.encrypt(b"hi", "bob")
        with pytest.raises(DecryptionError):
            bob.engine.decrypt(_flip(envelope, 10))

    def test_tampered_ciphertext_usually_rejected(self, rsa_sessions):
        """
        Flipping bits in the last block is caught by the padding check in the
        overwhelming majority of cases. CBC has no tag, so detection is likely,
        not guaranteed.
        """
        alice, bob, _ = rsa_sessions
        envelope = alice.engine.encrypt(b"attack at dawn, bring snacks", "bob")

        failures = 0
        for i in range(1, BLOCK_SIZE + 1):
            try:
                bob.engine.decrypt(_flip(envelope, -i))
            except DecryptionError:
                failures += 1

        assert failures >= BLOCK_SIZE - 2


class TestDiffieHellmanAes:
    """Tests for DH_AES mode."""

    @pytest.mark.parametrize("plaintext", PLAINTEXTS)
    def test_round_trip(self, dh_sessions, plaintext):
        alice, bob, _ = dh_sessions
        envelope = alice.engine.encrypt(plaintext, "bob")
        assert bob.engine.decrypt(envelope, "alice") == plaintext

    def test_envelope_layout(self, dh_sessions):
        """DH envelopes hold only IV and ciphertext."""
        alice, _, _ = dh_sessions
        envelope = alice.engine.encrypt(b"A" * 20, "bob")
        assert len(envelope) == IV_SIZE + 32

    def test_both_directions(self, dh_sessions):
        alice, bob, _ = dh_sessions
        assert alice.engine.decrypt(bob.engine.encrypt(b"pong", "alice"), "bob") == b"pong"

    def test_sender_required(self, dh_sessions):
        alice, bob, _ = dh_sessions
        envelope = alice.engine.encrypt(b"hi", "bob")
        with pytest.raises(UnknownPartyError):
            bob.engine.decrypt(envelope)

    def test_unknown_sender(self, dh_sessions):
        alice, bob, _ = dh_sessions
        envelope = alice.engine.encrypt(b"hi", "bob")
        with pytest.raises(UnknownPartyError):
            bob.engine.decrypt(envelope, "ghost")

    def test_wrong_session_key(self, dh_sessions):
        """Another party's session key never yields the plaintext."""
        alice, bob, carol = dh_sessions
        bob.receive_public_key_from("carol", carol.public_key_pem())
        plaintext = b"hello bob, how are you"
        envelope = alice.engine.encrypt(plaintext, "bob")

        # Usually a padding failure; a garbled result is the rare alternative
        try:
            result = bob.engine.decrypt(envelope, "carol")
        except DecryptionError:
            return
        assert result != plaintext

    def test_truncated(self, dh_sessions):
        alice, bob, _ = dh_sessions
        envelope = alice.engine.encrypt(b"hi", "bob")
        with pytest.raises(DecryptionError):
            bob.engine.decrypt(envelope[:IV_SIZE + BLOCK_SIZE - 1], "alice")

    def test_tampered_ciphertext_usually_rejected(self, dh_sessions):
        """Same weakness as RSA mode: detection is likely, not guaranteed."""
        alice, bob, _ = dh_sessions
        envelope = alice.engine.encrypt(b"attack at dawn, bring snacks", "bob")

        failures = 0
        for i in range(1, BLOCK_SIZE + 1):
            try:
                bob.engine.decrypt(_flip(envelope, -i), "alice")
            except DecryptionError:
                failures += 1

        assert failures >= BLOCK_SIZE - 2


class TestRecipients:
    """Tests for unknown and removed recipients."""

    @pytest.mark.parametrize("sessions", ["rsa_sessions", "dh_sessions"])
    def test_unknown_recipient(self, request, sessions):
        """Encrypting for an unregistered party fails and changes nothing."""
        alice, _, _ = request.getfixturevalue(sessions)
        before = alice.list_parties()

        with pytest.raises(UnknownPartyError):
            alice.engine.encrypt(b"boo", "ghost")

        assert alice.list_parties() == before

    @pytest.mark.parametrize("sessions", ["rsa_sessions", "dh_sessions"])
    def test_removed_recipient(self, request, sessions):
        alice, _, _ = request.getfixturevalue(sessions)
        alice.remove_party("bob")
        with pytest.raises(UnknownPartyError):
            alice.engine.encrypt(b"still there?", "bob")


class TestConstruction:
    """Tests for engine wiring."""

    def test_registry_must_match_identity(self, rsa_identities):
        registry = PartyRegistry(rsa_identities[1])
        with pytest.raises(ValueError):
            CryptoEngine(rsa_identities[0], registry)

    def test_unknown_padding(self, rsa_identities):
        with pytest.raises(ValueError):
            CryptoEngine(rsa_identities[0], PartyRegistry(rsa_identities[0]), "raw")
