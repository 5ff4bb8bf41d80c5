"""
Hybrid Encryption Engine

Encryption Flow (RSA_HYBRID):
    plaintext
        ↓ AES-128-CBC (fresh key, fresh IV)
    IV || ciphertext
        ↓ prepend RSA-wrapped AES key (recipient public key)
    envelope

Encryption Flow (DH_AES):
    plaintext
        ↓ AES-128-CBC (session key agreed with recipient, fresh IV)
    envelope = IV || ciphertext

Decryption reverses the flow. Padding failures, malformed lengths and
wrong keys all surface as DecryptionError: CBC has no authentication tag,
so they cannot be told apart.
"""

import logging
from typing import Optional

from cryptomessenger.common.exceptions import (
    DecryptionError,
    EncryptionError,
    UnknownPartyError,
)
from cryptomessenger.common.protocol import AlgorithmMode
from cryptomessenger.crypto import aes, keywrap
from cryptomessenger.crypto.envelope import Envelope
from cryptomessenger.identity import Identity
from cryptomessenger.registry import PartyRegistry

logger = logging.getLogger(__name__)


class CryptoEngine:
    """
    Encrypts for and decrypts from registered parties.
    """

    def __init__(self, identity: Identity, registry: PartyRegistry, rsa_padding: str = "oaep"):
        """
        Args:
            identity: Own identity (mode and private key)
            registry: Counterpart keys of the same identity
            rsa_padding: "oaep" or "pkcs1v15" for the RSA key wrap
        """
        if registry.identity is not identity:
            raise ValueError("Registry belongs to a different identity")
        if rsa_padding not in keywrap.PADDING_SCHEMES:
            raise ValueError(f"Unknown RSA padding scheme: {rsa_padding!r}")

        self.identity = identity
        self.registry = registry
        self.rsa_padding = rsa_padding

    @property
    def mode(self) -> AlgorithmMode:
        return self.identity.mode

    def encrypt(self, plaintext: bytes, recipient: str) -> bytes:
        """
        Encrypt plaintext for a registered party.

        Args:
            plaintext: Message bytes
            recipient: Party identifier

        Returns:
            Raw envelope bytes

        Raises:
            UnknownPartyError: If recipient has no registered key
            EncryptionError: If the cipher operation fails
        """
        if self.mode is AlgorithmMode.RSA_HYBRID:
            public_key = self.registry.lookup_public_key(recipient)
            try:
                message_key = aes.generate_key()
                payload = aes.encrypt(plaintext, message_key)
                wrapped_key = keywrap.wrap_key(message_key, public_key, self.rsa_padding)
            except (ValueError, TypeError) as e:
                raise EncryptionError(f"Encryption for {recipient!r} failed: {e}") from e
            envelope = Envelope(
                wrapped_key=wrapped_key,
                iv=payload[:aes.IV_SIZE],
                ciphertext=payload[aes.IV_SIZE:],
            )
        else:
            session_key = self.registry.lookup_session_key(recipient)
            try:
                payload = aes.encrypt(plaintext, session_key)
            except (ValueError, TypeError) as e:
                raise EncryptionError(f"Encryption for {recipient!r} failed: {e}") from e
            envelope = Envelope(iv=payload[:aes.IV_SIZE], ciphertext=payload[aes.IV_SIZE:])

        logger.debug("Encrypted %d bytes for %r (%s)", len(plaintext), recipient, self.mode.name)
        return envelope.to_bytes()

    def decrypt(self, data: bytes, sender: Optional[str] = None) -> bytes:
        """
        Decrypt an envelope addressed to this identity.

        Args:
            data: Raw envelope bytes
            sender: Party identifier, required in DH_AES mode and ignored
                in RSA_HYBRID mode

        Returns:
            Plaintext bytes

        Raises:
            UnknownPartyError: DH_AES only, if sender is missing or unknown
            DecryptionError: If the envelope is malformed or does not
                decrypt under the key
        """
        if self.mode is AlgorithmMode.RSA_HYBRID:
            envelope = self._split(data, self.identity.key_block_size)
            try:
                message_key = keywrap.unwrap_key(
                    envelope.wrapped_key, self.identity.private_key, self.rsa_padding
                )
            except ValueError as e:
                raise DecryptionError("Cannot unwrap message key") from e
            if len(message_key) != aes.AES_KEY_SIZE:
                raise DecryptionError("Unwrapped message key has the wrong length")
        else:
            if sender is None:
                raise UnknownPartyError(None, "Sender identifier is required in DH_AES mode")
            message_key = self.registry.lookup_session_key(sender)
            envelope = self._split(data, None)

        try:
            plaintext = aes.decrypt(envelope.payload, message_key)
        except ValueError as e:
            raise DecryptionError(f"Decryption failed: {e}") from e

        logger.debug("Decrypted %d bytes (%s)", len(plaintext), self.mode.name)
        return plaintext

    @staticmethod
    def _split(data: bytes, key_block_size: Optional[int]) -> Envelope:
        try:
            return Envelope.from_bytes(data, key_block_size)
        except ValueError as e:
            raise DecryptionError(f"Malformed envelope: {e}") from e
