"""
Messaging Session

Composition root for one local party: an Identity, its PartyRegistry and
a CryptoEngine. This is the API the user interface layer calls; it deals
in plain strings (identifiers, PEM text, Base64 envelopes).
"""

import logging
from typing import Iterable, List, Optional

from cryptomessenger.common.config import EngineConfig
from cryptomessenger.common.exceptions import DecryptionError
from cryptomessenger.common.protocol import (
    AlgorithmMode,
    PartyList,
    PartyRecord,
    deserialize_party_list,
    serialize_party_list,
)
from cryptomessenger.common.utils import b64decode, b64encode
from cryptomessenger.engine import CryptoEngine
from cryptomessenger.identity import Identity
from cryptomessenger.registry import PartyRegistry
from cryptomessenger.storage.keystore import KeyStore

logger = logging.getLogger(__name__)


def create_identity(name: str, mode: AlgorithmMode, config: Optional[EngineConfig] = None) -> Identity:
    """
    Create or load an identity using configured key directory and size.

    The configured key size applies to RSA identities only; DH identities
    always use the 2048-bit standard group.

    Raises:
        KeyGenerationError: If a new key pair cannot be generated or stored
        KeyLoadError: If persisted key material is corrupt
    """
    config = config or EngineConfig.from_env()
    mode = AlgorithmMode(mode)
    key_size = config.key_size if mode is AlgorithmMode.RSA_HYBRID else None
    return Identity.create(name, mode, key_size=key_size, keystore=KeyStore(config.key_dir))


class Session:
    """
    One local party's messaging session.
    """

    def __init__(self, identity: Identity, rsa_padding: str = "oaep"):
        self.identity = identity
        self.registry = PartyRegistry(identity)
        self.engine = CryptoEngine(identity, self.registry, rsa_padding)

    @classmethod
    def open(cls, name: str, mode: AlgorithmMode, config: Optional[EngineConfig] = None) -> "Session":
        """
        Create or load the identity for (name, mode) and wrap it in a session.

        Args:
            name: Local party label
            mode: Algorithm mode
            config: Engine configuration (default: from environment)
        """
        config = config or EngineConfig.from_env()
        identity = create_identity(name, mode, config)
        logger.info("Opened session for %r (%s, %s)", identity.name, identity.mode.name,
                    identity.state.name)
        return cls(identity, config.rsa_padding)

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def mode(self) -> AlgorithmMode:
        return self.identity.mode

    def public_key_pem(self) -> str:
        return self.identity.public_key_pem()

    def receive_public_key_from(self, identifier: str, pem_text: str) -> None:
        """
        Raises:
            KeyParseError: If the PEM is malformed or of the wrong family
            KeyAgreementError: If DH key agreement fails
        """
        self.registry.receive_public_key_from(identifier, pem_text)

    def remove_party(self, identifier: str) -> None:
        self.registry.remove(identifier)

    def list_parties(self) -> List[PartyRecord]:
        return self.registry.list_parties()

    def encrypt_message(self, text: str, recipient: str) -> str:
        """
        Encrypt text for a registered party.

        Returns:
            Base64-encoded envelope

        Raises:
            UnknownPartyError: If recipient is not registered
            EncryptionError: If encryption fails
        """
        envelope = self.engine.encrypt(text.encode('utf-8'), recipient)
        return b64encode(envelope)

    def decrypt_message(self, envelope_b64: str, sender: Optional[str] = None) -> str:
        """
        Decrypt a Base64 envelope.

        Args:
            envelope_b64: Base64-encoded envelope
            sender: Sender identifier (required in DH_AES mode)

        Returns:
            Plaintext string

        Raises:
            DecodeError: If the envelope is not valid Base64
            UnknownPartyError: DH_AES only, if sender is missing or unknown
            DecryptionError: If decryption fails
        """
        plaintext = self.engine.decrypt(b64decode(envelope_b64), sender)
        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted message is not valid UTF-8") from e

    def import_parties(self, records: Iterable[PartyRecord]) -> int:
        """
        Register each record in sequence.

        Stops at the first failing record; records before it stay registered.

        Returns:
            Number of records registered
        """
        count = 0
        for record in records:
            self.receive_public_key_from(record.identifier, record.public_key_pem)
            count += 1
        return count

    def import_party_list(self, json_str: str) -> int:
        """
        Register the parties of a JSON party list.

        Raises:
            ValueError: If the JSON is malformed or was exported in another mode
            KeyParseError, KeyAgreementError: As for receive_public_key_from
        """
        party_list = deserialize_party_list(json_str)
        if party_list.mode is not None and party_list.mode is not self.mode:
            raise ValueError(
                f"Party list holds {party_list.mode.name} keys, session uses {self.mode.name}"
            )
        return self.import_parties(party_list.parties)

    def export_party_list(self) -> str:
        """JSON party list of all registered parties."""
        return serialize_party_list(PartyList(mode=self.mode, parties=self.list_parties()))

    def delete_keys(self) -> None:
        """Best-effort removal of this identity's persisted keys."""
        self.identity.delete_keys()
