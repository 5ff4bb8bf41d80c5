"""
Known Counterpart Keys

Stores each party's public key and, in DH_AES mode, the AES session key
agreed with it. Entries are keyed by party identifier.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from cryptomessenger.common.exceptions import KeyAgreementError, UnknownPartyError
from cryptomessenger.common.protocol import AlgorithmMode, PartyRecord
from cryptomessenger.crypto import dh
from cryptomessenger.crypto.pem import decode_from_pem, encode_to_pem
from cryptomessenger.identity import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartyEntry:
    identifier: str
    public_key: object
    session_key: Optional[bytes] = None

    @property
    def public_key_pem(self) -> str:
        return encode_to_pem(self.public_key)


def _validate_identifier(identifier: str) -> str:
    if not isinstance(identifier, str) or not identifier:
        raise ValueError("Party identifier must be a non-empty string")
    return identifier


class PartyRegistry:
    """
    Counterpart key registry owned by one identity.

    All mutations and lookups hold the registry lock, so one registry
    can be shared between threads.
    """

    def __init__(self, identity: Identity):
        self.identity = identity
        self._entries: Dict[str, PartyEntry] = {}
        self._lock = threading.RLock()

    @property
    def mode(self) -> AlgorithmMode:
        return self.identity.mode

    def receive_public_key_from(self, identifier: str, pem_text: str) -> None:
        """
        Register (or replace) a party's public key.

        In DH_AES mode the session key is agreed immediately using the
        local private key. On failure any previous entry is left as it was.

        Args:
            identifier: Party identifier
            pem_text: PEM-encoded public key of the party

        Raises:
            ValueError: If identifier is empty
            KeyParseError: If the PEM is malformed or of the wrong family
            KeyAgreementError: If the DH computation fails
        """
        identifier = _validate_identifier(identifier)
        public_key = decode_from_pem(pem_text, self.mode)

        session_key = None
        if self.mode is AlgorithmMode.DH_AES:
            session_key = self._agree(identifier, public_key)

        with self._lock:
            replaced = identifier in self._entries
            self._entries[identifier] = PartyEntry(identifier, public_key, session_key)

        logger.info("%s public key for party %r", "Replaced" if replaced else "Registered", identifier)

    def _agree(self, identifier: str, public_key) -> bytes:
        try:
            shared_secret = dh.compute_shared_secret(self.identity.private_key, public_key)
        except ValueError as e:
            raise KeyAgreementError(f"Key agreement with {identifier!r} failed: {e}") from e
        return dh.derive_aes_key(shared_secret)

    def _entry(self, identifier: str) -> PartyEntry:
        with self._lock:
            entry = self._entries.get(identifier)
        if entry is None:
            raise UnknownPartyError(identifier)
        return entry

    def lookup_public_key(self, identifier: str):
        """
        Raises:
            UnknownPartyError: If no key is registered for identifier
        """
        return self._entry(identifier).public_key

    def lookup_session_key(self, identifier: str) -> bytes:
        """
        Raises:
            UnknownPartyError: If identifier is unknown or has no session key
                (RSA_HYBRID registries never hold session keys)
        """
        entry = self._entry(identifier)
        if entry.session_key is None:
            raise UnknownPartyError(identifier, f"No session key for party {identifier!r}")
        return entry.session_key

    def remove(self, identifier: str) -> None:
        """Forget a party. Unknown identifiers are ignored."""
        with self._lock:
            removed = self._entries.pop(identifier, None)
        if removed is not None:
            logger.info("Removed party %r", identifier)

    def list_parties(self) -> List[PartyRecord]:
        """Snapshot of registered parties in registration order."""
        with self._lock:
            entries = list(self._entries.values())
        return [
            PartyRecord(identifier=entry.identifier, public_key_pem=entry.public_key_pem)
            for entry in entries
        ]

    def __contains__(self, identifier) -> bool:
        with self._lock:
            return identifier in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
