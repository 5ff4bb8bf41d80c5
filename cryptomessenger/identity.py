"""
Local Party Identity

An identity owns exactly one key pair whose family (RSA or DH) is fixed
by its algorithm mode. Key pairs are generated on first use and loaded
from the key store afterwards.
"""

import logging
import os
from enum import Enum
from typing import Optional

from cryptomessenger.common.exceptions import KeyGenerationError
from cryptomessenger.common.protocol import AlgorithmMode
from cryptomessenger.crypto import dh, keywrap
from cryptomessenger.crypto.pem import encode_to_pem
from cryptomessenger.storage.keystore import KeyStore

logger = logging.getLogger(__name__)

DEFAULT_KEY_SIZE = 2048


class IdentityState(Enum):
    UNINITIALIZED = "uninitialized"
    KEYS_GENERATED = "keys_generated"
    KEYS_LOADED = "keys_loaded"


def validate_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Identity name must be a non-empty string")
    if os.sep in name or (os.altsep and os.altsep in name) or name in (".", ".."):
        raise ValueError(f"Identity name may not contain path separators: {name!r}")
    return name


def _generate(mode: AlgorithmMode, key_size: int):
    if mode is AlgorithmMode.RSA_HYBRID:
        return keywrap.generate_keypair(key_size)
    return dh.generate_keypair(key_size)


class Identity:
    """
    One local party's key pair and algorithm mode.
    """

    def __init__(self, name: str, mode: AlgorithmMode, private_key,
                 keystore: Optional[KeyStore] = None,
                 state: IdentityState = IdentityState.UNINITIALIZED):
        self.name = validate_name(name)
        self.mode = AlgorithmMode(mode)
        self.private_key = private_key
        self.public_key = private_key.public_key()
        self.keystore = keystore
        self.state = state

    @classmethod
    def create(cls, name: str, mode: AlgorithmMode, key_size: Optional[int] = None,
               keystore: Optional[KeyStore] = None) -> "Identity":
        """
        Load the persisted key pair for (name, mode), or generate and persist one.

        Args:
            name: Local party label
            mode: Algorithm mode, fixed for the identity's lifetime
            key_size: Key size in bits for new key pairs (default: 2048)
            keystore: Key store to use (default: ./keys)

        Returns:
            Identity in state KEYS_LOADED or KEYS_GENERATED

        Raises:
            ValueError: If name is empty or not usable in a file name
            KeyGenerationError: If key generation or persistence fails
            KeyLoadError: If persisted material is unreadable or corrupt
        """
        name = validate_name(name)
        mode = AlgorithmMode(mode)
        key_size = key_size or DEFAULT_KEY_SIZE
        keystore = keystore or KeyStore()

        if keystore.exists(name, mode):
            private_key = keystore.load_settled(name, mode)
            return cls(name, mode, private_key, keystore, IdentityState.KEYS_LOADED)

        logger.info("Generating %d-bit %s key pair for %r", key_size, mode.algorithm, name)
        try:
            private_key = _generate(mode, key_size)
        except (ValueError, TypeError) as e:
            raise KeyGenerationError(f"Cannot generate {mode.algorithm} key pair: {e}") from e

        try:
            keystore.save(name, mode, private_key)
        except FileExistsError:
            # Another process generated this identity first; use its keys
            logger.info("Key pair for %r created concurrently, loading it", name)
            private_key = keystore.load_settled(name, mode)
            return cls(name, mode, private_key, keystore, IdentityState.KEYS_LOADED)
        except OSError as e:
            raise KeyGenerationError(f"Cannot persist key pair for {name!r}: {e}") from e

        return cls(name, mode, private_key, keystore, IdentityState.KEYS_GENERATED)

    @property
    def key_size(self) -> int:
        return self.private_key.key_size

    @property
    def key_block_size(self) -> int:
        """RSA block length in bytes (the wrapped-key prefix of an envelope)."""
        return keywrap.block_size(self.private_key)

    def public_key_pem(self) -> str:
        """Own public key as PEM text, for distribution to counterparts."""
        return encode_to_pem(self.public_key)

    def delete_keys(self) -> None:
        """Best-effort removal of persisted key material."""
        if self.keystore is None:
            return
        self.keystore.delete(self.name, self.mode)
        logger.info("Deleted persisted keys for %r", self.name)

    def __repr__(self):
        return f"Identity(name={self.name!r}, mode={self.mode.name}, state={self.state.name})"
