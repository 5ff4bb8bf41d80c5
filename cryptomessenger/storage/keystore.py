"""
Persisted Key Pairs

Each (name, mode) pair owns two files in the key directory:
    private_<name>_<RSA|DH>.key   PKCS#8 DER, created with mode 0600
    public_<name>_<RSA|DH>.key    SubjectPublicKeyInfo DER

Both halves are written to temporary files and then published; the
private half is claimed with a hard link, so two processes generating the
same identity cannot both write. The loser sees FileExistsError and
waits for the winner's pair with load_settled().
"""

import logging
import os
import tempfile
import time
from typing import Tuple
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from cryptomessenger.common.exceptions import KeyLoadError, KeyParseError
from cryptomessenger.common.protocol import AlgorithmMode
from cryptomessenger.crypto.pem import check_family, public_key_der

logger = logging.getLogger(__name__)

SETTLE_TIMEOUT = 2.0
SETTLE_INTERVAL = 0.05


class KeyStore:
    """
    Reads and writes identity key pairs under one directory.
    """
    
    def __init__(self, key_dir: str = "keys", settle_timeout: float = SETTLE_TIMEOUT):
        """
        Initialize key store.
        
        Args:
            key_dir: Directory to store key files
            settle_timeout: Seconds load_settled() waits for a pair being written
        """
        self.key_dir = key_dir
        self.settle_timeout = settle_timeout
    
    def paths(self, name: str, mode: AlgorithmMode) -> Tuple[str, str]:
        """Return (private_key_path, public_key_path) for an identity."""
        suffix = f"{name}_{mode.algorithm}.key"
        return (
            os.path.join(self.key_dir, f"private_{suffix}"),
            os.path.join(self.key_dir, f"public_{suffix}"),
        )
    
    def exists(self, name: str, mode: AlgorithmMode) -> bool:
        """Check whether any persisted material exists for an identity."""
        return any(os.path.exists(path) for path in self.paths(name, mode))
    
    def save(self, name: str, mode: AlgorithmMode, private_key) -> None:
        """
        Persist both halves of a key pair.
        
        Each half is written to a temporary file first. The private half is
        then claimed with a hard link, which fails if the target exists and
        never exposes a partly written file.
        
        Raises:
            FileExistsError: If another writer claimed the private key first
            OSError: If the files cannot be written
        """
        private_path, public_path = self.paths(name, mode)
        os.makedirs(self.key_dir, exist_ok=True)
        
        private_der = private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_der = public_key_der(private_key.public_key())
        
        # The private key file doubles as the creation lock
        private_tmp = self._write_temp(private_der, 0o600)
        try:
            os.link(private_tmp, private_path)
        finally:
            self._remove(private_tmp)
        
        public_tmp = self._write_temp(public_der, 0o644)
        try:
            os.replace(public_tmp, public_path)
        except OSError:
            self._remove(public_tmp)
            self._remove(private_path)
            raise
        
        logger.info("Persisted %s key pair for %r in %s", mode.algorithm, name, self.key_dir)
    
    def load_settled(self, name: str, mode: AlgorithmMode):
        """
        Load a key pair that another writer may still be saving.
        
        Retries load() until it succeeds or settle_timeout expires; the
        public half lands shortly after the private half is claimed.
        
        Raises:
            KeyLoadError: If the pair is still unreadable after the timeout
        """
        deadline = time.monotonic() + self.settle_timeout
        while True:
            try:
                return self.load(name, mode)
            except KeyLoadError:
                if time.monotonic() >= deadline:
                    raise
                logger.debug("Key pair for %r not complete yet, retrying", name)
                time.sleep(SETTLE_INTERVAL)
    
    def load(self, name: str, mode: AlgorithmMode):
        """
        Load a persisted private key and check it against its public half.
        
        Returns:
            Private key object
        
        Raises:
            KeyLoadError: If a file is missing, unreadable, corrupt, of the
                wrong family, or the halves do not match
        """
        private_path, public_path = self.paths(name, mode)
        
        try:
            with open(private_path, "rb") as f:
                private_der = f.read()
            with open(public_path, "rb") as f:
                public_der = f.read()
        except OSError as e:
            raise KeyLoadError(f"Cannot read key files for {name!r}: {e}") from e
        
        try:
            private_key = serialization.load_der_private_key(private_der, password=None)
            public_key = serialization.load_der_public_key(public_der)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise KeyLoadError(f"Corrupt key files for {name!r}: {e}") from e
        
        try:
            check_family(public_key, mode)
            check_family(private_key.public_key(), mode)
        except KeyParseError as e:
            raise KeyLoadError(f"Key files for {name!r} are not {mode.algorithm} keys") from e
        
        if public_key_der(private_key.public_key()) != public_der:
            raise KeyLoadError(f"Public key file for {name!r} does not match the private key")
        
        logger.info("Loaded %s key pair for %r from %s", mode.algorithm, name, self.key_dir)
        return private_key
    
    def delete(self, name: str, mode: AlgorithmMode) -> None:
        """Remove persisted key files. Failures are logged and ignored."""
        for path in self.paths(name, mode):
            self._remove(path)
    
    def _write_temp(self, data: bytes, permissions: int) -> str:
        fd, path = tempfile.mkstemp(prefix=".tmp-", suffix=".key", dir=self.key_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(path, permissions)
        except OSError:
            self._remove(path)
            raise
        return path
    
    @staticmethod
    def _remove(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove key file %s: %s", path, e)
