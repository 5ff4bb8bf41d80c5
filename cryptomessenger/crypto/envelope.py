"""
Ciphertext Envelope Framing

Formats:
    RSA_HYBRID:  RSA_BLOCK (modulus length) | IV (16) | AES-CBC ciphertext
    DH_AES:      IV (16) | AES-CBC ciphertext

There is no length prefix or version byte: the reader knows the mode, and
in RSA mode the block length equals its own modulus length.
"""

from dataclasses import dataclass
from typing import Optional

from cryptomessenger.crypto.aes import IV_SIZE, BLOCK_SIZE


@dataclass(frozen=True)
class Envelope:
    """Parsed envelope. wrapped_key is empty for DH_AES envelopes."""
    iv: bytes
    ciphertext: bytes
    wrapped_key: bytes = b""

    @property
    def payload(self) -> bytes:
        """IV || ciphertext, the part handled by the AES layer."""
        return self.iv + self.ciphertext

    def to_bytes(self) -> bytes:
        return self.wrapped_key + self.iv + self.ciphertext

    @classmethod
    def from_bytes(cls, data: bytes, key_block_size: Optional[int] = None) -> "Envelope":
        """
        Split raw envelope bytes.
        
        Args:
            data: Raw envelope
            key_block_size: RSA block length for RSA_HYBRID, None for DH_AES
        
        Raises:
            ValueError: If data is shorter than key block + IV + one block,
                or the ciphertext is not block aligned
        """
        head = key_block_size or 0
        minimum = head + IV_SIZE + BLOCK_SIZE
        
        if len(data) < minimum:
            raise ValueError(f"Envelope too short: {len(data)} bytes, need at least {minimum}")
        if (len(data) - head - IV_SIZE) % BLOCK_SIZE:
            raise ValueError("Envelope ciphertext is not a whole number of blocks")
        
        return cls(
            wrapped_key=data[:head],
            iv=data[head:head + IV_SIZE],
            ciphertext=data[head + IV_SIZE:],
        )
