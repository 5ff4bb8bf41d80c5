"""
AES-128-CBC Encryption/Decryption with PKCS#7 Padding

Output layout is IV (16 bytes) followed by the CBC ciphertext.
CBC carries no authentication tag: tampering is only detected when it
happens to break the padding.
"""

from typing import Optional
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from cryptomessenger.common.utils import generate_nonce

AES_KEY_SIZE = 16
IV_SIZE = 16
BLOCK_SIZE = 16


def pkcs7_pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Apply PKCS#7 padding to data.
    
    Args:
        data: Data to pad
        block_size: Block size in bytes (default: 16 for AES)
    
    Returns:
        Padded data
    """
    padding_length = block_size - (len(data) % block_size)
    padding = bytes([padding_length] * padding_length)
    return data + padding


def pkcs7_unpad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Remove PKCS#7 padding from data.
    
    Args:
        data: Padded data
        block_size: Block size in bytes
    
    Returns:
        Unpadded data
    
    Raises:
        ValueError: If padding is invalid
    """
    if not data or len(data) % block_size:
        raise ValueError("Padded data is not a whole number of blocks")
    
    padding_length = data[-1]
    
    if padding_length < 1 or padding_length > block_size:
        raise ValueError(f"Invalid padding length: {padding_length}")
    
    # Verify all padding bytes are correct
    for i in range(padding_length):
        if data[-(i + 1)] != padding_length:
            raise ValueError("Invalid PKCS#7 padding")
    
    return data[:-padding_length]


def generate_key() -> bytes:
    """Generate a random AES-128 key."""
    return generate_nonce(AES_KEY_SIZE)


def _check_key(key: bytes) -> None:
    if len(key) != AES_KEY_SIZE:
        raise ValueError(f"AES-128 requires 16-byte key, got {len(key)} bytes")


def encrypt(plaintext: bytes, key: bytes, iv: Optional[bytes] = None) -> bytes:
    """
    Encrypt plaintext using AES-128 CBC mode with PKCS#7 padding.
    
    Args:
        plaintext: Bytes to encrypt
        key: 16-byte AES key
        iv: 16-byte IV (a fresh random IV is generated when omitted)
    
    Returns:
        IV || ciphertext
    
    Raises:
        ValueError: If key or IV length is wrong
    """
    _check_key(key)
    
    if iv is None:
        iv = generate_nonce(IV_SIZE)
    elif len(iv) != IV_SIZE:
        raise ValueError(f"CBC requires 16-byte IV, got {len(iv)} bytes")
    
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(pkcs7_pad(plaintext)) + encryptor.finalize()
    
    return iv + ciphertext


def decrypt(data: bytes, key: bytes) -> bytes:
    """
    Decrypt IV || ciphertext produced by encrypt().
    
    Args:
        data: IV followed by CBC ciphertext
        key: 16-byte AES key
    
    Returns:
        Decrypted plaintext bytes
    
    Raises:
        ValueError: If the key length is wrong, the data is too short or
            not block aligned, or the padding is invalid
    """
    _check_key(key)
    
    if len(data) < IV_SIZE + BLOCK_SIZE:
        raise ValueError(f"Ciphertext too short: {len(data)} bytes")
    
    iv, ciphertext = data[:IV_SIZE], data[IV_SIZE:]
    if len(ciphertext) % BLOCK_SIZE:
        raise ValueError("Ciphertext is not a whole number of blocks")
    
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded_plaintext = decryptor.update(ciphertext) + decryptor.finalize()
    
    return pkcs7_unpad(padded_plaintext)
