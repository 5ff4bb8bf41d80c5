"""
Utility functions for CryptoMessenger.
"""

import base64
import binascii
import secrets

from cryptomessenger.common.exceptions import DecodeError


def b64encode(data: bytes) -> str:
    """
    Base64 encode bytes to string.
    
    Args:
        data: Bytes to encode
    
    Returns:
        Base64-encoded string
    """
    return base64.b64encode(data).decode('ascii')


def b64decode(data: str) -> bytes:
    """
    Base64 decode string to bytes.
    
    Surrounding whitespace and embedded line breaks are ignored, so
    envelopes copied out of a text window still decode.
    
    Args:
        data: Base64-encoded string
    
    Returns:
        Decoded bytes
    
    Raises:
        DecodeError: If data is not valid Base64
    """
    if isinstance(data, bytes):
        try:
            data = data.decode('ascii')
        except UnicodeDecodeError as e:
            raise DecodeError(f"Invalid Base64 data: {e}") from e
    
    compact = "".join(data.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid Base64 data: {e}") from e


def generate_nonce(length: int = 16) -> bytes:
    """
    Generate cryptographically secure random bytes (IVs, one-time keys).
    
    Args:
        length: Length in bytes (default: 16)
    
    Returns:
        Random bytes
    """
    return secrets.token_bytes(length)
