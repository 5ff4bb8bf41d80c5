"""
Cryptographic primitives for CryptoMessenger.

This package provides implementations of:
- AES-128-CBC encryption/decryption with PKCS#7 padding
- Diffie-Hellman key agreement on a standard group
- RSA key generation and AES key wrapping
- Public key PEM encoding (KeyCodec)
- Envelope framing
"""

from .aes import encrypt, decrypt
from .dh import generate_params, compute_shared_secret, derive_aes_key
from .keywrap import wrap_key, unwrap_key
from .pem import encode_to_pem, decode_from_pem
from .envelope import Envelope

__all__ = [
    'encrypt',
    'decrypt',
    'generate_params',
    'compute_shared_secret',
    'derive_aes_key',
    'wrap_key',
    'unwrap_key',
    'encode_to_pem',
    'decode_from_pem',
    'Envelope',
]
