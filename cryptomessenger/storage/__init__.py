"""
Storage modules for CryptoMessenger.

Includes:
- KeyStore for persisted identity key pairs
"""

from .keystore import KeyStore

__all__ = [
    'KeyStore',
]
