"""
CryptoMessenger

A message encryption engine for parties that exchange public keys
out-of-band:
- RSA hybrid mode (RSA-wrapped AES-128 message keys)
- Diffie-Hellman mode (agreed AES-128 session keys)
- AES-128-CBC message encryption
- PEM public key exchange and JSON party lists
"""

from cryptomessenger.common.exceptions import *
from cryptomessenger.common.protocol import AlgorithmMode, PartyList, PartyRecord
from cryptomessenger.common.config import EngineConfig
from cryptomessenger.identity import Identity
from cryptomessenger.registry import PartyRegistry
from cryptomessenger.engine import CryptoEngine
from cryptomessenger.session import Session, create_identity

__version__ = "1.0.0"
