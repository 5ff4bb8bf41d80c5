"""
Common utilities, configuration and party list definitions for CryptoMessenger.
"""

from .protocol import AlgorithmMode, PartyRecord, PartyList
from .utils import b64encode, b64decode
from .config import EngineConfig
from .exceptions import *

__all__ = [
    'AlgorithmMode',
    'PartyRecord',
    'PartyList',
    'EngineConfig',
    'b64encode',
    'b64decode',
]
