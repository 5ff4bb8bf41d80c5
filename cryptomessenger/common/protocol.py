"""
Algorithm modes and party list definitions using Pydantic.

Party lists are serialized to/from JSON for out-of-band exchange of
public keys between parties.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class AlgorithmMode(str, Enum):
    """
    Key family and encryption scheme of an identity.
    
    RSA_HYBRID: RSA key pairs, a fresh AES key per message wrapped with RSA.
    DH_AES: Diffie-Hellman key pairs, one derived AES session key per party.
    """
    RSA_HYBRID = "RSA"
    DH_AES = "DH"

    @classmethod
    def _missing_(cls, value):
        # Accept member names and short CLI spellings ("rsa", "dh", "dh_aes")
        if isinstance(value, str):
            key = value.strip().upper()
            for member in cls:
                if key in (member.value, member.name):
                    return member
        return None

    @property
    def algorithm(self) -> str:
        """Algorithm basis used in key file names ("RSA" or "DH")."""
        return self.value


class PartyRecord(BaseModel):
    """A counterpart and the public key it distributed."""
    identifier: str = Field(..., min_length=1, description="Unique party identifier")
    public_key_pem: str = Field(..., min_length=1, description="PEM-encoded public key")


class PartyList(BaseModel):
    """Ordered party list for import/export."""
    mode: Optional[AlgorithmMode] = Field(None, description="Algorithm mode of the listed keys")
    parties: List[PartyRecord] = Field(default_factory=list)


# Helper functions for serialization

def serialize_party_list(party_list: PartyList) -> str:
    """Serialize a party list to a JSON string."""
    return party_list.model_dump_json(indent=2)


def deserialize_party_list(json_str: str) -> PartyList:
    """
    Deserialize a JSON string to a party list.
    
    Raises:
        pydantic.ValidationError: If the JSON is malformed or a record is invalid
    """
    return PartyList.model_validate_json(json_str)
