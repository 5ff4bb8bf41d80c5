"""
Engine configuration.

Values come from the environment (optionally a .env file) and are
validated once at load time.
"""

import os
from typing import Literal
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_KEY_DIR = "keys"
DEFAULT_KEY_SIZE = 2048

ENV_PREFIX = "CRYPTOMESSENGER_"


class EngineConfig(BaseModel):
    """Settings shared by Identity, PartyRegistry and CryptoEngine."""
    key_dir: str = Field(DEFAULT_KEY_DIR, description="Directory holding persisted key pairs")
    key_size: int = Field(
        DEFAULT_KEY_SIZE, ge=1024, le=8192,
        description="RSA key size in bits; DH always uses the 2048-bit standard group"
    )
    rsa_padding: Literal["oaep", "pkcs1v15"] = Field(
        "oaep", description="Padding used to wrap AES keys with RSA"
    )
    log_level: str = Field("WARNING", description="Logging level for scripts")

    @field_validator("rsa_padding", "log_level", mode="before")
    @classmethod
    def _normalize_case(cls, value, info):
        if isinstance(value, str):
            value = value.strip()
            return value.upper() if info.field_name == "log_level" else value.lower()
        return value

    @classmethod
    def from_env(cls, **overrides) -> "EngineConfig":
        """
        Build configuration from CRYPTOMESSENGER_* environment variables.
        
        Args:
            **overrides: Explicit values taking precedence over the environment
        
        Returns:
            Validated configuration
        
        Raises:
            pydantic.ValidationError: If a value is out of range or unknown
        """
        load_dotenv()
        
        values = {}
        for field in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + field.upper())
            if raw is not None:
                values[field] = raw
        
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
