"""
Public Key PEM Encoding

Public keys are exchanged as SubjectPublicKeyInfo DER, Base64-encoded,
wrapped at 64 columns and bracketed with PUBLIC KEY header/footer lines.
"""

import binascii
import base64
import textwrap
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dh, rsa

from cryptomessenger.common.exceptions import KeyParseError
from cryptomessenger.common.protocol import AlgorithmMode

PEM_HEADER = "-----BEGIN PUBLIC KEY-----"
PEM_FOOTER = "-----END PUBLIC KEY-----"
PEM_LINE_WIDTH = 64

KEY_TYPES = {
    AlgorithmMode.RSA_HYBRID: rsa.RSAPublicKey,
    AlgorithmMode.DH_AES: dh.DHPublicKey,
}


def public_key_der(public_key) -> bytes:
    """Standard encoded form (SubjectPublicKeyInfo DER) of a public key."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def encode_to_pem(public_key) -> str:
    """
    Encode a public key as PEM text.
    
    Args:
        public_key: RSA or DH public key object
    
    Returns:
        PEM string ending with a newline
    """
    body = base64.b64encode(public_key_der(public_key)).decode('ascii')
    lines = [PEM_HEADER] + textwrap.wrap(body, PEM_LINE_WIDTH) + [PEM_FOOTER]
    return "\n".join(lines) + "\n"


def check_family(public_key, mode: AlgorithmMode):
    """
    Ensure a parsed key belongs to the family implied by mode.
    
    Raises:
        KeyParseError: If the key is of another algorithm family
    """
    expected = KEY_TYPES[mode]
    if not isinstance(public_key, expected):
        raise KeyParseError(
            f"Expected {mode.algorithm} public key, got {type(public_key).__name__}"
        )
    return public_key


def decode_from_pem(text: str, mode: AlgorithmMode):
    """
    Parse PEM text (or bare Base64 of the DER form) into a public key.
    
    Args:
        text: PEM-encoded public key
        mode: Algorithm mode determining the expected key family
    
    Returns:
        RSA or DH public key object
    
    Raises:
        KeyParseError: If the Base64 is malformed, the DER does not parse,
            or the key is of the wrong family
    """
    if not isinstance(text, str) or not text.strip():
        raise KeyParseError("Public key text is empty")
    
    # Drop -----BEGIN/END ...----- lines, keep the Base64 body
    body = "".join(
        line.strip() for line in text.splitlines()
        if not line.strip().startswith("-----")
    )
    
    try:
        der = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise KeyParseError(f"Invalid Base64 in public key: {e}") from e
    
    try:
        public_key = serialization.load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyParseError(f"Public key does not parse: {e}") from e
    
    return check_family(public_key, mode)
