"""
RSA Key Generation and AES Key Wrapping

The wrapped block is always exactly as long as the RSA modulus, which is
what lets an envelope be split without a length prefix.
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

PUBLIC_EXPONENT = 65537

PADDING_SCHEMES = ("oaep", "pkcs1v15")


def generate_keypair(key_size: int = 2048) -> rsa.RSAPrivateKey:
    """
    Generate an RSA private key.
    
    Raises:
        ValueError: If the key size is not supported
    """
    return rsa.generate_private_key(
        public_exponent=PUBLIC_EXPONENT,
        key_size=key_size,
    )


def block_size(key) -> int:
    """Length in bytes of an RSA block for the given (public or private) key."""
    return (key.key_size + 7) // 8


def _padding(scheme: str):
    # pkcs1v15 matches the legacy default "RSA" transformation
    if scheme == "oaep":
        return padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=None,
        )
    if scheme == "pkcs1v15":
        return padding.PKCS1v15()
    raise ValueError(f"Unknown RSA padding scheme: {scheme!r}")


def wrap_key(key: bytes, public_key: rsa.RSAPublicKey, scheme: str = "oaep") -> bytes:
    """
    Encrypt a symmetric key with the recipient's RSA public key.
    
    Args:
        key: Symmetric key bytes
        public_key: Recipient RSA public key
        scheme: "oaep" (default) or "pkcs1v15"
    
    Returns:
        RSA block of block_size(public_key) bytes
    """
    return public_key.encrypt(key, _padding(scheme))


def unwrap_key(block: bytes, private_key: rsa.RSAPrivateKey, scheme: str = "oaep") -> bytes:
    """
    Recover a symmetric key from an RSA block.
    
    Raises:
        ValueError: If the block does not decrypt under this key and scheme
    """
    return private_key.decrypt(block, _padding(scheme))
