"""
Diffie-Hellman Key Agreement

Every identity uses the same standard domain parameters, so any two
parties can agree on a key after exchanging public keys. The shared
secret is reduced to an AES-128 session key.

Finite-field DH is deprecated in recent cryptography releases and slated
for removal, so the dependency is capped at the releases known to ship it.
DH_AES mode needs a replacement group (X25519) before that cap is lifted.
"""

import hashlib
from cryptography.hazmat.primitives.asymmetric import dh


# RFC 3526 - 2048-bit MODP Group (Group 14)
# This is a safe prime for DH key exchange
DH_PRIME_2048 = int(
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE45B3D"
    "C2007CB8A163BF0598DA48361C55D39A69163FA8FD24CF5F"
    "83655D23DCA3AD961C62F356208552BB9ED529077096966D"
    "670C354E4ABC9804F1746C08CA18217C32905E462E36CE3B"
    "E39E772C180E86039B2783A2EC07A28FB5C55DF06F4C52C9"
    "DE2BCBF6955817183995497CEA956AE515D2261898FA0510"
    "15728E5A8AACAA68FFFFFFFFFFFFFFFF", 16
)

DH_GENERATOR = 2

STANDARD_GROUPS = {
    2048: (DH_PRIME_2048, DH_GENERATOR),
}

SESSION_KEY_SIZE = 16


def generate_params(key_size: int = 2048) -> dh.DHParameters:
    """
    Return the standard DH domain parameters for a key size.
    
    Args:
        key_size: Prime size in bits
    
    Returns:
        DH parameters object
    
    Raises:
        ValueError: If no standard group exists for the size
    """
    try:
        p, g = STANDARD_GROUPS[key_size]
    except KeyError:
        sizes = ", ".join(str(size) for size in sorted(STANDARD_GROUPS))
        raise ValueError(f"No standard DH group for {key_size} bits (supported: {sizes})")
    
    return dh.DHParameterNumbers(p, g).parameters()


def generate_keypair(key_size: int = 2048) -> dh.DHPrivateKey:
    """
    Generate a DH private key on the standard group.
    
    The public half is available as private_key.public_key().
    """
    return generate_params(key_size).generate_private_key()


def same_group(a, b) -> bool:
    """Check whether two DH keys share domain parameters."""
    return a.parameters().parameter_numbers() == b.parameters().parameter_numbers()


def compute_shared_secret(private_key: dh.DHPrivateKey, peer_public_key: dh.DHPublicKey) -> bytes:
    """
    Compute the shared secret using peer's public key.
    
    Args:
        private_key: Own DH private key
        peer_public_key: Peer's DH public key
    
    Returns:
        Shared secret bytes (peer_public^private mod p)
    
    Raises:
        ValueError: If the keys use different groups or the peer key is invalid
    """
    if not same_group(private_key, peer_public_key):
        raise ValueError("Peer public key uses different DH domain parameters")
    
    return private_key.exchange(peer_public_key)


def derive_aes_key(shared_secret: bytes) -> bytes:
    """
    Derive AES-128 key from DH shared secret.
    
    The key is derived as:
        K = Trunc_16(SHA256(K_s))
    
    Args:
        shared_secret: DH shared secret bytes
    
    Returns:
        16-byte AES key
    """
    return hashlib.sha256(shared_secret).digest()[:SESSION_KEY_SIZE]
