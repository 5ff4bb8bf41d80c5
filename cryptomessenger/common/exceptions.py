"""
Custom exceptions for CryptoMessenger.
"""


class CryptoMessengerException(Exception):
    """Base exception for CryptoMessenger errors."""
    pass


class KeyGenerationError(CryptoMessengerException):
    """Key pair generation or persistence failed."""
    pass


class KeyLoadError(CryptoMessengerException):
    """Persisted key material is unreadable or corrupt."""
    pass


class KeyParseError(CryptoMessengerException):
    """Public key text is malformed or of the wrong algorithm family."""
    pass


class KeyAgreementError(CryptoMessengerException):
    """Diffie-Hellman key agreement failed."""
    pass


class UnknownPartyError(CryptoMessengerException):
    """No key material registered for the requested party."""

    def __init__(self, identifier, message=None):
        self.identifier = identifier
        super().__init__(message or f"Unknown party: {identifier!r}")


class EncryptionError(CryptoMessengerException):
    """Encryption failed."""
    pass


class DecryptionError(CryptoMessengerException):
    """Decryption failed (malformed envelope, bad padding or wrong key)."""
    pass


class DecodeError(CryptoMessengerException):
    """Transport encoding (Base64) is invalid."""
    pass
