"""
Secret Vault exceptions.

Every error carries a message naming the offending secret or user.
``CryptoFailure`` is internal to key resolution: ``read`` and ``share``
surface it as ``AccessDenied``.
"""


class VaultError(Exception):
    """Base class for all vault errors."""


class InvalidVault(VaultError):
    """The vault root is missing its users/ or secrets/ subtree."""


class VaultNotFound(VaultError, LookupError):
    """No vault could be discovered from the starting point."""


class InvalidName(VaultError, ValueError):
    """Secret name contains characters outside [A-Za-z0-9_.-]."""


class InvalidUserId(VaultError, ValueError):
    """User id is not an email-like handle."""


class InvalidRecipientSet(VaultError, ValueError):
    """Recipient list is empty or names unknown users."""

    def __init__(self, message: str, unknown: list[str] | None = None):
        super().__init__(message)
        self.unknown = unknown or []


class SecretNotFound(VaultError, LookupError):
    pass


class SecretAlreadyExists(VaultError):
    pass


class UserNotFound(VaultError, LookupError):
    pass


class UserAlreadyExists(VaultError):
    pass


class AccessDenied(VaultError):
    """Caller's key material does not unwrap any key for the secret."""


class CryptoFailure(VaultError):
    """Decryption or key unwrapping failed (wrong key or corrupt blob)."""


class PrivateKeyNotFound(VaultError, LookupError):
    """No private key could be resolved for the caller."""
