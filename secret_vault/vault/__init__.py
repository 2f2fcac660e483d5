"""Secret Vault — Secrets shared among users with envelope encryption.

Security Note (Threat Model):
    A secret's symmetric key exists in cleartext only in process memory
    during an operation. Removing a user's key entry does not revoke
    copies that user already decrypted; only the next update re-keys.
    There is no locking: one writer at a time is assumed per vault.
"""

from .access import AccessController
from .key_rotation import rotate_secret_keys
from .config import (
    VaultConfig,
    create_vault,
    find_vault,
    is_vault,
    resolve_private_key,
)
from .store import VaultStore
from .users import UserRegistry

__all__ = [
    "AccessController",
    "rotate_secret_keys",
    "VaultConfig",
    "create_vault",
    "find_vault",
    "is_vault",
    "resolve_private_key",
    "VaultStore",
    "UserRegistry",
]
