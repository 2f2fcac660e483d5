"""Secret Vault.

Share encrypted secrets among the users of a file-system vault.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    InvalidVault,
    VaultNotFound,
    InvalidName,
    InvalidUserId,
    InvalidRecipientSet,
    SecretNotFound,
    SecretAlreadyExists,
    UserNotFound,
    UserAlreadyExists,
    AccessDenied,
    CryptoFailure,
    PrivateKeyNotFound,
)
from .serializer import JsonSerializer, PickleSerializer, get_serializer
from .vault import (
    AccessController,
    UserRegistry,
    VaultConfig,
    VaultStore,
    create_vault,
    find_vault,
    is_vault,
    resolve_private_key,
    rotate_secret_keys,
)

__all__ = [
    "__version__",
    "AccessController",
    "UserRegistry",
    "VaultConfig",
    "VaultStore",
    "create_vault",
    "find_vault",
    "is_vault",
    "resolve_private_key",
    "rotate_secret_keys",
    "JsonSerializer",
    "PickleSerializer",
    "get_serializer",
    "VaultError",
    "InvalidVault",
    "VaultNotFound",
    "InvalidName",
    "InvalidUserId",
    "InvalidRecipientSet",
    "SecretNotFound",
    "SecretAlreadyExists",
    "UserNotFound",
    "UserAlreadyExists",
    "AccessDenied",
    "CryptoFailure",
    "PrivateKeyNotFound",
]
