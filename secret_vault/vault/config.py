"""
Vault Configuration — Settings, vault discovery and private key resolution.

Reads overrides from environment variables:
    SECRET_VAULT = <path>           starting point for vault discovery
    SECRET_VAULT_KEY = <path>       caller's private key file
    SECRET_VAULT_KEY_PASSWORD = <passphrase for SECRET_VAULT_KEY>
    SECRET_VAULT_SERIALIZER = json | jsonpickle
    SECRET_VAULT_RSA_BITS = <int>

Security Note:
    Never log key material. Only log key file paths and user ids.
"""
import os
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..exceptions import InvalidVault, PrivateKeyNotFound, VaultNotFound
from .crypto import PrivateKey, load_private_key

logger = logging.getLogger("secret_vault")

USERS_DIR = "users"
SECRETS_DIR = "secrets"
_PROJECT_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg")

_README = """\
This directory is a secret vault.

users/    registered public keys, one file per user
secrets/  one directory per secret: <name>.raw holds the encrypted value,
          <user>.enc holds the secret's key encrypted for that user
"""


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    rsa_key_size: int = Field(default=2048, ge=2048, le=8192)
    serializer: str = Field(default="json")
    key_env_var: str = Field(default="SECRET_VAULT_KEY")
    key_password_env_var: str = Field(default="SECRET_VAULT_KEY_PASSWORD")
    vault_env_var: str = Field(default="SECRET_VAULT")
    default_key_paths: list[Path] = Field(
        default_factory=lambda: [Path("~/.ssh/id_rsa")]
    )

    @field_validator("serializer")
    @classmethod
    def validate_serializer(cls, v: str) -> str:
        """Validate serializer is supported."""
        if v not in ("json", "jsonpickle"):
            raise ValueError(f"Unsupported serializer: {v}")
        return v

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading overrides from environment.

        Returns:
            Populated VaultConfig instance.
        """
        values = {}
        if "SECRET_VAULT_SERIALIZER" in os.environ:
            values["serializer"] = os.environ["SECRET_VAULT_SERIALIZER"]
        if "SECRET_VAULT_RSA_BITS" in os.environ:
            values["rsa_key_size"] = int(os.environ["SECRET_VAULT_RSA_BITS"])
        return cls(**values)


# ---------------------------------------------------------------------------
# Vault discovery
# ---------------------------------------------------------------------------

def is_vault(path: Union[str, Path]) -> bool:
    """Return True if ``path`` holds both the users/ and secrets/ subtrees."""
    path = Path(path)
    return (path / USERS_DIR).is_dir() and (path / SECRETS_DIR).is_dir()


def validate_vault(path: Union[str, Path]) -> Path:
    """Return the vault root as a resolved Path.

    Raises:
        InvalidVault: If the vault structure is incomplete.
    """
    path = Path(path).expanduser().resolve()
    if not is_vault(path):
        raise InvalidVault(
            f"{path} is not a valid vault (missing '{USERS_DIR}' or "
            f"'{SECRETS_DIR}' directory)"
        )
    return path


def create_vault(path: Union[str, Path]) -> Path:
    """Create an empty vault at ``path``. Existing vaults are left intact."""
    path = Path(path).expanduser().resolve()
    (path / USERS_DIR).mkdir(parents=True, exist_ok=True)
    (path / SECRETS_DIR).mkdir(parents=True, exist_ok=True)
    readme = path / "README"
    if not readme.exists():
        readme.write_text(_README, encoding="utf-8")
    logger.info("Vault created at %s", path)
    return path


def find_vault(
    hint: Optional[Union[str, Path]] = None,
    config: Optional[VaultConfig] = None,
) -> Path:
    """Discover the vault root.

    The starting point is ``hint``, else the vault environment variable,
    else the current working directory. Walking up from there, the first
    directory that is a vault wins; failing that, a project directory
    (one holding a packaging file) whose ``vault/`` subdirectory is a vault.

    Raises:
        VaultNotFound: If no vault is found.
    """
    config = config or VaultConfig()
    start = hint or os.environ.get(config.vault_env_var) or os.getcwd()
    start = Path(start).expanduser().resolve()
    for candidate in (start, *start.parents):
        if is_vault(candidate):
            return candidate
        if any((candidate / marker).exists() for marker in _PROJECT_MARKERS):
            project_vault = candidate / "vault"
            if is_vault(project_vault):
                return project_vault
    raise VaultNotFound(f"No vault found starting from {start}")


# ---------------------------------------------------------------------------
# Private key resolution
# ---------------------------------------------------------------------------

def _read_private_key(path: Path, password: Optional[str]) -> PrivateKey:
    return load_private_key(path.read_bytes(), password=password)


def resolve_private_key(
    key: Optional[Union[PrivateKey, str, Path]] = None,
    password: Optional[str] = None,
    config: Optional[VaultConfig] = None,
) -> PrivateKey:
    """Resolve the caller's private key.

    Resolution order:
        1. ``key`` argument: a loaded key object or a key file path.
        2. The key environment variable (path to a key file).
        3. ``config.default_key_paths``, first existing file wins.

    Raises:
        PrivateKeyNotFound: If no key file can be located.
        CryptoFailure: If a located key cannot be parsed.
    """
    config = config or VaultConfig()
    if key is not None and not isinstance(key, (str, Path)):
        return key
    if key is not None:
        path = Path(key).expanduser()
        if not path.is_file():
            raise PrivateKeyNotFound(f"Private key file {path} does not exist")
        return _read_private_key(path, password)

    env_path = os.environ.get(config.key_env_var)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.is_file():
            raise PrivateKeyNotFound(
                f"{config.key_env_var} points to {path}, which does not exist"
            )
        logger.debug("Using private key from %s", config.key_env_var)
        return _read_private_key(
            path, password or os.environ.get(config.key_password_env_var)
        )

    for default in config.default_key_paths:
        path = Path(default).expanduser()
        if path.is_file():
            logger.debug("Using default private key %s", path)
            return _read_private_key(path, password)

    raise PrivateKeyNotFound(
        f"No private key given, {config.key_env_var} is not set and no "
        f"default key file exists"
    )
