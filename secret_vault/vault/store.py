"""
VaultStore — Path layout and raw byte I/O under a vault root.

Layout (relative to the vault root)::

    users/<user_id>                 public key of user_id
    secrets/<name>/<name>.raw       encrypted secret value
    secrets/<name>/<user_id>.enc    secret key wrapped for user_id

Existence of a file is the state: a secret exists iff its ``.raw`` file
exists, and a user can read it iff their ``.enc`` file exists. There is
no locking; concurrent writers to the same secret can interleave.
"""
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Union

from ..exceptions import InvalidName
from .config import SECRETS_DIR, USERS_DIR, validate_vault

RAW_SUFFIX = ".raw"
WRAP_SUFFIX = ".enc"

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


def is_valid_name(name: str) -> bool:
    """Secret names: alphanumerics, underscores, dashes and dots."""
    return (
        isinstance(name, str)
        and bool(_NAME_PATTERN.match(name))
        and name not in (".", "..")
    )


def validate_name(name: str) -> str:
    """Raise InvalidName unless ``name`` is a valid secret name."""
    if not is_valid_name(name):
        raise InvalidName(
            f"Invalid secret name {name!r}: use letters, digits, "
            "'_', '-' and '.'"
        )
    return name


class VaultStore:
    """File-system record store scoped to one vault root."""

    def __init__(self, root: Union[str, Path]):
        self.root = validate_vault(root)
        self.users_dir = self.root / USERS_DIR
        self.secrets_dir = self.root / SECRETS_DIR

    def __repr__(self) -> str:
        return f"<VaultStore root={self.root}>"

    # ------------------------------------------------------------------
    # Path resolution
    # ------------------------------------------------------------------

    def user_path(self, user_id: str) -> Path:
        return self.users_dir / user_id

    def secret_dir(self, name: str) -> Path:
        return self.secrets_dir / validate_name(name)

    def secret_ciphertext_path(self, name: str) -> Path:
        return self.secret_dir(name) / f"{name}{RAW_SUFFIX}"

    def secret_wrap_path(self, name: str, user_id: str) -> Path:
        return self.secret_dir(name) / f"{user_id}{WRAP_SUFFIX}"

    # ------------------------------------------------------------------
    # Byte I/O
    # ------------------------------------------------------------------

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()

    def write_bytes(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path``, creating parent directories.

        The blob goes to a temporary file in the same directory which is
        then renamed over ``path``, so readers never see a partial write.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as fp:
                fp.write(data)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def remove(self, path: Path) -> bool:
        """Remove a single record. Returns False if it did not exist."""
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def remove_secret_tree(self, name: str) -> None:
        shutil.rmtree(self.secret_dir(name))

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def list_secret_names(self) -> list[str]:
        """Names of all secrets with a ciphertext file, sorted."""
        names = [
            entry.name
            for entry in self.secrets_dir.iterdir()
            if entry.is_dir()
            and (entry / f"{entry.name}{RAW_SUFFIX}").is_file()
        ]
        return sorted(names)

    def list_wrap_user_ids(self, name: str) -> list[str]:
        """User ids holding a wrap entry for ``name``."""
        directory = self.secret_dir(name)
        if not directory.is_dir():
            return []
        return [
            entry.name[: -len(WRAP_SUFFIX)]
            for entry in directory.iterdir()
            if entry.is_file() and entry.name.endswith(WRAP_SUFFIX)
        ]

    def list_user_ids(self) -> list[str]:
        return sorted(
            entry.name
            for entry in self.users_dir.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        )
