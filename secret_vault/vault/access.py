"""
AccessController — Envelope-encrypted secrets shared among vault users.

Provides the public API of the Secret Vault:
- ``create(name, value, users)`` — encrypt a new secret for some users
- ``read(name, key)`` — decrypt a secret with the caller's private key
- ``update(name, value)`` — replace the value under a fresh key
- ``delete(name)`` — remove a secret and all of its key copies
- ``list()`` / ``list_owners(name)`` — who can read what
- ``share(name, users, key)`` / ``unshare(name, users)`` — grant, revoke

Each secret has its own random symmetric key. The key is never written in
the clear: the vault holds one copy of it per user, encrypted with that
user's public key. Nothing is cached between calls.

Security Note:
    Never log plaintext, ciphertext or key material. Only log secret
    names, user ids and operations. ``unshare`` does not re-key the secret:
    removed users keep access to the current value if they kept a copy of
    it or of their key entry; they lose access at the next ``update``.
"""
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional, Union

from ..exceptions import (
    AccessDenied,
    CryptoFailure,
    InvalidRecipientSet,
    SecretAlreadyExists,
    SecretNotFound,
)
from ..serializer import Serializer, get_serializer
from .config import VaultConfig, find_vault, resolve_private_key
from .crypto import (
    PrivateKey,
    PublicKey,
    decrypt,
    encrypt,
    generate_symmetric_key,
    unwrap_key,
    wrap_key,
)
from .store import VaultStore, validate_name
from .users import UserRegistry

logger = logging.getLogger("secret_vault")

KeyArg = Optional[Union[PrivateKey, str, Path]]


class AccessController:
    """Secrets of one vault, readable by the users they are shared with.

    Args:
        vault: Vault root, or a starting point for discovery. If None the
            vault is discovered from the environment or working directory.
        config: Vault configuration; defaults to ``VaultConfig.from_env()``.
        serializer: Payload serializer; defaults to ``config.serializer``.
    """

    def __init__(
        self,
        vault: Optional[Union[str, Path]] = None,
        config: Optional[VaultConfig] = None,
        serializer: Optional[Serializer] = None,
    ):
        self._config = config or VaultConfig.from_env()
        root = find_vault(vault, self._config)
        self._store = VaultStore(root)
        self.users = UserRegistry(self._store)
        self._serializer = serializer or get_serializer(self._config.serializer)

    def __repr__(self) -> str:
        return f"<AccessController vault={self._store.root}>"

    @property
    def root(self) -> Path:
        return self._store.root

    @property
    def store(self) -> VaultStore:
        return self._store

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    def exists(self, name: str) -> bool:
        return self._store.exists(self._store.secret_ciphertext_path(name))

    def _require_secret(self, name: str) -> None:
        if not self.exists(name):
            raise SecretNotFound(f"Secret {name!r} does not exist")

    def _public_keys(self, user_ids: Iterable[str]) -> dict[str, PublicKey]:
        return {user_id: self.users.get_public_key(user_id) for user_id in user_ids}

    def resolve_key(self, key: KeyArg = None, password: Optional[str] = None) -> PrivateKey:
        """Resolve the caller's private key (argument, environment, defaults)."""
        return resolve_private_key(key, password=password, config=self._config)

    # ------------------------------------------------------------------
    # Key handling
    # ------------------------------------------------------------------

    def _try_get_key(self, name: str, private_key: PrivateKey) -> Optional[bytes]:
        """Recover the symmetric key of ``name`` with the caller's key.

        Returns None when the caller is not a registered user, holds no
        wrap entry, or the entry does not unwrap. The cause is not
        reported.
        """
        user_id = self.users.find_user_for_key(private_key)
        if user_id is None:
            return None
        path = self._store.secret_wrap_path(name, user_id)
        if not self._store.exists(path):
            return None
        try:
            return unwrap_key(self._store.read_bytes(path), private_key)
        except CryptoFailure:
            return None

    def _recover_key(self, name: str, private_key: PrivateKey) -> bytes:
        aeskey = self._try_get_key(name, private_key)
        if aeskey is None:
            logger.debug("Vault access denied: secret=%s", name)
            raise AccessDenied(f"Access denied to secret {name!r}")
        return aeskey

    def _decrypt_or_deny(self, name: str, aeskey: bytes) -> bytes:
        """Decrypt the stored value; a key that does not fit is a denial."""
        blob = self._store.read_bytes(self._store.secret_ciphertext_path(name))
        try:
            return decrypt(blob, aeskey)
        except CryptoFailure:
            logger.debug("Vault access denied: secret=%s", name)
            raise AccessDenied(f"Access denied to secret {name!r}") from None

    def _store_with_key(self, name: str, payload: bytes, aeskey: bytes) -> None:
        self._store.write_bytes(
            self._store.secret_ciphertext_path(name), encrypt(payload, aeskey),
        )

    def _share_with_key(
        self, name: str, public_keys: dict[str, PublicKey], aeskey: bytes,
    ) -> None:
        for user_id, public_key in public_keys.items():
            self._store.write_bytes(
                self._store.secret_wrap_path(name, user_id),
                wrap_key(aeskey, public_key),
            )

    def _rekey(self, name: str, payload: bytes) -> list[str]:
        """Encrypt ``payload`` under a new key for the current recipients."""
        recipients = self._store.list_wrap_user_ids(name)
        public_keys = self._public_keys(recipients)
        aeskey = generate_symmetric_key()
        self._store_with_key(name, payload, aeskey)
        self._share_with_key(name, public_keys, aeskey)
        return recipients

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, name: str, value: Any, users: Iterable[str]) -> None:
        """Add a new secret, readable by ``users``.

        Args:
            name: Secret name (letters, digits, '_', '-', '.').
            value: Secret value; passed through the serializer.
            users: User ids that will have access to the secret.

        Raises:
            InvalidName: If ``name`` is invalid.
            InvalidRecipientSet: If ``users`` is empty or names unknown users.
            SecretAlreadyExists: If the secret exists already.
        """
        validate_name(name)
        recipients = self.users.require_users(users)
        if not recipients:
            raise InvalidRecipientSet(
                f"Secret {name!r} must be shared with at least one user"
            )
        if self.exists(name):
            raise SecretAlreadyExists(f"Secret {name!r} already exists")
        public_keys = self._public_keys(recipients)
        payload = self._serializer.dumps(value)

        aeskey = generate_symmetric_key()
        self._store_with_key(name, payload, aeskey)
        self._share_with_key(name, public_keys, aeskey)
        logger.debug("Vault create: secret=%s users=%s", name, recipients)

    def read(
        self, name: str, key: KeyArg = None, password: Optional[str] = None,
    ) -> Any:
        """Decrypt and return a secret.

        Args:
            name: Secret name.
            key: Caller's private key, or a path to it. Resolved from the
                environment or default locations if None.
            password: Passphrase of an encrypted private key file.

        Raises:
            SecretNotFound: If the secret does not exist.
            AccessDenied: If the caller's key cannot recover the secret.
        """
        validate_name(name)
        self._require_secret(name)
        private_key = self.resolve_key(key, password)
        aeskey = self._recover_key(name, private_key)
        return self._serializer.loads(self._decrypt_or_deny(name, aeskey))

    def update(
        self, name: str, value: Any, key: KeyArg = None,
        password: Optional[str] = None,
    ) -> None:
        """Replace the value of a secret.

        A new symmetric key is generated on every update and wrapped for
        the users that currently hold a key entry, so users removed with
        ``unshare`` cannot read the new value. ``key`` is accepted for
        symmetry with ``read``; the caller's access is not checked.

        Raises:
            SecretNotFound: If the secret does not exist.
        """
        validate_name(name)
        self._require_secret(name)
        recipients = self._rekey(name, self._serializer.dumps(value))
        logger.debug("Vault update: secret=%s users=%s", name, recipients)

    def rotate(
        self, name: str, key: KeyArg = None, password: Optional[str] = None,
    ) -> None:
        """Re-encrypt the current value of a secret under a fresh key.

        Raises:
            SecretNotFound: If the secret does not exist.
            AccessDenied: If the caller cannot read the secret.
        """
        validate_name(name)
        self._require_secret(name)
        private_key = self.resolve_key(key, password)
        aeskey = self._recover_key(name, private_key)
        recipients = self._rekey(name, self._decrypt_or_deny(name, aeskey))
        logger.debug("Vault rotate: secret=%s users=%s", name, recipients)

    def delete(self, name: str) -> None:
        """Remove a secret with all of its key entries.

        Raises:
            SecretNotFound: If the secret does not exist.
        """
        validate_name(name)
        self._require_secret(name)
        self._store.remove_secret_tree(name)
        logger.debug("Vault delete: secret=%s", name)

    def list_secrets(self) -> dict[str, list[str]]:
        """Map every secret name to the sorted users that can read it."""
        return {
            name: sorted(self._store.list_wrap_user_ids(name))
            for name in self._store.list_secret_names()
        }

    def list_owners(self, name: str) -> list[str]:
        """Sorted user ids holding a key entry for ``name``.

        Raises:
            SecretNotFound: If the secret does not exist.
        """
        validate_name(name)
        self._require_secret(name)
        return sorted(self._store.list_wrap_user_ids(name))

    def share(
        self, name: str, users: Iterable[str], key: KeyArg = None,
        password: Optional[str] = None,
    ) -> None:
        """Give more users access to a secret.

        The caller must be able to read the secret. Existing key entries
        and the encrypted value are left untouched.

        Raises:
            SecretNotFound: If the secret does not exist.
            InvalidRecipientSet: If ``users`` names unknown users.
            AccessDenied: If the caller cannot read the secret.
        """
        validate_name(name)
        recipients = self.users.require_users(users)
        self._require_secret(name)
        public_keys = self._public_keys(recipients)
        private_key = self.resolve_key(key, password)
        aeskey = self._recover_key(name, private_key)
        self._share_with_key(name, public_keys, aeskey)
        logger.debug("Vault share: secret=%s users=%s", name, recipients)

    def unshare(self, name: str, users: Iterable[str]) -> None:
        """Remove the key entries of ``users`` for a secret.

        Users without an entry are ignored. The secret is not re-keyed;
        call ``update`` or ``rotate`` to lock removed users out of the
        current value.

        Raises:
            SecretNotFound: If the secret does not exist.
            InvalidRecipientSet: If ``users`` names unknown users.
        """
        validate_name(name)
        recipients = self.users.require_users(users)
        self._require_secret(name)
        for user_id in recipients:
            self._store.remove(self._store.secret_wrap_path(name, user_id))
        logger.debug("Vault unshare: secret=%s users=%s", name, recipients)

    list = list_secrets
