"""
UserRegistry — Public keys of the users registered in a vault.

Users are email-like handles; each one maps to a PEM public key stored
under ``users/<user_id>``. Users are never updated once added.
"""
import re
import logging
from collections.abc import Iterable
from typing import Optional, Union

from ..exceptions import (
    CryptoFailure,
    InvalidRecipientSet,
    InvalidUserId,
    UserAlreadyExists,
    UserNotFound,
)
from .crypto import (
    PrivateKey,
    PublicKey,
    load_public_key,
    public_key_fingerprint,
    serialize_public_key,
)
from .store import VaultStore

logger = logging.getLogger("secret_vault")

_USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.+\-]+@[A-Za-z0-9_.\-]+$")


def is_valid_user_id(user_id: str) -> bool:
    return (
        isinstance(user_id, str)
        and bool(_USER_ID_PATTERN.match(user_id))
        and not user_id.endswith(".")
    )


def validate_user_id(user_id: str) -> str:
    if not is_valid_user_id(user_id):
        raise InvalidUserId(
            f"Invalid user id {user_id!r}: expected an email address"
        )
    return user_id


class UserRegistry:
    """Registry of vault users and their public keys."""

    def __init__(self, store: VaultStore):
        self._store = store

    def add_user(self, user_id: str, public_key: Union[PublicKey, str, bytes]) -> None:
        """Register a user's public key.

        Args:
            user_id: Email-like handle.
            public_key: Key object, or PEM/OpenSSH encoded public key.

        Raises:
            InvalidUserId: If ``user_id`` is not email-like.
            UserAlreadyExists: If the user is already registered.
            CryptoFailure: If the encoded key cannot be parsed.
        """
        validate_user_id(user_id)
        path = self._store.user_path(user_id)
        if self._store.exists(path):
            raise UserAlreadyExists(f"User {user_id!r} already exists")
        if isinstance(public_key, (str, bytes)):
            public_key = load_public_key(public_key)
        self._store.write_bytes(path, serialize_public_key(public_key))
        logger.debug("Vault user added: user=%s", user_id)

    def user_exists(self, user_id: str) -> bool:
        return is_valid_user_id(user_id) and self._store.exists(
            self._store.user_path(user_id)
        )

    def users_exist(self, user_ids: Iterable[str]) -> bool:
        return all(self.user_exists(user_id) for user_id in user_ids)

    def require_users(self, user_ids: Iterable[str]) -> list[str]:
        """Validate a recipient list; returns it de-duplicated in order.

        Raises:
            InvalidUserId: If any id is not email-like.
            InvalidRecipientSet: Naming every unregistered user.
        """
        recipients = list(dict.fromkeys(user_ids))
        for user_id in recipients:
            validate_user_id(user_id)
        unknown = [u for u in recipients if not self.user_exists(u)]
        if unknown:
            raise InvalidRecipientSet(
                f"Unknown user(s): {', '.join(unknown)}", unknown=unknown
            )
        return recipients

    def get_public_key(self, user_id: str) -> PublicKey:
        """Return the registered public key of ``user_id``.

        Raises:
            UserNotFound: If the user is not registered.
        """
        validate_user_id(user_id)
        path = self._store.user_path(user_id)
        if not self._store.exists(path):
            raise UserNotFound(f"User {user_id!r} does not exist")
        return load_public_key(self._store.read_bytes(path))

    def list_users(self) -> list[str]:
        return self._store.list_user_ids()

    def find_user_for_key(self, private_key: PrivateKey) -> Optional[str]:
        """Return the user whose public key pairs with ``private_key``.

        Users with an unreadable public key file are skipped.
        """
        fingerprint = public_key_fingerprint(private_key)
        for user_id in self.list_users():
            try:
                candidate = self.get_public_key(user_id)
            except (CryptoFailure, InvalidUserId):
                logger.debug("Skipping user with unreadable key: user=%s", user_id)
                continue
            if public_key_fingerprint(candidate) == fingerprint:
                return user_id
        return None
