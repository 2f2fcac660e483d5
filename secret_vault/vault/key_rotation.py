"""
Vault Key Rotation — Re-key every secret a caller can read.

Each secret is re-encrypted under a fresh symmetric key, and the key is
wrapped again for the users currently holding an entry. Secrets are
processed one at a time; a failure on one secret does not stop the run.
Running it again simply rotates again.

Security Note:
    Plaintext exists in memory only during re-encryption of each secret.
    Never log plaintext, ciphertext or key material.
"""
import logging
from collections.abc import Iterable
from typing import Optional

from ..exceptions import AccessDenied
from .access import AccessController, KeyArg

logger = logging.getLogger("secret_vault")


def rotate_secret_keys(
    controller: AccessController,
    key: KeyArg = None,
    names: Optional[Iterable[str]] = None,
    password: Optional[str] = None,
) -> dict:
    """Re-encrypt secrets under fresh symmetric keys.

    Args:
        controller: Vault to operate on.
        key: Caller's private key (or path); resolved like ``read`` if None.
        names: Secrets to rotate; all secrets of the vault if None.
        password: Passphrase of an encrypted private key file.

    Returns:
        Stats dict with keys: total, rotated, skipped, errors.
        Secrets the caller cannot read are skipped.
    """
    private_key = controller.resolve_key(key, password)
    targets = list(names) if names is not None else controller.store.list_secret_names()
    stats = {"total": 0, "rotated": 0, "skipped": 0, "errors": 0}

    logger.info("Starting key rotation of %d secret(s)", len(targets))

    for name in targets:
        stats["total"] += 1
        try:
            controller.rotate(name, private_key)
            stats["rotated"] += 1
        except AccessDenied:
            logger.debug("Skipping secret without access: secret=%s", name)
            stats["skipped"] += 1
        except Exception as err:
            logger.error("Error rotating secret=%s: %s", name, err)
            stats["errors"] += 1

    logger.info("Key rotation complete: %s", stats)
    return stats
