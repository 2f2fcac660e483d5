"""
Vault Crypto Core — Symmetric encryption and per-recipient key wrapping.

Implements the envelope scheme of the Secret Vault:
- Payload layer: random 32-byte key → AES-GCM → [cipher_id|nonce|payload+tag]
- Wrap layer: RSA-OAEP(SHA-256) of the 32-byte key, once per recipient

Security Note:
    Never log plaintext, ciphertext or key material.
    Nonces are random 96-bit; every key encrypts a single payload.
"""
import os
import struct
import hashlib
import logging
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import CryptoFailure

logger = logging.getLogger("secret_vault")

CIPHER_ID_SIZE = 1  # uint8
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256

PublicKey = rsa.RSAPublicKey
PrivateKey = rsa.RSAPrivateKey


def _get_cipher_cls() -> type:
    """Return the AEAD cipher class based on SECRET_VAULT_CIPHER env var."""
    backend = os.environ.get("SECRET_VAULT_CIPHER", "aesgcm").lower()
    if backend == "chacha20":
        return ChaCha20Poly1305
    return AESGCM


# Used by encrypt only; decrypt reads the cipher id from the blob.
CIPHER_CLS = _get_cipher_cls()

CIPHER_IDS: dict[type, int] = {AESGCM: 1, ChaCha20Poly1305: 2}
_CIPHERS_BY_ID = {cipher_id: cls for cls, cipher_id in CIPHER_IDS.items()}

_OAEP = padding.OAEP(
    mgf=padding.MGF1(algorithm=hashes.SHA256()),
    algorithm=hashes.SHA256(),
    label=None,
)


# ---------------------------------------------------------------------------
# Symmetric layer
# ---------------------------------------------------------------------------

def generate_symmetric_key() -> bytes:
    """Return a fresh random 32-byte symmetric key."""
    return os.urandom(KEY_LENGTH)


def encrypt(payload: bytes, key: bytes) -> bytes:
    """Encrypt a payload under a symmetric key.

    Format: [cipher_id 1B uint8][nonce 12B][encrypted_payload + tag 16B]

    The cipher id is authenticated as associated data.

    Args:
        payload: Serialized secret value.
        key: 32-byte symmetric key.

    Returns:
        Ciphertext blob carrying its cipher id and nonce.
    """
    header = struct.pack("!B", CIPHER_IDS[CIPHER_CLS])
    cipher = CIPHER_CLS(key)
    nonce = os.urandom(NONCE_SIZE)
    return header + nonce + cipher.encrypt(nonce, payload, header)


def decrypt(blob: bytes, key: bytes) -> bytes:
    """Decrypt a blob produced by :func:`encrypt`.

    The cipher is taken from the blob, not from the process settings.

    Args:
        blob: Ciphertext in format [cipher_id 1B][nonce 12B][payload+tag].
        key: 32-byte symmetric key.

    Returns:
        Decrypted payload bytes.

    Raises:
        CryptoFailure: If the blob is truncated, tampered with, names an
            unknown cipher, or the key is wrong.
    """
    _min = CIPHER_ID_SIZE + NONCE_SIZE + TAG_SIZE
    if len(blob) < _min:
        raise CryptoFailure(
            f"ciphertext too short: {len(blob)} bytes (minimum {_min})"
        )
    if len(key) != KEY_LENGTH:
        raise CryptoFailure(f"symmetric key must be {KEY_LENGTH} bytes")
    header = blob[:CIPHER_ID_SIZE]
    cipher_id = struct.unpack("!B", header)[0]
    if cipher_id not in _CIPHERS_BY_ID:
        raise CryptoFailure(f"unknown cipher id {cipher_id}")
    cipher = _CIPHERS_BY_ID[cipher_id](key)
    nonce = blob[CIPHER_ID_SIZE:CIPHER_ID_SIZE + NONCE_SIZE]
    ct = blob[CIPHER_ID_SIZE + NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ct, header)
    except InvalidTag as err:
        raise CryptoFailure("ciphertext authentication failed") from err


# ---------------------------------------------------------------------------
# Wrap layer
# ---------------------------------------------------------------------------

def wrap_key(key: bytes, public_key: PublicKey) -> bytes:
    """Encrypt a symmetric key for one recipient (RSA-OAEP/SHA-256)."""
    return public_key.encrypt(key, _OAEP)


def unwrap_key(blob: bytes, private_key: PrivateKey) -> bytes:
    """Recover a symmetric key from a wrap entry.

    Raises:
        CryptoFailure: On key mismatch, corrupt input, or a recovered key
            of the wrong length.
    """
    try:
        key = private_key.decrypt(blob, _OAEP)
    except ValueError as err:
        raise CryptoFailure("key unwrap failed") from err
    if len(key) != KEY_LENGTH:
        raise CryptoFailure(
            f"unwrapped key has {len(key)} bytes, expected {KEY_LENGTH}"
        )
    return key


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------

def generate_private_key(bits: int = 2048) -> PrivateKey:
    """Generate a new RSA private key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=bits)


def _require_rsa(key, kind: str):
    if not isinstance(key, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
        raise CryptoFailure(f"{kind} is not an RSA key")
    return key


def load_public_key(data: Union[str, bytes]) -> PublicKey:
    """Load an RSA public key in PEM or OpenSSH (``ssh-rsa ...``) format.

    Raises:
        CryptoFailure: If the data is not a parsable RSA public key.
    """
    if isinstance(data, str):
        data = data.encode("ascii")
    data = data.strip()
    try:
        if data.startswith(b"ssh-"):
            key = serialization.load_ssh_public_key(data)
        else:
            key = serialization.load_pem_public_key(data)
    except (ValueError, TypeError) as err:
        raise CryptoFailure("unable to parse public key") from err
    return _require_rsa(key, "public key")


def load_private_key(
    data: Union[str, bytes],
    password: Optional[Union[str, bytes]] = None,
) -> PrivateKey:
    """Load an RSA private key in PEM or OpenSSH format.

    Args:
        data: Key file contents.
        password: Passphrase for encrypted keys.

    Raises:
        CryptoFailure: If the key cannot be parsed or decrypted.
    """
    if isinstance(data, str):
        data = data.encode("ascii")
    if isinstance(password, str):
        password = password.encode("utf-8")
    try:
        if b"BEGIN OPENSSH PRIVATE KEY" in data:
            key = serialization.load_ssh_private_key(data, password=password)
        else:
            key = serialization.load_pem_private_key(data, password=password)
    except (ValueError, TypeError) as err:
        raise CryptoFailure("unable to load private key") from err
    return _require_rsa(key, "private key")


def serialize_public_key(public_key: PublicKey) -> bytes:
    """Return PEM (SubjectPublicKeyInfo) encoding of a public key."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def serialize_private_key(
    private_key: PrivateKey,
    password: Optional[bytes] = None,
) -> bytes:
    """Return PKCS8 PEM encoding of a private key, encrypted if password given."""
    if password:
        algorithm = serialization.BestAvailableEncryption(password)
    else:
        algorithm = serialization.NoEncryption()
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=algorithm,
    )


def public_key_fingerprint(key: Union[PublicKey, PrivateKey]) -> str:
    """SHA-256 hex digest of the DER public key, for matching key pairs."""
    if isinstance(key, rsa.RSAPrivateKey):
        key = key.public_key()
    der = key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return hashlib.sha256(der).hexdigest()
