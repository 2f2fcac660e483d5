"""Shared fixtures: throwaway vaults and RSA key pairs."""
import pytest

from secret_vault import AccessController, VaultConfig, create_vault
from secret_vault.vault.crypto import generate_private_key


@pytest.fixture(scope="session")
def alice_key():
    return generate_private_key()


@pytest.fixture(scope="session")
def bob_key():
    return generate_private_key()


@pytest.fixture(scope="session")
def carol_key():
    return generate_private_key()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's real vault and key settings out of the tests."""
    for var in (
        "SECRET_VAULT",
        "SECRET_VAULT_KEY",
        "SECRET_VAULT_KEY_PASSWORD",
        "SECRET_VAULT_SERIALIZER",
        "SECRET_VAULT_RSA_BITS",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config(tmp_path):
    """Config whose default key path never exists."""
    return VaultConfig(default_key_paths=[tmp_path / "no-such-key"])


@pytest.fixture
def vault_path(tmp_path):
    return create_vault(tmp_path / "vault")


@pytest.fixture
def controller(vault_path, config, alice_key, bob_key, carol_key):
    """Vault with alice, bob and carol registered."""
    ctrl = AccessController(vault_path, config=config)
    ctrl.users.add_user("alice@example.com", alice_key.public_key())
    ctrl.users.add_user("bob@example.com", bob_key.public_key())
    ctrl.users.add_user("carol@example.com", carol_key.public_key())
    return ctrl
