"""
Tests for vault configuration, discovery and private key resolution.
"""
import pytest
from pydantic import ValidationError

from secret_vault import (
    CryptoFailure,
    PrivateKeyNotFound,
    VaultConfig,
    VaultNotFound,
    create_vault,
    find_vault,
    is_vault,
    resolve_private_key,
)
from secret_vault.vault.crypto import public_key_fingerprint, serialize_private_key


class TestVaultConfig:
    """Validated settings."""

    def test_defaults(self):
        config = VaultConfig()
        assert config.serializer == "json"
        assert config.rsa_key_size == 2048
        assert config.key_env_var == "SECRET_VAULT_KEY"

    def test_invalid_serializer(self):
        with pytest.raises(ValidationError):
            VaultConfig(serializer="yaml")

    def test_key_size_bounds(self):
        with pytest.raises(ValidationError):
            VaultConfig(rsa_key_size=1024)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SECRET_VAULT_SERIALIZER", "jsonpickle")
        monkeypatch.setenv("SECRET_VAULT_RSA_BITS", "4096")
        config = VaultConfig.from_env()
        assert config.serializer == "jsonpickle"
        assert config.rsa_key_size == 4096


class TestVaultDiscovery:
    """create_vault / find_vault."""

    def test_create_vault(self, tmp_path):
        root = create_vault(tmp_path / "v")
        assert is_vault(root)
        assert (root / "README").is_file()
        # idempotent
        assert create_vault(root) == root

    def test_is_vault_incomplete(self, tmp_path):
        (tmp_path / "users").mkdir()
        assert not is_vault(tmp_path)

    def test_find_from_hint(self, vault_path):
        assert find_vault(vault_path) == vault_path

    def test_find_from_subdirectory(self, vault_path):
        nested = vault_path / "secrets" / "db"
        nested.mkdir()
        assert find_vault(nested) == vault_path

    def test_find_project_vault(self, tmp_path):
        project = tmp_path / "project"
        (project / "src" / "pkg").mkdir(parents=True)
        (project / "pyproject.toml").write_text("[project]\nname = 'x'\n")
        vault = create_vault(project / "vault")
        assert find_vault(project / "src" / "pkg") == vault

    def test_find_from_env(self, vault_path, monkeypatch):
        monkeypatch.setenv("SECRET_VAULT", str(vault_path))
        assert find_vault() == vault_path

    def test_find_from_cwd(self, vault_path, monkeypatch):
        monkeypatch.chdir(vault_path)
        assert find_vault() == vault_path

    def test_not_found(self, tmp_path):
        with pytest.raises(VaultNotFound):
            find_vault(tmp_path)


class TestPrivateKeyResolution:
    """Argument, then environment, then default paths."""

    @pytest.fixture
    def key_file(self, tmp_path, alice_key):
        path = tmp_path / "id_rsa"
        path.write_bytes(serialize_private_key(alice_key))
        return path

    def test_key_object_passthrough(self, alice_key, config):
        assert resolve_private_key(alice_key, config=config) is alice_key

    def test_explicit_path(self, key_file, alice_key, config):
        key = resolve_private_key(key_file, config=config)
        assert public_key_fingerprint(key) == public_key_fingerprint(alice_key)

    def test_explicit_missing_path(self, tmp_path, config):
        with pytest.raises(PrivateKeyNotFound):
            resolve_private_key(tmp_path / "nope", config=config)

    def test_explicit_wins_over_env(self, key_file, tmp_path, bob_key, alice_key,
                                    config, monkeypatch):
        bob_file = tmp_path / "bob.pem"
        bob_file.write_bytes(serialize_private_key(bob_key))
        monkeypatch.setenv("SECRET_VAULT_KEY", str(bob_file))
        key = resolve_private_key(str(key_file), config=config)
        assert public_key_fingerprint(key) == public_key_fingerprint(alice_key)

    def test_env(self, key_file, alice_key, config, monkeypatch):
        monkeypatch.setenv("SECRET_VAULT_KEY", str(key_file))
        key = resolve_private_key(config=config)
        assert public_key_fingerprint(key) == public_key_fingerprint(alice_key)

    def test_env_missing_file(self, tmp_path, config, monkeypatch):
        monkeypatch.setenv("SECRET_VAULT_KEY", str(tmp_path / "gone"))
        with pytest.raises(PrivateKeyNotFound, match="SECRET_VAULT_KEY"):
            resolve_private_key(config=config)

    def test_default_path(self, key_file, alice_key):
        config = VaultConfig(default_key_paths=[key_file.parent / "missing", key_file])
        key = resolve_private_key(config=config)
        assert public_key_fingerprint(key) == public_key_fingerprint(alice_key)

    def test_nothing_found(self, config):
        with pytest.raises(PrivateKeyNotFound):
            resolve_private_key(config=config)

    def test_unparsable_key(self, tmp_path, config):
        path = tmp_path / "bad.pem"
        path.write_text("not a key")
        with pytest.raises(CryptoFailure):
            resolve_private_key(path, config=config)
