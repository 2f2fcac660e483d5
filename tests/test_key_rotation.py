"""
Tests for vault-wide key rotation.
"""
from secret_vault import rotate_secret_keys

ALICE = "alice@example.com"
BOB = "bob@example.com"


def _raw(controller, name):
    return controller.store.secret_ciphertext_path(name).read_bytes()


def test_rotates_readable_secrets(controller, alice_key, bob_key):
    controller.create("one", "1", [ALICE])
    controller.create("two", "2", [ALICE, BOB])
    controller.create("bobs", "b", [BOB])
    before = {name: _raw(controller, name) for name in ("one", "two", "bobs")}

    stats = rotate_secret_keys(controller, alice_key)

    assert stats == {"total": 3, "rotated": 2, "skipped": 1, "errors": 0}
    assert _raw(controller, "one") != before["one"]
    assert _raw(controller, "two") != before["two"]
    assert _raw(controller, "bobs") == before["bobs"]
    assert controller.read("two", bob_key) == "2"
    assert controller.read("one", alice_key) == "1"


def test_named_subset(controller, alice_key):
    controller.create("one", "1", [ALICE])
    controller.create("two", "2", [ALICE])
    stats = rotate_secret_keys(controller, alice_key, names=["two", "missing"])
    assert stats == {"total": 2, "rotated": 1, "skipped": 0, "errors": 1}


def test_empty_vault(controller, alice_key):
    assert rotate_secret_keys(controller, alice_key) == {
        "total": 0, "rotated": 0, "skipped": 0, "errors": 0,
    }


def test_write_failure_does_not_stop_run(controller, alice_key, monkeypatch):
    controller.create("one", "1", [ALICE])
    controller.create("two", "2", [ALICE])
    controller.create("three", "3", [ALICE])
    before = {name: _raw(controller, name) for name in ("one", "two", "three")}
    store = controller.store
    write_bytes = store.write_bytes

    def failing_write(path, data):
        if path.parent.name == "two":
            raise PermissionError(f"read-only: {path}")
        return write_bytes(path, data)

    monkeypatch.setattr(store, "write_bytes", failing_write)
    stats = rotate_secret_keys(controller, alice_key)

    assert stats == {"total": 3, "rotated": 2, "skipped": 0, "errors": 1}
    assert _raw(controller, "one") != before["one"]
    assert _raw(controller, "three") != before["three"]
    assert _raw(controller, "two") == before["two"]
    assert controller.read("two", alice_key) == "2"
