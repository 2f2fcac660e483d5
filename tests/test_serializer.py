"""
Tests for payload serializers.
"""
import pytest
from pydantic import BaseModel

from secret_vault import JsonSerializer, PickleSerializer, get_serializer


class Credentials(BaseModel):
    """Serializable pydantic model for testing."""
    username: str
    password: str
    port: int = 5432


class Connection:
    """Plain class, restored from its __dict__."""
    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port


class TestJsonSerializer:

    @pytest.mark.parametrize(
        "value",
        ["text", 42, 1.5, True, None, [1, "two"], {"a": {"b": [1, 2]}}],
    )
    def test_json_values(self, value):
        ser = JsonSerializer()
        assert ser.loads(ser.dumps(value)) == value

    def test_bytes_wrapped(self):
        ser = JsonSerializer()
        data = ser.dumps(b"\xffraw")
        assert b"__vault_bytes_b64__" in data
        assert ser.loads(data) == b"\xffraw"

    def test_unsupported_type(self):
        with pytest.raises(TypeError, match="jsonpickle"):
            JsonSerializer().dumps(Connection("db", 5432))


class TestPickleSerializer:

    def test_plain_object(self):
        ser = PickleSerializer()
        restored = ser.loads(ser.dumps(Connection("db.local", 5433)))
        assert isinstance(restored, Connection)
        assert restored.host == "db.local"
        assert restored.port == 5433

    def test_pydantic_model(self):
        ser = PickleSerializer()
        creds = Credentials(username="admin", password="s3cr3t")
        restored = ser.loads(ser.dumps(creds))
        assert isinstance(restored, Credentials)
        assert restored.model_dump() == creds.model_dump()

    def test_tuple_and_set(self):
        ser = PickleSerializer()
        value = {"pair": (1, 2), "tags": {"a", "b"}}
        assert ser.loads(ser.dumps(value)) == value

    def test_corrupt_input(self):
        with pytest.raises(RuntimeError):
            PickleSerializer().loads(b"{not json")


def test_get_serializer():
    assert isinstance(get_serializer("json"), JsonSerializer)
    assert isinstance(get_serializer("jsonpickle"), PickleSerializer)
    with pytest.raises(ValueError):
        get_serializer("yaml")
