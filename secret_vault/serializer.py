"""
Payload marshalling for secret values.

The vault core only sees bytes; these serializers turn an application
value into bytes before encryption and back after decryption.
"""
import base64
from typing import Any, Protocol

import orjson
import jsonpickle
from jsonpickle.unpickler import loadclass
from pydantic import BaseModel as PydanticBaseModel

_BYTES_WRAPPER_KEY = "__vault_bytes_b64__"


class Serializer(Protocol):
    """Byte-string in, byte-string out."""

    def dumps(self, value: Any) -> bytes:
        ...

    def loads(self, data: bytes) -> Any:
        ...


class JsonSerializer:
    """orjson-based serializer.

    Supports: str, int, float, dict, list, bytes, bool, None.
    bytes values are wrapped as {"__vault_bytes_b64__": "<base64>"} for a
    safe JSON round-trip.
    """
    name = "json"

    def dumps(self, value: Any) -> bytes:
        if isinstance(value, bytes):
            wrapped = {_BYTES_WRAPPER_KEY: base64.b64encode(value).decode("ascii")}
            return orjson.dumps(wrapped)
        try:
            return orjson.dumps(value)
        except TypeError as err:
            raise TypeError(
                f"Value of type {type(value).__name__} is not JSON serializable; "
                "use the jsonpickle serializer for arbitrary objects"
            ) from err

    def loads(self, data: bytes) -> Any:
        parsed = orjson.loads(data)
        if isinstance(parsed, dict) and _BYTES_WRAPPER_KEY in parsed and len(parsed) == 1:
            return base64.b64decode(parsed[_BYTES_WRAPPER_KEY])
        return parsed


class PydanticHandler(jsonpickle.handlers.BaseHandler):
    """PydanticHandler.
    This class can handle with serializable Pydantic Models.
    """
    def flatten(self, obj, data):
        data['__dict__'] = self.context.flatten(obj.__dict__, reset=False)
        return data

    def restore(self, obj):
        module_and_type = obj['py/object']
        mdl = loadclass(module_and_type)
        state = self.context.restore(obj['__dict__'], reset=False)
        return mdl.model_construct(**state)


jsonpickle.handlers.registry.register(PydanticBaseModel, PydanticHandler, base=True)


class PickleSerializer:
    """jsonpickle-based serializer for arbitrary Python objects.

    Security Note:
        Decoding restores arbitrary classes; only decode vault contents
        written by trusted vault users.
    """
    name = "jsonpickle"

    def dumps(self, value: Any) -> bytes:
        try:
            return jsonpickle.encode(value).encode("utf-8")
        except Exception as err:
            raise RuntimeError(err) from err

    def loads(self, data: bytes) -> Any:
        try:
            return jsonpickle.decode(data.decode("utf-8"))
        except Exception as err:
            raise RuntimeError(err) from err


SERIALIZERS: dict[str, type] = {
    JsonSerializer.name: JsonSerializer,
    PickleSerializer.name: PickleSerializer,
}


def get_serializer(name: str) -> Serializer:
    """Return a serializer instance by name ("json" or "jsonpickle")."""
    try:
        return SERIALIZERS[name]()
    except KeyError:
        raise ValueError(f"Unsupported serializer: {name}") from None
