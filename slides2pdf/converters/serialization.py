import base64
import typing
from dataclasses import fields, is_dataclass

# Type marker key used for serialization/deserialization
_TYPE_KEY = "_type"

# Registry mapping type names to classes (populated lazily)
_TYPE_REGISTRY: dict[str, type] = {}


def _bytes_to_base64(data: bytes | bytearray) -> str:
    return base64.b64encode(bytes(data)).decode("utf-8")


def _base64_to_bytes(data: str) -> bytes:
    return base64.b64decode(data.encode("utf-8"))


def _serialize_for_json(value: typing.Any, include_binary: bool) -> typing.Any:
    if isinstance(value, (bytes, bytearray)):
        if not include_binary:
            return None
        return {"_bytes": _bytes_to_base64(value)}
    if is_dataclass(value) and not isinstance(value, type):
        result = {
            _TYPE_KEY: type(value).__name__,
        }
        for item in fields(value):
            result[item.name] = _serialize_for_json(
                getattr(value, item.name), include_binary
            )
        return result
    if isinstance(value, dict):
        return {
            str(key): _serialize_for_json(val, include_binary)
            for key, val in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [_serialize_for_json(item, include_binary) for item in value]
    return value


def serialize_result(value: typing.Any, include_binary: bool = False) -> dict:
    """
    Convert a conversion result (or any of its parts) to a JSON-compatible dict.

    Binary payloads such as the PDF bytes are replaced by None unless
    ``include_binary`` is set, in which case they are base64 encoded.
    """
    serialized = _serialize_for_json(value, include_binary)
    if isinstance(serialized, dict):
        return serialized
    return {"value": serialized}


def _get_type_registry() -> dict[str, type]:
    """Lazily populate and return the type registry."""
    if _TYPE_REGISTRY:
        return _TYPE_REGISTRY

    from slides2pdf.converters import data_types

    for name in dir(data_types):
        obj = getattr(data_types, name)
        if isinstance(obj, type) and is_dataclass(obj):
            _TYPE_REGISTRY[name] = obj

    return _TYPE_REGISTRY


def _unwrap_optional(tp: typing.Any) -> typing.Any:
    """Unwrap Optional[X] to X."""
    if typing.get_origin(tp) is typing.Union:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def _deserialize_value(value: typing.Any, expected_type: typing.Any) -> typing.Any:
    if value is None:
        return None
    expected_type = _unwrap_optional(expected_type)

    if isinstance(value, dict):
        if "_bytes" in value:
            return _base64_to_bytes(value["_bytes"])
        if _TYPE_KEY in value:
            return _deserialize_dataclass(value)

    if typing.get_origin(expected_type) is list and isinstance(value, list):
        item_type = typing.get_args(expected_type)
        item_type = item_type[0] if item_type else typing.Any
        return [_deserialize_value(item, item_type) for item in value]

    if expected_type is bytes and isinstance(value, str):
        return _base64_to_bytes(value)

    return value


def _deserialize_dataclass(data: dict) -> typing.Any:
    registry = _get_type_registry()
    cls = registry[data[_TYPE_KEY]]
    field_types = typing.get_type_hints(cls)

    kwargs = {}
    for item in fields(cls):
        if item.name in data and data[item.name] is not None:
            kwargs[item.name] = _deserialize_value(
                data[item.name], field_types.get(item.name, typing.Any)
            )
    return cls(**kwargs)


def deserialize_result(data: dict) -> typing.Any:
    """
    Rebuild the dataclass hierarchy from the output of :func:`serialize_result`.

    Fields that were serialized without their binary payload fall back to the
    dataclass default.

    Raises:
        ValueError: The input carries no type information.
        KeyError: The type name is not a known data type.
    """
    if not isinstance(data, dict):
        raise ValueError("Input must be a dictionary")

    if _TYPE_KEY not in data:
        raise ValueError(
            f"Input dictionary must contain '{_TYPE_KEY}' key for deserialization"
        )

    return _deserialize_dataclass(data)
