from __future__ import annotations

from collections import deque
from collections.abc import Callable
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Final, Literal, overload
from uuid import UUID

import msgspec
from pydantic import BaseModel

Serializer = Callable[[Any], Any]

type TypeEncodersMap = dict[Any, Callable[[Any], Any]]


class _EmptyEnum(Enum):
    EMPTY = 0


EmptyType = Literal[_EmptyEnum.EMPTY]
Empty: Final = _EmptyEnum.EMPTY


class SerializationError(Exception):
    """Encoding or decoding of an object failed."""


__all__ = ("SerializationError", "decode_json", "default_serializer", "encode_json", "encode_json_str")

DEFAULT_TYPE_ENCODERS: TypeEncodersMap = {
    PurePath: str,
    UUID: str,
    datetime: lambda val: val.isoformat(),
    date: lambda val: val.isoformat(),
    time: lambda val: val.isoformat(),
    deque: list,
    # Money amounts keep their exact decimal text
    Decimal: str,
    BaseModel: lambda val: val.model_dump(mode="json", by_alias=True, exclude_none=True),
    Enum: lambda val: val.value,
}

# Support subclasses of stdlib types
DEFAULT_TYPE_ENCODERS.update({str: str, int: int, float: float, set: list, frozenset: list, bytes: bytes})


def default_serializer(value: Any, type_encoders: TypeEncodersMap | None = None) -> Any:
    """Transform values non-natively supported by ``msgspec``

    Raises:
        TypeError: if value is not supported
    """
    type_encoders = DEFAULT_TYPE_ENCODERS if type_encoders is None else {**DEFAULT_TYPE_ENCODERS, **type_encoders}

    # ORM rows are rendered column by column
    if hasattr(value, "__tablename__") and hasattr(value, "__table__"):
        return {c.name: default_serializer(getattr(value, c.name)) for c in value.__table__.columns}

    for base in value.__class__.__mro__[:-1]:
        try:
            encoder = type_encoders[base]
            return encoder(value)
        except KeyError:
            continue

    raise TypeError(f"Unsupported type: {type(value)!r}")


_default_json_encoder = msgspec.json.Encoder(enc_hook=default_serializer)
_default_json_decoder = msgspec.json.Decoder()


def encode_json(value: Any, serializer: Serializer | None = None) -> bytes:
    """Encode a value into JSON.

    Raises:
        SerializationError: If error encoding ``value``.
    """
    try:
        return msgspec.json.encode(value, enc_hook=serializer) if serializer else _default_json_encoder.encode(value)
    except (TypeError, msgspec.EncodeError) as msgspec_error:
        raise SerializationError(str(msgspec_error)) from msgspec_error


def encode_json_str(value: Any, pretty: bool = False) -> str:
    raw = encode_json(value)
    if pretty:
        raw = msgspec.json.format(raw, indent=2)
    return raw.decode("utf-8")


@overload
def decode_json(value: str | bytes) -> Any: ...


@overload
def decode_json[T](value: str | bytes, target_type: type[T], strict: bool = ...) -> T: ...


def decode_json[T](  # type: ignore[misc]
    value: str | bytes,
    target_type: type[T] | EmptyType = Empty,
    strict: bool = True,
) -> T:
    """Decode a JSON string/bytes into an object, optionally validated against ``target_type``.

    Raises:
        SerializationError: If error decoding ``value``.
    """
    try:
        if target_type is Empty:
            return _default_json_decoder.decode(value)
        return msgspec.json.decode(value, type=target_type, strict=strict)
    except (msgspec.DecodeError, msgspec.ValidationError) as msgspec_error:
        raise SerializationError(str(msgspec_error)) from msgspec_error


