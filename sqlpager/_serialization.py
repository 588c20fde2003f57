"""JSON encoding and decoding backed by ``msgspec``."""

from typing import Any, Literal, Union, overload

import msgspec

from sqlpager.exceptions import SerializationError

__all__ = ("decode_json", "encode_json")

_encoder = msgspec.json.Encoder(enc_hook=str)
_decoder = msgspec.json.Decoder()


@overload
def encode_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def encode_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def encode_json(data: Any, *, as_bytes: bool = False) -> Union[str, bytes]:
    """Encode data to JSON.

    Values msgspec cannot encode natively fall back to their ``str()`` form.

    Args:
        data: Data to encode.
        as_bytes: Whether to return bytes instead of a string.

    Raises:
        SerializationError: The data could not be encoded.

    Returns:
        JSON string or bytes.
    """
    try:
        encoded = _encoder.encode(data)
    except (TypeError, msgspec.EncodeError) as e:
        msg = f"Unable to encode {type(data).__name__!r} as JSON"
        raise SerializationError(msg) from e
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: Union[str, bytes]) -> Any:
    """Decode JSON text into Python objects.

    Raises:
        SerializationError: The data is not valid JSON.
    """
    try:
        return _decoder.decode(data)
    except msgspec.DecodeError as e:
        msg = "Unable to decode JSON payload"
        raise SerializationError(msg) from e
