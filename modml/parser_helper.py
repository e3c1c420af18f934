"""Building tensors from the JSON form of serialized model tensors."""

from __future__ import annotations

import base64
import binascii

import numpy as np

from modml.operations import create_tensor

__all__ = ["handle_tensor"]

_FIELD_NAMES = {
    np.dtype(np.float32): "floatData",
    np.dtype(np.float64): "doubleData",
    np.dtype(np.int64): "int64Data",
    np.dtype(np.int32): "int32Data",
    np.dtype(np.uint64): "uint64Data",
    np.dtype(np.uint32): "uint32Data",
    np.dtype(np.uint16): "uint16Data",
    np.dtype(np.int16): "int16Data",
    np.dtype(np.uint8): "uint8Data",
    np.dtype(np.int8): "int8Data",
    np.dtype(np.bool_): "boolData",
}

_TRUE_WORDS = {"true", "1", "yes"}
_FALSE_WORDS = {"false", "0", "no"}


def _decode_raw(raw: str, dtype: np.dtype) -> np.ndarray:
    """Decode base64 little-endian element bytes into an array of ``dtype``."""
    try:
        buffer = base64.b64decode(raw)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 tensor data: {exc}") from exc
    if len(buffer) % dtype.itemsize:
        raise ValueError(
            f"raw data of {len(buffer)} bytes is not a whole number "
            f"of {dtype} elements"
        )
    return np.frombuffer(buffer, dtype=dtype.newbyteorder("<")).astype(dtype)


def _parse_string(text: str, dtype: np.dtype, name: str):
    if dtype == np.bool_:
        word = text.lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"Invalid boolean string: {word}")
    try:
        if np.issubdtype(dtype, np.integer):
            return int(text.strip())
        if np.issubdtype(dtype, np.floating):
            return float(text)
    except ValueError as exc:
        raise ValueError(f"Invalid string {text!r} in tensor: {name}") from exc
    raise ValueError(f"Invalid string conversion for type: {name}")


def handle_tensor(init: dict, dtype) -> np.ndarray:
    """Create a tensor of ``dtype`` from a serialized tensor description.

    The shape comes from ``dims``; the elements from base64 ``rawData`` when
    present, otherwise from the typed data field matching ``dtype``.
    """
    dtype = np.dtype(dtype)
    name = init.get("name", "")
    shape = [int(dim) for dim in init.get("dims", [])]

    if "rawData" in init:
        return create_tensor(shape, _decode_raw(init["rawData"], dtype), dtype)

    field = _FIELD_NAMES.get(dtype, "unknownData")
    if field not in init:
        raise ValueError(f"No data field found for tensor: {name}")

    values = []
    for element in init[field]:
        if isinstance(element, bool):
            values.append(element)
        elif isinstance(element, (int, float)):
            values.append(element)
        elif isinstance(element, str):
            values.append(_parse_string(element, dtype, name))
        else:
            raise ValueError(f"Invalid data type in tensor: {name}")

    return create_tensor(shape, np.array(values, dtype=dtype), dtype)