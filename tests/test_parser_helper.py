import base64

import numpy as np
import pytest

from modml.parser_helper import handle_tensor


def test_float_data_field():
    init = {"name": "w", "dims": ["2", "2"], "floatData": [1.0, 2.5, -3.0, 4.0]}
    tensor = handle_tensor(init, np.float32)
    assert tensor.shape == (2, 2)
    assert tensor.dtype == np.float32
    assert tensor.ravel().tolist() == [1.0, 2.5, -3.0, 4.0]


def test_int64_strings_are_parsed():
    init = {"name": "s", "dims": ["3"], "int64Data": ["123", "-7", "9000000000"]}
    tensor = handle_tensor(init, np.int64)
    assert tensor.tolist() == [123, -7, 9000000000]


def test_float_strings_are_parsed():
    init = {"name": "f", "dims": ["2"], "doubleData": ["0.25", "-1.5"]}
    tensor = handle_tensor(init, np.float64)
    assert tensor.tolist() == [0.25, -1.5]


def test_bool_strings():
    init = {
        "name": "b",
        "dims": ["6"],
        "boolData": ["true", "FALSE", "1", "0", "Yes", "no"],
    }
    tensor = handle_tensor(init, np.bool_)
    assert tensor.tolist() == [True, False, True, False, True, False]


def test_bool_from_json_booleans():
    init = {"name": "b", "dims": ["2"], "boolData": [True, False]}
    assert handle_tensor(init, np.bool_).tolist() == [True, False]


def test_invalid_bool_string_raises():
    init = {"name": "b", "dims": ["1"], "boolData": ["maybe"]}
    with pytest.raises(ValueError, match="Invalid boolean string"):
        handle_tensor(init, np.bool_)


def test_invalid_element_type_raises():
    init = {"name": "bad", "dims": ["1"], "floatData": [[1.0]]}
    with pytest.raises(ValueError, match="bad"):
        handle_tensor(init, np.float32)


def test_missing_data_field_raises():
    init = {"name": "empty", "dims": ["2"], "int32Data": [1, 2]}
    with pytest.raises(ValueError, match="No data field found for tensor: empty"):
        handle_tensor(init, np.float32)


@pytest.mark.parametrize("dtype", [np.float32, np.float64, np.int32, np.uint16, np.int8])
def test_raw_data_round_trip(dtype):
    original = np.arange(6, dtype=dtype).reshape(2, 3)
    raw = base64.b64encode(original.astype(np.dtype(dtype).newbyteorder("<")).tobytes())
    init = {"name": "r", "dims": ["2", "3"], "rawData": raw.decode("ascii")}
    tensor = handle_tensor(init, dtype)
    assert tensor.dtype == np.dtype(dtype)
    assert np.array_equal(tensor, original)


def test_raw_data_wrong_length_raises():
    raw = base64.b64encode(b"\x00\x01\x02").decode("ascii")
    init = {"name": "r", "dims": ["1"], "rawData": raw}
    with pytest.raises(ValueError):
        handle_tensor(init, np.float32)


def test_shape_mismatch_raises():
    init = {"name": "m", "dims": ["3"], "floatData": [1.0, 2.0]}
    with pytest.raises(ValueError):
        handle_tensor(init, np.float32)