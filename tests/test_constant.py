import base64

import numpy as np
import pytest

from modml.constant import ConstantNode


def _json(tensor):
    return {
        "input": [],
        "output": ["const_out"],
        "attribute": [{"name": "value", "t": tensor}],
    }


def test_forward_writes_value():
    value = np.array([1.0, 2.0], dtype=np.float32)
    node = ConstantNode("c", value)
    iomap = {}
    node.forward(iomap)
    assert np.array_equal(iomap["c"], value)


def test_inputs_and_outputs():
    node = ConstantNode("c", np.zeros(1))
    assert node.inputs() == []
    assert node.outputs() == ["c"]


def test_from_json_float_tensor():
    node = ConstantNode.from_json(
        _json({"name": "k", "dataType": 1, "dims": ["2"], "floatData": [0.5, 1.5]})
    )
    assert node.outputs() == ["const_out"]
    iomap = {}
    node.forward(iomap)
    assert iomap["const_out"].dtype == np.float32
    assert iomap["const_out"].tolist() == [0.5, 1.5]


def test_from_json_int64_strings():
    node = ConstantNode.from_json(
        _json({"name": "k", "dataType": 7, "dims": ["1", "2"], "int64Data": ["4", "-2"]})
    )
    assert node.value.dtype == np.int64
    assert node.value.shape == (1, 2)
    assert node.value.ravel().tolist() == [4, -2]


def test_from_json_raw_uint8():
    data = bytes([3, 250, 17])
    node = ConstantNode.from_json(
        _json(
            {
                "name": "k",
                "dataType": 2,
                "dims": ["3"],
                "rawData": base64.b64encode(data).decode("ascii"),
            }
        )
    )
    assert node.value.dtype == np.uint8
    assert node.value.tobytes() == data


def test_unsupported_data_type_raises():
    with pytest.raises(ValueError, match="Currently unsupported data type: 10"):
        ConstantNode.from_json(
            _json({"name": "k", "dataType": 10, "dims": ["1"], "rawData": "AAA="})
        )


def test_non_tensor_value_raises():
    node = {"output": ["o"], "attribute": [{"name": "value", "t": "nope"}]}
    with pytest.raises(ValueError, match="Unsupported value type"):
        ConstantNode.from_json(node)


def test_other_attributes_ignored():
    node = ConstantNode.from_json({"output": ["o"], "attribute": [{"name": "other"}]})
    assert node.outputs() == ["o"]
    assert node.value is None