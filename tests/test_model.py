import numpy as np
import pytest

from modml.add import AddNode
from modml.constant import ConstantNode
from modml.model import Model
from modml.node_utils import Node


class _FailingNode(Node):
    def __init__(self, source, target, error):
        self.source = source
        self.target = target
        self.error = error

    def forward(self, iomap):
        raise self.error

    def inputs(self):
        return [self.source]

    def outputs(self):
        return [self.target]


def _chain():
    const = ConstantNode("k", np.array([10.0, 20.0], dtype=np.float32))
    first = AddNode("x", "k", "y")
    second = AddNode("y", "y", "z")
    return const, first, second


def test_empty_graph_raises_on_infer():
    with pytest.raises(RuntimeError, match="no nodes"):
        Model([]).infer({})


def test_empty_graph_raises_on_sort():
    with pytest.raises(RuntimeError, match="no nodes"):
        Model([]).topological_sort()


def test_topological_layers_follow_dependencies():
    const, first, second = _chain()
    model = Model([second, first, const], outputs=["z"])
    layers = model.topological_sort()
    assert len(layers) == 3
    assert layers[0] == [const]
    assert layers[1] == [first]
    assert layers[2] == [second]


def test_independent_nodes_share_a_layer():
    a = AddNode("p", "q", "r")
    b = AddNode("s", "t", "u")
    layers = Model([a, b]).topological_sort()
    assert layers == [[a, b]]


def test_cycle_is_detected():
    a = AddNode("x", "b_out", "a_out")
    b = AddNode("a_out", "x", "b_out")
    with pytest.raises(RuntimeError, match="cycle"):
        Model([a, b]).topological_sort()


def test_self_loop_is_ignored():
    node = AddNode("y", "x", "y")
    assert Model([node]).topological_sort() == [[node]]


def test_infer_runs_chain():
    const, first, second = _chain()
    model = Model([const, first, second], outputs=["z", "y"])
    x = np.array([1.0, 2.0], dtype=np.float32)
    result = model.infer({"x": x})
    k = const.value
    np.testing.assert_array_equal(result["y"], x + k)
    np.testing.assert_array_equal(result["z"], (x + k) + (x + k))


def test_infer_leaves_inputs_and_stored_tensors_untouched():
    node = AddNode("x", "w", "x")
    weights = np.array([1.0, 1.0], dtype=np.float32)
    model = Model([node], iomap={"w": weights}, outputs=["x"])
    x = np.array([5.0, 6.0], dtype=np.float32)
    original = x.copy()
    result = model.infer({"x": x})
    np.testing.assert_array_equal(x, original)
    np.testing.assert_array_equal(model.iomap["w"], weights)
    np.testing.assert_array_equal(result["x"], original + weights)


def test_repeated_inference_gives_same_result():
    const, first, second = _chain()
    model = Model([const, first, second], outputs=["z"])
    x = np.array([3.0, 4.0], dtype=np.float32)
    once = model.infer({"x": x})["z"]
    twice = model.infer({"x": x})["z"]
    np.testing.assert_array_equal(once, twice)


def test_missing_outputs_are_left_out():
    const = ConstantNode("k", np.array([1.0], dtype=np.float32))
    model = Model([const], outputs=["k", "nowhere"])
    result = model.infer({})
    assert set(result) == {"k"}


def test_node_errors_propagate():
    node = _FailingNode("x", "y", IndexError("bad index"))
    with pytest.raises(IndexError, match="bad index"):
        Model([node], outputs=["y"]).infer({"x": np.zeros(1)})


def test_missing_input_propagates_key_error():
    node = AddNode("x", "absent", "y")
    with pytest.raises(KeyError):
        Model([node], outputs=["y"]).infer({"x": np.zeros(2, dtype=np.float32)})