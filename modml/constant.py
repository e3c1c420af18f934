"""A node that produces a fixed tensor."""

from __future__ import annotations

from typing import Optional

import numpy as np

from modml.node_utils import Node
from modml.parser_helper import handle_tensor

__all__ = ["ConstantNode"]

_DATA_TYPES = {
    1: np.float32,
    2: np.uint8,
    3: np.int8,
    4: np.uint16,
    5: np.int16,
    6: np.int32,
    7: np.int64,
    9: np.bool_,
    11: np.float64,
    12: np.uint32,
    13: np.uint64,
}


class ConstantNode(Node):
    """Writes a stored tensor to its output on every forward pass."""

    def __init__(self, output: str, value: Optional[np.ndarray]):
        self.output = output
        self.value = value

    @classmethod
    def from_json(cls, node: dict) -> "ConstantNode":
        """Build the node from its JSON description."""
        output = ""
        outputs = node.get("output")
        if isinstance(outputs, list):
            output = outputs[0]

        value = None
        attributes = node.get("attribute")
        if isinstance(attributes, list):
            for attr in attributes:
                if attr.get("name") != "value":
                    continue
                tensor = attr.get("t")
                if not isinstance(tensor, dict):
                    raise ValueError("Unsupported value type for Constant node")
                data_type = int(tensor["dataType"])
                dtype = _DATA_TYPES.get(data_type)
                if dtype is None:
                    raise ValueError(
                        f"Currently unsupported data type: {data_type}"
                    )
                value = handle_tensor(tensor, dtype)

        return cls(output, value)

    def forward(self, iomap: dict) -> None:
        iomap[self.output] = self.value

    def inputs(self) -> list[str]:
        return []

    def outputs(self) -> list[str]:
        return [self.output]