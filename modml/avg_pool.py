"""A node that averages values under a sliding pooling window."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from modml.node_utils import (
    Node,
    compute_pool_attributes,
    compute_pool_output_shape,
    compute_pool_pad_begin_end,
)
from modml.operations import create_tensor, sliding_window

__all__ = ["AvgPoolNode"]

_SUPPORTED = (np.dtype(np.float32), np.dtype(np.float64))


def _int_list(values) -> list[int]:
    return [int(value) for value in values]


class AvgPoolNode(Node):
    """Average pooling over the spatial dimensions of an N x C x ... tensor."""

    def __init__(
        self,
        x: str,
        y: str,
        kernel_shape: Sequence[int],
        auto_pad: str = "NOTSET",
        ceil_mode: int = 0,
        count_include_pad: int = 0,
        dilations: Sequence[int] = (),
        pads: Sequence[int] = (),
        strides: Sequence[int] = (),
    ):
        self.x = x
        self.y = y
        self.kernel_shape = list(kernel_shape)
        self.auto_pad = auto_pad
        self.ceil_mode = ceil_mode
        self.count_include_pad = count_include_pad
        self.dilations = list(dilations)
        self.pads = list(pads)
        self.strides = list(strides)

    @classmethod
    def from_json(cls, node: dict) -> "AvgPoolNode":
        """Build the node from its JSON description."""
        x = y = ""
        inputs = node.get("input")
        if isinstance(inputs, list):
            x = inputs[0]
        outputs = node.get("output")
        if isinstance(outputs, list):
            y = outputs[0]

        settings: dict = {
            "kernel_shape": [],
            "auto_pad": "NOTSET",
            "ceil_mode": 0,
            "count_include_pad": 0,
            "dilations": [],
            "pads": [],
            "strides": [],
        }
        attributes = node.get("attribute")
        if isinstance(attributes, list):
            for attr in attributes:
                name = attr.get("name")
                if name in ("kernel_shape", "strides", "dilations", "pads"):
                    settings[name] = _int_list(attr.get("ints", []))
                elif name == "auto_pad":
                    settings["auto_pad"] = attr["s"]
                elif name in ("ceil_mode", "count_include_pad"):
                    settings[name] = int(attr["i"])

        return cls(x, y, **settings)

    def forward(self, iomap: dict) -> None:
        if self.x not in iomap:
            raise KeyError("AvgPoolNode: Input tensor X not found in iomap")
        x = iomap[self.x]

        if x.dtype not in _SUPPORTED:
            raise TypeError("AvgPoolNode: Unsupported data type for tensor X")
        if x.ndim < 3:
            raise ValueError("AvgPoolNode: Input tensor must be at least NCL")

        self.strides, self.pads, self.dilations = compute_pool_attributes(
            self.auto_pad, self.kernel_shape, self.strides, self.pads, self.dilations
        )
        output_shape = compute_pool_output_shape(
            x.shape,
            self.auto_pad,
            self.ceil_mode,
            self.dilations,
            self.kernel_shape,
            self.pads,
            self.strides,
        )
        pad_pairs = compute_pool_pad_begin_end(
            x.shape,
            self.auto_pad,
            self.ceil_mode,
            self.dilations,
            self.kernel_shape,
            self.pads,
            self.strides,
        )

        y = create_tensor(output_shape, dtype=x.dtype)
        scalar = x.dtype.type
        kernel_volume = math.prod(self.kernel_shape)

        def average(window: list, out_idx: tuple) -> None:
            if not window:
                raise ValueError("AvgPoolNode: Empty window values")
            total = x[tuple(zip(*window))].sum(dtype=x.dtype)
            denominator = kernel_volume if self.count_include_pad else len(window)
            y[out_idx] = total / scalar(denominator)

        sliding_window(
            x.shape,
            output_shape,
            self.kernel_shape,
            self.strides,
            self.dilations,
            pad_pairs,
            average,
        )
        iomap[self.y] = y

    def inputs(self) -> list[str]:
        return [self.x]

    def outputs(self) -> list[str]:
        return [self.y]