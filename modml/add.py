"""A node that adds two tensors, broadcasting where the shapes allow it."""

from __future__ import annotations

import numpy as np

from modml.node_utils import Node
from modml.operations import add as add_tensors

__all__ = ["AddNode", "broadcast_addition"]


def _is_supported(dtype: np.dtype) -> bool:
    return np.issubdtype(dtype, np.number) and not np.issubdtype(
        dtype, np.complexfloating
    )


def _broadcast_shape(a_shape: tuple, b_shape: tuple) -> tuple[int, ...] | None:
    """Shape two tensors broadcast to, or None when they are incompatible."""
    max_rank = max(len(a_shape), len(b_shape))
    padded_a = (1,) * (max_rank - len(a_shape)) + tuple(a_shape)
    padded_b = (1,) * (max_rank - len(b_shape)) + tuple(b_shape)
    shape = []
    for dim_a, dim_b in zip(padded_a, padded_b):
        if dim_a == dim_b or dim_b == 1:
            shape.append(dim_a)
        elif dim_a == 1:
            shape.append(dim_b)
        else:
            return None
    return tuple(shape)


def broadcast_addition(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Add ``a`` and ``b`` with trailing-dimension broadcasting.

    The result has ``a``'s element type.
    """
    shape = _broadcast_shape(a.shape, b.shape)
    if shape is None:
        raise ValueError("Incompatible shapes for broadcasting.")
    result = np.broadcast_to(a, shape) + np.broadcast_to(b, shape)
    return result.astype(a.dtype, copy=False)


class AddNode(Node):
    """Computes C = A + B for tensors of the same element type."""

    def __init__(self, a: str, b: str, c: str):
        self.a = a
        self.b = b
        self.c = c

    @classmethod
    def from_json(cls, node: dict) -> "AddNode":
        """Build the node from its JSON description."""
        a = b = c = ""
        inputs = node.get("input")
        if isinstance(inputs, list):
            a, b = inputs[0], inputs[1]
        outputs = node.get("output")
        if isinstance(outputs, list):
            c = outputs[0]
        return cls(a, b, c)

    def forward(self, iomap: dict) -> None:
        if self.a not in iomap:
            raise KeyError("AddNode: Input tensor A not found in iomap")
        if self.b not in iomap:
            raise KeyError("AddNode: Input tensor B not found in iomap")
        a = iomap[self.a]
        b = iomap[self.b]

        if not _is_supported(a.dtype) or a.dtype != b.dtype:
            raise TypeError("AddNode: Unsupported data type for tensors A and B")

        c = iomap.get(self.c)
        if c is None:
            c = a.copy()
            iomap[self.c] = c
        elif not isinstance(c, np.ndarray) or c.dtype != a.dtype:
            raise TypeError("AddNode: Output tensor C has incorrect type")

        if a.shape == b.shape:
            if c.shape != a.shape:
                c = np.empty_like(a)
                iomap[self.c] = c
            add_tensors(a, b, c)
            return

        if _broadcast_shape(a.shape, b.shape) is None:
            raise ValueError(
                "Incompatible shapes for addition attempt in AddNode. "
                "Broadcasting impossible."
            )
        result = broadcast_addition(a, b)
        if c.shape == result.shape:
            c[...] = result
        else:
            iomap[self.c] = result

    def inputs(self) -> list[str]:
        return [self.a, self.b]

    def outputs(self) -> list[str]:
        return [self.c]