"""The node interface and attribute helpers shared by pooling nodes."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import NamedTuple, Sequence

__all__ = [
    "Node",
    "PoolAttributes",
    "compute_pool_attributes",
    "compute_pool_output_shape",
    "compute_pool_pad_begin_end",
]

_SAME_MODES = ("SAME_UPPER", "SAME_LOWER")


class Node(ABC):
    """A computation in a model graph that reads and writes named tensors."""

    @abstractmethod
    def forward(self, iomap: dict) -> None:
        """Compute the node's outputs from ``iomap`` and store them there."""

    @abstractmethod
    def inputs(self) -> list[str]:
        """Names of the tensors the node reads."""

    @abstractmethod
    def outputs(self) -> list[str]:
        """Names of the tensors the node writes."""


class PoolAttributes(NamedTuple):
    """Pooling attributes with defaults filled in."""

    strides: list[int]
    pads: list[int]
    dilations: list[int]


def compute_pool_attributes(
    auto_pad: str,
    kernel_shape: Sequence[int],
    strides: Sequence[int],
    pads: Sequence[int],
    dilations: Sequence[int],
) -> PoolAttributes:
    """Fill in default strides, pads and dilations for a pooling kernel.

    Strides and dilations default to 1 per spatial dimension; pads default
    to zero at both ends, but only when ``auto_pad`` is ``"NOTSET"``.
    """
    spatial_rank = len(kernel_shape)
    new_strides = list(strides) if strides else [1] * spatial_rank
    if not pads and auto_pad == "NOTSET":
        new_pads = [0] * (spatial_rank * 2)
    else:
        new_pads = list(pads)
    new_dilations = list(dilations) if dilations else [1] * spatial_rank
    return PoolAttributes(new_strides, new_pads, new_dilations)


def _trunc_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator >= 0) else -quotient


def compute_pool_output_shape(
    input_shape: Sequence[int],
    auto_pad: str,
    ceil_mode: int,
    dilations: Sequence[int],
    kernel_shape: Sequence[int],
    pads: Sequence[int],
    strides: Sequence[int],
) -> tuple[int, ...]:
    """Output shape of a pooling operation, keeping batch and channel."""
    spatial_rank = len(kernel_shape)
    output = [int(input_shape[0]), int(input_shape[1])]

    for i in range(spatial_rank):
        input_dim = int(input_shape[i + 2])
        stride = strides[i]
        effective_kernel = (kernel_shape[i] - 1) * dilations[i] + 1

        if auto_pad in _SAME_MODES:
            if ceil_mode:
                out_dim = math.ceil(input_dim / stride)
            else:
                out_dim = _trunc_div(input_dim - 1, stride) + 1
        elif auto_pad == "VALID":
            if ceil_mode:
                out_dim = math.ceil((input_dim - effective_kernel + 1) / stride)
            else:
                out_dim = math.floor((input_dim - effective_kernel) / stride) + 1
        else:
            total_pad = pads[i] + pads[i + spatial_rank]
            span = (input_dim + total_pad - effective_kernel) / stride + 1
            out_dim = math.ceil(span) if ceil_mode else math.floor(span)

        if out_dim < 0:
            raise ValueError(
                f"pooling window does not fit spatial dimension {i} "
                f"of size {input_dim}"
            )
        output.append(int(out_dim))

    return tuple(output)


def compute_pool_pad_begin_end(
    input_shape: Sequence[int],
    auto_pad: str,
    ceil_mode: int,
    dilations: Sequence[int],
    kernel_shape: Sequence[int],
    pads: Sequence[int],
    strides: Sequence[int],
) -> list[tuple[int, int]]:
    """Padding before and after each spatial dimension."""
    spatial_rank = len(kernel_shape)
    pad_pairs: list[tuple[int, int]] = []

    for i in range(spatial_rank):
        input_dim = int(input_shape[i + 2])
        stride = strides[i]
        effective_kernel = (kernel_shape[i] - 1) * dilations[i] + 1

        if auto_pad in _SAME_MODES:
            if ceil_mode:
                out_dim = float(math.ceil(input_dim / stride))
            else:
                out_dim = float(math.floor((input_dim - 1) / stride) + 1)
            total_pad = max(
                0, int((out_dim - 1) * stride + effective_kernel - input_dim)
            )
            if auto_pad == "SAME_LOWER":
                pad_begin = (total_pad + 1) // 2
            else:
                pad_begin = total_pad // 2
            pad_pairs.append((pad_begin, total_pad - pad_begin))
        elif auto_pad == "VALID":
            pad_pairs.append((0, 0))
        else:
            pad_pairs.append((pads[i], pads[i + spatial_rank]))

    return pad_pairs