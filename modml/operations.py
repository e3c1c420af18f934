"""Tensor creation and the core numeric operations on tensors.

Tensors are plain :class:`numpy.ndarray` objects. Operations that write into
an output tensor do so in place, addressing elements in row-major order.
"""

from __future__ import annotations

import itertools
from enum import Enum
from typing import Callable, Optional, Sequence

import numpy as np

__all__ = [
    "GemmKernel",
    "create_tensor",
    "random_tensor",
    "gemm_inner_product",
    "gemm_outer_product",
    "gemm_row_wise_product",
    "gemm_col_wise_product",
    "gemm_blocked",
    "onnx_gemm",
    "add",
    "subtract",
    "multiply",
    "equals",
    "elementwise",
    "elementwise_in_place",
    "arg_max",
    "sliding_window",
]

_BLOCK_SIZE = 64

WindowFunction = Callable[[list, tuple], None]


def create_tensor(shape: Sequence[int], data=None, dtype=None) -> np.ndarray:
    """Create a tensor of ``shape``, filled from ``data`` or with zeros."""
    shape = tuple(int(dim) for dim in shape)
    if data is None:
        return np.zeros(shape, dtype=np.float32 if dtype is None else dtype)
    values = np.array(data, dtype=dtype).ravel()
    expected = int(np.prod(shape, dtype=np.int64))
    if values.size != expected:
        raise ValueError(
            f"data has {values.size} elements but shape {list(shape)} "
            f"needs {expected}"
        )
    return values.reshape(shape)


def random_tensor(
    shape: Sequence[int],
    low,
    high,
    dtype=np.float32,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Create a tensor of random values between ``low`` and ``high``.

    Integral types draw from the closed range, floating types uniformly.
    """
    rng = np.random.default_rng() if rng is None else rng
    shape = tuple(int(dim) for dim in shape)
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        return rng.integers(low, high, size=shape, endpoint=True).astype(dtype)
    if np.issubdtype(dtype, np.floating):
        return rng.uniform(low, high, size=shape).astype(dtype)
    raise TypeError(f"cannot generate random values of type {dtype}")


def _flat_operand(tensor, transpose: bool) -> np.ndarray:
    """Return the row-major buffer of ``tensor``, transposed if asked.

    Transposition swaps the last two dimensions; the caller's tensor is
    left untouched.
    """
    arr = np.asarray(tensor)
    if transpose and arr.ndim >= 2:
        arr = np.swapaxes(arr, -1, -2)
    return np.ascontiguousarray(arr).ravel()


def _matrix_index(rows: int, cols: int, ld: int) -> np.ndarray:
    return np.arange(rows)[:, None] * ld + np.arange(cols)[None, :]


def _gemm(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc, body):
    a_mat = _flat_operand(a, bool(trans_a))[_matrix_index(m, k, lda)]
    b_mat = _flat_operand(b, bool(trans_b))[_matrix_index(k, n, ldb)]
    c_index = _matrix_index(m, n, ldc)
    c_mat = np.asarray(c).ravel()[c_index]
    scalar = c.dtype.type
    body(m, n, k, scalar(alpha), a_mat, b_mat, scalar(beta), c_mat)
    c.flat[c_index.ravel()] = c_mat.ravel()


def _inner_body(m, n, k, alpha, a, b, beta, c):
    for i in range(m):
        c[i] = beta * c[i]
        for kk in range(k):
            c[i] += alpha * a[i, kk] * b[kk]


def _outer_body(m, n, k, alpha, a, b, beta, c):
    c *= beta
    for kk in range(k):
        for i in range(m):
            c[i] += alpha * a[i, kk] * b[kk]


def _col_wise_body(m, n, k, alpha, a, b, beta, c):
    for j in range(n):
        c[:, j] = beta * c[:, j]
        for kk in range(k):
            c[:, j] += alpha * a[:, kk] * b[kk, j]


def _blocked_body(m, n, k, alpha, a, b, beta, c):
    for jj in range(0, n, _BLOCK_SIZE):
        cols = slice(jj, min(jj + _BLOCK_SIZE, n))
        for kk in range(0, k, _BLOCK_SIZE):
            depth = slice(kk, min(kk + _BLOCK_SIZE, k))
            acc = beta * c[:, cols] if kk == 0 else c[:, cols]
            c[:, cols] = acc + alpha * (a[:, depth] @ b[depth, cols])


def gemm_inner_product(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc):
    """C = alpha * op(A) @ op(B) + beta * C, accumulating row by row."""
    _gemm(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc, _inner_body)


def gemm_outer_product(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc):
    """C = alpha * op(A) @ op(B) + beta * C, as a sum of outer products."""
    _gemm(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc, _outer_body)


def gemm_row_wise_product(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc):
    """C = alpha * op(A) @ op(B) + beta * C, one output row at a time."""
    _gemm(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc, _inner_body)


def gemm_col_wise_product(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc):
    """C = alpha * op(A) @ op(B) + beta * C, one output column at a time."""
    _gemm(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc, _col_wise_body)


def gemm_blocked(trans_a, trans_b, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc):
    """C = alpha * A @ B + beta * C in cache-sized blocks; no transposition."""
    if trans_a or trans_b:
        raise ValueError("Transposition not yet supported in GEMM blocked.")
    _gemm(0, 0, m, n, k, alpha, a, lda, b, ldb, beta, c, ldc, _blocked_body)


class GemmKernel(str, Enum):
    """The available GEMM implementations."""

    INNER = "inner"
    OUTER = "outer"
    ROW_WISE = "row_wise"
    COL_WISE = "col_wise"
    BLOCKED = "blocked"


_KERNELS = {
    GemmKernel.INNER: gemm_inner_product,
    GemmKernel.OUTER: gemm_outer_product,
    GemmKernel.ROW_WISE: gemm_row_wise_product,
    GemmKernel.COL_WISE: gemm_col_wise_product,
    GemmKernel.BLOCKED: gemm_blocked,
}


def onnx_gemm(
    a: np.ndarray,
    b: np.ndarray,
    alpha: float = 1.0,
    beta: float = 0.0,
    trans_a: int = 0,
    trans_b: int = 0,
    c: Optional[np.ndarray] = None,
    kernel: GemmKernel | str = GemmKernel.INNER,
) -> np.ndarray:
    """ONNX-style GEMM on 2-D tensors; writes into ``c`` or a new tensor.

    M and K come from A's shape and N from B's shape as given.
    """
    gemm = _KERNELS[GemmKernel(kernel)]
    m, k = int(a.shape[0]), int(a.shape[1])
    n = int(b.shape[1])
    out = create_tensor((m, n), dtype=a.dtype) if c is None else c
    gemm(trans_a, trans_b, m, n, k, alpha, a, k, b, n, beta, out, n)
    return out


def add(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> None:
    """Write a + b element by element into c."""
    size = a.size
    c.flat[:size] = a.ravel() + b.ravel()[:size]


def subtract(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> None:
    """Write a - b element by element into c."""
    size = a.size
    c.flat[:size] = a.ravel() - b.ravel()[:size]


def multiply(a: np.ndarray, scalar, c: np.ndarray) -> None:
    """Write a * scalar element by element into c."""
    c.flat[: a.size] = a.ravel() * a.dtype.type(scalar)


def equals(a: np.ndarray, b: np.ndarray) -> bool:
    """True when both tensors have the same shape and the same elements."""
    return a.shape == b.shape and bool(np.all(a == b))


def elementwise(a: np.ndarray, f: Callable, c: np.ndarray) -> None:
    """Write f applied to each element of a into the same place in c."""
    for index in np.ndindex(a.shape):
        c[index] = f(a[index])


def elementwise_in_place(a: np.ndarray, f: Callable) -> None:
    """Replace each element of a with f of that element."""
    for index in np.ndindex(a.shape):
        a[index] = f(a[index])


def arg_max(a: np.ndarray) -> int:
    """Flat index of the first largest element."""
    if a.size == 0:
        raise ValueError("arg_max called on an empty tensor.")
    values = a.ravel()
    best_index = 0
    best = values[0]
    for index, value in enumerate(values[1:], start=1):
        if value > best:
            best, best_index = value, index
    return best_index


def sliding_window(
    in_shape: Sequence[int],
    out_shape: Sequence[int],
    kernel_shape: Sequence[int],
    strides: Sequence[int],
    dilations: Sequence[int],
    pads: Sequence[tuple[int, int]],
    window_f: WindowFunction,
) -> None:
    """Call ``window_f(window_indices, out_index)`` for every output position.

    ``window_indices`` lists the input indices under the kernel that fall
    inside the input; positions in the padding are left out.
    """
    total_rank = len(in_shape)
    spatial_rank = len(kernel_shape)
    kernel_positions = list(itertools.product(*(range(k) for k in kernel_shape)))

    for out_idx in itertools.product(*(range(int(d)) for d in out_shape)):
        window: list[tuple[int, ...]] = []
        for kernel_pos in kernel_positions:
            in_idx = [0] * total_rank
            in_idx[0] = out_idx[0]
            in_idx[1] = out_idx[1]
            for i in range(spatial_rank):
                pos = (
                    out_idx[i + 2] * strides[i]
                    - pads[i][0]
                    + kernel_pos[i] * dilations[i]
                )
                if pos < 0 or pos >= int(in_shape[i + 2]):
                    break
                in_idx[i + 2] = pos
            else:
                window.append(tuple(in_idx))
        window_f(window, tuple(out_idx))