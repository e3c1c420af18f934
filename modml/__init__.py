"""Tensor operations, graph nodes, layered model execution and image loading on NumPy arrays."""

__version__ = "0.1.0"