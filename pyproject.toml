[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "modml"
version = "0.1.0"
description = "Tensor operations, graph nodes, layered model execution and image loading for ONNX-style compute graphs on NumPy arrays."
requires-python = ">=3.10"
keywords = ["inference", "onnx", "tensor", "neural-network", "gemm", "pooling", "image"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["modml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
