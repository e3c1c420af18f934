# modml

`modml` runs small ONNX-style compute graphs. Tensors are NumPy arrays. A
graph is a set of nodes. Each node reads named tensors from a shared
dictionary and writes named tensors back to it.

## What it contains

- **Tensor operations** (`modml.operations`)
  - `create_tensor(shape, data=None, dtype=None)` builds a tensor. Without
    data it is filled with zeros.
  - `random_tensor(shape, low, high, dtype, rng)` fills a tensor with random
    values.
  - `add`, `subtract` and `multiply` (by a scalar) write their result into an
    output tensor you pass in.
  - `equals`, `elementwise`, `elementwise_in_place` and `arg_max`. `arg_max`
    returns the flat index of the first largest element and raises
    `ValueError` on an empty tensor.
  - GEMM kernels: `gemm_inner_product`, `gemm_outer_product`,
    `gemm_row_wise_product`, `gemm_col_wise_product` and `gemm_blocked`.
    `gemm_blocked` rejects transposition.
  - `onnx_gemm(a, b, alpha, beta, trans_a, trans_b, c, kernel)` is the
    ONNX-style entry point. It writes into `c`, or into a new tensor when `c`
    is `None`. Choose the implementation with a `GemmKernel` value or its
    string name: `"inner"`, `"outer"`, `"row_wise"`, `"col_wise"` or
    `"blocked"`.
  - `sliding_window` calls a function for every output position of a pooling
    window. It passes the input indices that lie inside the input.

- **Graph nodes**
  - `modml.constant.ConstantNode` stores a fixed tensor.
  - `modml.add.AddNode` adds two tensors and broadcasts over trailing
    dimensions. `modml.add.broadcast_addition` is the same addition as a plain
    function.
  - `modml.avg_pool.AvgPoolNode` does average pooling, with `auto_pad`,
    `ceil_mode`, `count_include_pad`, `dilations`, `pads` and `strides`.

  Each node can be built directly or from a JSON node description (a `dict`)
  with `from_json`. `modml.node_utils` holds the `Node` base class and the
  pooling helpers `compute_pool_attributes`, `compute_pool_output_shape` and
  `compute_pool_pad_begin_end`.

- **Tensor descriptions**
  - `modml.parser_helper.handle_tensor(init, dtype)` builds a tensor from a
    serialized tensor description. It reads the shape from `dims` and the
    elements from either base64 `rawData` or a typed field such as
    `floatData` or `int64Data`.

- **Model execution**
  - `modml.model.Model(nodes, iomap, outputs)` keeps a list of nodes, the
    stored tensors, and the names of its outputs.
  - `topological_sort()` groups the nodes into dependency layers. It raises
    `RuntimeError` when the graph has a cycle or has no nodes.
  - `infer(inputs)` runs the layers on copies of the stored tensors and the
    inputs. It returns the named outputs.

- **Images**
  - `modml.image_loader.ImageLoader.load(ImageLoaderConfig(path,
    include_alpha_channel=False))` reads an image file into a `[1, C, H, W]`
    float32 tensor with values in `0..1`.
  - `ImageLoader.load_raw(RawImageBuffer(...))` does the same for an
    interleaved 8-bit pixel buffer.
  - `modml.resize_and_crop.ImageResizeAndCropper.resize(config)` loads an
    image as RGB and scales it bilinearly so that its short side is 256
    pixels. It returns a `ResizedImage`.
  - `ImageResizeAndCropper.crop(data, width, height, channels, crop_size)`
    returns the centred square region as bytes.

## Installation

```
pip install .
```

To also install the test dependencies:

```
pip install ".[test]"
```

## Usage

```python
import numpy as np
from modml.operations import create_tensor, onnx_gemm, arg_max
from modml.add import AddNode
from modml.model import Model

a = create_tensor([2, 3], [1, 2, 3, 4, 5, 6], np.float32)
b = create_tensor([3, 2], [7, 8, 9, 10, 11, 12], np.float32)
y = onnx_gemm(a, b, 1.0, 0.0, 0, 0, None, "inner")
# y == [[58, 64], [139, 154]]

bias = create_tensor([2], [1, 1], np.float32)
model = Model([AddNode("Y", "bias", "Z")], {"bias": bias}, ["Z"])
result = model.infer({"Y": y})
print(result["Z"], arg_max(result["Z"]))
```

Images:

```python
from modml.image_loader import ImageLoader, ImageLoaderConfig
from modml.resize_and_crop import ImageResizeAndCropper

tensor = ImageLoader().load(ImageLoaderConfig("photo.png"))

cropper = ImageResizeAndCropper()
resized = cropper.resize(ImageLoaderConfig("photo.png"))
square = cropper.crop(resized.data, resized.width, resized.height,
                      resized.channels, 224)
```

## What it does not do

- It does not read model files. You assemble a `Model` in code from node
  objects, either built directly or with each node's `from_json`.
- Only the node types listed above are available.
- There is no command-line program.

## Running the tests

```
pytest
```