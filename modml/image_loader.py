"""Loading images into N x C x H x W float tensors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

__all__ = [
    "DataLoaderConfig",
    "ImageLoaderConfig",
    "DataLoader",
    "RawImageBuffer",
    "ImageLoader",
]

_MODE_CHANNELS = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}


class DataLoaderConfig:
    """Base for the settings a data loader is given."""


@dataclass
class ImageLoaderConfig(DataLoaderConfig):
    """Where to read an image from and whether to keep its alpha channel."""

    image_path: str
    include_alpha_channel: bool = False


class DataLoader(ABC):
    """Reads external data and turns it into a tensor."""

    @abstractmethod
    def load(self, config: DataLoaderConfig) -> np.ndarray:
        """Load the data described by ``config`` as a tensor."""


@dataclass
class RawImageBuffer:
    """Interleaved 8-bit pixel data with its dimensions."""

    data: Optional[bytes]
    width: int
    height: int
    channels: int


def _native_pixels(image: Image.Image) -> np.ndarray:
    """Pixels as an H x W x C uint8 array in the image's own channel count."""
    mode = image.mode
    if mode not in _MODE_CHANNELS:
        has_alpha = "A" in image.getbands() or "transparency" in image.info
        if mode in ("1", "I", "I;16", "F"):
            mode = "LA" if has_alpha else "L"
        else:
            mode = "RGBA" if has_alpha else "RGB"
        image = image.convert(mode)
    pixels = np.asarray(image, dtype=np.uint8)
    if pixels.ndim == 2:
        pixels = pixels[:, :, None]
    return pixels


def _to_tensor(pixels: np.ndarray, output_channels: int) -> np.ndarray:
    """Normalise pixels to 0..1 and lay them out as 1 x C x H x W.

    At most the first three channels are copied; any further output
    channel stays zero.
    """
    height, width, channels = pixels.shape
    values = pixels.astype(np.float32) / np.float32(255.0)
    output = np.zeros((1, output_channels, height, width), dtype=np.float32)
    copied = min(channels, 3)
    output[0, :copied] = np.transpose(values[:, :, :copied], (2, 0, 1))
    return output


class ImageLoader(DataLoader):
    """Loads images from files or raw buffers into float tensors."""

    def load(self, config: DataLoaderConfig) -> np.ndarray:
        """Load the image file named by ``config``."""
        if not isinstance(config, ImageLoaderConfig):
            raise TypeError("ImageLoader needs an ImageLoaderConfig")
        try:
            with Image.open(config.image_path) as image:
                pixels = _native_pixels(image)
        except OSError as exc:
            raise ValueError(f"Failed to load image: {config.image_path}") from exc

        channels = pixels.shape[2]
        output_channels = channels
        if not config.include_alpha_channel and channels == 4:
            output_channels = 3
        return _to_tensor(pixels, output_channels)

    def load_raw(self, raw: RawImageBuffer) -> np.ndarray:
        """Load an interleaved pixel buffer; four channels lose their alpha."""
        if not raw.data:
            raise ValueError("ImageLoader: raw image data is null")
        size = raw.width * raw.height * raw.channels
        buffer = np.frombuffer(raw.data, dtype=np.uint8)
        if buffer.size < size:
            raise ValueError(
                f"ImageLoader: raw image data has {buffer.size} bytes, "
                f"expected {size}"
            )
        pixels = buffer[:size].reshape(raw.height, raw.width, raw.channels)
        output_channels = 3 if raw.channels == 4 else raw.channels
        return _to_tensor(pixels, output_channels)