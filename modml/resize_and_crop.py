"""Resizing images to a fixed short side and taking centred square crops."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
from PIL import Image

from modml.image_loader import DataLoaderConfig, ImageLoaderConfig

__all__ = ["ResizeAndCrop", "ResizedImage", "ImageResizeAndCropper"]

_RESIZE_SHORT = 256
_CHANNELS = 3


@dataclass
class ResizedImage:
    """Interleaved 8-bit pixel data of a resized image with its dimensions."""

    data: bytes
    width: int
    height: int
    channels: int


class ResizeAndCrop(ABC):
    """Prepares image data for a model by resizing and cropping it."""

    @abstractmethod
    def resize(self, config: DataLoaderConfig) -> ResizedImage:
        """Load the image described by ``config`` and resize it."""

    @abstractmethod
    def crop(self, data, width: int, height: int, channels: int, crop_size: int) -> bytes:
        """Cut a centred ``crop_size`` square out of interleaved pixel data."""


def _scaled_side(long_side: int, short_side: int) -> int:
    """Long side after scaling the short side to the target, in single precision."""
    factor = np.float32(_RESIZE_SHORT) / np.float32(short_side)
    return int(np.float32(long_side) * factor)


class ImageResizeAndCropper(ResizeAndCrop):
    """Resizes so the short side is 256 pixels, then centre-crops."""

    def resize(self, config: DataLoaderConfig) -> ResizedImage:
        """Load the image as RGB and scale it, keeping its aspect ratio."""
        if not isinstance(config, ImageLoaderConfig):
            raise TypeError("ImageResizeAndCropper needs an ImageLoaderConfig")
        try:
            with Image.open(config.image_path) as image:
                rgb = image.convert("RGB")
        except OSError as exc:
            raise ValueError(f"Failed to load image: {config.image_path}") from exc

        width, height = rgb.size
        if width < height:
            new_width = _RESIZE_SHORT
            new_height = _scaled_side(height, width)
        else:
            new_height = _RESIZE_SHORT
            new_width = _scaled_side(width, height)

        resized = rgb.resize((new_width, new_height), Image.Resampling.BILINEAR)
        pixels = np.asarray(resized, dtype=np.uint8)
        return ResizedImage(pixels.tobytes(), new_width, new_height, _CHANNELS)

    def crop(self, data, width: int, height: int, channels: int, crop_size: int) -> bytes:
        """Return the centred ``crop_size`` x ``crop_size`` region as bytes."""
        if width < crop_size or height < crop_size:
            raise ValueError("Image is smaller than the crop size")
        buffer = np.frombuffer(data, dtype=np.uint8)
        expected = width * height * channels
        if buffer.size < expected:
            raise ValueError(
                f"image data has {buffer.size} bytes, expected {expected}"
            )
        pixels = buffer[:expected].reshape(height, width, channels)
        x_offset = (width - crop_size) // 2
        y_offset = (height - crop_size) // 2
        region = pixels[y_offset : y_offset + crop_size, x_offset : x_offset + crop_size]
        return np.ascontiguousarray(region).tobytes()