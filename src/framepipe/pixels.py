"""Pixel codec: serialize packed 32-bit pixels into raw frame bytes."""

from enum import Enum
from typing import Sequence, Union

import numpy as np

from .errors import FrameSizeMismatch

BYTES_PER_PIXEL = 4
_UINT32_MAX = 0xFFFF_FFFF

# A packed pixel value, see PixelFormat for the channel layout.
Color = int

FrameBuffer = Union[Sequence[int], np.ndarray]


class PixelFormat(str, Enum):
    """Raw input layout announced to ffmpeg.

    Pixels are packed into one 32-bit integer and written little-endian, so
    the byte order ffmpeg sees is the reverse of the hex notation.
    """

    BGRA = "bgra"  # 0xAARRGGBB
    RGBA = "rgba"  # 0xAABBGGRR
    BGR0 = "bgr0"  # 0x00RRGGBB

    @classmethod
    def parse(cls, value: Union[str, "PixelFormat"]) -> "PixelFormat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(f.value for f in cls)
            raise ValueError(
                f"Unsupported pixel format '{value}' (choose from {choices})"
            ) from None


def get_color(
    r: int,
    g: int,
    b: int,
    a: int = 255,
    pixel_format: PixelFormat = PixelFormat.BGRA,
) -> Color:
    """Pack separate channel bytes into one pixel value for ``pixel_format``."""
    for name, channel in (("r", r), ("g", g), ("b", b), ("a", a)):
        if not 0 <= channel <= 255:
            raise ValueError(f"Channel {name}={channel} is out of range 0-255")

    pixel_format = PixelFormat.parse(pixel_format)
    if pixel_format is PixelFormat.RGBA:
        return (a << 24) | (b << 16) | (g << 8) | r
    if pixel_format is PixelFormat.BGR0:
        return (r << 16) | (g << 8) | b
    return (a << 24) | (r << 16) | (g << 8) | b


def _as_uint32(arr: np.ndarray) -> np.ndarray:
    if arr.dtype.kind == "u" and arr.dtype.itemsize <= 4:
        return arr.astype("<u4", copy=False).ravel()
    if arr.dtype.kind not in "iu":
        if arr.size == 0:
            return arr.astype("<u4").ravel()
        raise ValueError(f"Pixel values must be integers, got dtype {arr.dtype}")
    if arr.size and (arr.min() < 0 or arr.max() > _UINT32_MAX):
        raise ValueError("Pixel values must fit in an unsigned 32-bit integer")
    return arr.astype("<u4").ravel()


def encode_frame(pixels: FrameBuffer, expected_count: int) -> bytes:
    """Return the raw bytes of one frame, 4 little-endian bytes per pixel.

    The element count is checked before anything is converted so a
    malformed frame never produces output.
    """
    arr = np.asarray(pixels)
    if arr.size != expected_count:
        raise FrameSizeMismatch(expected_count, int(arr.size))
    return _as_uint32(arr).tobytes()
