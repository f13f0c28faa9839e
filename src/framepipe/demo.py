"""Demo frame producer: a square bouncing around the frame."""

from typing import Iterator

import numpy as np

from .pixels import Color, PixelFormat, get_color

GREEN = get_color(0, 255, 0, 255, PixelFormat.BGRA)


def draw_rect(frame: np.ndarray, x: int, y: int, w: int, h: int, color: Color) -> None:
    """Fill a w x h rectangle with its top-left corner at (x, y), clipped to the frame."""
    height, width = frame.shape
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(width, x + w), min(height, y + h)
    if x0 < x1 and y0 < y1:
        frame[y0:y1, x0:x1] = color


def bouncing_square_frames(
    width: int,
    height: int,
    count: int,
    size: int = 50,
    color: Color = GREEN,
    background: Color = 0,
) -> Iterator[np.ndarray]:
    """Yield ``count`` frames of a square moving one pixel per frame diagonally.

    The square reverses direction on each axis when it reaches an edge. The
    same buffer is reused between frames; copy it to keep one.
    """
    frame = np.full((height, width), background, dtype=np.uint32)
    x, y = 0, 0
    dx, dy = 1, 1
    max_x = max(0, width - size)
    max_y = max(0, height - size)

    for _ in range(count):
        frame.fill(background)
        draw_rect(frame, x, y, size, size, color)
        yield frame

        if 0 <= x + dx <= max_x:
            x += dx
        else:
            dx = -dx
        if 0 <= y + dy <= max_y:
            y += dy
        else:
            dy = -dy
