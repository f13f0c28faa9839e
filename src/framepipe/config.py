"""Encoder configuration and the ffmpeg invocation built from it."""

import numbers
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .pixels import BYTES_PER_PIXEL, PixelFormat

FFMPEG_ENV_VAR = "FRAMEPIPE_FFMPEG"
DEFAULT_LOGLEVEL = "info"


def default_executable() -> str:
    """ffmpeg binary to launch, overridable through ``FRAMEPIPE_FFMPEG``."""
    return os.environ.get(FFMPEG_ENV_VAR) or "ffmpeg"


@dataclass(frozen=True)
class EncoderConfig:
    output_path: Union[str, Path]
    width: int
    height: int
    fps: int
    pixel_format: PixelFormat = PixelFormat.BGRA
    executable: str = field(default_factory=default_executable)
    loglevel: str = DEFAULT_LOGLEVEL
    extra_output_args: tuple[str, ...] = ()

    def __post_init__(self):
        for name in ("width", "height", "fps"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
            object.__setattr__(self, name, int(value))
        if not str(self.output_path):
            raise ValueError("output_path must not be empty")
        # Frozen: normalise through object.__setattr__
        object.__setattr__(self, "pixel_format", PixelFormat.parse(self.pixel_format))
        object.__setattr__(self, "extra_output_args", tuple(self.extra_output_args))

    @property
    def frame_size(self) -> int:
        """Number of pixels in one frame."""
        return self.width * self.height

    @property
    def frame_bytes(self) -> int:
        return self.frame_size * BYTES_PER_PIXEL


def build_ffmpeg_args(config: EncoderConfig) -> list[str]:
    """Build the ffmpeg command line for ``config``.

    The list only depends on the configuration, so a session can always be
    reproduced by hand:

        ffmpeg -loglevel info -nostats -y
               -f rawvideo -pix_fmt bgra -s WxH -framerate FPS -i -
               -an [extra output args] OUTPUT

    No codec is selected; ffmpeg picks the default for the output container.
    """
    return [
        config.executable,
        "-loglevel", config.loglevel,
        "-nostats",  # no progress lines in the captured diagnostics
        "-y",  # overwrite output
        # Input: raw frames on stdin, dimensions passed out-of-band
        "-f", "rawvideo",
        "-pix_fmt", config.pixel_format.value,
        "-s", f"{config.width}x{config.height}",
        "-framerate", str(config.fps),
        "-i", "-",
        # Output
        "-an",
        *config.extra_output_args,
        str(config.output_path),
    ]
