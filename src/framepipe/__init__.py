"""Stream raw pixel frames into ffmpeg and get a video file out."""

from .channel import ExitStatus, ProcessChannel
from .config import EncoderConfig, build_ffmpeg_args
from .errors import (
    ChannelClosed,
    EncodingFailed,
    FramePipeError,
    FrameSizeMismatch,
    InvalidState,
    SessionFailed,
    SpawnFailed,
    WriteFailed,
)
from .pixels import BYTES_PER_PIXEL, Color, PixelFormat, encode_frame, get_color
from .session import EncoderSession, SessionState, start

__version__ = "0.1.0"

__all__ = [
    "BYTES_PER_PIXEL",
    "ChannelClosed",
    "Color",
    "EncoderConfig",
    "EncoderSession",
    "EncodingFailed",
    "ExitStatus",
    "FramePipeError",
    "FrameSizeMismatch",
    "InvalidState",
    "PixelFormat",
    "ProcessChannel",
    "SessionFailed",
    "SessionState",
    "SpawnFailed",
    "WriteFailed",
    "build_ffmpeg_args",
    "encode_frame",
    "get_color",
    "start",
]
