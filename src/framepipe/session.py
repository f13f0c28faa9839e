"""Encoder session: the public lifecycle around one ffmpeg process."""

import logging
import weakref
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from .channel import ProcessChannel
from .config import EncoderConfig, build_ffmpeg_args
from .errors import EncodingFailed, InvalidState, SessionFailed
from .pixels import FrameBuffer, encode_frame

logger = logging.getLogger(__name__)

ChannelFactory = Callable[[Sequence[str]], ProcessChannel]


class SessionState(Enum):
    OPEN = "open"
    FAILED = "failed"
    FINALIZED = "finalized"


def _reap_orphan(channel: ProcessChannel) -> None:
    logger.warning(
        "Encoder session for pid %d was discarded without finalize(); killing it",
        channel.pid,
    )
    channel.kill()


class EncoderSession:
    """Streams frames into an ffmpeg process writing ``config.output_path``.

    Usage::

        with framepipe.start("out.mp4", 640, 360, 60) as video:
            for frame in frames:
                video.send_frame(frame)

    Leaving the ``with`` block finalizes the video, or kills ffmpeg when an
    exception escaped. Without a ``with`` block call :meth:`finalize`
    (or :meth:`abort`) explicitly.
    """

    def __init__(
        self,
        config: EncoderConfig,
        channel_factory: ChannelFactory = ProcessChannel,
    ):
        self.config = config
        self.frame_count = 0
        self._state = SessionState.OPEN
        self._error: Optional[BaseException] = None

        self.channel = channel_factory(build_ffmpeg_args(config))
        self._reaper = weakref.finalize(self, _reap_orphan, self.channel)
        logger.info(
            "Encoding %dx%d @ %d fps to %s",
            config.width, config.height, config.fps, config.output_path,
        )

    @classmethod
    def start(
        cls,
        output_path: Union[str, Path],
        width: int,
        height: int,
        fps: int,
        channel_factory: ChannelFactory = ProcessChannel,
        **options,
    ) -> "EncoderSession":
        """Build a configuration and spawn the encoder for it.

        ``options`` are passed on to :class:`EncoderConfig`
        (``pixel_format``, ``executable``, ``loglevel``, ``extra_output_args``).
        """
        config = EncoderConfig(output_path, width, height, fps, **options)
        return cls(config, channel_factory=channel_factory)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        """The error that moved the session to FAILED, if any."""
        return self._error

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    @property
    def fps(self) -> int:
        return self.config.fps

    @property
    def resolution(self) -> tuple[int, int]:
        return self.config.width, self.config.height

    def send_frame(self, pixels: FrameBuffer) -> None:
        """Encode one frame and write it to ffmpeg.

        ``pixels`` must hold exactly ``width * height`` packed values in
        row-major order. A wrong-sized frame raises FrameSizeMismatch and
        leaves the session usable. Any write error is final.
        """
        if self._state is SessionState.FINALIZED:
            raise InvalidState("Cannot send frames to a finalized session")
        if self._state is SessionState.FAILED:
            raise SessionFailed(self._error) from self._error

        data = encode_frame(pixels, self.config.frame_size)
        try:
            self.channel.write(data)
        except BaseException as e:
            # A partially written frame would desync the stream
            self._fail(e)
            raise
        self.frame_count += 1

    def finalize(self) -> None:
        """Close ffmpeg's input, wait for it and check the exit status."""
        if self._state is SessionState.FINALIZED:
            raise InvalidState("Session is already finalized")

        was_failed = self._state is SessionState.FAILED
        self._state = SessionState.FINALIZED
        self._reaper.detach()
        try:
            self.channel.close_input()
            status = self.channel.wait()
        except BaseException:
            self.channel.kill()
            raise

        if not status.success:
            raise EncodingFailed(status, self.channel.diagnostics)
        if was_failed:
            # ffmpeg finished cleanly but not every frame reached it
            raise SessionFailed(self._error) from self._error
        logger.info(
            "Finished %s (%d frames)", self.config.output_path, self.frame_count,
        )

    def abort(self) -> None:
        """Kill ffmpeg without finalizing the video."""
        if self._state is SessionState.FINALIZED:
            return
        self._state = SessionState.FINALIZED
        self._reaper.detach()
        self.channel.kill()

    def _fail(self, error: BaseException) -> None:
        logger.debug("Encoder session failed after %d frames: %s", self.frame_count, error)
        self._state = SessionState.FAILED
        self._error = error

    def __enter__(self) -> "EncoderSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()
        elif self._state is not SessionState.FINALIZED:
            self.finalize()


def start(
    output_path: Union[str, Path],
    width: int,
    height: int,
    fps: int,
    **options,
) -> EncoderSession:
    """Start encoding a video. Alias for :meth:`EncoderSession.start`."""
    return EncoderSession.start(output_path, width, height, fps, **options)
