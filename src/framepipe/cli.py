"""CLI entry point: render the bouncing-square demo video."""

import logging
import shutil

import click
from tqdm import tqdm

from .config import default_executable
from .demo import bouncing_square_frames
from .errors import FramePipeError, WriteFailed
from .session import EncoderSession, start


@click.command()
@click.argument("output", type=click.Path(dir_okay=False), default="out.mp4")
@click.option("--width", default=640, type=click.IntRange(min=1), help="Video width in pixels.")
@click.option("--height", default=360, type=click.IntRange(min=1), help="Video height in pixels.")
@click.option("--fps", default=60, type=click.IntRange(min=1), help="Frames per second.")
@click.option("--duration", default=10, type=click.IntRange(min=0), help="Video duration in seconds.")
@click.option("--size", default=50, type=click.IntRange(min=1), help="Square edge length in pixels.")
@click.option("--ffmpeg", "ffmpeg_path", default=None,
              help="FFmpeg executable (default: $FRAMEPIPE_FFMPEG or 'ffmpeg').")
@click.option("-v", "--verbose", is_flag=True, help="Log encoder lifecycle events.")
def main(
    output: str,
    width: int,
    height: int,
    fps: int,
    duration: int,
    size: int,
    ffmpeg_path: str | None,
    verbose: bool,
) -> None:
    """Render a square bouncing around the frame into OUTPUT."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    executable = ffmpeg_path or default_executable()
    # Pre-flight: check FFmpeg
    if not shutil.which(executable):
        raise click.UsageError(
            f"FFmpeg not found ('{executable}'). Install it:\n"
            "  macOS:   brew install ffmpeg\n"
            "  Ubuntu:  sudo apt install ffmpeg\n"
            "  Windows: https://ffmpeg.org/download.html"
        )

    total_frames = fps * duration
    click.echo(f"Rendering {total_frames} frames at {width}x{height} ({fps}fps x {duration}s)")

    try:
        video = start(output, width, height, fps, executable=executable)
    except FramePipeError as e:
        raise click.UsageError(str(e)) from e

    try:
        for frame in tqdm(
            bouncing_square_frames(width, height, total_frames, size=size),
            total=total_frames, unit="frame", desc="Encoding",
        ):
            video.send_frame(frame)
    except WriteFailed:
        # FFmpeg stopped reading; its exit status and stderr tell why.
        _finalize(video)
        raise
    except BaseException:
        video.abort()
        raise
    _finalize(video)

    click.echo(f"Video saved to: {output}")


def _finalize(video: EncoderSession) -> None:
    """Finalize the video, reporting FFmpeg diagnostics on failure."""
    try:
        video.finalize()
    except FramePipeError as e:
        raise click.ClickException(str(e)) from e


if __name__ == "__main__":
    main()
