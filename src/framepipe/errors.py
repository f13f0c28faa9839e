"""Exceptions raised by the frame pipeline."""

from typing import Optional


class FramePipeError(Exception):
    """Base class for every error raised by framepipe."""


class SpawnFailed(FramePipeError):
    """The encoder executable could not be launched."""

    def __init__(self, executable: str, reason: str):
        self.executable = executable
        self.reason = reason
        super().__init__(f"Failed to start encoder '{executable}': {reason}")


class FrameSizeMismatch(FramePipeError, ValueError):
    """A frame buffer does not hold exactly width * height pixels."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Frame has {actual} pixels, expected {expected}")


class ChannelClosed(FramePipeError):
    """The encoder input was already closed."""


class WriteFailed(FramePipeError):
    """Writing frame bytes into the encoder input failed.

    ``process_exited`` is set when the pipe was broken, which means the
    encoder stopped reading (usually because it exited). ``diagnostics``
    holds whatever the encoder printed on stderr up to that point.
    """

    def __init__(self, reason: str, process_exited: bool = False, diagnostics: str = ""):
        self.reason = reason
        self.process_exited = process_exited
        self.diagnostics = diagnostics
        message = f"Failed to write to encoder: {reason}"
        if process_exited:
            message += " (encoder is no longer reading its input)"
        super().__init__(message)


class EncodingFailed(FramePipeError):
    """The encoder exited unsuccessfully."""

    def __init__(self, status, diagnostics: str = ""):
        self.status = status
        self.diagnostics = diagnostics
        message = f"Encoder {status.describe()}"
        if diagnostics:
            message += f":\n{diagnostics}"
        super().__init__(message)

    @property
    def returncode(self) -> int:
        return self.status.returncode


class InvalidState(FramePipeError):
    """An operation was called outside of its valid lifecycle state."""


class SessionFailed(InvalidState):
    """The session already failed; ``error`` is the first failure."""

    def __init__(self, error: Optional[BaseException]):
        self.error = error
        super().__init__(f"Encoder session already failed: {error}")
