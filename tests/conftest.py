"""
Test Configuration
==================

Shared fixtures for the framepipe test-suite. Channel tests use the
running Python interpreter as a stand-in child process; tests that need a
real encoder are marked ``requires_ffmpeg``.
"""

import shutil
import sys
from typing import Optional

import pytest

from framepipe.channel import ExitStatus
from framepipe.errors import ChannelClosed, InvalidState, WriteFailed

# Child that copies its stdin into the file given as first argument.
CAT_TO_FILE = (
    "import sys\n"
    "with open(sys.argv[1], 'wb') as f:\n"
    "    f.write(sys.stdin.buffer.read())\n"
)

requires_ffmpeg = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg and ffprobe are required",
)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")


def python_child(script: str, *args: str) -> list[str]:
    """Command line running ``script`` with the current interpreter."""
    return [sys.executable, "-c", script, *args]


class FakeChannel:
    """In-memory stand-in for ProcessChannel.

    ``fail_on_write`` makes the n-th write (1-based) raise WriteFailed. Any
    write after a failure fails the test.
    """

    def __init__(self, args, returncode: int = 0, fail_on_write: Optional[int] = None,
                 diagnostics: str = ""):
        self.args = list(args)
        self.pid = 4242
        self.returncode = returncode
        self.fail_on_write = fail_on_write
        self.diagnostics = diagnostics
        self.written: list[bytes] = []
        self.write_calls = 0
        self.failed = False
        self.input_closed = False
        self.wait_calls = 0
        self.killed = False

    @property
    def data(self) -> bytes:
        return b"".join(self.written)

    def write(self, data: bytes) -> None:
        assert not self.failed, "write attempted after a failed write"
        if self.input_closed:
            raise ChannelClosed("closed")
        self.write_calls += 1
        if self.fail_on_write is not None and self.write_calls == self.fail_on_write:
            self.failed = True
            raise WriteFailed("Broken pipe", process_exited=True, diagnostics=self.diagnostics)
        self.written.append(bytes(data))

    def close_input(self) -> None:
        self.input_closed = True

    def wait(self) -> ExitStatus:
        if self.wait_calls:
            raise InvalidState("already waited")
        self.wait_calls += 1
        return ExitStatus(self.returncode)

    def kill(self) -> None:
        self.input_closed = True
        self.killed = True


@pytest.fixture
def fake_channels():
    """Factory recording every FakeChannel it creates."""

    class Factory:
        def __init__(self):
            self.created: list[FakeChannel] = []
            self.options = {}

        def __call__(self, args):
            channel = FakeChannel(args, **self.options)
            self.created.append(channel)
            return channel

        @property
        def last(self) -> FakeChannel:
            return self.created[-1]

    return Factory()
