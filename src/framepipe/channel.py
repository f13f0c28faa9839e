"""Process channel: stream raw bytes into a child process's stdin."""

import logging
import signal as _signal
import subprocess
import threading
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import ChannelClosed, InvalidState, SpawnFailed, WriteFailed

logger = logging.getLogger(__name__)

MAX_DIAGNOSTICS = 1024 * 1024  # 1 MB cap on captured stderr
_STDERR_JOIN_TIMEOUT = 5


@dataclass(frozen=True)
class ExitStatus:
    """Termination status of a child process.

    ``returncode`` follows :mod:`subprocess`: negative when the process was
    killed by a signal.
    """

    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def code(self) -> Optional[int]:
        return self.returncode if self.returncode >= 0 else None

    @property
    def signal(self) -> Optional[int]:
        return -self.returncode if self.returncode < 0 else None

    def describe(self) -> str:
        if self.signal is not None:
            try:
                name = _signal.Signals(self.signal).name
            except ValueError:
                name = str(self.signal)
            return f"was terminated by signal {name}"
        return f"exited with code {self.returncode}"


class ProcessChannel:
    """Owns one spawned process; stdin is the write end of the stream.

    Stderr is drained by a background thread so the child never blocks on
    a full diagnostics pipe. stdout is discarded.
    """

    def __init__(self, args: Sequence[str]):
        self.args = [str(a) for a in args]
        self._stderr_chunks: list[bytes] = []
        self._stderr_size = 0
        self._stderr_lock = threading.Lock()
        self._input_closed = False
        self._status: Optional[ExitStatus] = None

        try:
            self.process = subprocess.Popen(
                self.args,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise SpawnFailed(self.args[0], e.strerror or str(e)) from e
        logger.debug("Spawned %s (pid %d)", self.args[0], self.process.pid)

        self._stderr_thread = threading.Thread(
            target=self._drain_stderr,
            name=f"framepipe-stderr-{self.process.pid}",
            daemon=True,
        )
        self._stderr_thread.start()

    def _drain_stderr(self) -> None:
        """Read stderr continuously, keeping at most MAX_DIAGNOSTICS bytes."""
        for chunk in iter(lambda: self.process.stderr.read(4096), b""):
            with self._stderr_lock:
                if self._stderr_size < MAX_DIAGNOSTICS:
                    self._stderr_chunks.append(chunk)
                    self._stderr_size += len(chunk)
        self.process.stderr.close()

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self.process.poll()

    @property
    def input_closed(self) -> bool:
        return self._input_closed

    @property
    def diagnostics(self) -> str:
        """Everything captured from the child's stderr so far."""
        with self._stderr_lock:
            data = b"".join(self._stderr_chunks)
        return data.decode(errors="replace")

    def is_running(self) -> bool:
        return self.process.poll() is None

    def write(self, data: bytes) -> None:
        """Write all of ``data`` to the child's stdin.

        Blocks while the pipe is full, so a slow consumer throttles the
        producer.
        """
        if self._input_closed:
            raise ChannelClosed("Encoder input is already closed")
        try:
            self.process.stdin.write(data)
            self.process.stdin.flush()
        except BrokenPipeError as e:
            raise WriteFailed(
                e.strerror or str(e), process_exited=True, diagnostics=self.diagnostics,
            ) from e
        except OSError as e:
            raise WriteFailed(e.strerror or str(e), diagnostics=self.diagnostics) from e

    def close_input(self) -> None:
        """Signal end of stream. Does not wait for the child."""
        if self._input_closed:
            return
        self._input_closed = True
        try:
            self.process.stdin.close()
        except BrokenPipeError:
            # Buffered bytes could not be flushed; the exit status reports why.
            logger.debug("Encoder pid %d stopped reading before input was closed", self.pid)
        logger.debug("Closed input of pid %d", self.pid)

    def wait(self) -> ExitStatus:
        """Block until the child exits and return its status. Call once."""
        if self._status is not None:
            raise InvalidState(f"Process {self.pid} was already waited for")
        returncode = self.process.wait()
        self._stderr_thread.join(timeout=_STDERR_JOIN_TIMEOUT)
        self._status = ExitStatus(returncode)
        logger.debug("Process %d %s", self.pid, self._status.describe())
        return self._status

    def kill(self) -> None:
        """Best-effort teardown: close stdin, kill the child and reap it."""
        if not self._input_closed:
            self._input_closed = True
            try:
                self.process.stdin.close()
            except OSError as e:
                logger.debug("Ignoring error closing input of pid %d: %s", self.pid, e)
        if self.process.poll() is None:
            logger.warning("Killing encoder process %d", self.pid)
            self.process.kill()
        self.process.wait()
        self._stderr_thread.join(timeout=_STDERR_JOIN_TIMEOUT)
