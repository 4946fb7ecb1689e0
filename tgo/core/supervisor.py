"""Supervision of the ``go test -json`` child process.

The stream driver only needs the ``EventSource`` protocol: raw stdout
lines, a way to ask the process to stop, and its exit status.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterator, Sequence
from typing import IO, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class EventSource(Protocol):
    """Protocol for producers of ``go test -json`` lines."""

    def lines(self) -> Iterator[bytes]:
        """Yield raw input lines until the stream ends."""
        ...

    def terminate(self) -> None:
        """Ask the producer to stop."""
        ...

    def kill(self) -> None:
        """Force the producer to stop."""
        ...

    def close(self) -> None:
        """Release the input stream."""
        ...

    def wait(self, timeout: float | None = None) -> int:
        """Wait for the producer to exit and return its exit status.

        Raises ``subprocess.TimeoutExpired`` when ``timeout`` elapses.
        """
        ...


class GoTestProcess:
    """A running ``<bin> test -json <args...>`` process.

    stdout is piped to tgo; stderr goes straight to the terminal.

    Parameters
    ----------
    process:
        The started ``Popen`` object.
    """

    def __init__(self, process: subprocess.Popen[bytes]) -> None:
        if process.stdout is None:
            raise ValueError("test process stdout is not piped")
        self._process = process
        self._stdout: IO[bytes] = process.stdout

    @classmethod
    def start(cls, bin: str, args: Sequence[str]) -> GoTestProcess:
        """Spawn the test process.

        Raises ``OSError`` if the binary cannot be executed.
        """
        cmd = [bin, "test", "-json", *args]
        logger.debug("Starting %s", cmd)
        process = subprocess.Popen(cmd, stdout=subprocess.PIPE)
        return cls(process)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def stdout(self) -> IO[bytes]:
        return self._stdout

    def lines(self) -> Iterator[bytes]:
        yield from self.stdout

    def terminate(self) -> None:
        if self._process.poll() is None:
            logger.debug("Terminating test process %d", self.pid)
            self._process.terminate()

    def kill(self) -> None:
        if self._process.poll() is None:
            logger.debug("Killing test process %d", self.pid)
            self._process.kill()

    def wait(self, timeout: float | None = None) -> int:
        return self._process.wait(timeout=timeout)

    def close(self) -> None:
        self.stdout.close()
