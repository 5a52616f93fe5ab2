"""Launching UCI engine executables.

The session layer only needs a readable and a writable stream; this
module provides them for a real executable via pexpect, which handles
PTY allocation and buffering so engines flush their output line by line.
"""

import shutil
import time
from collections.abc import Sequence
from pathlib import Path

import pexpect
from loguru import logger

from uciharness.configs.schema import SessionConfig
from uciharness.uci.session import EngineSession


class EngineProcess:
    """A running engine executable exposing line-oriented streams.

    The same object serves as the session's reader, writer and process
    handle. Reads block without timeout: an engine searching with
    ``go infinite`` may stay silent for a long time.
    """

    def __init__(
        self,
        binary_path: str | Path,
        args: Sequence[str] = (),
        *,
        encoding: str = "utf-8",
    ) -> None:
        """Start the engine.

        Args:
            binary_path: Path to the engine executable (or a name on PATH).
            args: Extra command-line arguments for the engine.
            encoding: Text encoding of the engine's streams.

        Raises:
            FileNotFoundError: If the executable cannot be found.
        """
        resolved = _resolve_binary(binary_path)
        self.binary_path = resolved
        self.args = list(args)

        logger.debug(f"Starting UCI engine: {resolved} {' '.join(self.args)}".rstrip())
        self._child: pexpect.spawn | None = pexpect.spawn(
            str(resolved),
            self.args,
            encoding=encoding,
            codec_errors="replace",
            timeout=None,
            echo=False,
        )

    @property
    def pid(self) -> int | None:
        return self._child.pid if self._child is not None else None

    def readline(self) -> str:
        """Return the next output line without line terminator, ``""`` at EOF."""
        if self._child is None:
            return ""
        line = self._child.readline()
        if not line:
            return ""
        # PTYs translate "\n" into "\r\n"; keep a bare "\n" so blank
        # lines are not mistaken for end of stream.
        return line.rstrip("\r\n") + "\n"

    def write(self, text: str) -> None:
        if self._child is None:
            raise ValueError("Engine process is closed")
        self._child.send(text)

    def flush(self) -> None:
        """Writes go straight to the PTY; nothing is buffered."""

    def is_alive(self) -> bool:
        return self._child is not None and self._child.isalive()

    def close(self, timeout: float = 2.0) -> None:
        """Wait up to ``timeout`` seconds for the engine to exit, then kill it."""
        if self._child is None:
            return
        child, self._child = self._child, None
        deadline = time.monotonic() + timeout
        while child.isalive() and time.monotonic() < deadline:
            time.sleep(0.05)
        if child.isalive():
            logger.debug(f"Engine {self.binary_path.name} ignored quit, terminating")
            child.terminate(force=True)
        child.close(force=True)
        logger.debug(f"Engine {self.binary_path.name} exited with status {child.exitstatus}")

    @property
    def name(self) -> str:
        return f"UCI({self.binary_path.name})"


def _resolve_binary(binary_path: str | Path) -> Path:
    path = Path(binary_path)
    if path.exists():
        return path
    found = shutil.which(str(binary_path))
    if found is None:
        raise FileNotFoundError(f"Engine binary not found: {binary_path}")
    return Path(found)


def spawn_engine(
    binary_path: str | Path,
    args: Sequence[str] = (),
    *,
    config: SessionConfig | None = None,
) -> EngineProcess:
    """Start an engine executable and return its process wrapper."""
    encoding = config.encoding if config is not None else "utf-8"
    return EngineProcess(binary_path, args, encoding=encoding)


def open_session(
    binary_path: str | Path,
    args: Sequence[str] = (),
    *,
    config: SessionConfig | None = None,
) -> EngineSession:
    """Start an engine and wrap it in a new :class:`EngineSession`.

    The session owns the process: closing the session stops the engine.
    """
    process = spawn_engine(binary_path, args, config=config)
    return EngineSession(
        process,
        process,
        process=process,
        config=config,
        label=process.binary_path.name,
    )
