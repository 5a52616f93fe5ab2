"""Pytest configuration and shared fixtures."""

import queue
import time
from collections.abc import Callable, Iterator

import pytest

from uciharness.configs import SessionConfig
from uciharness.uci import EngineSession

HANDSHAKE_LINES = [
    "id name Fakefish 1.0",
    "id author The Fakefish developers",
    "option name Threads type spin default 1 min 1 max 512",
    "option name Hash type spin default 16 min 1 max 2048",
    "option name Clear Hash type button",
    "option name Ponder type check default false",
    "option name MultiPV type spin default 1 min 1 max 500",
    "option name Skill Level type spin default 20 min 0 max 20",
    "option name Style type combo default Normal var Solid var Normal var Risky",
    "option name SyzygyPath type string default <empty>",
    "uciok",
]

# None stands for end of stream
Reply = list[str | None]


class FakeEngine:
    """In-memory engine: scripted replies to commands plus a command log.

    Serves as reader, writer and process handle of an ``EngineSession``.
    Lines queued with :meth:`feed` are returned by :meth:`readline` in
    order; :meth:`eof` makes the next read return ``""``.
    """

    def __init__(self, handshake: list[str] | None = None) -> None:
        self.commands: list[str] = []
        self.responses: dict[str, Reply] = {
            "uci": list(HANDSHAKE_LINES if handshake is None else handshake),
            "isready": ["readyok"],
            "quit": [None],
        }
        self.broken = False
        self.closed_with: float | None = None
        self._lines: queue.Queue[str] = queue.Queue()

    def readline(self) -> str:
        return self._lines.get(timeout=10)

    def write(self, text: str) -> None:
        if self.broken:
            raise BrokenPipeError("engine stdin closed")
        for command in text.splitlines():
            self.commands.append(command)
            for line in self.responses.get(command, []):
                if line is None:
                    self.eof()
                else:
                    self.feed(line)

    def flush(self) -> None:
        pass

    def close(self, timeout: float) -> None:
        self.closed_with = timeout
        self.eof()

    def feed(self, *lines: str) -> None:
        for line in lines:
            self._lines.put(line + "\n")

    def eof(self) -> None:
        self._lines.put("")

    def sent(self, prefix: str) -> list[str]:
        """Commands sent so far that start with ``prefix``."""
        return [c for c in self.commands if c.startswith(prefix)]


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def session_config() -> SessionConfig:
    """Short timeouts so failing tests do not hang."""
    return SessionConfig(handshake_timeout=2.0, ready_timeout=2.0, quit_timeout=0.5)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def session(engine: FakeEngine, session_config: SessionConfig) -> Iterator[EngineSession]:
    """A session in the CREATED state."""
    s = EngineSession(engine, engine, process=engine, config=session_config, label="fake")
    yield s
    s.close()


@pytest.fixture
def ready_session(session: EngineSession) -> EngineSession:
    """A session that completed the uci handshake."""
    session.start_uci()
    return session
