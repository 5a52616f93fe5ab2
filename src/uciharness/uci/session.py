"""Engine session: UCI state machine, read pump and public operations.

An :class:`EngineSession` owns the two streams of an already running
engine process. A background thread (the read pump) is the only reader
of the engine's output; it parses every line and routes it to the
option registry during the handshake and to the search aggregator while
a search runs. Caller threads only write commands (serialized under a
write lock) and read snapshots.

Example:
    with open_session("/usr/bin/stockfish") as session:
        session.start_uci()
        session.new_game()
        session.set_position(fen)
        session.go(GoMode.depth(18), multipv=3)
        result = session.wait_for_search(timeout=30)
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from enum import Enum
from typing import Protocol

from loguru import logger

from uciharness.configs.schema import SessionConfig
from uciharness.uci.errors import (
    EngineTerminated,
    InvalidStateError,
    OptionNotFound,
    ProtocolError,
)
from uciharness.uci.messages import (
    BestMove,
    EngineMessage,
    IdAuthor,
    IdName,
    Info,
    OptionMessage,
    OptionSpec,
    ReadyOk,
    UciOk,
    Unknown,
)
from uciharness.uci.options import OptionInput, OptionRegistry
from uciharness.uci.parser import parse_line
from uciharness.uci.search import GoMode, SearchAggregator, SearchResult

_MULTIPV_OPTION = "MultiPV"


class SessionState(Enum):
    """Lifecycle states of an engine session."""

    CREATED = "created"
    AWAITING_HANDSHAKE = "awaiting_handshake"
    READY = "ready"
    CONFIGURING = "configuring"  # transient sub-state of READY
    SEARCH_REQUESTED = "search_requested"
    SEARCHING = "searching"
    STOPPED = "stopped"
    TERMINATED = "terminated"


_LIVE_STATES = frozenset(SessionState) - {SessionState.STOPPED, SessionState.TERMINATED}


class LineReader(Protocol):
    """Readable side of the engine: returns ``""``/``b""`` at end of stream."""

    def readline(self) -> str | bytes: ...


class LineWriter(Protocol):
    """Writable side of the engine."""

    def write(self, text: str) -> object: ...

    def flush(self) -> object: ...


class ProcessHandle(Protocol):
    """Optional handle used to shut the engine process down."""

    def close(self, timeout: float) -> None: ...


class EngineSession:
    """One conversation with one UCI engine process.

    Sessions hold no global state, so several engines can be driven from
    the same program. Operations that are not valid in the current state
    raise :class:`InvalidStateError` without sending anything; once the
    engine's output stream closes unexpectedly every operation except
    :meth:`close` raises :class:`EngineTerminated`.
    """

    def __init__(
        self,
        reader: LineReader,
        writer: LineWriter,
        *,
        process: ProcessHandle | None = None,
        config: SessionConfig | None = None,
        label: str = "engine",
    ) -> None:
        """Wrap an engine's streams and start the read pump.

        Args:
            reader: Engine stdout, read line by line by the pump only.
            writer: Engine stdin; receives newline-terminated commands.
            process: Handle closed by :meth:`close`, if the session owns it.
            config: Timeouts and stream encoding.
            label: Name used for the pump thread and in log messages.
        """
        self.config = config or SessionConfig()
        self.label = label
        self._reader = reader
        self._writer = writer
        self._process = process

        self._state = SessionState.CREATED
        self._state_lock = threading.RLock()
        self._write_lock = threading.Lock()

        self._registry = OptionRegistry()
        self._aggregator = SearchAggregator()
        self._engine_name: str | None = None
        self._engine_author: str | None = None
        self._multipv = 1
        self._stop_sent = False

        self._uciok = threading.Event()
        self._readyok = threading.Event()
        self._search_done = threading.Event()
        self._search_done.set()

        self._pump = threading.Thread(
            target=self._run_pump, name=f"uci-pump-{label}", daemon=True
        )
        self._pump.start()

    # ---- Introspection ----

    @property
    def state(self) -> SessionState:
        with self._state_lock:
            return self._state

    @property
    def engine_name(self) -> str | None:
        return self._engine_name

    @property
    def engine_author(self) -> str | None:
        return self._engine_author

    @property
    def options(self) -> list[OptionSpec]:
        """Options the engine declared during the handshake."""
        with self._state_lock:
            self._require("options", *_LIVE_STATES)
            return list(self._registry)

    def get_option(self, name: str) -> OptionSpec:
        with self._state_lock:
            self._require("get_option", *_LIVE_STATES)
            return self._registry.get(name)

    def get_evaluation(self) -> SearchResult:
        """Snapshot of the current or last search; never blocks on the engine."""
        with self._state_lock:
            self._require(
                "get_evaluation",
                SessionState.READY,
                SessionState.SEARCH_REQUESTED,
                SessionState.SEARCHING,
            )
            return self._aggregator.snapshot()

    # ---- Handshake ----

    def start_uci(self) -> None:
        """Send ``uci`` and block until the engine answers ``uciok``.

        ``id`` and ``option`` lines received in the meantime are recorded.
        A failed handshake leaves the session TERMINATED; only :meth:`close`
        remains valid.

        Raises:
            ProtocolError: If the engine exits or does not answer in time.
        """
        with self._state_lock:
            self._require("start_uci", SessionState.CREATED)
            self._state = SessionState.AWAITING_HANDSHAKE
            self._uciok.clear()

        try:
            self._send("uci")
        except EngineTerminated as e:
            raise ProtocolError("Engine exited before the uci handshake") from e

        timeout = self.config.handshake_timeout
        if not self._uciok.wait(timeout):
            self._mark_terminated(f"no 'uciok' within {timeout}s")
            raise ProtocolError(f"Timeout waiting for 'uciok' after {timeout}s")

        with self._state_lock:
            if self._state is SessionState.TERMINATED:
                raise ProtocolError("Engine exited before answering 'uciok'")
            if self._state is not SessionState.READY:
                raise ProtocolError(f"Handshake interrupted while {self._state.name}")
            if _MULTIPV_OPTION in self._registry:
                default = self._registry.get(_MULTIPV_OPTION).default
                self._multipv = default if isinstance(default, int) else 1

        logger.debug(
            f"[{self.label}] UCI handshake complete: {self._engine_name!r}, "
            f"{len(self._registry)} options"
        )

    def new_game(self) -> None:
        """Send ``ucinewgame`` followed by an ``isready`` barrier."""
        with self._state_lock:
            self._require("new_game", SessionState.READY)
            self._state = SessionState.CONFIGURING
            self._readyok.clear()

        try:
            self._send("ucinewgame")
            self._send("isready")
            self._await_readyok()
        finally:
            self._leave(SessionState.CONFIGURING, SessionState.READY)

    def is_ready(self) -> None:
        """Send ``isready`` and block until ``readyok``.

        Because output is processed in order, every line the engine wrote
        before ``readyok`` has been applied when this returns.
        """
        with self._state_lock:
            self._require("is_ready", SessionState.READY, SessionState.SEARCHING)
            self._readyok.clear()
        self._send("isready")
        self._await_readyok()

    # ---- Configuration ----

    def set_option(self, name: str, value: OptionInput = None) -> str:
        """Validate and send ``setoption`` for a declared option.

        Returns:
            The command text sent to the engine.

        Raises:
            OptionError: If validation fails; nothing is sent.
        """
        with self._state_lock:
            self._require("set_option", SessionState.READY)
            command = self._registry.validate_and_format(name, value)
            is_multipv = self._registry.get(name).name == _MULTIPV_OPTION
            self._state = SessionState.CONFIGURING

        try:
            self._send(command)
            if is_multipv:
                self._multipv = self._registry.validate(name, value).value
        finally:
            self._leave(SessionState.CONFIGURING, SessionState.READY)
        return command

    def set_position(self, fen: str | None = None, moves: Iterable[str] = ()) -> str:
        """Send the position to search; no acknowledgment is expected.

        Args:
            fen: Position in FEN, or None for the standard start position.
            moves: Moves in long algebraic notation played from ``fen``.

        Returns:
            The command text sent to the engine.

        Raises:
            ValueError: The FEN is blank or spans lines, or a move is not a
                single token.
        """
        if fen is not None:
            if not fen.strip():
                raise ValueError("FEN must not be empty")
            if "\n" in fen or "\r" in fen:
                raise ValueError(f"FEN must be a single line, got {fen!r}")
        moves = list(moves)
        for move in moves:
            if not isinstance(move, str) or move.split() != [move]:
                raise ValueError(f"Invalid move token {move!r}")
        with self._state_lock:
            self._require("set_position", SessionState.READY)

        command = "position startpos" if fen is None else f"position fen {fen.strip()}"
        if moves:
            command += " moves " + " ".join(moves)
        self._send(command)
        return command

    # ---- Search ----

    def go(self, mode: GoMode, multipv: int = 1) -> str:
        """Start a search and return immediately.

        If ``multipv`` differs from the engine's current MultiPV setting a
        validated ``setoption`` is sent first.

        Returns:
            The ``go`` command text sent to the engine.

        Raises:
            OptionNotFound: ``multipv > 1`` but the engine has no MultiPV option.
            OptionOutOfRange: ``multipv`` exceeds the engine's MultiPV bounds.
        """
        if multipv < 1:
            raise ValueError(f"multipv must be at least 1, got {multipv}")

        with self._state_lock:
            self._require("go", SessionState.READY)
            multipv_command = self._multipv_command(multipv)
            self._aggregator.reset(multipv)
            self._search_done.clear()
            self._stop_sent = False
            self._state = SessionState.SEARCH_REQUESTED

        if multipv_command is not None:
            self._send(multipv_command)
            self._multipv = multipv
        command = mode.to_command()
        self._send(command)

        # A very short search may already have reported bestmove.
        self._leave(SessionState.SEARCH_REQUESTED, SessionState.SEARCHING)
        logger.debug(f"[{self.label}] Search started: {command} (multipv={multipv})")
        return command

    def stop(self) -> None:
        """Ask the engine to end the running search.

        The session stays SEARCHING until ``bestmove`` arrives. Only the
        first call per search sends ``stop``; later calls do nothing.
        """
        # Write lock held across the state check: a late stop must not reach the next search.
        with self._write_lock:
            with self._state_lock:
                self._require("stop", SessionState.SEARCHING)
                if self._stop_sent:
                    logger.debug(f"[{self.label}] stop already sent for this search")
                    return
                self._stop_sent = True
            self._write("stop")

    def wait_for_search(self, timeout: float | None = None) -> SearchResult:
        """Block until the current search ends or ``timeout`` expires.

        Returns:
            The latest snapshot; check ``is_final`` to tell whether the
            search finished.
        """
        with self._state_lock:
            self._require(
                "wait_for_search",
                SessionState.READY,
                SessionState.SEARCH_REQUESTED,
                SessionState.SEARCHING,
            )
        self._search_done.wait(timeout)
        return self.get_evaluation()

    # ---- Teardown ----

    def close(self) -> None:
        """End the session: send ``quit``, stop the process and the pump."""
        with self._state_lock:
            if self._state is SessionState.STOPPED:
                return
            was_alive = self._state is not SessionState.TERMINATED
            self._state = SessionState.STOPPED
        self._wake_waiters()

        if was_alive:
            try:
                with self._write_lock:
                    self._writer.write("quit\n")
                    self._writer.flush()
            except (OSError, ValueError) as e:
                logger.debug(f"[{self.label}] Could not send quit: {e}")

        if self._process is not None:
            self._process.close(self.config.quit_timeout)

        if self._pump is not threading.current_thread():
            self._pump.join(self.config.quit_timeout)
        logger.debug(f"[{self.label}] Session closed")

    def __enter__(self) -> EngineSession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ---- Internals ----

    def _require(self, operation: str, *allowed: SessionState) -> None:
        """Raise unless the session is in one of ``allowed`` (lock held)."""
        if self._state is SessionState.TERMINATED:
            raise EngineTerminated(f"Engine terminated; cannot {operation}()")
        if self._state not in allowed:
            raise InvalidStateError(self._state, operation)

    def _leave(self, current: SessionState, target: SessionState) -> None:
        with self._state_lock:
            if self._state is current:
                self._state = target

    def _multipv_command(self, count: int) -> str | None:
        if count == self._multipv:
            return None
        if _MULTIPV_OPTION not in self._registry:
            if count == 1:
                return None
            raise OptionNotFound(_MULTIPV_OPTION)
        return self._registry.validate_and_format(_MULTIPV_OPTION, count)

    def _send(self, command: str) -> None:
        with self._write_lock:
            self._write(command)

    def _write(self, command: str) -> None:
        """Write one command line (write lock held)."""
        try:
            logger.trace(f"[{self.label}] UCI send: {command}")
            self._writer.write(command + "\n")
            self._writer.flush()
        except (OSError, ValueError) as e:
            self._mark_terminated(f"write failed: {e}")
            raise EngineTerminated(f"Could not send '{command}': {e}") from e

    def _await_readyok(self) -> None:
        timeout = self.config.ready_timeout
        if not self._readyok.wait(timeout):
            raise ProtocolError(f"Timeout waiting for 'readyok' after {timeout}s")
        with self._state_lock:
            if self._state is SessionState.TERMINATED:
                raise EngineTerminated("Engine exited before answering 'readyok'")

    def _run_pump(self) -> None:
        reason = "end of stream"
        try:
            while True:
                raw = self._reader.readline()
                if isinstance(raw, bytes):
                    raw = raw.decode(self.config.encoding, errors="replace")
                if not raw:
                    break
                line = raw.strip()
                if not line:
                    continue
                logger.trace(f"[{self.label}] UCI recv: {line}")
                self._dispatch(parse_line(line))
        except Exception as e:
            reason = f"read failed: {e}"
        self._mark_terminated(reason)

    def _dispatch(self, message: EngineMessage) -> None:
        if isinstance(message, Unknown):
            logger.debug(f"[{self.label}] Parse degraded ({message.reason}): {message.raw!r}")
            return

        with self._state_lock:
            state = self._state
            if state is SessionState.AWAITING_HANDSHAKE:
                self._apply_handshake(message)
            elif isinstance(message, ReadyOk):
                self._readyok.set()
            elif isinstance(message, (Info, BestMove)) and state in (
                SessionState.SEARCH_REQUESTED,
                SessionState.SEARCHING,
            ):
                self._aggregator.ingest(message)
                if isinstance(message, BestMove):
                    self._state = SessionState.READY
                    self._search_done.set()
                    logger.debug(f"[{self.label}] Search finished: {message}")
            else:
                logger.debug(f"[{self.label}] Ignoring {message!r} while {state.name}")

    def _apply_handshake(self, message: EngineMessage) -> None:
        if isinstance(message, IdName):
            self._engine_name = message.name
        elif isinstance(message, IdAuthor):
            self._engine_author = message.author
        elif isinstance(message, OptionMessage):
            self._registry.register(message.spec)
        elif isinstance(message, UciOk):
            self._state = SessionState.READY
            self._uciok.set()
        else:
            logger.debug(f"[{self.label}] Ignoring {message!r} during handshake")

    def _mark_terminated(self, reason: str) -> None:
        with self._state_lock:
            if self._state in (SessionState.STOPPED, SessionState.TERMINATED):
                self._wake_waiters()
                return
            logger.warning(f"[{self.label}] Engine terminated ({reason}) while {self._state.name}")
            self._state = SessionState.TERMINATED
        self._wake_waiters()

    def _wake_waiters(self) -> None:
        self._uciok.set()
        self._readyok.set()
        self._search_done.set()
