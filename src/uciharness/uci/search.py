"""Search requests and aggregation of streamed search output.

An engine running MultiPV analysis interleaves ``info`` lines for each
of its principal variations. :class:`SearchAggregator` keeps the latest
line per MultiPV index and the final ``bestmove`` so callers can read a
consistent snapshot at any time while the read pump keeps ingesting.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum

from uciharness.uci.messages import BestMove, EngineMessage, Info, InfoFields


class SearchKind(Enum):
    """How long the engine should search."""

    INFINITE = "infinite"
    DEPTH = "depth"
    MOVETIME = "movetime"
    MATE = "mate"


@dataclass(frozen=True)
class GoMode:
    """Search limit sent with ``go``.

    Example:
        GoMode.depth(20).to_command()      # "go depth 20"
        GoMode.movetime(1500).to_command() # "go movetime 1500"
    """

    kind: SearchKind
    value: int | None = None

    def __post_init__(self) -> None:
        """Validate the limit argument."""
        if self.kind is SearchKind.INFINITE:
            if self.value is not None:
                raise ValueError("go infinite takes no argument")
            return
        if (
            not isinstance(self.value, int)
            or isinstance(self.value, bool)
            or self.value < 1
        ):
            msg = f"go {self.kind.value} needs a positive integer, got {self.value!r}"
            raise ValueError(msg)

    @classmethod
    def infinite(cls) -> GoMode:
        return cls(SearchKind.INFINITE)

    @classmethod
    def depth(cls, plies: int) -> GoMode:
        return cls(SearchKind.DEPTH, plies)

    @classmethod
    def movetime(cls, ms: int) -> GoMode:
        return cls(SearchKind.MOVETIME, ms)

    @classmethod
    def mate(cls, moves: int) -> GoMode:
        return cls(SearchKind.MATE, moves)

    def to_command(self) -> str:
        if self.value is None:
            return f"go {self.kind.value}"
        return f"go {self.kind.value} {self.value}"


@dataclass(frozen=True)
class SearchResult:
    """Point-in-time view of a search.

    ``lines`` maps MultiPV index (1-based) to the newest info received
    for that index. The result is final once ``best_move`` is set.
    """

    multipv: int = 1
    lines: dict[int, InfoFields] = field(default_factory=dict)
    best_move: BestMove | None = None

    @property
    def is_final(self) -> bool:
        return self.best_move is not None

    @property
    def principal(self) -> InfoFields | None:
        """The first (best) line, if the engine reported one yet."""
        return self.lines.get(1)

    def ordered(self) -> list[tuple[int, InfoFields]]:
        """Lines sorted by MultiPV index."""
        return sorted(self.lines.items())


class SearchAggregator:
    """Accumulates ``info``/``bestmove`` messages for the current search.

    Each MultiPV index holds the last ``info`` line received for it;
    lines are replaced, never merged. ``currmove`` and ``info string``
    reports without a score or pv are skipped so they do not wipe the
    last evaluation. Once ``bestmove`` arrives the result is frozen
    until the next :meth:`reset`.
    """

    def __init__(self, multipv: int = 1) -> None:
        self._lock = threading.Lock()
        self._multipv = 1
        self._lines: dict[int, InfoFields] = {}
        self._best_move: BestMove | None = None
        self.reset(multipv)

    def reset(self, multipv: int) -> None:
        """Clear previous state and expect indices ``1..multipv``."""
        if multipv < 1:
            raise ValueError(f"multipv must be at least 1, got {multipv}")
        with self._lock:
            self._multipv = multipv
            self._lines = {}
            self._best_move = None

    def ingest(self, message: EngineMessage) -> bool:
        """Fold one message into the result.

        Returns:
            True if the result changed.
        """
        with self._lock:
            if self._best_move is not None:
                return False
            if isinstance(message, BestMove):
                self._best_move = message
                return True
            if not isinstance(message, Info):
                return False
            fields = message.fields
            if fields.is_progress:
                return False
            if not 1 <= fields.multipv <= self._multipv:
                return False
            if self._lines.get(fields.multipv) == fields:
                return False
            self._lines[fields.multipv] = fields
            return True

    @property
    def is_final(self) -> bool:
        with self._lock:
            return self._best_move is not None

    def snapshot(self) -> SearchResult:
        """Copy of the current, possibly partial, result."""
        with self._lock:
            return SearchResult(
                multipv=self._multipv,
                lines=dict(self._lines),
                best_move=self._best_move,
            )
