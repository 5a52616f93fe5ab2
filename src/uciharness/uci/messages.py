"""Typed messages produced from lines of UCI engine output.

Each line an engine writes is turned into exactly one of the message
classes below by :func:`uciharness.uci.parser.parse_line`. All messages
are immutable once constructed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

# Moves an engine reports when it has nothing to play.
NULL_MOVES = frozenset({"(none)", "0000"})


class OptionKind(Enum):
    """Declared type of an engine option."""

    CHECK = "check"
    SPIN = "spin"
    COMBO = "combo"
    BUTTON = "button"
    STRING = "string"


@dataclass(frozen=True)
class OptionSpec:
    """An option as declared by the engine before ``uciok``."""

    name: str
    kind: OptionKind
    default: bool | int | str | None = None
    min: int | None = None  # spin only
    max: int | None = None  # spin only
    choices: tuple[str, ...] = ()  # combo only


class ScoreKind(Enum):
    """Unit of an evaluation score."""

    CENTIPAWNS = "cp"
    MATE = "mate"


@dataclass(frozen=True)
class Score:
    """Evaluation from the side to move's point of view.

    Either a centipawn value or a mate distance in moves, never both.
    ``bound`` is ``"lowerbound"``/``"upperbound"`` when the engine only
    reported a bound (e.g. after an aspiration window failure).
    """

    kind: ScoreKind
    value: int
    bound: str | None = None

    @classmethod
    def centipawns(cls, value: int) -> Score:
        return cls(ScoreKind.CENTIPAWNS, value)

    @classmethod
    def mate(cls, moves: int) -> Score:
        return cls(ScoreKind.MATE, moves)

    @property
    def is_mate(self) -> bool:
        return self.kind is ScoreKind.MATE

    @property
    def cp(self) -> int | None:
        """Centipawn value, or None for mate scores."""
        return None if self.is_mate else self.value

    @property
    def mate_in(self) -> int | None:
        """Mate distance, or None for centipawn scores."""
        return self.value if self.is_mate else None

    def __str__(self) -> str:
        text = f"{self.kind.value} {self.value}"
        if self.bound:
            text += f" {self.bound}"
        return text


@dataclass(frozen=True)
class InfoFields:
    """Parsed subset of an ``info`` line.

    Fields absent from the line (or malformed) are ``None``; ``multipv``
    defaults to 1 as single-line engines usually omit it.
    """

    depth: int | None = None
    seldepth: int | None = None
    multipv: int = 1
    score: Score | None = None
    nodes: int | None = None
    nps: int | None = None
    time: int | None = None
    hashfull: int | None = None
    tbhits: int | None = None
    currmove: str | None = None
    pv: tuple[str, ...] = ()
    string: str | None = None

    @property
    def has_evaluation(self) -> bool:
        """Whether this line carries a score or a principal variation."""
        return self.score is not None or bool(self.pv)

    @property
    def is_progress(self) -> bool:
        """A ``currmove``/``string`` report without a score or pv."""
        return (self.currmove is not None or self.string is not None) and not self.has_evaluation


@dataclass(frozen=True)
class IdName:
    name: str


@dataclass(frozen=True)
class IdAuthor:
    author: str


@dataclass(frozen=True)
class OptionMessage:
    spec: OptionSpec


@dataclass(frozen=True)
class UciOk:
    pass


@dataclass(frozen=True)
class ReadyOk:
    pass


@dataclass(frozen=True)
class Info:
    fields: InfoFields


@dataclass(frozen=True)
class BestMove:
    """Final move of a search.

    ``move`` is None when the engine reported a null move (no legal
    moves). ``ponder`` is optional in the protocol and often missing.
    """

    move: str | None
    ponder: str | None = None

    def __str__(self) -> str:
        text = f"bestmove {self.move or '(none)'}"
        if self.ponder:
            text += f" ponder {self.ponder}"
        return text


@dataclass(frozen=True)
class Unknown:
    """A line that could not be classified."""

    raw: str
    reason: str = "unrecognised command"


EngineMessage = Union[
    IdName,
    IdAuthor,
    OptionMessage,
    UciOk,
    ReadyOk,
    Info,
    BestMove,
    Unknown,
]
