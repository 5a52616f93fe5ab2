"""UCI engine driver: parsing, options, search aggregation and sessions."""

from uciharness.uci.errors import (
    EngineTerminated,
    InvalidStateError,
    OptionError,
    OptionKindMismatch,
    OptionNotAllowed,
    OptionNotFound,
    OptionOutOfRange,
    ProtocolError,
    UCIError,
)
from uciharness.uci.messages import (
    BestMove,
    EngineMessage,
    IdAuthor,
    IdName,
    Info,
    InfoFields,
    OptionKind,
    OptionMessage,
    OptionSpec,
    ReadyOk,
    Score,
    ScoreKind,
    UciOk,
    Unknown,
)
from uciharness.uci.options import OptionRegistry, OptionValue, format_setoption
from uciharness.uci.parser import parse_line
from uciharness.uci.process import EngineProcess, open_session, spawn_engine
from uciharness.uci.search import GoMode, SearchAggregator, SearchKind, SearchResult
from uciharness.uci.session import EngineSession, SessionState

__all__ = [
    "BestMove",
    "EngineMessage",
    "EngineProcess",
    "EngineSession",
    "EngineTerminated",
    "GoMode",
    "IdAuthor",
    "IdName",
    "Info",
    "InfoFields",
    "InvalidStateError",
    "OptionError",
    "OptionKind",
    "OptionKindMismatch",
    "OptionMessage",
    "OptionNotAllowed",
    "OptionNotFound",
    "OptionOutOfRange",
    "OptionRegistry",
    "OptionSpec",
    "OptionValue",
    "ProtocolError",
    "ReadyOk",
    "Score",
    "ScoreKind",
    "SearchAggregator",
    "SearchKind",
    "SearchResult",
    "SessionState",
    "UCIError",
    "UciOk",
    "Unknown",
    "format_setoption",
    "open_session",
    "parse_line",
    "spawn_engine",
]
