"""Parser turning single lines of engine output into typed messages.

The parser is deliberately forgiving: an engine line that cannot be
classified becomes an :class:`Unknown` message and a malformed numeric
token only drops the field it belongs to. Nothing here raises, so a
single bad line can never stall the read pump.

Option names with spaces:
    UCI has no delimiter between a multi-word option name and the
    ``type`` keyword. The name is taken as every token between ``name``
    and the first ``type`` token that is followed by a known kind
    (``check``, ``spin``, ``combo``, ``button``, ``string``). Names such
    as ``Clear Hash`` or ``Skill Level`` parse correctly; a name that
    itself contains ``type spin`` (or similar) is split at that point.
    Values after the kind are split on the keywords ``default``, ``min``,
    ``max`` and ``var``, so a string default containing one of those
    words is truncated.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from uciharness.uci.errors import ParseDegraded
from uciharness.uci.messages import (
    NULL_MOVES,
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

_INFO_INT_FIELDS = frozenset(
    {"depth", "seldepth", "multipv", "nodes", "nps", "time", "hashfull", "tbhits"}
)
_SCORE_BOUNDS = frozenset({"lowerbound", "upperbound"})
_OPTION_KEYWORDS = frozenset({"default", "min", "max", "var"})
_OPTION_KINDS = {kind.value: kind for kind in OptionKind}
_EMPTY_STRING = "<empty>"


def parse_line(line: str) -> EngineMessage:
    """Parse one line of engine output.

    Args:
        line: A single line, with or without its trailing newline.

    Returns:
        The typed message. Lines that cannot be classified yield
        :class:`Unknown` carrying the raw text and the reason.
    """
    line = line.strip()
    tokens = line.split()
    if not tokens:
        return Unknown(line, "empty line")

    handler = _HANDLERS.get(tokens[0])
    if handler is None:
        return Unknown(line)

    try:
        return handler(tokens)
    except ParseDegraded as e:
        return Unknown(line, str(e))


def _to_int(text: str | None) -> int | None:
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _parse_id(tokens: Sequence[str]) -> EngineMessage:
    if len(tokens) < 3:
        raise ParseDegraded("id line without a value")
    value = " ".join(tokens[2:])
    if tokens[1] == "name":
        return IdName(value)
    if tokens[1] == "author":
        return IdAuthor(value)
    raise ParseDegraded(f"unknown id field '{tokens[1]}'")


def _parse_option(tokens: Sequence[str]) -> EngineMessage:
    if len(tokens) < 2 or tokens[1] != "name":
        raise ParseDegraded("option line without a name")

    # First "type <kind>" after at least one name token ends the name.
    type_index = next(
        (
            i
            for i in range(3, len(tokens) - 1)
            if tokens[i] == "type" and tokens[i + 1] in _OPTION_KINDS
        ),
        None,
    )
    if type_index is None:
        raise ParseDegraded("option line without a recognised type")

    name = " ".join(tokens[2:type_index])
    kind = _OPTION_KINDS[tokens[type_index + 1]]

    default_text: str | None = None
    minimum: int | None = None
    maximum: int | None = None
    choices: list[str] = []
    for keyword, value in _option_segments(tokens[type_index + 2 :]):
        if keyword == "default":
            default_text = value
        elif keyword == "min":
            minimum = _to_int(value)
        elif keyword == "max":
            maximum = _to_int(value)
        elif value:
            choices.append(value)

    return OptionMessage(
        OptionSpec(
            name=name,
            kind=kind,
            default=_option_default(kind, default_text),
            min=minimum if kind is OptionKind.SPIN else None,
            max=maximum if kind is OptionKind.SPIN else None,
            choices=tuple(choices) if kind is OptionKind.COMBO else (),
        )
    )


def _option_segments(tokens: Sequence[str]) -> list[tuple[str, str]]:
    """Split option attributes into ``(keyword, joined value)`` pairs."""
    segments: list[tuple[str, list[str]]] = []
    for token in tokens:
        if token in _OPTION_KEYWORDS:
            segments.append((token, []))
        elif segments:
            segments[-1][1].append(token)
    return [(keyword, " ".join(words)) for keyword, words in segments]


def _option_default(kind: OptionKind, text: str | None) -> bool | int | str | None:
    if text is None or kind is OptionKind.BUTTON:
        return None
    if kind is OptionKind.CHECK:
        return {"true": True, "false": False}.get(text.lower())
    if kind is OptionKind.SPIN:
        return _to_int(text)
    return "" if text == _EMPTY_STRING else text


def _parse_info(tokens: Sequence[str]) -> EngineMessage:
    numbers: dict[str, int] = {}
    score: Score | None = None
    currmove: str | None = None
    pv: tuple[str, ...] = ()
    string: str | None = None

    i = 1
    while i < len(tokens):
        token = tokens[i]
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if token in _INFO_INT_FIELDS:
            value = _to_int(nxt)
            if value is None:
                # Leave the malformed token for the next iteration to skip.
                i += 1
                continue
            numbers[token] = value
            i += 2
        elif token == "score":
            parsed, i = _parse_score(tokens, i + 1)
            if parsed is not None:
                score = parsed
        elif token == "currmove" and nxt is not None:
            currmove = nxt
            i += 2
        elif token == "pv":
            pv = tuple(tokens[i + 1 :])
            break
        elif token == "string":
            string = " ".join(tokens[i + 1 :])
            break
        else:
            i += 1

    return Info(
        InfoFields(
            depth=numbers.get("depth"),
            seldepth=numbers.get("seldepth"),
            multipv=numbers.get("multipv", 1),
            score=score,
            nodes=numbers.get("nodes"),
            nps=numbers.get("nps"),
            time=numbers.get("time"),
            hashfull=numbers.get("hashfull"),
            tbhits=numbers.get("tbhits"),
            currmove=currmove,
            pv=pv,
            string=string,
        )
    )


def _parse_score(tokens: Sequence[str], i: int) -> tuple[Score | None, int]:
    """Parse ``cp <n>`` / ``mate <n>`` starting at ``tokens[i]``.

    Returns the score (None when malformed) and the index of the first
    token after it.
    """
    if i >= len(tokens) or tokens[i] not in ("cp", "mate"):
        return None, i
    kind = ScoreKind(tokens[i])
    value = _to_int(tokens[i + 1]) if i + 1 < len(tokens) else None
    if value is None:
        return None, i + 1
    i += 2
    bound = None
    if i < len(tokens) and tokens[i] in _SCORE_BOUNDS:
        bound = tokens[i]
        i += 1
    return Score(kind, value, bound), i


def _parse_bestmove(tokens: Sequence[str]) -> EngineMessage:
    if len(tokens) < 2:
        raise ParseDegraded("bestmove without a move")
    move = None if tokens[1] in NULL_MOVES else tokens[1]
    ponder = None
    if len(tokens) >= 4 and tokens[2] == "ponder" and tokens[3] not in NULL_MOVES:
        ponder = tokens[3]
    return BestMove(move, ponder)


_HANDLERS: dict[str, Callable[[Sequence[str]], EngineMessage]] = {
    "id": _parse_id,
    "option": _parse_option,
    "uciok": lambda tokens: UciOk(),
    "readyok": lambda tokens: ReadyOk(),
    "info": _parse_info,
    "bestmove": _parse_bestmove,
}
