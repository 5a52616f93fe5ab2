"""Human-readable rendering of search results for the CLI.

The session layer treats positions and moves as opaque strings; only
this presentation layer uses python-chess, to check FEN input and to
show principal variations in SAN.
"""

from collections.abc import Sequence

import chess

from uciharness.uci.messages import InfoFields, Score


def validate_position(fen: str | None, moves: Sequence[str] = ()) -> str | None:
    """Check that ``fen`` is a valid position and ``moves`` are legal from it.

    Returns:
        The FEN normalized by python-chess, or None for the start position.

    Raises:
        ValueError: If the FEN is malformed, the position is invalid or a
            move is illegal.
    """
    board = chess.Board(fen) if fen else chess.Board()
    if not board.is_valid():
        raise ValueError(f"Invalid position ({board.status()!r}): {fen}")
    normalized = board.fen() if fen else None
    for uci in moves:
        board.push_uci(uci)
    return normalized


def pv_to_san(
    fen: str | None, moves: Sequence[str], pv: Sequence[str]
) -> list[str]:
    """Convert a principal variation from UCI to SAN notation.

    Args:
        fen: Starting position, or None for the standard start position.
        moves: Moves already played from ``fen`` before the search.
        pv: Principal variation reported by the engine.

    Returns:
        SAN moves. Conversion stops at the first move that is not legal
        in the reached position.
    """
    board = chess.Board(fen) if fen else chess.Board()
    for uci in moves:
        board.push_uci(uci)

    san: list[str] = []
    for uci in pv:
        try:
            move = chess.Move.from_uci(uci)
        except ValueError:
            break
        if move not in board.legal_moves:
            break
        san.append(board.san(move))
        board.push(move)
    return san


def format_score(score: Score | None) -> str:
    """Render a score as pawns (``+0.34``) or mate distance (``#3``/``#-2``)."""
    if score is None:
        return "?"
    if score.is_mate:
        text = f"#{score.value}"
    else:
        text = f"{score.value / 100:+.2f}"
    if score.bound == "lowerbound":
        text += " (>=)"
    elif score.bound == "upperbound":
        text += " (<=)"
    return text


def format_line(
    fields: InfoFields,
    *,
    show_moves: bool = False,
    pv: Sequence[str] | None = None,
) -> str:
    """One-line summary of an info snapshot.

    Args:
        fields: Snapshot to render.
        show_moves: Append the principal variation.
        pv: Moves to show instead of ``fields.pv`` (e.g. converted to SAN).
    """
    parts = [f"score: {format_score(fields.score)}"]
    for label, value in (
        ("depth", fields.depth),
        ("seldepth", fields.seldepth),
        ("nodes", fields.nodes),
        ("nps", fields.nps),
        ("time", fields.time),
    ):
        if value is not None:
            parts.append(f"{label}: {value}")
    text = " ".join(parts)
    if show_moves:
        moves = fields.pv if pv is None else pv
        text += f"\npv: {', '.join(moves)}"
    return text
