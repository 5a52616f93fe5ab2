"""Command-line interface for uciharness."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from uciharness import __version__
from uciharness.configs import HarnessConfig, load_harness_config
from uciharness.formatting import format_line, format_score, pv_to_san, validate_position
from uciharness.uci import (
    EngineSession,
    EngineTerminated,
    OptionError,
    ProtocolError,
    SearchResult,
    SessionState,
    open_session,
)
from uciharness.utils.logging import setup_logging

app = typer.Typer(
    name="uciharness",
    help="uciharness: drive UCI chess engines from the command line",
    add_completion=False,
)
console = Console()

EXIT_OPTION_ERROR = 2
EXIT_PROTOCOL_ERROR = 3
EXIT_ENGINE_TERMINATED = 4

_POLL_INTERVAL = 0.1

EngineOpt = typer.Option(
    None, "--engine", "-e", envvar="UCI_ENGINE", help="Path to the UCI engine executable"
)
ConfigOpt = typer.Option(None, "--config", "-c", help="YAML configuration file")
SetOpt = typer.Option([], "--set", help="Config override, e.g. session.ready_timeout=5")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Log engine traffic to stderr")


@app.command()
def version() -> None:
    """Print version information."""
    console.print(f"[bold blue]uciharness[/bold blue] v{__version__}")


@app.command()
def options(
    engine: Optional[str] = EngineOpt,
    config: Optional[Path] = ConfigOpt,
    overrides: list[str] = SetOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """List the options an engine declares."""
    cfg = _load(config, overrides, verbose)
    with _run_guarded():
        with _open(engine, cfg) as session:
            session.start_uci()
            table = Table(title=session.engine_name or "Engine options")
            for column in ("Name", "Type", "Default", "Min", "Max", "Choices"):
                table.add_column(column)
            for spec in session.options:
                table.add_row(
                    spec.name,
                    spec.kind.value,
                    "" if spec.default is None else str(spec.default),
                    "" if spec.min is None else str(spec.min),
                    "" if spec.max is None else str(spec.max),
                    ", ".join(spec.choices),
                )
            console.print(table)


@app.command()
def analyse(
    engine: Optional[str] = EngineOpt,
    fen: Optional[str] = typer.Option(None, "--fen", "-f", help="Position to search (default: start)"),
    moves: list[str] = typer.Option([], "--move", "-m", help="Move played from the position (repeatable)"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", min=1, help="Search to a fixed depth"),
    movetime: Optional[int] = typer.Option(None, "--movetime", "-t", min=1, help="Search time in ms"),
    mate: Optional[int] = typer.Option(None, "--mate", min=1, help="Search for a mate in N moves"),
    multipv: Optional[int] = typer.Option(None, "--multipv", "-n", min=1, help="Number of lines"),
    engine_options: list[str] = typer.Option([], "--option", "-o", help="NAME=VALUE (repeatable)"),
    show_moves: bool = typer.Option(False, "--show-moves", "-s", help="Print principal variations"),
    san: bool = typer.Option(False, "--san", help="Show principal variations in SAN"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Stop the search after N seconds"),
    config: Optional[Path] = ConfigOpt,
    overrides: list[str] = SetOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Search a position and stream the evaluation until the search ends."""
    cfg = _load(config, overrides, verbose)
    changes: dict[str, object] = {}
    if fen is not None:
        changes["fen"] = fen
    if moves:
        changes["moves"] = list(moves)
    if multipv is not None:
        changes["multipv"] = multipv
    if any(v is not None for v in (depth, movetime, mate)):
        changes.update(depth=depth, movetime_ms=movetime, mate=mate)
    try:
        analysis = replace(cfg.analysis, **changes)
        analysis.fen = validate_position(analysis.fen, analysis.moves)
        mode = analysis.go_mode()
        cfg.analysis = analysis
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    settings = dict(cfg.engine.options)
    settings.update(_parse_assignment(item) for item in engine_options)

    with _run_guarded():
        with _open(engine, cfg) as session:
            session.start_uci()
            console.print(f"[bold green]Engine[/bold green] {session.engine_name or '?'}")
            for name, value in settings.items():
                session.set_option(name, value)
            session.new_game()
            session.set_position(analysis.fen, analysis.moves)
            session.go(mode, analysis.multipv)
            result = _stream(session, timeout, show_moves and not san)
            _print_result(result, cfg, show_moves or san, san)


def _load(config: Path | None, overrides: list[str], verbose: bool) -> HarnessConfig:
    try:
        cfg = load_harness_config(config, overrides)
    except (FileNotFoundError, ValueError, TypeError) as e:
        raise typer.BadParameter(str(e), param_hint="--config/--set") from e
    level = "TRACE" if verbose else cfg.log_level
    if verbose or cfg.log_file is not None or level != "WARNING":
        setup_logging(level, cfg.log_file)
    return cfg


def _open(engine: str | None, cfg: HarnessConfig) -> EngineSession:
    path = engine or cfg.engine.path
    if not path:
        raise typer.BadParameter(
            "No engine given (use --engine, UCI_ENGINE or engine.path)", param_hint="--engine"
        )
    return open_session(path, cfg.engine.args, config=cfg.session)


def _parse_assignment(item: str) -> tuple[str, str]:
    name, sep, value = item.partition("=")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Expected NAME=VALUE, got {item!r}", param_hint="--option")
    return name.strip(), value.strip()


def _stream(session: EngineSession, timeout: float | None, show_moves: bool) -> SearchResult:
    """Print each changed line until the search is final."""
    waited = 0.0
    last: dict[int, object] = {}
    try:
        while True:
            result = session.wait_for_search(_POLL_INTERVAL)
            for index, fields in result.ordered():
                if last.get(index) != fields:
                    last[index] = fields
                    prefix = f"[{index}] " if result.multipv > 1 else ""
                    console.print(
                        prefix + format_line(fields, show_moves=show_moves),
                        markup=False,
                        highlight=False,
                    )
            if result.is_final:
                return result
            waited += _POLL_INTERVAL
            if timeout is not None and waited >= timeout:
                _stop(session)
                timeout = None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted, stopping search[/yellow]")
        _stop(session)
        return session.wait_for_search(session.config.ready_timeout)


def _stop(session: EngineSession) -> None:
    if session.state is SessionState.SEARCHING:
        session.stop()


def _print_result(result: SearchResult, cfg: HarnessConfig, show_moves: bool, san: bool) -> None:
    table = Table(title="Evaluation")
    for column in ("#", "Score", "Depth", "Nodes"):
        table.add_column(column, justify="right")
    if show_moves:
        table.add_column("PV")
    for index, fields in result.ordered():
        row = [
            str(index),
            format_score(fields.score),
            "" if fields.depth is None else str(fields.depth),
            "" if fields.nodes is None else str(fields.nodes),
        ]
        if show_moves:
            pv = list(fields.pv)
            if san:
                pv = pv_to_san(cfg.analysis.fen, cfg.analysis.moves, pv)
            row.append(" ".join(pv))
        table.add_row(*row)
    console.print(table)

    if result.best_move is not None:
        console.print(f"[bold]{result.best_move}[/bold]")
    else:
        console.print("[yellow]Search did not finish[/yellow]")


@contextmanager
def _run_guarded() -> Iterator[None]:
    """Translate session errors into exit codes."""
    try:
        yield
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e
    except OptionError as e:
        console.print(f"[red]Option error:[/red] {e}")
        raise typer.Exit(EXIT_OPTION_ERROR) from e
    except ProtocolError as e:
        console.print(f"[red]Protocol error:[/red] {e}")
        raise typer.Exit(EXIT_PROTOCOL_ERROR) from e
    except EngineTerminated as e:
        console.print(f"[red]Engine terminated:[/red] {e}")
        raise typer.Exit(EXIT_ENGINE_TERMINATED) from e


if __name__ == "__main__":
    app()
