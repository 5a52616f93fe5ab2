"""Tests for the command-line interface."""

import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from uciharness import __version__
from uciharness.cli import EXIT_OPTION_ERROR, app
from uciharness.configs import HarnessConfig, save_config

FAKEFISH = Path(__file__).parent / "data" / "fakefish.py"

runner = CliRunner()
posix_only = pytest.mark.skipif(sys.platform == "win32", reason="pexpect needs a POSIX pty")


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config pointing the CLI at the scripted engine."""
    config = HarnessConfig()
    config.engine.path = sys.executable
    config.engine.args = [str(FAKEFISH)]
    path = tmp_path / "harness.yaml"
    save_config(config, path)
    return path


class TestArguments:
    """Tests for argument handling that never starts an engine."""

    def test_version(self) -> None:
        """Test the version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert f"v{__version__}" in result.output

    def test_missing_engine(self) -> None:
        """Test that an engine path is required."""
        result = runner.invoke(app, ["analyse", "--depth", "3"], env={"UCI_ENGINE": None})
        assert result.exit_code == 2

    def test_conflicting_limits(self) -> None:
        """Test that only one search limit is accepted."""
        result = runner.invoke(app, ["analyse", "-e", "x", "--depth", "3", "--movetime", "100"])
        assert result.exit_code == 2

    def test_invalid_fen(self) -> None:
        """Test that positions are checked before starting the engine."""
        result = runner.invoke(app, ["analyse", "-e", "x", "--fen", "not a fen"])
        assert result.exit_code == 2

    def test_illegal_move(self) -> None:
        """Test that played moves are checked before starting the engine."""
        result = runner.invoke(app, ["analyse", "-e", "x", "--move", "e2e5"])
        assert result.exit_code == 2

    def test_malformed_option(self) -> None:
        """Test that engine options need NAME=VALUE."""
        result = runner.invoke(app, ["analyse", "-e", "x", "--option", "Threads"])
        assert result.exit_code == 2

    def test_bad_override(self) -> None:
        """Test that invalid config overrides are reported."""
        result = runner.invoke(app, ["analyse", "-e", "x", "--set", "session.ready_timeout=0"])
        assert result.exit_code == 2

    def test_engine_not_found(self, tmp_path: Path) -> None:
        """Test that a missing executable exits with status 1."""
        result = runner.invoke(app, ["options", "-e", str(tmp_path / "no-such-engine")])
        assert result.exit_code == 1


@posix_only
class TestWithEngine:
    """Tests running the scripted engine through the CLI."""

    def test_options(self, config_file: Path) -> None:
        """Test listing the declared options."""
        result = runner.invoke(app, ["options", "-c", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "Threads" in result.output
        assert "MultiPV" in result.output

    def test_analyse_multipv(self, config_file: Path) -> None:
        """Test a depth-limited MultiPV analysis."""
        result = runner.invoke(
            app,
            ["analyse", "-c", str(config_file), "--depth", "2", "--multipv", "2", "--san"],
        )
        assert result.exit_code == 0, result.output
        assert "Fakefish" in result.output
        assert "[2] score: +0.20 depth: 2" in result.output
        assert "bestmove e2e4 ponder e7e5" in result.output

    def test_option_out_of_range(self, config_file: Path) -> None:
        """Test that option errors map to their exit status."""
        result = runner.invoke(
            app, ["analyse", "-c", str(config_file), "--depth", "1", "-o", "Threads=9999"]
        )
        assert result.exit_code == EXIT_OPTION_ERROR
        assert "Threads" in result.output

    def test_timeout_stops_infinite_search(self, config_file: Path) -> None:
        """Test that --timeout ends an infinite search."""
        result = runner.invoke(app, ["analyse", "-c", str(config_file), "--timeout", "0.3"])
        assert result.exit_code == 0, result.output
        assert "bestmove e2e4" in result.output
