"""Strongly-typed configuration schemas for uciharness.

These dataclasses provide validation, IDE support, and serve as the
single source of truth for all configuration options.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uciharness.uci.search import GoMode


@dataclass
class SessionConfig:
    """Timeouts and stream settings for one engine session."""

    handshake_timeout: float = 10.0  # Seconds to wait for uciok
    ready_timeout: float = 10.0  # Seconds to wait for readyok
    quit_timeout: float = 2.0  # Grace period after quit before killing
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """Validate timeouts."""
        for name in ("handshake_timeout", "ready_timeout", "quit_timeout"):
            value = getattr(self, name)
            if value <= 0:
                msg = f"{name} must be positive, got {value}"
                raise ValueError(msg)


@dataclass
class EngineConfig:
    """Which engine to run and how to configure it after the handshake."""

    path: str | None = None  # Falls back to UCI_ENGINE in the CLI
    args: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)  # Sent via setoption


@dataclass
class AnalysisConfig:
    """Position and search limits for an analysis run.

    At most one of depth, movetime_ms and mate may be set; with none of
    them the search is infinite and must be stopped.
    """

    fen: str | None = None  # None = standard start position
    moves: list[str] = field(default_factory=list)
    depth: int | None = None
    movetime_ms: int | None = None
    mate: int | None = None
    multipv: int = 1

    def __post_init__(self) -> None:
        """Validate search limits."""
        limits = [v for v in (self.depth, self.movetime_ms, self.mate) if v is not None]
        if len(limits) > 1:
            msg = "Only one of depth, movetime_ms and mate can be set"
            raise ValueError(msg)
        if self.multipv < 1:
            msg = f"multipv must be at least 1, got {self.multipv}"
            raise ValueError(msg)

    def go_mode(self) -> "GoMode":
        """Build the search limit described by this config."""
        from uciharness.uci.search import GoMode

        if self.depth is not None:
            return GoMode.depth(self.depth)
        if self.movetime_ms is not None:
            return GoMode.movetime(self.movetime_ms)
        if self.mate is not None:
            return GoMode.mate(self.mate)
        return GoMode.infinite()


@dataclass
class HarnessConfig:
    """Top-level configuration combining all sub-configs."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    log_level: str = "WARNING"
    log_file: Path | None = None

    def __post_init__(self) -> None:
        """Convert string to Path if needed."""
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)


def config_from_dict(data: dict[str, Any]) -> HarnessConfig:
    """Create HarnessConfig from a dictionary (e.g., from OmegaConf).

    Args:
        data: Dictionary with configuration values.

    Returns:
        HarnessConfig instance.
    """
    return HarnessConfig(
        engine=EngineConfig(**data.get("engine", {})),
        session=SessionConfig(**data.get("session", {})),
        analysis=AnalysisConfig(**data.get("analysis", {})),
        log_level=data.get("log_level", "WARNING"),
        log_file=data.get("log_file"),
    )


def config_to_dict(config: HarnessConfig) -> dict[str, Any]:
    """Convert HarnessConfig to a dictionary for serialization.

    Args:
        config: HarnessConfig instance.

    Returns:
        Dictionary representation.
    """
    result = asdict(config)
    # Convert Path objects to strings for YAML serialization
    if result["log_file"] is not None:
        result["log_file"] = str(result["log_file"])
    return result
