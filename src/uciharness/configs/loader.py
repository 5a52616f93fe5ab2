"""Configuration loading utilities."""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from omegaconf import DictConfig, OmegaConf

from uciharness.configs.schema import HarnessConfig, config_from_dict, config_to_dict


def load_config(
    config_path: str | Path | None = None, overrides: Iterable[str] | None = None
) -> DictConfig:
    """Build a config from an optional YAML file and dotlist overrides.

    Layers are merged in order, so ``overrides`` (e.g.
    ``["session.ready_timeout=5"]``) win over values from the file.

    Raises:
        FileNotFoundError: ``config_path`` is given but is not a file.
    """
    layers = []
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise FileNotFoundError(f"No harness config at {path}")
        layers.append(OmegaConf.load(path))
    layers.append(OmegaConf.from_dotlist(list(overrides or [])))
    return OmegaConf.merge(*layers)


def load_harness_config(
    config_path: str | Path | None = None, overrides: Iterable[str] | None = None
) -> HarnessConfig:
    """Load and validate a :class:`HarnessConfig`.

    Without a file, defaults are used and only ``overrides`` apply.
    """
    data = OmegaConf.to_container(load_config(config_path, overrides), resolve=True)
    return config_from_dict(data or {})


def save_config(config: HarnessConfig | DictConfig | dict[str, Any], path: str | Path) -> None:
    """Save a configuration to a YAML file.

    Args:
        config: Configuration to save.
        path: Path to save the configuration to.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(config, HarnessConfig):
        config = config_to_dict(config)
    if isinstance(config, dict):
        config = OmegaConf.create(config)

    OmegaConf.save(config, path)
