"""uciharness: drive UCI chess engines from Python.

The engine driver lives in `uciharness.uci`:
- `from uciharness.uci import open_session, GoMode`

Shared utilities:
- `from uciharness import setup_logging, load_config`
"""

__version__ = "0.1.0"

from loguru import logger

# Library code stays silent until the application opts in via setup_logging()
logger.disable("uciharness")

# Re-export common utilities for convenience
from uciharness.configs import HarnessConfig, load_config, load_harness_config, save_config
from uciharness.uci import EngineSession, GoMode, SearchResult, open_session
from uciharness.utils import setup_logging

__all__ = [
    "EngineSession",
    "GoMode",
    "HarnessConfig",
    "SearchResult",
    "__version__",
    "load_config",
    "load_harness_config",
    "open_session",
    "save_config",
    "setup_logging",
]
