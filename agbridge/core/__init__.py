"""Core functionality"""

from .config import get_config, set_config, clear_config_cache, get_env_config
from .logging import setup_logging, setup_logging_from_config, get_logger
from .utils import resolve_model

__all__ = [
    "get_config",
    "set_config",
    "clear_config_cache",
    "get_env_config",
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    "resolve_model",
]
