#!filepath: virality/__init__.py

__version__ = "0.1.0"

from .utils.logger import Logging, logs  # noqa: E402
from .config.app_config import AppConfig  # noqa: E402

__all__ = [
    "logs", "Logging",
    "AppConfig",
    "__version__",
]
