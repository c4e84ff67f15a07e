#!filepath: autoperf/__init__.py

from .utils.logger import Logging, logs
from .utils.filesystem import FileSystem
from .utils.datetime_utils import DateTimeUtils
from .config.app_config import AppConfig

datetime_utils = DateTimeUtils

# alias
fs = FileSystem

__version__ = "0.3.0"

__all__ = [
    "logs", "Logging",
    "fs",
    "AppConfig",
    "datetime_utils",
    "__version__",
]
