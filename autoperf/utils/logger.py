#!filepath: autoperf/utils/logger.py
import os
import sys
import json
from functools import wraps
from time import perf_counter
from loguru import logger
from typing import Any, Callable, Optional

from autoperf.utils.errors import AutoPerfError


class Logging:
    """
    Process-wide logger
    ---------------------------------------
    - stderr sink by default (library use)
    - daily rotating files once configure() is given a log dir
    - retention window for file sinks
    - function-level catch decorator
    ---------------------------------------
    """

    FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"

    def __init__(
        self,
        log_dir: Optional[str] = None,
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "INFO",
    ):
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level

        self._configure()

    def _configure(self) -> None:
        """
        Reset loguru sinks to match the current settings.
        """
        logger.remove()

        if self.log_dir is None:
            logger.add(
                sink=sys.stderr,
                level=self.level,
                format=self.FORMAT,
                backtrace=False,
                diagnose=False,
            )
            return

        os.makedirs(self.log_dir, exist_ok=True)
        logger.add(
            sink=f"{self.log_dir}/{{time:YYYY-MM-DD}}.log",
            rotation=self.rotation,
            retention=self.retention,
            level=self.level,
            format=self.FORMAT,
            enqueue=True,
            backtrace=True,
            diagnose=True,
        )
        logger.info("-----------Logger initialized.-----------")

    def configure(self, cfg: Any = None, *, level: Optional[str] = None) -> "Logging":
        """
        Apply a LogConfig (dir / rotation / retention / level).

        `level` overrides cfg.level (the CLI --verbose flag uses it).
        """
        if cfg is not None:
            self.log_dir = cfg.dir
            self.rotation = cfg.rotation
            self.retention = cfg.retention
            self.level = cfg.level
        if level is not None:
            self.level = level
        self._configure()
        return self

    # ----------- log methods -----------
    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        logger.exception(msg, *args, **kwargs)

    # ---------- decorator ----------
    def catch(
        self,
        msg: str = "Exception occurred",
        log_inputs: bool = False,
        log_outputs: bool = False,
        log_time: bool = True,
    ) -> Callable:

        def decorator(func: Callable):
            @wraps(func)
            def wrapper(*args, **kwargs):

                if log_inputs:
                    logger.debug(
                        f"[CALL] {func.__name__} args={args}, "
                        f"kwargs={json.dumps(kwargs, ensure_ascii=False, default=str)}"
                    )

                start = perf_counter()

                try:
                    result = func(*args, **kwargs)
                except AutoPerfError as e:
                    # expected failures: one line, no traceback
                    logger.error(f"[ERROR] {func.__name__}: {msg}: {e}")
                    raise
                except Exception:
                    logger.exception(f"[ERROR] {func.__name__}: {msg}")
                    raise

                if log_outputs:
                    logger.debug(f"[RETURN] {func.__name__} result={result}")

                if log_time:
                    cost = perf_counter() - start
                    logger.debug(f"[TIME] {func.__name__} took {cost:.4f}s")

                return result

            return wrapper

        return decorator


# global default; the CLI calls logs.configure(cfg.log)
logs = Logging()
