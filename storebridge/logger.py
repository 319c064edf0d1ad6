"""Loguru logging for storebridge.

Library code logs through ``get_logger(__name__)``; nothing is emitted to a
configured sink until the application calls :func:`configure_logger`. Driver
libraries that use the standard ``logging`` module (SQLAlchemy, pymongo,
redis, the SQL drivers) are routed into the same sink.
"""

import logging
import sys
from inspect import currentframe

import typing as t
from loguru import logger
from pydantic_settings import SettingsConfigDict

from .config import Settings

if t.TYPE_CHECKING:
    from loguru import Logger, Record


class LoggerSettings(Settings):
    model_config = SettingsConfigDict(env_prefix="STOREBRIDGE_LOGGER_")

    verbose: bool = False
    log_level: str = "INFO"
    serialize: bool = False
    colorize: bool | None = None

    format: dict[str, str] = {
        "time": "<b><e>[</e> <w>{time:YYYY-MM-DD HH:mm:ss.SSS}</w> <e>]</e></b>",
        "level": " <level>{level:>8}</level>",
        "sep": " <b><w>in</w></b> ",
        "name": "<b>{extra[mod_name]:>20}</b>",
        "line": "<b><e>[</e><w>{line:^5}</w><e>]</e></b>",
        "message": "  <level>{message}</level>",
    }

    level_per_module: dict[str, str] = {}
    intercept: list[str] = [
        "sqlalchemy",
        "pymongo",
        "redis",
        "aiomysql",
        "asyncpg",
    ]


class InterceptHandler(logging.Handler):
    """Handler to intercept standard library logging and route to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = (currentframe(), 0)
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.bind(mod_name=record.name).opt(
            depth=depth,
            exception=record.exc_info,
        ).log(level, record.getMessage())


def _module_filter(settings: LoggerSettings) -> t.Callable[["Record"], bool]:
    # most specific module first
    thresholds = {
        name: logger.level(level.upper()).no
        for name, level in sorted(
            settings.level_per_module.items(),
            key=lambda item: len(item[0]),
            reverse=True,
        )
    }

    def _filter(record: "Record") -> bool:
        if not thresholds:
            return True
        mod_name = str(record["extra"].get("mod_name", record["name"]))
        for name, threshold in thresholds.items():
            if mod_name == name or mod_name.startswith(f"{name}."):
                return record["level"].no >= threshold
        return True

    return _filter


def configure_logger(settings: LoggerSettings | None = None) -> int:
    """Replace loguru's sinks with a single stderr sink; returns the sink id."""
    settings = settings or LoggerSettings()
    level = "DEBUG" if settings.verbose else settings.log_level.upper()
    logger.remove()
    logger.configure(extra={"mod_name": "storebridge"})
    sink_id = logger.add(
        sys.stderr,
        level=level,
        format="".join(settings.format.values()),
        filter=_module_filter(settings),
        serialize=settings.serialize,
        colorize=settings.colorize,
    )
    for name in settings.intercept:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
    return sink_id


def get_logger(name: str) -> "Logger":
    return logger.bind(mod_name=name)
