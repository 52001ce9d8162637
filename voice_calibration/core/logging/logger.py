"""Structured logging setup with dual output"""

import structlog
import logging
import sys
from pathlib import Path
from typing import List

DEFAULT_LOG_FILE = "logs/voice_calibration.log"

# Processors shared by structlog events and foreign (stdlib) log records
_SHARED_PROCESSORS: List = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def _file_handler(log_file: str, level: int) -> logging.Handler:
    """File dostává vždy JSON - jeden řádek na event (kalibrace se dá zpětně vyhodnotit)."""
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        foreign_pre_chain=_SHARED_PROCESSORS,
    ))
    return handler


def _console_handler(mode: str) -> logging.Handler:
    """Terminál: development = barevný výpis všeho, production = jen errory."""
    handler = logging.StreamHandler(sys.stdout)

    if mode == "development":
        handler.setLevel(logging.DEBUG)
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        handler.setLevel(logging.ERROR)
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=_SHARED_PROCESSORS,
    ))
    return handler


def setup_logging(
    mode: str = "production",
    file_level: str = "DEBUG",
    log_file: str = DEFAULT_LOG_FILE
):
    """
    Setup dual logging:
    - Terminal: ERROR+ in production, DEBUG+ in development
    - File: JSON events at file_level+

    Both handlers sit on the stdlib root logger, so records from host
    libraries end up in the same file as calibration events.
    """
    file_log_level = getattr(logging, file_level.upper(), logging.DEBUG)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(_file_handler(log_file, file_log_level))
    root_logger.addHandler(_console_handler(mode))

    # Development shows everything; production never builds events below file level
    min_level = logging.DEBUG if mode == "development" else file_log_level

    structlog.configure(
        processors=_SHARED_PROCESSORS + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        cache_logger_on_first_use=True,
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return root_logger


def setup_production_logging(log_file: str = DEFAULT_LOG_FILE):
    """Production mode - čistý terminál, jen errory"""
    return setup_logging(mode="production", log_file=log_file)


def setup_dev_logging(log_file: str = DEFAULT_LOG_FILE):
    """Development mode - verbose terminál"""
    return setup_logging(mode="development", log_file=log_file)
