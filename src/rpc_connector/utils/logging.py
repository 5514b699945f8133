"""Logging configuration and utilities."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, TYPE_CHECKING

import structlog
import colorlog
from structlog.typing import Processor

if TYPE_CHECKING:
    from ..config.settings import LoggingSettings


def setup_logging(
    settings: Optional["LoggingSettings"] = None,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None
) -> None:
    """Set up logging configuration."""
    from ..config.settings import LoggingSettings

    settings = settings or LoggingSettings()

    level = log_level or settings.level
    format_type = log_format or settings.format
    file_path = log_file if log_file is not None else settings.file_path

    # Configure standard library logging
    logging.basicConfig(level=getattr(logging, level.upper()))

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if file_path:
        setup_file_logging(file_path, level)

    setup_console_logging(level)


def setup_file_logging(file_path: str, level: str) -> None:
    """Set up file logging with rotation."""
    log_file = Path(file_path)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        file_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(getattr(logging, level.upper()))

    # Structlog already renders the message; keep the envelope minimal
    file_handler.setFormatter(logging.Formatter("%(message)s"))

    logging.getLogger().addHandler(file_handler)


def setup_console_logging(level: str) -> None:
    """Set up colored console logging."""
    root = logging.getLogger()

    # Replace the plain handler installed by basicConfig
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)

    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))

    console_formatter = colorlog.ColoredFormatter(
        "%(log_color)s%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        reset=True,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    )
    console_handler.setFormatter(console_formatter)

    root.addHandler(console_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


# Async handler timing decorator
def log_async_execution_time(func):
    """Decorator to log async function execution time."""
    import time
    import functools

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        logger = get_logger(func.__qualname__)
        start_time = time.monotonic()

        try:
            result = await func(*args, **kwargs)
            execution_time = time.monotonic() - start_time
            logger.debug(
                "Async function executed successfully",
                function=func.__name__,
                execution_time=f"{execution_time:.4f}s"
            )
            return result
        except Exception as e:
            execution_time = time.monotonic() - start_time
            logger.warning(
                "Async function execution failed",
                function=func.__name__,
                execution_time=f"{execution_time:.4f}s",
                error=str(e)
            )
            raise

    return wrapper
