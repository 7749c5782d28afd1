"""Logging utilities for vuln-tree."""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

LOGGER_PREFIX = "vuln_tree"


class VulnTreeLogger:
    """Logger wrapper with rich console formatting."""

    def __init__(self, name: str, level: int = logging.NOTSET) -> None:
        self.logger = logging.getLogger(f"{LOGGER_PREFIX}.{name}")
        if level:
            self.logger.setLevel(level)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Attach a single rich handler to the package logger."""
        parent = logging.getLogger(LOGGER_PREFIX)
        if any(isinstance(handler, RichHandler) for handler in parent.handlers):
            return

        console = Console(stderr=True, theme=Theme({
            "info": "cyan",
            "warning": "yellow",
            "error": "red",
            "critical": "red bold",
            "debug": "dim",
        }))

        handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter(fmt="%(name)s: %(message)s", datefmt="[%X]"))

        parent.addHandler(handler)
        parent.propagate = False
        if parent.level == logging.NOTSET:
            parent.setLevel(logging.WARNING)

    @property
    def name(self) -> str:
        return self.logger.name

    def info(self, msg: str, **kwargs: Any) -> None:
        """Log info message."""
        self.logger.info(msg, extra=kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        """Log warning message."""
        self.logger.warning(msg, extra=kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        """Log error message."""
        self.logger.error(msg, extra=kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        """Log debug message."""
        self.logger.debug(msg, extra=kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        """Log critical message."""
        self.logger.critical(msg, extra=kwargs)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False
) -> None:
    """Setup logging configuration for vuln-tree.

    Args:
        level: Logging level of the vuln_tree loggers
        log_file: Optional log file path
        verbose: Enable debug logging
    """
    if verbose:
        level = logging.DEBUG

    logging.getLogger(LOGGER_PREFIX).setLevel(level)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logging.getLogger(LOGGER_PREFIX).addHandler(file_handler)

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> VulnTreeLogger:
    """Get a vuln-tree logger instance.

    Args:
        name: Logger name, nested under the ``vuln_tree`` logger

    Returns:
        Configured logger instance
    """
    return VulnTreeLogger(name)
