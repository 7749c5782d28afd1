"""Output formatters for vuln-tree results."""

from .formatters import ConsoleFormatter, JSONFormatter

__all__ = ["ConsoleFormatter", "JSONFormatter"]
