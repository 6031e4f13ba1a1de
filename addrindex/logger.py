"""
addrindex Logging System
========================

Process-wide logging for the indexer. Integrates the standard Python
`logging` library with `rich` for highlighted output on stderr.

A single `LogManager` is created by the entry point before anything else
runs and configured from the resolved `Config`:

    >>> manager = LogManager()
    >>> manager.configure(verbosity=config.verbose, timestamp=config.timestamp)
    >>> logger = get_logger(__name__)

Configuration failures raise `LoggingInitError`; deciding to abort is left to
the caller.
"""

import logging
import re
import sys
import threading
from typing import IO, Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    LOGGER_DEFAULTS,
    VERBOSITY_LEVELS,
)
from .exceptions import LoggingInitError


def verbosity_to_level(verbosity: int) -> int:
    """
    Map the `-v` counter to a logging level.

    0 → ERROR, 1 → WARNING, 2 → INFO, 3 and above → DEBUG.
    """
    if verbosity < 0:
        raise LoggingInitError(f"invalid verbosity: {verbosity}")
    name = VERBOSITY_LEVELS[min(verbosity, len(VERBOSITY_LEVELS) - 1)]
    return getattr(logging, name)


class LogManager:
    """
    Owns the root logger configuration.

    Configuration happens exactly once per manager; the lock makes a racing
    second call fail instead of installing duplicate handlers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._configured = False
        self.level: Optional[int] = None


    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Validates the syntax of a logging format string.

        Checks that every `(name)x` specifier is preceded by `%` and formats a
        dummy record to catch runtime errors.

        Returns:
            str: The validated format string, or the default format if validation fails.
        """
        default = LOGGER_DEFAULTS['LOG_FORMAT']
        try:
            if not log_format:
                return default

            format_specifier_pattern = r"\([a-zA-Z_][a-zA-Z0-9_]*\)[a-zA-Z]"
            for match in re.finditer(format_specifier_pattern, log_format):
                start_pos = match.start()
                if start_pos == 0 or log_format[start_pos - 1] != "%":
                    raise ValueError("Malformed format specifier.")

            formatter = logging.Formatter(fmt=log_format)
            record = logging.LogRecord(
                name="test", level=logging.INFO, pathname="", lineno=0,
                msg="test", args=(), exc_info=None,
            )
            formatter.format(record)
            return log_format
        except (ValueError, KeyError, TypeError) as e:
            print(f"addrindex.logger - Invalid LOG_FORMAT: {e}. Using default.", file=sys.stderr)
            return default


    def configure(
        self,
        verbosity: int = 0,
        timestamp: bool = False,
        stream: Optional[IO[str]] = None,
        highlighting: Optional[bool] = None,
    ) -> None:
        """
        Configures the root logger with a single stderr handler.

        Args:
            verbosity (int): `-v` counter, see `verbosity_to_level`.
            timestamp (bool): Prefix records with millisecond-precision timestamps.
            stream (Optional[IO[str]]): Write plain records here instead of stderr.
            highlighting (Optional[bool]): Use the `rich` handler. Defaults to
                LOG_CONSOLE_HIGHLIGHTING from `.env`.

        Raises:
            LoggingInitError: if already configured or a handler cannot be created.
        """
        with self._lock:
            if self._configured:
                raise LoggingInitError("logging is already initialized")

            numeric_level = verbosity_to_level(verbosity)
            if highlighting is None:
                highlighting = LOG_CONSOLE_HIGHLIGHTING and stream is None

            log_format = self.validate_log_format(LOG_FORMAT)
            if timestamp:
                formatter = TerminalSafeFormatter(
                    fmt="%(asctime)s.%(msecs)03d - " + log_format,
                    datefmt=LOG_DATE_FORMAT,
                )
            else:
                formatter = TerminalSafeFormatter(fmt=log_format)

            try:
                if highlighting:
                    indexer_theme = Theme(
                        {
                            "addrindex.ip":             "cyan",
                            "addrindex.level_critical": "bold red reverse",
                            "addrindex.level_debug":    "bold dim",
                            "addrindex.level_error":    "bold red",
                            "addrindex.level_info":     "bold green",
                            "addrindex.level_warning":  "bold yellow",
                            "addrindex.logger_name":    "magenta",
                            "addrindex.path":           "blue",
                            "addrindex.tag":            "bold magenta",
                            "addrindex.timestamp":      "bold cyan",
                        }
                    )
                    console = Console(theme=indexer_theme, stderr=True, highlight=False)
                    handler: logging.Handler = RichHandler(
                        console=console,
                        highlighter=IndexerLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                else:
                    handler = logging.StreamHandler(stream or sys.stderr)
            except Exception as e:
                raise LoggingInitError(f"failed to create log handler: {e}") from e

            handler.setLevel(numeric_level)
            handler.setFormatter(formatter)

            root_logger = logging.getLogger()
            root_logger.handlers.clear()
            root_logger.setLevel(numeric_level)
            root_logger.addHandler(handler)

            self.level = numeric_level
            self._configured = True


    @property
    def is_configured(self) -> bool:
        """Returns True if the logging system has been successfully configured."""
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    A formatter that strips ANSI escape sequences and non-printable control
    characters, so values read from config files or the daemon cannot
    manipulate the operator's terminal.
    """

    # Matches ANSI CSI sequences (colors, cursor moves) and single ESC chars
    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    # Matches control chars (0x00-0x1F) excluding Tab and Newline
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
    _carriage_return_re = re.compile(r"\r")


    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        text = cls._ansi_escape_re.sub("", text)
        text = cls._carriage_return_re.sub("", text)
        text = cls._control_chars_re.sub("", text)
        return text


    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class IndexerLogHighlighter(RegexHighlighter):
    """Regex-based coloring for indexer log lines."""

    base_style = "addrindex."
    highlights = [
        r"(?P<ip>(?<!\d)\b((?:\d{1,3}\.){3}\d{1,3}(?::\d+)?)\b)",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+(?P<logger_name>addrindex[\w.]*)(?=\s-\s)",
        r"(?P<path>'/[^']*')",
        r"(?P<tag>\[.*?\])",
        r"(?P<timestamp>^\d{4}-\d{2}-\d{2}T[\d:.]+)",
    ]


def get_logger(name: str) -> logging.Logger:
    """
    Retrieves a logger for a module. Records are dropped by the root logger's
    level until a `LogManager` has been configured.
    """
    return logging.getLogger(name)
