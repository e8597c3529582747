"""Root logger configuration for the library and the CLI."""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from vi_access.logging.context import set_log_context
from vi_access.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_LOG_DIR = Path("logs")
# Daily files, one week kept
ROTATION = {"when": "midnight", "interval": 1, "backupCount": 7}

# Azure SDK and HTTP client loggers held at WARNING
NOISY_LOGGERS = [
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "msal",
    "urllib3",
    "aiohttp",
    "asyncio",
]


def _level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value!r}")
    return level


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(log_file, encoding="utf-8", **ROTATION)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(
    name: str = "vi_access",
    log_dir: Path | str | None = None,
    json_format: bool = False,
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.DEBUG,
    suppress_noisy: bool = True,
    component: str | None = None,
    log_to_stdout: bool = True,
) -> logging.Logger:
    """
    Replace the root handlers with a console handler and, unless
    ``log_to_stdout`` is set, a daily-rotated JSON file ``<log_dir>/<name>.log``.

    The console prints ConsoleFormatter lines, or JSON when ``json_format``
    is set. ``component`` is stored in the log context for every record.
    Level arguments accept ints or names ("debug", "WARNING").
    """
    if component:
        set_log_context(component=component)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(_level(console_level))
    console.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    root.addHandler(console)

    log_file = None
    if not log_to_stdout:
        log_file = Path(log_dir or DEFAULT_LOG_DIR) / f"{name}.log"
        root.addHandler(_file_handler(log_file, _level(file_level)))

    if suppress_noisy:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug("Logging initialized: file=%s", log_file or "stdout only")
    return logger
