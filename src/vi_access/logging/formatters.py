"""Log formatters for JSON and console output."""

import json
import logging
import re
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from vi_access.logging.context import get_log_context
from vi_access.utils.json_serializers import json_serializer

# Query parameters whose values never reach a log sink
_SECRET_QUERY = re.compile(
    r"([?&])(accessToken|access_token|token|sig|key|secret|password|auth)=[^&]*",
    re.IGNORECASE,
)


def redact_url(url: str) -> str:
    """Replace secret query values in a URL with [REDACTED]."""
    return _SECRET_QUERY.sub(r"\1\2=[REDACTED]", url)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line, carrying the log context and known extras.

    Extras are whitelisted by FIELDS. A field mapped to a type is coerced
    to that type (None when it cannot be); URL-bearing fields are redacted.
    """

    FIELDS: dict[str, Callable[[Any], Any] | None] = {
        # http client
        "http_method": None,
        "http_url": None,
        "http_status": int,
        "client_name": None,
        "http_client_id": None,
        "duration_ms": float,
        "response_body": None,
        # retries
        "operation": None,
        "attempt": int,
        "max_attempts": int,
        "total_attempts": int,
        "delay_seconds": float,
        "delay_source": None,
        "server_retry_after": float,
        "timeout_seconds": float,
        "callback_error": None,
        # failures
        "error_type": None,
        "error_category": None,
        "error_message": None,
        # identity and token exchange
        "auth_mode": None,
        "tenant_id": None,
        "azure_client_id": None,
        "resource": None,
        "token_length": int,
        "permission": None,
        "scope": None,
        "video_id": None,
        "project_id": None,
        # accounts
        "account_name": None,
        "account_id": None,
        "location": None,
        "subscription_id": None,
        "resource_group": None,
        "account_count": int,
        # configuration
        "config_file": None,
        "config_section": None,
        "unknown_keys": None,
    }

    REDACTED_FIELDS = frozenset({"http_url", "url", "log_uri"})

    def _field_value(self, name: str, value: Any) -> Any:
        coerce = self.FIELDS.get(name)
        if coerce is not None:
            try:
                value = coerce(value)
            except (TypeError, ValueError):
                return None
        if name in self.REDACTED_FIELDS and isinstance(value, str):
            return redact_url(value)
        return value

    def _exception(self, record: logging.LogRecord) -> dict[str, Any]:
        exc_type, exc_value, _ = record.exc_info
        return {
            "type": getattr(exc_type, "__name__", None),
            "message": str(exc_value) if exc_value else None,
            "stacktrace": self.formatException(record.exc_info),
        }

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(UTC)
        entry: dict[str, Any] = {
            "ts": now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({k: v for k, v in get_log_context().items() if v})

        if record.levelno == logging.DEBUG or record.levelno >= logging.ERROR:
            entry["file"] = f"{record.filename}:{record.lineno}"

        for name in self.FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = self._field_value(name, value)

        if record.exc_info:
            entry["exception"] = self._exception(record)

        return json.dumps(entry, default=json_serializer, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Readable single-line output, colored by level when attached to a TTY."""

    LEVEL_COLORS = {
        "DEBUG": "36",
        "INFO": "32",
        "WARNING": "33",
        "ERROR": "31",
        "CRITICAL": "35",
    }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stdout.isatty()

    def _level(self, record: logging.LogRecord) -> str:
        code = self.LEVEL_COLORS.get(record.levelname)
        if not (self._use_colors and code):
            return record.levelname
        return f"\033[{code}m{record.levelname}\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        context = get_log_context()

        head = [datetime.now().strftime("%Y-%m-%d %H:%M:%S"), self._level(record), record.name]
        if context["component"]:
            head.append(f"[{context['component']}]")

        message = record.getMessage()
        if context["operation_id"]:
            message = f"[{context['operation_id']}] {message}"

        line = " - ".join(head) + f" - {message}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
