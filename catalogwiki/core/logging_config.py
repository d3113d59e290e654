"""Structured logging configuration for catalogwiki.

Provides JSON-formatted logs in production and human-readable text in development.
Two contextvars are merged into every JSON record when set: ``request_id``
(set by the request context middleware) and ``task_id`` (set by the pipeline
and by each detail generation unit, so worker-thread logs stay attributable).
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Iterable, Optional


request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
task_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("task_id", default="")


class _JsonFormatter(logging.Formatter):
    """Emit each log record as a single JSON line.

    Merges any ``extra`` fields from the record into the top-level object
    so callers can do ``logger.info("msg", extra={"catalogue_id": "abc"})``
    and get ``{"catalogue_id": "abc"}`` alongside the standard fields.
    """

    _RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = request_id_var.get("")
        if rid:
            payload["request_id"] = rid
        tid = task_id_var.get("")
        if tid:
            payload["task_id"] = tid

        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in payload:
                payload[key] = value

        if record.exc_info:
            payload["exception"] = record.exc_text or self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


# ---------------------------------------------------------------------------
# Secret redaction: keeps model provider API keys out of log output
# ---------------------------------------------------------------------------

_SECRET_PATTERNS = [
    re.compile(r'\bsk-[a-zA-Z0-9_\-]{20,}'),      # OpenAI, Anthropic (sk-ant-), OpenRouter (sk-or-)
    re.compile(r'\bgsk_[a-zA-Z0-9]{20,}'),        # Groq
    re.compile(r'\bAIza[a-zA-Z0-9_\-]{30,}'),     # Google AI Studio
    re.compile(r'(?i)(api_key[=:]\s*)[^\s,\'"]{8,}'),
]

_REDACTED = "***REDACTED***"


class _SecretFilter(logging.Filter):
    """Redact provider keys from the rendered message and exception text.

    The message is rendered with its args first, so a key interpolated
    through ``%s`` (e.g. inside a provider error) is caught too. The
    configured ``LLM_API_KEY`` is always redacted verbatim.
    """

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.redact(record.getMessage())
        record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)
        return True

    def redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, _REDACTED)
        for pattern in _SECRET_PATTERNS:
            text = pattern.sub(
                lambda m: m.group(1) + _REDACTED if m.lastindex else _REDACTED,
                text,
            )
        return text


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    secrets: Iterable[str] = (),
) -> None:
    """Configure application-wide logging.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL. Defaults to INFO.
        log_format: ``"json"`` for structured output, ``"text"`` for human-readable.
                    Defaults to ``"json"``.
        secrets: Literal values to redact wherever they appear, such as the
                 configured provider key.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_SecretFilter(secrets))

    if fmt == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # LiteLLM logs full request payloads at INFO.
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
