from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_LOG_STD_KEYS = {
    'name','msg','args','levelname','levelno','pathname','filename','module','exc_info','exc_text',
    'stack_info','lineno','funcName','created','msecs','relativeCreated','thread','threadName',
    'processName','process','asctime','taskName'
}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(tz=timezone.utc).isoformat()
        payload: dict[str, Any] = {
            "ts": now,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Include any extra fields that are simple JSON types
        for k, v in record.__dict__.items():
            if k in _LOG_STD_KEYS:
                continue
            if k.startswith('_'):
                continue
            if isinstance(v, (str, int, float, bool)) or v is None:
                payload[k] = v
            elif isinstance(v, (list, dict)):
                try:
                    json.dumps(v)
                except (TypeError, ValueError):
                    continue
                payload[k] = v
        return json.dumps(payload, ensure_ascii=False)


class ContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges call-site ``extra`` over the static fields."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


HOST_LOGGER = "strategy_host"


def get_json_logger(
    name: str,
    *,
    log_path: Path | None = None,
    level: int | None = None,
    static_fields: dict[str, Any] | None = None,
) -> ContextAdapter:
    """Create or fetch a JSON logger with optional file output and static fields.

    Env overrides (used only when `log_path` is None):
      - LOG_JSON_TO_FILE: when truthy ("1", "true", "yes"), log to a file.
      - LOG_FILE: path to JSONL log file (default: "user_data/logs/host.jsonl").

    Loggers under the ``strategy_host`` namespace inherit their level from the
    namespace logger (INFO unless changed via `set_host_log_level`). Stream
    handlers write to stderr so script output on stdout stays clean.

    Returns a LoggerAdapter that injects `static_fields` into each record.
    """
    host_root = logging.getLogger(HOST_LOGGER)
    if host_root.level == logging.NOTSET:
        host_root.setLevel(logging.INFO)

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)

    # Avoid duplicate handlers: add only if empty
    if not logger.handlers:
        effective_log_path = log_path
        if effective_log_path is None:
            _to_file = os.getenv("LOG_JSON_TO_FILE", "").strip().lower() in {"1", "true", "yes"}
            if _to_file:
                effective_log_path = Path(os.getenv("LOG_FILE", "user_data/logs/host.jsonl"))

        if effective_log_path is not None:
            effective_log_path.parent.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = logging.FileHandler(effective_log_path, encoding='utf-8')
        else:
            handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.propagate = False  # stay self-contained

    # Inject correlation_id from env if available and not explicitly set
    fields = dict(static_fields or {})
    _cid = os.getenv("CORRELATION_ID", "").strip()
    if _cid and "correlation_id" not in fields:
        fields["correlation_id"] = _cid
    return ContextAdapter(logger, extra=fields)


def set_host_log_level(level: int | str) -> int:
    """Set the level every ``strategy_host.*`` logger inherits. Returns the applied level.

    Unknown level names fall back to INFO.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    logging.getLogger(HOST_LOGGER).setLevel(level)
    return level
