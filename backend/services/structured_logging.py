"""Structured event logging on top of the standard logging module.

Components receive a ``StructuredLogger`` instead of calling module loggers
with free text. Each event renders as a single line:

    retry.attempt_failed attempt=1 max_attempts=2 retryable=True

and carries the same fields in ``record.fields`` for handlers that ship
structured records.
"""

import logging
from typing import Any, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at INFO.
NOISY_LOGGERS = ("google_genai", "httpx", "httpcore", "urllib3")

_MASKED_FIELDS = frozenset({"key", "api_key", "token", "password", "private_key"})


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure root logging for the generation service.

    Call once at process startup; repeated calls do not add handlers.
    """
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}".rstrip("0").rstrip(".") or "0"
    text = str(value)
    if " " in text:
        return repr(text)
    return text


class StructuredLogger:
    """Emit ``component.event key=value`` records through a stdlib logger."""

    def __init__(self, component: str, logger: Optional[logging.Logger] = None):
        self.component = component
        self._logger = logger or logging.getLogger(f"bodyshape.{component}")

    def bind(self, component: str) -> "StructuredLogger":
        """Return a logger for another component sharing the same sink."""
        return StructuredLogger(component, self._logger)

    def event(self, name: str, *, level: int = logging.INFO, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        safe_fields = {
            k: ("***" if k.lower() in _MASKED_FIELDS else v)
            for k, v in fields.items()
            if v is not None
        }
        parts = [f"{self.component}.{name}"]
        parts.extend(f"{k}={_format_value(v)}" for k, v in safe_fields.items())
        self._logger.log(
            level,
            " ".join(parts),
            extra={
                "event": name,
                "component": self.component,
                "fields": safe_fields,
            },
        )

    def debug(self, name: str, **fields: Any) -> None:
        self.event(name, level=logging.DEBUG, **fields)

    def info(self, name: str, **fields: Any) -> None:
        self.event(name, level=logging.INFO, **fields)

    def warning(self, name: str, **fields: Any) -> None:
        self.event(name, level=logging.WARNING, **fields)

    def error(self, name: str, **fields: Any) -> None:
        self.event(name, level=logging.ERROR, **fields)


def get_structured_logger(component: str) -> StructuredLogger:
    return StructuredLogger(component)
