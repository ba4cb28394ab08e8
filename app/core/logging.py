# app/core/logging.py
import json
import logging
from logging import Logger
from typing import Any, Dict, Optional
from contextvars import ContextVar


# request_id del request en curso, lo fija el middleware HTTP
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Atributos estándar de LogRecord que no se copian al JSON
_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """
    Formatea los logs como JSON estructurado, una línea por registro.

    Los campos pasados en `logger.info(..., extra={...})` se copian tal cual:
    - operation
    - resource
    - loan_id, book_id, user_id, etc.
    """

    def format(self, record: logging.LogRecord) -> str:
        log: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log:
                log[key] = value

        req_id = request_id_ctx.get()
        if req_id is not None and "request_id" not in log:
            log["request_id"] = req_id

        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> None:
    """
    Configura el logging global de la app para usar JSON estructurado.

    Se llama una vez al construir la aplicación.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Limpia handlers de JSON anteriores; los de pytest (caplog) se respetan
    for h in list(root.handlers):
        if isinstance(h.formatter, JsonFormatter):
            root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


def get_logger(name: str) -> Logger:
    """
    Helper para obtener loggers en tu código.
    Ejemplo:
        logger = get_logger("api.loans")
    """
    return logging.getLogger(name)
