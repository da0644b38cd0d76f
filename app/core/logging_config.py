"""
Logging configuration for the application
"""
import logging
import sys
import json
from contextvars import ContextVar
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from app.core.config import settings

# Context variables populated per request by the middleware and the store dependency
request_id_context: ContextVar[str] = ContextVar('request_id', default='system')
store_id_context: ContextVar[Optional[int]] = ContextVar('store_id', default=None)

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName',
    'relativeCreated', 'thread', 'threadName', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'request_id', 'store_id',
}

def _context_fields(record: logging.LogRecord) -> Dict[str, Any]:
    request_id = getattr(record, 'request_id', None) or request_id_context.get()
    store_id = getattr(record, 'store_id', None)
    if store_id is None:
        store_id = store_id_context.get()
    return {"request_id": request_id, "store_id": store_id if store_id is not None else '-'}

class JSONFormatter(logging.Formatter):
    """Structured formatter: one JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_context_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Anything passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)

class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        fields = _context_fields(record)
        record.request_id = fields["request_id"]
        record.store_id = fields["store_id"]
        return super().format(record)

def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ("text" or "json")
    """
    level = log_level or settings.LOG_LEVEL
    fmt = log_format or settings.LOG_FORMAT

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if fmt.lower() == "json":
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] [store=%(store_id)s] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    # passlib warns about the bcrypt version on import; harmless
    logging.getLogger("passlib.handlers.bcrypt").setLevel(logging.ERROR)

class ContextLoggerAdapter(logging.LoggerAdapter):
    """Adds request_id and store_id from context unless given explicitly"""

    def process(self, msg, kwargs):
        extra = kwargs.setdefault('extra', {})
        extra.setdefault('request_id', request_id_context.get())
        store_id = store_id_context.get()
        if store_id is not None:
            extra.setdefault('store_id', store_id)
        return msg, kwargs

def get_logger(name: str) -> logging.LoggerAdapter:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger adapter carrying request/store context
    """
    return ContextLoggerAdapter(logging.getLogger(name), {})
