import logging
import json
import sys
from pathlib import Path
from typing import Optional


class SafeStreamHandler(logging.StreamHandler):
    """
    Stream handler that gracefully handles closed streams during shutdown.
    """

    def emit(self, record):
        try:
            super().emit(record)
        except (ValueError, OSError) as e:
            # Closed stderr at interpreter exit
            if "closed file" in str(e).lower() or "bad file descriptor" in str(e).lower():
                pass
            else:
                raise


class StructuredLogFormatter(logging.Formatter):
    """
    Formats log records as structured JSON with content context fields.
    """

    context_fields = ("object_id", "remote_id", "node_id", "class_identifier", "source")

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in self.context_fields:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            log_record["exception"] = record.exc_text
        return json.dumps(log_record, ensure_ascii=False)


def configure_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Centralized logging configuration for PowerContent.
    Sets up root logger with structured JSON output and safe stream handling,
    plus an optional debug-level file handler.
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    handler = SafeStreamHandler(sys.stderr)
    handler.setLevel(log_level.upper())
    handler.setFormatter(StructuredLogFormatter())
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredLogFormatter())
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.DEBUG)

    logging.getLogger("asyncio").setLevel("WARNING")
    logging.getLogger("aiohttp").setLevel("WARNING")
