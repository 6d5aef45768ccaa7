"""
Structured Logging Module
Provides JSON-formatted logging for better integration with log aggregation tools
"""

import json
import logging
from typing import Any


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs log records as JSON, one object per line.

    Extra context is attached with ``logger.info("msg", extra={"extra_fields": {...}})``
    and merged into the top-level object, so a batch run can be queried with
    jq for e.g. every item whose cleaned output came back empty.

    PRIVACY STORY: The values the cleaner handles are article text and email
    bodies. Those belong in the output, not the logs, so any extra field whose
    name suggests raw content is replaced by a length marker.
    """

    # Field names that carry message content - never log their values
    CONTENT_FIELDS = {
        'body', 'content', 'text', 'html', 'raw', 'payload', 'message_body'
    }

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as JSON.

        Args:
            record: Python logging.LogRecord to format

        Returns:
            JSON string with structured log data
        """
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            filtered_extra = {
                k: self._redact_value(k, v)
                for k, v in record.extra_fields.items()
            }
            log_data.update(filtered_extra)

        return json.dumps(log_data, default=str)

    def _redact_value(self, key: str, value: Any) -> Any:
        """
        Replace content-bearing values with a length marker.

        Args:
            key: Field name
            value: Field value

        Returns:
            Original value, or "[REDACTED len=N]" for content fields
        """
        # "input_text" is content, "text_length" is not
        key_lower = key.lower()
        if key_lower in self.CONTENT_FIELDS or key_lower.rsplit("_", 1)[-1] in self.CONTENT_FIELDS:
            size = len(value) if hasattr(value, "__len__") else 0
            return f"[REDACTED len={size}]"
        return value
